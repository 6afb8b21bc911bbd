"""
Discrete Fourier transform of one coordinate axis of a stroke.

A spectrum is a tuple of SpectralComponent values. Sorting by magnitude
permutes the tuple, so `freq` is the only record of a component's frequency;
everything downstream indexes by it, never by position.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SpectralComponent:
    freq: int
    amplitude: complex

    @property
    def magnitude(self) -> float:
        return abs(self.amplitude)

    @property
    def phase(self) -> float:
        return float(np.angle(self.amplitude))


# magnitudes agreeing to this many decimals count as equal when sorting;
# conjugate bins of a real signal differ only by rounding noise
MAGNITUDE_DECIMALS = 9


def _sort_key(component):
    # equal magnitudes: lower original frequency first
    return (-round(component.magnitude, MAGNITUDE_DECIMALS), component.freq)


# ----------------------------
# DFT
# ----------------------------
def dft(samples, sort_by_magnitude=False):
    """Direct O(N^2) DFT, no 1/N normalisation.

    X[k] = sum_n x[n] * (cos(2*pi*n*k/N) - i*sin(2*pi*n*k/N)), stored with freq=k.
    With `sort_by_magnitude` the components come back largest first.
    """
    x = np.asarray(samples, dtype=float)
    N = len(x)
    if N == 0:
        return ()
    n = np.arange(N)
    coeffs = []
    for k in range(N):
        # n*k reduced mod N keeps the angle in [0, 2*pi)
        exp = np.exp(-2j * np.pi * ((n * k) % N) / N)
        coeffs.append(SpectralComponent(k, complex(np.sum(x * exp))))
    if sort_by_magnitude:
        coeffs.sort(key=_sort_key)
    return tuple(coeffs)


# ----------------------------
# Inverse DFT
# ----------------------------
def idft(spectrum):
    """Reconstruct the real samples from a spectrum in any order."""
    N = len(spectrum)
    if N == 0:
        return []
    freqs = np.array([c.freq for c in spectrum], dtype=np.int64)
    amps = np.array([c.amplitude for c in spectrum], dtype=complex)
    out = []
    for n in range(N):
        exp = np.exp(2j * np.pi * ((freqs * n) % N) / N)
        out.append(float(np.sum(amps * exp).real) / N)
    return out


def shift_sequence(samples, shift):
    return [s + shift for s in samples]
