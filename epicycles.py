"""Epicycle chains: a spectrum plus a frame index turned into circles and a tip point."""

import math
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CircleDescriptor:
    center: tuple
    radius: float
    angle: float

    @property
    def tip(self):
        cx, cy = self.center
        return (cx + self.radius * math.cos(self.angle), cy - self.radius * math.sin(self.angle))


@dataclass(frozen=True)
class EpicycleLayout:
    """Where the two chains are anchored on a width x height canvas.

    The x-axis chain hangs from the top edge at `x_chain_offset`, the y-axis
    chain from the left edge at `y_chain_offset`.
    """
    width: float
    height: float
    x_chain_offset: float = 100.0
    y_chain_offset: float = 200.0

    @property
    def x_origin(self):
        return (self.width / 2, self.x_chain_offset)

    @property
    def y_origin(self):
        return (self.y_chain_offset, self.height / 2)

    @classmethod
    def from_config(cls, canvas):
        return cls(canvas.width, canvas.height, canvas.x_chain_offset, canvas.y_chain_offset)


X_AXIS_PHASE = 0.0
Y_AXIS_PHASE = -math.pi / 2


# ----------------------------
# Chain evaluation
# ----------------------------
def render_chain(spectrum, frame_index, start, global_phase=0.0):
    """Walk the spectrum in its given order, one circle per component.

    Returns (circles, tip). y grows downward on screen, hence the minus on sin.
    """
    N = len(spectrum)
    x, y = float(start[0]), float(start[1])
    chain = []
    for c in spectrum:
        radius = abs(c.amplitude) / N
        angle = 2 * math.pi * frame_index * c.freq / N + float(np.angle(c.amplitude)) + global_phase
        chain.append(CircleDescriptor((x, y), radius, angle))
        x += radius * math.cos(angle)
        y -= radius * math.sin(angle)
    return tuple(chain), (x, y)


def render_axes(spectrum_x, spectrum_y, frame_index, layout):
    """Both chains for one frame: ((chain_x, tip_x), (chain_y, tip_y))."""
    return (
        render_chain(spectrum_x, frame_index, layout.x_origin, X_AXIS_PHASE),
        render_chain(spectrum_y, frame_index, layout.y_origin, Y_AXIS_PHASE),
    )


def reconstruct_point(spectrum_x, spectrum_y, frame_index, layout):
    (_, tip_x), (_, tip_y) = render_axes(spectrum_x, spectrum_y, frame_index, layout)
    return (tip_x[0], tip_y[1])


def guide_lines(tip_x, tip_y, width, height, edge_margin=200.0):
    """Guide segments for one frame: ((start, end), (start, end)).

    A vertical line through the x-axis tip and a horizontal one through the
    y-axis tip, each reaching the canvas edge on the side the redrawn point
    lies on. Points closer than `edge_margin` to the top or left edge send
    the line back toward that edge.
    """
    x1, y1 = tip_x
    x2, y2 = tip_y
    if y2 >= edge_margin:
        vertical = ((x1, y1), (x1, float(height)))
    else:
        vertical = ((x1, 0.0), (x1, y1))
    if x1 >= edge_margin:
        horizontal = ((x2, y2), (float(width), y2))
    else:
        horizontal = ((0.0, y2), (x2, y2))
    return vertical, horizontal
