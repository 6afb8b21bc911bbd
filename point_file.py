"""Stroke points as a two-column text file: one ``x, y`` line per point."""

import math

from logging_utils import log_event


def _parse_decimal(field):
    text = field.strip()
    value = float(text)
    # float() also takes nan, inf and digit separators
    if "_" in text or not math.isfinite(value):
        raise ValueError(f"not a finite decimal: {text!r}")
    return value


def write_points(path, points):
    """Write points with 6 fractional digits. OSError propagates."""
    with open(path, "w", encoding="utf-8") as f:
        for x, y in points:
            f.write(f"{x:f}, {y:f}\n")
    log_event("info", "PointFile", "Saved points", path=path, count=len(points))


def read_points(path):
    """Read points back, or None if the file can't be opened or holds a bad number.

    Lines that don't split into exactly two fields are skipped. A field that
    isn't a number rejects the whole file; no partial list is returned.
    """
    points = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                parts = line.rstrip("\r\n").split(",")
                if len(parts) != 2:
                    continue
                try:
                    x = _parse_decimal(parts[0])
                    y = _parse_decimal(parts[1])
                except ValueError:
                    log_event("warning", "PointFile", "Malformed number, file rejected", path=path, line=lineno)
                    return None
                points.append((x, y))
    except (OSError, UnicodeDecodeError) as e:
        log_event("warning", "PointFile", "Unable to read points", path=path, error=e)
        return None
    log_event("info", "PointFile", "Loaded points", path=path, count=len(points))
    return points
