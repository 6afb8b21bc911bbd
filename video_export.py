"""
Offline export of pre-rendered frames: GIF via imageio, MP4 via OpenCV.

Frames are rasterized with cv2 straight onto numpy arrays, so exporting
needs no window and can run from worker threads.
"""

import cv2
import imageio
import numpy as np

from epicycles import guide_lines
from logging_utils import log_event

# BGR
BACKGROUND = (0, 0, 0)
TRAIL_COLOR = (96, 96, 96)
ARM_COLOR = (150, 150, 150)
CIRCLE_COLOR = (90, 90, 90)
DOT_COLOR = (255, 255, 255)
X_TIP_COLOR = (0, 0, 255)
Y_TIP_COLOR = (0, 255, 0)
GUIDE_COLOR = (255, 255, 255)


def _pt(p):
    return (int(round(p[0])), int(round(p[1])))


def rasterize_frame(frame, width, height, show_circles=False, show_points=False):
    """Draw one FrameArtifact into a (height, width, 3) uint8 BGR image."""
    img = np.zeros((height, width, 3), dtype=np.uint8)
    img[:] = BACKGROUND

    trail = frame.trail
    if len(trail) > 1:
        pts = np.array([_pt(p) for p in trail], dtype=np.int32).reshape(-1, 1, 2)
        cv2.polylines(img, [pts], False, TRAIL_COLOR, 1, cv2.LINE_AA)
    if show_points:
        for p in trail[1:]:
            cv2.circle(img, _pt(p), 4, DOT_COLOR, -1, cv2.LINE_AA)

    for chain in (frame.chain_x, frame.chain_y):
        for circle in chain:
            if show_circles:
                cv2.circle(img, _pt(circle.center), int(round(circle.radius)), CIRCLE_COLOR, 1, cv2.LINE_AA)
            cv2.line(img, _pt(circle.center), _pt(circle.tip), ARM_COLOR, 1, cv2.LINE_AA)

    for start, end in guide_lines(frame.tip_x, frame.tip_y, width, height):
        cv2.line(img, _pt(start), _pt(end), GUIDE_COLOR, 1, cv2.LINE_AA)
    cv2.circle(img, _pt(frame.tip_x), 6, X_TIP_COLOR, -1, cv2.LINE_AA)
    cv2.circle(img, _pt(frame.tip_y), 6, Y_TIP_COLOR, -1, cv2.LINE_AA)
    return img


def export_animation(frames, filename, canvas_size, fps=60, width=None,
                     show_circles=True, show_points=False, progress=None):
    """Write `frames` to `filename` (.gif through imageio, anything else as mp4v video).

    `canvas_size` is the (width, height) the frames were laid out on; `width`
    rescales the output keeping the aspect ratio. `progress(done, total)` is
    called after each frame.
    """
    frames = list(frames)
    if not frames:
        raise ValueError("no frames to export")
    canvas_w, canvas_h = canvas_size
    if not width:
        width = canvas_w
    height = int(width * canvas_h / canvas_w)
    total = len(frames)
    is_gif = str(filename).lower().endswith(".gif")

    log_event("info", "Export", "Exporting", path=filename, frames=total, fps=fps, size=f"{width}x{height}")

    def _images():
        for i, frame in enumerate(frames):
            img = rasterize_frame(frame, canvas_w, canvas_h, show_circles, show_points)
            if (width, height) != (canvas_w, canvas_h):
                img = cv2.resize(img, (width, height), interpolation=cv2.INTER_AREA)
            yield img
            if progress:
                progress(i + 1, total)

    if is_gif:
        rgb = [cv2.cvtColor(img, cv2.COLOR_BGR2RGB) for img in _images()]
        imageio.mimsave(filename, rgb, duration=1000.0 / fps, loop=0)
    else:
        fourcc = cv2.VideoWriter_fourcc(*'mp4v')
        out = cv2.VideoWriter(str(filename), fourcc, fps, (width, height))
        if not out.isOpened():
            raise OSError(f"could not open video writer for {filename}")
        try:
            for img in _images():
                out.write(img)
        finally:
            out.release()

    log_event("info", "Export", "Saved", path=filename)
    return filename
