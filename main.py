#!/usr/bin/env python3
"""
Fourier Board

Draw a stroke, then watch two chains of epicycles (one per axis) redraw it.

Features:
- Freehand drawing on a fixed logical canvas
- Save / load strokes as "x, y" text files
- Reveal of the raw stroke, then DFT of both coordinate sequences
- Frames pre-rendered in parallel batches before playback
- Point and epicycle-circle overlays (C/V, D/F keys), S skips the reveal
- MP4 and GIF export of the pre-rendered frames
- Headless export from the command line
"""

import argparse
import sys

from PyQt6.QtWidgets import (
    QApplication, QWidget, QPushButton, QVBoxLayout, QHBoxLayout, QCheckBox,
    QFileDialog, QDialog, QLabel, QSpinBox, QMessageBox, QProgressBar
)
from PyQt6.QtCore import Qt, QTimer, QPointF, QRectF
from PyQt6.QtGui import QPainter, QColor, QPen, QBrush

from config import load_config
from epicycles import guide_lines
from logging_utils import get_log_level, log_event, set_log_level
from orchestrator import (
    ClearPressed, FourierPressed, LoadPressed, PointerDown, PointsLoaded, SavePressed,
    SetShowCircles, SetShowPoints, SkipReveal, StartPressed, State,
)
from point_file import read_points
from runner import AnimationRunner
from video_export import export_animation

TRAIL_COLOR = QColor(96, 96, 96, 160)
STROKE_COLOR = QColor(64, 64, 64)
DOT_COLOR = QColor(192, 192, 192)
ARM_COLOR = QColor(150, 150, 150)
CIRCLE_COLOR = QColor(150, 150, 150, 110)


# ----------------------------
# Canvas
# ----------------------------
class Canvas(QWidget):
    """Paints the runner's context; mouse positions are mapped to canvas coordinates."""

    def __init__(self, runner, parent=None):
        super().__init__(parent)
        self.runner = runner
        self.canvas_w = runner.config.canvas.width
        self.canvas_h = runner.config.canvas.height
        self.setMinimumSize(640, int(640 * self.canvas_h / self.canvas_w))

    def _scale(self):
        return min(self.width() / self.canvas_w, self.height() / self.canvas_h)

    def _to_canvas(self, pos):
        s = self._scale()
        return pos.x() / s, pos.y() / s

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self.runner.dispatch(PointerDown(*self._to_canvas(event.position())))
            self.update()

    def mouseMoveEvent(self, event):
        if event.buttons() & Qt.MouseButton.LeftButton:
            self.runner.dispatch(PointerDown(*self._to_canvas(event.position())))
            self.update()

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), Qt.GlobalColor.black)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        s = self._scale()
        painter.scale(s, s)

        ctx = self.runner.context
        state = ctx.state
        if state == State.START:
            self.draw_text(painter, self.canvas_w / 2 - 120, self.canvas_h / 2, "Press Start to begin drawing", 16)
        elif state == State.DRAWING:
            self.draw_path(painter, ctx.points, STROKE_COLOR, ctx.show_points)
        elif state == State.REVEALING:
            self.draw_text(painter, self.canvas_w / 2 - 40, 20, "Press S to skip")
            self.draw_path(painter, ctx.revealed_points, STROKE_COLOR, ctx.show_points)
        elif state == State.PRERENDERING:
            self.draw_progress(painter, ctx.rendered_count, ctx.frame_count)
        elif state == State.FOURIER:
            frame = self.runner.current_frame()
            if frame is not None:
                self.draw_frame(painter, frame, ctx.show_circles, ctx.show_points)

        if state not in (State.PREPARING, State.START):
            if ctx.show_points:
                self.draw_text(painter, 20, 20, "Points visualization: enabled      - Press V to disable")
            else:
                self.draw_text(painter, 20, 20, "Points visualization: disabled     - Press C to enable")
            if ctx.show_circles:
                self.draw_text(painter, 20, 40, "Epicycles visualization: enabled   - Press F to disable")
            else:
                self.draw_text(painter, 20, 40, "Epicycles visualization: disabled  - Press D to enable")
        painter.end()

    # ----------------------------
    # Drawing helpers
    # ----------------------------
    def draw_text(self, painter, x, y, text, size=10):
        font = painter.font()
        font.setPointSize(size)
        painter.setFont(font)
        painter.setPen(QPen(Qt.GlobalColor.white))
        painter.drawText(QPointF(x, y), text)

    def draw_path(self, painter, points, color, show_dots, dot_radius=3.0):
        painter.setPen(QPen(color, 1))
        for i in range(1, len(points)):
            painter.drawLine(QPointF(*points[i-1]), QPointF(*points[i]))
        if show_dots:
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(DOT_COLOR))
            for p in points[1:]:
                painter.drawEllipse(QPointF(*p), dot_radius, dot_radius)
            painter.setBrush(Qt.BrushStyle.NoBrush)

    def draw_progress(self, painter, done, total):
        frac = done / total if total else 0.0
        cx, cy = self.canvas_w / 2, self.canvas_h / 2
        self.draw_text(painter, cx - 60, cy - 10, f"Prerendering: {frac * 100:.2f}%", 12)
        painter.setPen(QPen(Qt.GlobalColor.white, 1))
        painter.drawRect(QRectF(cx - 200, cy + 10, 400, 40))
        painter.fillRect(QRectF(cx - 200, cy + 10, 400 * frac, 40), Qt.GlobalColor.white)

    def draw_frame(self, painter, frame, show_circles, show_points):
        self.draw_path(painter, frame.trail, TRAIL_COLOR, show_points, dot_radius=4.0)
        for chain in (frame.chain_x, frame.chain_y):
            for circle in chain:
                center = QPointF(*circle.center)
                if show_circles:
                    painter.setPen(QPen(CIRCLE_COLOR, 1))
                    painter.drawEllipse(center, circle.radius, circle.radius)
                painter.setPen(QPen(ARM_COLOR, 1))
                painter.drawLine(center, QPointF(*circle.tip))

        painter.setPen(QPen(Qt.GlobalColor.white, 1))
        for start, end in guide_lines(frame.tip_x, frame.tip_y, self.canvas_w, self.canvas_h):
            painter.drawLine(QPointF(*start), QPointF(*end))
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(255, 0, 0, 100)))
        painter.drawEllipse(QPointF(*frame.tip_x), 6.0, 6.0)
        painter.setBrush(QBrush(QColor(0, 255, 0, 100)))
        painter.drawEllipse(QPointF(*frame.tip_y), 6.0, 6.0)
        painter.setBrush(Qt.BrushStyle.NoBrush)


# ----------------------------
# Main Widget
# ----------------------------
class FourierBoard(QWidget):
    def __init__(self, config, initial_points=None):
        super().__init__()
        self.setWindowTitle("Fourier Board")
        self.resize(1280, 800)
        self.config = config

        self.runner = AnimationRunner(
            config,
            choose_open_path=self.choose_open_path,
            choose_save_path=self.choose_save_path,
            on_notice=self.show_notice,
        )
        self.canvas = Canvas(self.runner)
        self.initial_points = initial_points

        self.setup_ui()
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        # Timer
        self.timer = QTimer()
        self.timer.timeout.connect(self.update_frame)
        self.timer.start(max(1, int(1000 / config.animation.tick_hz)))

    # ----------------------------
    # UI creation
    # ----------------------------
    def setup_ui(self):
        main_layout = QVBoxLayout()
        main_layout.addWidget(self.canvas, 1)

        row = QHBoxLayout()
        self.start_btn = QPushButton("Start")
        self.start_btn.clicked.connect(lambda: self.runner.dispatch(StartPressed()))
        row.addWidget(self.start_btn)

        self.clear_btn = QPushButton("Clear")
        self.clear_btn.clicked.connect(lambda: self.runner.dispatch(ClearPressed()))
        row.addWidget(self.clear_btn)

        self.save_btn = QPushButton("Save")
        self.save_btn.clicked.connect(lambda: self.runner.dispatch(SavePressed()))
        row.addWidget(self.save_btn)

        self.load_btn = QPushButton("Load")
        self.load_btn.clicked.connect(lambda: self.runner.dispatch(LoadPressed()))
        row.addWidget(self.load_btn)

        self.fourier_btn = QPushButton("Fourier")
        self.fourier_btn.clicked.connect(lambda: self.runner.dispatch(FourierPressed()))
        row.addWidget(self.fourier_btn)

        self.points_chk = QCheckBox("Show points")
        self.points_chk.setChecked(self.config.animation.show_points)
        self.points_chk.toggled.connect(lambda on: self.runner.dispatch(SetShowPoints(on)))
        row.addWidget(self.points_chk)

        self.circles_chk = QCheckBox("Show epicycles")
        self.circles_chk.setChecked(self.config.animation.show_circles)
        self.circles_chk.toggled.connect(lambda on: self.runner.dispatch(SetShowCircles(on)))
        row.addWidget(self.circles_chk)

        self.export_btn = QPushButton("Export (MP4/GIF)")
        self.export_btn.clicked.connect(self.show_export_dialog)
        row.addWidget(self.export_btn)

        self.progress = QProgressBar()
        self.progress.setVisible(False)
        row.addWidget(self.progress)

        main_layout.addLayout(row)
        self.setLayout(main_layout)

    def sync_controls(self):
        ctx = self.runner.context
        drawing = ctx.state == State.DRAWING
        self.start_btn.setEnabled(ctx.state == State.START)
        for btn in (self.save_btn, self.load_btn):
            btn.setEnabled(drawing)
        self.fourier_btn.setEnabled(drawing and bool(ctx.points))
        self.clear_btn.setEnabled(ctx.state not in (State.PREPARING, State.START, State.COMPUTING))
        self.export_btn.setEnabled(
            ctx.frame_count > 0 and self.runner.pipeline.rendered_count == ctx.frame_count)
        if self.points_chk.isChecked() != ctx.show_points:
            self.points_chk.setChecked(ctx.show_points)
        if self.circles_chk.isChecked() != ctx.show_circles:
            self.circles_chk.setChecked(ctx.show_circles)

    # ----------------------------
    # Frame update (one tick)
    # ----------------------------
    def update_frame(self):
        self.runner.tick()
        if self.initial_points is not None and self.runner.state == State.START:
            self.runner.dispatch(StartPressed())
            self.runner.dispatch(PointsLoaded(tuple(self.initial_points)))
            self.initial_points = None
        self.sync_controls()
        self.canvas.update()

    def keyPressEvent(self, event):
        key = event.key()
        if key == Qt.Key.Key_C:
            self.runner.dispatch(SetShowPoints(True))
        elif key == Qt.Key.Key_V:
            self.runner.dispatch(SetShowPoints(False))
        elif key == Qt.Key.Key_D:
            self.runner.dispatch(SetShowCircles(True))
        elif key == Qt.Key.Key_F:
            self.runner.dispatch(SetShowCircles(False))
        elif key == Qt.Key.Key_S:
            self.runner.dispatch(SkipReveal())
        else:
            super().keyPressEvent(event)

    # ----------------------------
    # Dialog collaborators
    # ----------------------------
    def choose_open_path(self):
        fname, _ = QFileDialog.getOpenFileName(self, "Load Points", "", "Text files (*.txt)")
        return fname or None

    def choose_save_path(self):
        fname, _ = QFileDialog.getSaveFileName(self, "Save Points", "", "Text files (*.txt)")
        if fname and not fname.lower().endswith(".txt"):
            fname += ".txt"
        return fname or None

    def show_notice(self, level, message):
        if level == "error":
            QMessageBox.critical(self, "Fourier Board", message)
        elif level == "warning":
            QMessageBox.warning(self, "Fourier Board", message)

    # ----------------------------
    # Export
    # ----------------------------
    def show_export_dialog(self):
        dlg = QDialog(self)
        dlg.setWindowTitle("Export Animation")
        layout = QVBoxLayout()

        layout.addWidget(QLabel("FPS:"))
        fps_spin = QSpinBox()
        fps_spin.setRange(1, 60)
        fps_spin.setValue(self.config.export.fps)
        layout.addWidget(fps_spin)

        layout.addWidget(QLabel("Width (px):"))
        width_spin = QSpinBox()
        width_spin.setRange(100, 3840)
        width_spin.setValue(self.config.export.width or self.config.canvas.width)
        layout.addWidget(width_spin)

        circles_cb = QCheckBox("Draw epicycle circles")
        circles_cb.setChecked(self.config.export.show_circles)
        layout.addWidget(circles_cb)

        points_cb = QCheckBox("Draw points")
        points_cb.setChecked(self.config.export.show_points)
        layout.addWidget(points_cb)

        buttons = QHBoxLayout()
        ok = QPushButton("Export")
        cancel = QPushButton("Cancel")
        buttons.addWidget(ok)
        buttons.addWidget(cancel)
        layout.addLayout(buttons)
        dlg.setLayout(layout)

        cancel.clicked.connect(dlg.close)

        def do_export():
            fname, _ = QFileDialog.getSaveFileName(self, "Save Animation", "", "MP4 Files (*.mp4);;GIF Files (*.gif)")
            if not fname:
                return
            if not fname.lower().endswith((".mp4", ".gif")):
                fname += ".mp4"
            self.timer.stop()
            self.progress.setVisible(True)
            self.progress.setValue(0)
            QApplication.processEvents()

            def on_progress(done, total):
                self.progress.setValue(int(100 * done / total))
                QApplication.processEvents()

            try:
                export_animation(
                    self.runner.frames(), fname,
                    (self.config.canvas.width, self.config.canvas.height),
                    fps=fps_spin.value(), width=width_spin.value(),
                    show_circles=circles_cb.isChecked(), show_points=points_cb.isChecked(),
                    progress=on_progress,
                )
                QMessageBox.information(self, "Export", f"Saved to {fname}")
            except (OSError, ValueError) as e:
                log_event("error", "Export", "Export failed", path=fname, error=e)
                QMessageBox.warning(self, "Export Error", str(e))
            finally:
                self.progress.setVisible(False)
                self.timer.start()
            dlg.close()

        ok.clicked.connect(do_export)
        dlg.exec()

    def closeEvent(self, event):
        self.timer.stop()
        self.runner.close()
        super().closeEvent(event)


# ----------------------------
# Headless export
# ----------------------------
def export_headless(config, points, filename, pipeline=None):
    """Run a stroke through the state machine without a window and export it.

    Raises RuntimeError when pre-rendering fails and the board falls back to
    drawing.
    """
    config.prerender.enabled = True
    runner = AnimationRunner(config, pipeline=pipeline)
    try:
        runner.tick()
        runner.dispatch(StartPressed())
        runner.dispatch(PointsLoaded(tuple(points)))
        runner.dispatch(FourierPressed())
        runner.dispatch(SkipReveal())
        while runner.state != State.FOURIER:
            if runner.state == State.DRAWING:
                raise RuntimeError("pre-rendering did not complete")
            runner.tick()
        return export_animation(
            runner.frames(), filename, (config.canvas.width, config.canvas.height),
            fps=config.export.fps, width=config.export.width or None,
            show_circles=config.export.show_circles, show_points=config.export.show_points,
        )
    finally:
        runner.close()


def build_parser():
    parser = argparse.ArgumentParser(description="Redraw a freehand stroke with Fourier epicycles.")
    parser.add_argument("--config", help="path to a JSON config file")
    parser.add_argument("--points", help="stroke file to preload (\"x, y\" per line)")
    parser.add_argument("--no-prerender", action="store_true", help="compute frames live instead of ahead of playback")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--export", metavar="OUT", help="export --points to OUT (.mp4/.gif) and exit")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    if args.log_level:
        config.log_level = args.log_level
    set_log_level(config.log_level)
    log_event("debug", "App", "Starting", log_level=get_log_level(), config=args.config or "default")
    if args.no_prerender:
        config.prerender.enabled = False

    points = None
    if args.points:
        points = read_points(args.points)
        if points is None:
            log_event("error", "App", "Unable to read points from file.", path=args.points)
            return 1

    if args.export:
        if not points:
            log_event("error", "App", "--export needs a non-empty --points file")
            return 2
        try:
            export_headless(config, points, args.export)
        except (OSError, RuntimeError) as e:
            log_event("error", "Export", "Export failed", path=args.export, error=e)
            return 3
        return 0

    QApplication.setHighDpiScaleFactorRoundingPolicy(Qt.HighDpiScaleFactorRoundingPolicy.PassThrough)
    app = QApplication(sys.argv[:1])
    w = FourierBoard(config, initial_points=points)
    w.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
