"""Drives the state machine: feeds events in, carries effects out."""

from collections import deque

from config import Config
from epicycles import EpicycleLayout
from logging_utils import log_event
from orchestrator import (
    AnimationContext, DiscardFrames, LoadPoints, Notify, PointsLoaded, PrerenderFailed,
    PrerenderProgress, RenderBatch, SavePoints, StartPrerender, State, Tick, transition,
)
from point_file import read_points, write_points
from prerender import FrameRenderError, PrerenderPipeline, build_frame


class AnimationRunner:
    def __init__(self, config=None, pipeline=None, choose_open_path=None, choose_save_path=None,
                 on_notice=None):
        self.config = config or Config()
        self.layout = EpicycleLayout.from_config(self.config.canvas)
        self.pipeline = pipeline or PrerenderPipeline(self.config.prerender.batch_size,
                                                      self.config.prerender.max_workers)
        # path choosers return None when the user cancels
        self.choose_open_path = choose_open_path
        self.choose_save_path = choose_save_path
        self.on_notice = on_notice
        self._context = AnimationContext(
            width=self.config.canvas.width,
            height=self.config.canvas.height,
            use_prerender=self.config.prerender.enabled,
            show_points=self.config.animation.show_points,
            show_circles=self.config.animation.show_circles,
        )
        self._pending = deque()
        self._dispatching = False

    @property
    def context(self):
        return self._context

    @property
    def state(self):
        return self._context.state

    def tick(self):
        return self.dispatch(Tick())

    def dispatch(self, event):
        """Process `event` plus any events its effects produce, in order."""
        self._pending.append(event)
        if self._dispatching:
            return self._context
        self._dispatching = True
        try:
            while self._pending:
                event = self._pending.popleft()
                before = self._context.state
                self._context, effects = transition(self._context, event)
                if self._context.state != before:
                    log_event("debug", "State", f"{before.name} -> {self._context.state.name}",
                              event=type(event).__name__)
                for effect in effects:
                    self._apply(effect)
        finally:
            self._dispatching = False
        return self._context

    # ----------------------------
    # Effects
    # ----------------------------
    def _apply(self, effect):
        if isinstance(effect, RenderBatch):
            try:
                count = self.pipeline.render_batch()
            except FrameRenderError as e:
                self._pending.append(PrerenderFailed(e.frame_index, str(e.__cause__ or "")))
            else:
                self._pending.append(PrerenderProgress(count))
        elif isinstance(effect, StartPrerender):
            self.pipeline.start(effect.spectrum_x, effect.spectrum_y, self.layout, effect.path)
        elif isinstance(effect, DiscardFrames):
            self.pipeline.reset()
        elif isinstance(effect, SavePoints):
            self._save(effect.points)
        elif isinstance(effect, LoadPoints):
            self._load()
        elif isinstance(effect, Notify):
            self._notify(effect.level, effect.message)

    def _save(self, points):
        path = self.choose_save_path() if self.choose_save_path else None
        if not path:
            return
        try:
            write_points(path, points)
        except OSError as e:
            self._notify("warning", f"Unable to write points to file. {e}")

    def _load(self):
        path = self.choose_open_path() if self.choose_open_path else None
        if not path:
            return
        self._pending.append(PointsLoaded(read_points(path)))

    def _notify(self, level, message):
        log_event(level, "App", message)
        if self.on_notice:
            self.on_notice(level, message)

    # ----------------------------
    # Frames for the renderer
    # ----------------------------
    def current_frame(self):
        """Frame artifact for the frame cursor, or None outside playback."""
        ctx = self._context
        if ctx.state != State.FOURIER or ctx.frame_count == 0:
            return None
        if ctx.use_prerender and ctx.frame_index < self.pipeline.rendered_count:
            return self.pipeline.frame(ctx.frame_index)
        return build_frame(ctx.spectrum_x, ctx.spectrum_y, ctx.frame_index, self.layout, ctx.fourier_points)

    def frames(self):
        return self.pipeline.frames()

    def close(self):
        self.pipeline.close()
