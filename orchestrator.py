"""
Animation state machine.

`transition(context, event)` is pure: it returns the next context and a list
of effects for the caller (the runner) to carry out. Nothing here touches the
screen, the disk or the pre-render pool.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum

from fourier import dft, idft, shift_sequence


class State(IntEnum):
    PREPARING = 0
    START = 1
    DRAWING = 2
    REVEALING = 3
    COMPUTING = 4
    PRERENDERING = 5
    FOURIER = 6
    END = 7


@dataclass(frozen=True)
class AnimationContext:
    width: float
    height: float
    use_prerender: bool = True
    state: State = State.PREPARING
    points: tuple = ()
    reveal_index: int = 0
    frame_index: int = 0
    spectrum_x: tuple = ()
    spectrum_y: tuple = ()
    fourier_points: tuple = ()
    rendered_count: int = 0
    show_points: bool = False
    show_circles: bool = False

    @property
    def frame_count(self):
        return len(self.spectrum_x)

    @property
    def revealed_points(self):
        return self.points[:self.reveal_index]


# ----------------------------
# Events
# ----------------------------
@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class StartPressed:
    pass


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float


@dataclass(frozen=True)
class FourierPressed:
    pass


@dataclass(frozen=True)
class SkipReveal:
    pass


@dataclass(frozen=True)
class ClearPressed:
    pass


@dataclass(frozen=True)
class SavePressed:
    pass


@dataclass(frozen=True)
class LoadPressed:
    pass


@dataclass(frozen=True)
class PointsLoaded:
    points: tuple = None


@dataclass(frozen=True)
class SetShowPoints:
    enabled: bool


@dataclass(frozen=True)
class SetShowCircles:
    enabled: bool


@dataclass(frozen=True)
class PrerenderProgress:
    rendered_count: int


@dataclass(frozen=True)
class PrerenderFailed:
    frame_index: int
    message: str = ""


# ----------------------------
# Effects
# ----------------------------
@dataclass(frozen=True)
class SavePoints:
    points: tuple


@dataclass(frozen=True)
class LoadPoints:
    pass


@dataclass(frozen=True)
class StartPrerender:
    spectrum_x: tuple
    spectrum_y: tuple
    path: tuple = field(default=())


@dataclass(frozen=True)
class RenderBatch:
    pass


@dataclass(frozen=True)
class DiscardFrames:
    pass


@dataclass(frozen=True)
class Notify:
    level: str
    message: str


def _with_stroke(ctx, points):
    """New stroke: spectra, path and cached frames all become stale."""
    return replace(ctx, points=tuple(points), reveal_index=0, frame_index=0,
                   spectrum_x=(), spectrum_y=(), fourier_points=(), rendered_count=0)


def _compute(ctx):
    xs = shift_sequence([p[0] for p in ctx.points], -ctx.width / 2)
    ys = shift_sequence([p[1] for p in ctx.points], -ctx.height / 2)
    spectrum_x = dft(xs, sort_by_magnitude=True)
    spectrum_y = dft(ys, sort_by_magnitude=True)
    path = tuple(zip(shift_sequence(idft(spectrum_x), ctx.width / 2),
                     shift_sequence(idft(spectrum_y), ctx.height / 2)))
    ctx = replace(ctx, spectrum_x=spectrum_x, spectrum_y=spectrum_y,
                  fourier_points=path, frame_index=0)

    if not ctx.use_prerender:
        return replace(ctx, state=State.FOURIER), []
    if ctx.rendered_count == ctx.frame_count:
        # same stroke as the frames already cached
        return replace(ctx, state=State.FOURIER), []
    return (replace(ctx, state=State.PRERENDERING, rendered_count=0),
            [StartPrerender(spectrum_x, spectrum_y, path)])


def _drawing(ctx, event):
    if isinstance(event, PointerDown):
        point = (float(event.x), float(event.y))
        if ctx.points and ctx.points[-1] == point:
            return ctx, []
        effects = [DiscardFrames()] if ctx.rendered_count else []
        return _with_stroke(ctx, ctx.points + (point,)), effects
    if isinstance(event, ClearPressed):
        return _with_stroke(ctx, ()), [DiscardFrames()]
    if isinstance(event, SavePressed):
        return ctx, [SavePoints(ctx.points)]
    if isinstance(event, LoadPressed):
        return ctx, [LoadPoints()]
    if isinstance(event, PointsLoaded):
        if event.points is None:
            return ctx, [Notify("warning", "Unable to read points from file.")]
        return _with_stroke(ctx, event.points), [DiscardFrames()]
    if isinstance(event, FourierPressed) and ctx.points:
        return replace(ctx, state=State.REVEALING, reveal_index=0, frame_index=0), []
    return ctx, []


def transition(ctx, event):
    """Advance the machine by one event. Returns (context, effects)."""
    if ctx.state == State.END:
        return ctx, []

    if isinstance(event, SetShowPoints):
        return replace(ctx, show_points=bool(event.enabled)), []
    if isinstance(event, SetShowCircles):
        return replace(ctx, show_circles=bool(event.enabled)), []

    state = ctx.state
    if state == State.PREPARING:
        if isinstance(event, Tick):
            return replace(ctx, state=State.START), []
        return ctx, []

    if state == State.START:
        if isinstance(event, StartPressed):
            return replace(ctx, state=State.DRAWING), []
        return ctx, []

    if state == State.DRAWING:
        return _drawing(ctx, event)

    if isinstance(event, ClearPressed):
        return replace(_with_stroke(ctx, ()), state=State.DRAWING), [DiscardFrames()]

    if state == State.REVEALING:
        if isinstance(event, SkipReveal):
            return replace(ctx, reveal_index=len(ctx.points)), []
        if isinstance(event, Tick):
            if ctx.reveal_index < len(ctx.points):
                return replace(ctx, reveal_index=ctx.reveal_index + 1), []
            return replace(ctx, state=State.COMPUTING), []
        return ctx, []

    if state == State.COMPUTING:
        if isinstance(event, Tick):
            return _compute(ctx)
        return ctx, []

    if state == State.PRERENDERING:
        if isinstance(event, Tick):
            return ctx, [RenderBatch()]
        if isinstance(event, PrerenderProgress):
            count = max(ctx.rendered_count, event.rendered_count)
            if count >= ctx.frame_count:
                return replace(ctx, rendered_count=ctx.frame_count, frame_index=0, state=State.FOURIER), []
            return replace(ctx, rendered_count=count), []
        if isinstance(event, PrerenderFailed):
            message = f"Pre-rendering failed at frame {event.frame_index}. {event.message}".strip()
            return (replace(ctx, state=State.DRAWING, rendered_count=0),
                    [DiscardFrames(), Notify("error", message)])
        return ctx, []

    if state == State.FOURIER:
        if isinstance(event, Tick):
            if ctx.frame_index < ctx.frame_count - 1:
                return replace(ctx, frame_index=ctx.frame_index + 1), []
            return replace(ctx, state=State.DRAWING), []
        return ctx, []

    return ctx, []
