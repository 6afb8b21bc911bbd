import unittest
from dataclasses import replace

from orchestrator import (
    AnimationContext, ClearPressed, DiscardFrames, FourierPressed, LoadPoints, LoadPressed, Notify,
    PointerDown, PointsLoaded, PrerenderFailed, PrerenderProgress, RenderBatch, SavePoints, SavePressed,
    SetShowCircles, SetShowPoints, SkipReveal, StartPrerender, StartPressed, State, Tick, transition,
)

STROKE = ((10.0, 10.0), (20.0, 15.0), (30.0, 30.0), (25.0, 40.0))


def run(ctx, *events):
    effects = []
    for event in events:
        ctx, out = transition(ctx, event)
        effects.extend(out)
    return ctx, effects


def drawing(points=STROKE, use_prerender=True):
    ctx = AnimationContext(width=100, height=80, use_prerender=use_prerender)
    ctx, _ = run(ctx, Tick(), StartPressed(), PointsLoaded(points))
    return ctx


class TestStartup(unittest.TestCase):
    def test_preparing_to_drawing(self):
        ctx = AnimationContext(width=100, height=80)
        self.assertEqual(ctx.state, State.PREPARING)
        ctx, _ = transition(ctx, Tick())
        self.assertEqual(ctx.state, State.START)
        ctx, _ = transition(ctx, Tick())
        self.assertEqual(ctx.state, State.START)
        ctx, _ = transition(ctx, StartPressed())
        self.assertEqual(ctx.state, State.DRAWING)

    def test_end_is_terminal(self):
        ctx = replace(AnimationContext(width=1, height=1), state=State.END)
        for event in (Tick(), StartPressed(), ClearPressed(), SetShowPoints(True)):
            self.assertEqual(transition(ctx, event), (ctx, []))


class TestDrawing(unittest.TestCase):
    def test_pointer_appends_distinct_points(self):
        ctx = drawing(points=())
        ctx, _ = run(ctx, PointerDown(1, 2), PointerDown(1, 2), PointerDown(3, 4), PointerDown(1, 2))
        self.assertEqual(ctx.points, ((1.0, 2.0), (3.0, 4.0), (1.0, 2.0)))

    def test_fourier_needs_points(self):
        ctx = drawing(points=())
        ctx, _ = transition(ctx, FourierPressed())
        self.assertEqual(ctx.state, State.DRAWING)

    def test_clear_save_load(self):
        ctx = drawing()
        ctx2, effects = transition(ctx, SavePressed())
        self.assertEqual(effects, [SavePoints(STROKE)])
        self.assertIs(ctx2, ctx)
        _, effects = transition(ctx, LoadPressed())
        self.assertEqual(effects, [LoadPoints()])
        cleared, effects = transition(ctx, ClearPressed())
        self.assertEqual(cleared.points, ())
        self.assertIn(DiscardFrames(), effects)

    def test_failed_load_keeps_stroke(self):
        ctx = drawing()
        after, effects = transition(ctx, PointsLoaded(None))
        self.assertEqual(after.points, STROKE)
        self.assertEqual(len(effects), 1)
        self.assertIsInstance(effects[0], Notify)
        self.assertEqual(effects[0].level, "warning")

    def test_toggles_do_not_change_state(self):
        ctx = drawing()
        ctx, effects = run(ctx, SetShowPoints(True), SetShowCircles(True))
        self.assertEqual(ctx.state, State.DRAWING)
        self.assertTrue(ctx.show_points)
        self.assertTrue(ctx.show_circles)
        self.assertEqual(effects, [])


class TestRevealAndCompute(unittest.TestCase):
    def test_reveal_advances_then_computes(self):
        ctx = drawing(use_prerender=False)
        ctx, _ = transition(ctx, FourierPressed())
        self.assertEqual(ctx.state, State.REVEALING)
        for i in range(1, len(STROKE) + 1):
            ctx, _ = transition(ctx, Tick())
            self.assertEqual(ctx.reveal_index, i)
            self.assertEqual(ctx.revealed_points, STROKE[:i])
        ctx, _ = transition(ctx, Tick())
        self.assertEqual(ctx.state, State.COMPUTING)
        ctx, effects = transition(ctx, Tick())
        self.assertEqual(ctx.state, State.FOURIER)
        self.assertEqual(effects, [])
        self.assertEqual(ctx.frame_count, len(STROKE))
        for got, want in zip(ctx.fourier_points, STROKE):
            self.assertAlmostEqual(got[0], want[0], places=6)
            self.assertAlmostEqual(got[1], want[1], places=6)

    def test_skip_reveal(self):
        ctx = drawing()
        ctx, _ = run(ctx, FourierPressed(), SkipReveal())
        self.assertEqual(ctx.reveal_index, len(STROKE))
        ctx, _ = transition(ctx, Tick())
        self.assertEqual(ctx.state, State.COMPUTING)

    def test_compute_centres_on_canvas(self):
        ctx = drawing(points=((50.0, 40.0), (50.0, 40.0 + 1e-3)))
        ctx, _ = run(ctx, FourierPressed(), SkipReveal(), Tick())
        ctx, effects = transition(ctx, Tick())
        dc = [c for c in ctx.spectrum_x if c.freq == 0][0]
        # x is exactly at the canvas centre, so the mean term vanishes
        self.assertAlmostEqual(abs(dc.amplitude), 0.0, places=9)
        self.assertEqual(ctx.state, State.PRERENDERING)
        self.assertIsInstance(effects[0], StartPrerender)


class TestPrerenderAndPlayback(unittest.TestCase):
    def prerendering(self):
        ctx = drawing()
        ctx, effects = run(ctx, FourierPressed(), SkipReveal(), Tick(), Tick())
        self.assertEqual(ctx.state, State.PRERENDERING)
        self.assertEqual(len(effects), 1)
        start = effects[0]
        self.assertIsInstance(start, StartPrerender)
        self.assertEqual(start.spectrum_x, ctx.spectrum_x)
        self.assertEqual(start.path, ctx.fourier_points)
        return ctx

    def test_tick_requests_batches_until_done(self):
        ctx = self.prerendering()
        ctx, effects = transition(ctx, Tick())
        self.assertEqual(effects, [RenderBatch()])
        ctx, _ = transition(ctx, PrerenderProgress(2))
        self.assertEqual((ctx.state, ctx.rendered_count), (State.PRERENDERING, 2))
        ctx, _ = transition(ctx, PrerenderProgress(len(STROKE)))
        self.assertEqual(ctx.state, State.FOURIER)
        self.assertEqual(ctx.frame_index, 0)

    def test_playback_loops_back_to_drawing(self):
        ctx = self.prerendering()
        ctx, _ = transition(ctx, PrerenderProgress(len(STROKE)))
        for i in range(1, len(STROKE)):
            ctx, _ = transition(ctx, Tick())
            self.assertEqual(ctx.frame_index, i)
        ctx, _ = transition(ctx, Tick())
        self.assertEqual(ctx.state, State.DRAWING)
        self.assertEqual(ctx.points, STROKE)

    def test_replay_uses_cached_frames(self):
        ctx = self.prerendering()
        ctx, _ = transition(ctx, PrerenderProgress(len(STROKE)))
        ctx = replace(ctx, state=State.DRAWING)
        ctx, effects = run(ctx, FourierPressed(), SkipReveal(), Tick(), Tick())
        self.assertEqual(ctx.state, State.FOURIER)
        self.assertEqual(effects, [])

    def test_new_point_invalidates_cache(self):
        ctx = self.prerendering()
        ctx, _ = transition(ctx, PrerenderProgress(len(STROKE)))
        ctx = replace(ctx, state=State.DRAWING)
        ctx, effects = transition(ctx, PointerDown(99, 1))
        self.assertEqual(effects, [DiscardFrames()])
        self.assertEqual(ctx.rendered_count, 0)
        self.assertEqual(ctx.spectrum_x, ())

    def test_clear_during_prerender_resets(self):
        ctx = self.prerendering()
        ctx, _ = transition(ctx, PrerenderProgress(2))
        ctx, effects = transition(ctx, ClearPressed())
        self.assertEqual(ctx.state, State.DRAWING)
        self.assertEqual((ctx.rendered_count, ctx.frame_index, ctx.points), (0, 0, ()))
        self.assertEqual(effects, [DiscardFrames()])
        # late progress from the discarded job is ignored
        late, _ = transition(ctx, PrerenderProgress(4))
        self.assertEqual(late, ctx)

    def test_failure_returns_to_drawing(self):
        ctx = self.prerendering()
        ctx, effects = transition(ctx, PrerenderFailed(3, "boom"))
        self.assertEqual(ctx.state, State.DRAWING)
        self.assertEqual(ctx.rendered_count, 0)
        self.assertEqual(effects[0], DiscardFrames())
        self.assertEqual(effects[1].level, "error")
        self.assertIn("3", effects[1].message)


if __name__ == "__main__":
    unittest.main()
