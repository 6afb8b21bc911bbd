"""
Pre-render pipeline: every animation frame computed ahead of playback.

Frames are dispatched in fixed-size batches to a thread pool. Each worker
writes only its own cache slot; the coordinator (the thread calling
`render_batch`) joins the whole batch before advancing `rendered_count`, so
the cursor always names a contiguous prefix of complete frames.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass

from epicycles import render_axes
from logging_utils import log_event


@dataclass(frozen=True)
class FrameArtifact:
    index: int
    chain_x: tuple
    chain_y: tuple
    tip_x: tuple
    tip_y: tuple
    path: tuple       # the whole reconstructed path, shared by every frame

    @property
    def point(self):
        return (self.tip_x[0], self.tip_y[1])

    @property
    def trail(self):
        return self.path[:self.index]


class FrameRenderError(RuntimeError):
    def __init__(self, frame_index, message=""):
        super().__init__(message or f"frame {frame_index} failed to render")
        self.frame_index = frame_index


def build_frame(spectrum_x, spectrum_y, frame_index, layout, path=()):
    (chain_x, tip_x), (chain_y, tip_y) = render_axes(spectrum_x, spectrum_y, frame_index, layout)
    return FrameArtifact(frame_index, chain_x, chain_y, tip_x, tip_y, tuple(path))


@dataclass(frozen=True)
class _Job:
    generation: int
    spectrum_x: tuple
    spectrum_y: tuple
    layout: object
    path: tuple
    cache: list


class PrerenderPipeline:
    def __init__(self, batch_size=10, max_workers=10, frame_builder=build_frame):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.frame_builder = frame_builder
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="prerender")
        self._lock = threading.Lock()
        self._generation = 0
        self._job = None
        self._rendered = 0

    # ----------------------------
    # Job lifecycle
    # ----------------------------
    def start(self, spectrum_x, spectrum_y, layout, path=()):
        if len(spectrum_x) != len(spectrum_y):
            raise ValueError("spectra must have the same length")
        with self._lock:
            self._generation += 1
            self._job = _Job(self._generation, tuple(spectrum_x), tuple(spectrum_y),
                             layout, tuple(path), [None] * len(spectrum_x))
            self._rendered = 0
        log_event("info", "Prerender", "Job started", frames=len(spectrum_x), batch=self.batch_size)

    def reset(self):
        """Drop the cache and cursors; a batch still in flight is discarded on join."""
        with self._lock:
            self._generation += 1
            self._job = None
            self._rendered = 0

    def close(self):
        self.reset()
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ----------------------------
    # Progress
    # ----------------------------
    @property
    def frame_count(self):
        job = self._job
        return len(job.cache) if job is not None else 0

    @property
    def rendered_count(self):
        return self._rendered

    @property
    def done(self):
        return self._job is not None and self._rendered == len(self._job.cache)

    def frame(self, index):
        with self._lock:
            job, rendered = self._job, self._rendered
        if job is None or not 0 <= index < rendered:
            raise IndexError(f"frame {index} is not rendered")
        return job.cache[index]

    def frames(self):
        with self._lock:
            job, rendered = self._job, self._rendered
        if job is None:
            return []
        return job.cache[:rendered]

    # ----------------------------
    # Rendering
    # ----------------------------
    def _is_stale(self, job):
        with self._lock:
            return self._job is not job or job.generation != self._generation

    def _render_into(self, job, index):
        job.cache[index] = self.frame_builder(job.spectrum_x, job.spectrum_y, index, job.layout, job.path)
        return index

    def render_batch(self):
        """Render the next batch and return the new rendered_count."""
        with self._lock:
            job, first = self._job, self._rendered
        if job is None:
            return 0
        last = min(first + self.batch_size, len(job.cache))
        if first >= last:
            return first

        futures = {self._executor.submit(self._render_into, job, i): i for i in range(first, last)}
        wait(futures)

        if self._is_stale(job):
            log_event("debug", "Prerender", "Discarded stale batch", first=first, last=last - 1)
            return self._rendered

        errors = {i: f.exception() for f, i in futures.items() if f.exception() is not None}
        if errors:
            index = min(errors)
            cause = errors[index]
            log_event("error", "Prerender", "Frame failed", frame=index, error=cause)
            raise FrameRenderError(index, f"frame {index} failed to render: {cause}") from cause

        with self._lock:
            if self._job is not job or job.generation != self._generation:
                return self._rendered
            self._rendered = last
        log_event("debug", "Prerender", "Batch done", rendered=last, total=len(job.cache))
        return last

    def run(self):
        while not self.done and self._job is not None:
            self.render_batch()
        return self.frames()


def precompute(spectrum_x, spectrum_y, frame_count, layout, path=(), batch_size=10, max_workers=10):
    """One-shot pre-render of the first `frame_count` frames."""
    if frame_count > len(spectrum_x):
        raise ValueError("frame_count exceeds spectrum length")
    with PrerenderPipeline(batch_size, max_workers) as pipeline:
        pipeline.start(spectrum_x, spectrum_y, layout, path)
        while pipeline.rendered_count < frame_count:
            pipeline.render_batch()
        return pipeline.frames()[:frame_count]
