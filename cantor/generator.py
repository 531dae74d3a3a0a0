"""Utilities for managing Cantor-square zoom sequences and viewer state."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .renderer import MAX_ITERATIONS, MAX_ZOOM, MIN_ZOOM, Anchor, FrameRequest

EASINGS = ("loop", "linear", "ease")

ZOOM_STEP = 1.25
SMOOTHING = 0.15
PAN_FRACTION = 0.02


def clamp_zoom(zoom: float) -> float:
    """Clamp ``zoom`` into the range the renderer accepts."""

    if math.isnan(zoom):
        return MIN_ZOOM
    return float(min(max(zoom, MIN_ZOOM), MAX_ZOOM))


def smooth_zoom(zoom: float, target_zoom: float, smoothing: float) -> float:
    """Move ``zoom`` a fraction ``smoothing`` of the way toward ``target_zoom``."""

    return clamp_zoom(zoom + (target_zoom - zoom) * smoothing)


def compute_zoom_levels(frames: int, start_zoom: float, final_zoom: float, *, easing: str) -> np.ndarray:
    """Compute the absolute zoom of every frame in an animation.

    ``final_zoom`` is the overall magnification across the sequence. With the
    ``loop`` easing the last frame stops one step short of it, so a sequence
    spanning a power of three repeats without a visible seam.
    """

    if frames <= 0:
        return np.array([], dtype=np.float64)
    if final_zoom <= 0:
        raise ValueError("final_zoom must be positive.")

    easing_mode = easing.lower()
    if easing_mode not in EASINGS:
        raise ValueError(f"Unknown easing '{easing}'. Valid choices: {', '.join(EASINGS)}.")

    def ease_in_out(t: float) -> float:
        return 3 * t ** 2 - 2 * t ** 3

    if easing_mode == "loop":
        alphas = np.arange(frames, dtype=np.float64) / frames
    elif frames == 1:
        alphas = np.array([1.0], dtype=np.float64)
    else:
        ease = (lambda u: u) if easing_mode == "linear" else ease_in_out
        alphas = np.array([ease(i / (frames - 1)) for i in range(frames)], dtype=np.float64)

    alphas = np.clip(alphas, 0.0, 1.0)
    levels = np.float64(start_zoom) * np.exp(alphas * np.log(final_zoom))
    return np.clip(levels, MIN_ZOOM, MAX_ZOOM)


@dataclass(frozen=True)
class ZoomPlanner:
    """Build the frame requests for a Cantor-square zoom sequence."""

    width: int
    height: int
    iterations: int
    camera_x: Optional[float] = None
    camera_y: Optional[float] = None
    drift_x: float = 0.0
    drift_y: float = 0.0

    def camera_at(self, frame_index: int) -> tuple[Optional[float], Optional[float]]:
        if self.camera_x is None or self.camera_y is None:
            return None, None
        return (
            self.camera_x + self.drift_x * frame_index,
            self.camera_y + self.drift_y * frame_index,
        )

    def frame_request(self, frame_index: int, zoom: float) -> FrameRequest:
        camera_x, camera_y = self.camera_at(frame_index)
        return FrameRequest(
            width=self.width,
            height=self.height,
            iterations=self.iterations,
            zoom=float(zoom),
            camera_x=camera_x,
            camera_y=camera_y,
        )

    def plan(self, zoom_levels: np.ndarray) -> list[FrameRequest]:
        return [self.frame_request(i, zoom) for i, zoom in enumerate(zoom_levels)]


@dataclass(frozen=True)
class ViewerInput:
    """Input gathered from the display during one tick."""

    scroll: float = 0.0
    pan_x: int = 0
    pan_y: int = 0
    iteration_delta: int = 0
    reset: bool = False


@dataclass(frozen=True)
class ViewerState:
    """Navigation state owned by the interactive driver."""

    width: int
    height: int
    iterations: int
    anchor: Anchor = Anchor.TOP_LEFT
    zoom: float = 1.0
    target_zoom: float = 1.0
    camera_x: float = 0.5
    camera_y: float = 0.5

    def frame_request(self) -> FrameRequest:
        if self.anchor is Anchor.TOP_LEFT:
            return FrameRequest(self.width, self.height, self.iterations, zoom=clamp_zoom(self.zoom))
        return FrameRequest(
            self.width,
            self.height,
            self.iterations,
            zoom=clamp_zoom(self.zoom),
            camera_x=self.camera_x,
            camera_y=self.camera_y,
        )

    def reset(self, iterations: int) -> "ViewerState":
        return replace(self, iterations=iterations, zoom=1.0, target_zoom=1.0, camera_x=0.5, camera_y=0.5)


def advance_viewer(
    state: ViewerState,
    events: ViewerInput,
    *,
    initial_iterations: int,
    zoom_step: float = ZOOM_STEP,
    smoothing: float = SMOOTHING,
    pan_fraction: float = PAN_FRACTION,
) -> ViewerState:
    """Apply one tick of input to ``state`` and return the new state.

    Scrolling scales the target zoom geometrically, the displayed zoom eases
    toward it. Panning is only meaningful for the center anchor and moves the
    camera by a fixed fraction of the visible window.
    """

    if events.reset:
        return state.reset(initial_iterations)

    target_zoom = clamp_zoom(state.target_zoom * zoom_step ** events.scroll)
    zoom = smooth_zoom(state.zoom, target_zoom, smoothing)

    iterations = min(max(state.iterations + events.iteration_delta, 0), MAX_ITERATIONS)

    camera_x = state.camera_x
    camera_y = state.camera_y
    if state.anchor is Anchor.CENTER and (events.pan_x or events.pan_y):
        step = pan_fraction / zoom
        camera_x += events.pan_x * step
        camera_y += events.pan_y * step

    return replace(
        state,
        iterations=iterations,
        zoom=zoom,
        target_zoom=target_zoom,
        camera_x=camera_x,
        camera_y=camera_y,
    )
