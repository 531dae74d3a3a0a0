"""Interactive Cantor-square viewer using pygame.

The viewer owns a :class:`~cantor.generator.ViewerState` and re-renders the
whole frame on every tick:

  * mouse wheel / ``+`` ``-``: zoom (eased toward the scrolled target)
  * arrow keys: pan the camera (center anchor only)
  * ``[`` ``]``: lower / raise the iteration budget
  * ``R``: reset, ``Esc``: quit
"""

from __future__ import annotations

import time
from collections import deque
from typing import Optional

import pygame
import pygame.surfarray

from .generator import ViewerInput, ViewerState, advance_viewer
from .renderer import Anchor, ColorPolicy, render_frame

_PAN_KEYS = {
    pygame.K_LEFT: (-1, 0),
    pygame.K_RIGHT: (1, 0),
    pygame.K_UP: (0, -1),
    pygame.K_DOWN: (0, 1),
}


class CantorViewer:
    """Real-time Cantor-square viewer."""

    def __init__(
        self,
        width: int,
        height: int,
        iterations: int,
        *,
        anchor: Anchor = Anchor.TOP_LEFT,
        policy: Optional[ColorPolicy] = None,
        fps: int = 60,
    ):
        self.initial_iterations = iterations
        self.state = ViewerState(width=width, height=height, iterations=iterations, anchor=anchor)
        self.policy = policy if policy is not None else ColorPolicy()
        self.fps_target = fps
        self.running = True
        self.ticks = 0

        self.frame_times = deque(maxlen=30)
        self.last_frame_time = time.perf_counter()
        self.fps = 0.0

        self._init_pygame()

    def _init_pygame(self):
        pygame.init()
        try:
            self.screen = pygame.display.set_mode((self.state.width, self.state.height))
        except pygame.error:
            pygame.quit()
            raise
        pygame.display.set_caption("Cantor square")
        self.clock = pygame.time.Clock()
        self.surface = pygame.Surface((self.state.width, self.state.height))

    def poll_input(self) -> ViewerInput:
        scroll = 0.0
        iteration_delta = 0
        reset = False

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.MOUSEWHEEL:
                scroll += event.y
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                    scroll += 1
                elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                    scroll -= 1
                elif event.key == pygame.K_RIGHTBRACKET:
                    iteration_delta += 1
                elif event.key == pygame.K_LEFTBRACKET:
                    iteration_delta -= 1
                elif event.key == pygame.K_r:
                    reset = True

        # Held keys pan continuously.
        pressed = pygame.key.get_pressed()
        pan_x = sum(dx for key, (dx, _) in _PAN_KEYS.items() if pressed[key])
        pan_y = sum(dy for key, (_, dy) in _PAN_KEYS.items() if pressed[key])

        return ViewerInput(
            scroll=scroll,
            pan_x=pan_x,
            pan_y=pan_y,
            iteration_delta=iteration_delta,
            reset=reset,
        )

    def render(self):
        result = render_frame(self.state.frame_request(), self.policy)
        # surfarray is indexed (x, y).
        pygame.surfarray.blit_array(self.surface, result.pixels.swapaxes(0, 1))

    def _update_fps(self):
        now = time.perf_counter()
        dt = now - self.last_frame_time
        self.last_frame_time = now
        self.frame_times.append(dt)
        if self.frame_times:
            avg_dt = sum(self.frame_times) / len(self.frame_times)
            self.fps = 1.0 / avg_dt if avg_dt > 0 else 0.0

    def _update_caption(self):
        pygame.display.set_caption(
            f"Cantor square | zoom {self.state.zoom:.4g} | iterations {self.state.iterations} | {self.fps:.0f} fps"
        )

    def run(self, max_ticks: Optional[int] = None):
        try:
            while self.running:
                events = self.poll_input()
                if not self.running:
                    break
                self.state = advance_viewer(self.state, events, initial_iterations=self.initial_iterations)
                self.render()

                self.screen.blit(self.surface, (0, 0))
                pygame.display.flip()

                self._update_fps()
                self._update_caption()
                self.clock.tick(self.fps_target)

                self.ticks += 1
                if max_ticks is not None and self.ticks >= max_ticks:
                    self.running = False
        finally:
            pygame.quit()
        return self.state


def run_viewer(
    width: int,
    height: int,
    iterations: int,
    *,
    anchor: Anchor = Anchor.TOP_LEFT,
    policy: Optional[ColorPolicy] = None,
    fps: int = 60,
    max_ticks: Optional[int] = None,
) -> ViewerState:
    viewer = CantorViewer(width, height, iterations, anchor=anchor, policy=policy, fps=fps)
    return viewer.run(max_ticks=max_ticks)
