"""
Tests for the pygame viewer, run against SDL's dummy video driver.
"""

import pygame
import pytest

from cantor.renderer import Anchor, ColorPolicy, gradient_color
from cantor.viewer import CantorViewer, run_viewer


@pytest.fixture
def headless(monkeypatch):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    yield
    pygame.quit()


def test_run_viewer_for_a_few_ticks(headless):
    state = run_viewer(48, 32, 2, fps=0, max_ticks=3)

    assert state.width == 48
    assert state.height == 32
    assert state.iterations == 2
    assert state.zoom == 1.0


def test_viewer_blits_rendered_frame(headless):
    viewer = CantorViewer(36, 36, 2, fps=0)

    viewer.render()

    assert tuple(viewer.surface.get_at((1, 1)))[:3] == gradient_color(0, 2)
    assert tuple(viewer.surface.get_at((18, 18)))[:3] == (255, 255, 255)


def test_viewer_polls_input(headless):
    viewer = CantorViewer(32, 32, 3, anchor=Anchor.CENTER, policy=ColorPolicy(mode="solid"), fps=0)

    pygame.event.post(pygame.event.Event(pygame.MOUSEWHEEL, x=0, y=2, flipped=False))
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_RIGHTBRACKET, mod=0, unicode="]"))
    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_r, mod=0, unicode="r"))

    events = viewer.poll_input()

    assert events.scroll == 2
    assert events.iteration_delta == 1
    assert events.reset
    assert viewer.running


def test_escape_stops_the_viewer(headless):
    viewer = CantorViewer(32, 32, 3, fps=0)

    pygame.event.post(pygame.event.Event(pygame.KEYDOWN, key=pygame.K_ESCAPE, mod=0, unicode="\x1b"))
    state = viewer.run(max_ticks=10)

    assert viewer.ticks == 0
    assert state.iterations == 3


def test_display_failure_shuts_pygame_down(headless, monkeypatch):
    quits = []
    original_quit = pygame.quit

    def failing_set_mode(size):
        raise pygame.error("no display")

    def recording_quit():
        quits.append(True)
        original_quit()

    monkeypatch.setattr(pygame.display, "set_mode", failing_set_mode)
    monkeypatch.setattr(pygame, "quit", recording_quit)

    with pytest.raises(pygame.error, match="no display"):
        CantorViewer(32, 32, 2, fps=0)

    assert quits == [True]
