"""Rendering primitives for Cantor-square frames."""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np
from matplotlib import colormaps as _mpl_colormaps

MIN_ZOOM = 0.2
# float64 keeps roughly 52 bits of mantissa. Past ~1e12 a pixel of a 1000px
# frame spans fewer than 2**-50 normalized units and the subdivision stops
# being self-similar.
MAX_ZOOM = 1e12
MAX_ITERATIONS = 64

CORNER_OFFSETS = ((0, 0), (2, 0), (0, 2), (2, 2))

Color = tuple[int, int, int]
Number = Union[int, float]

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


class Anchor(enum.Enum):
    """Which normalized point stays fixed in pixel space as zoom changes."""

    TOP_LEFT = "corner"
    CENTER = "center"


@dataclass(frozen=True)
class Rect:
    """A square in normalized (or integer pixel) space."""

    x: Number
    y: Number
    size: Number


@dataclass(frozen=True)
class Viewport:
    """Mapping between the visible normalized window and pixel space."""

    origin_x: float
    origin_y: float
    view_size: float
    pixel_width: int
    pixel_height: int

    @classmethod
    def from_zoom(
        cls,
        width: int,
        height: int,
        zoom: float,
        camera_x: Optional[float] = None,
        camera_y: Optional[float] = None,
    ) -> "Viewport":
        view_size = 1.0 / zoom
        if camera_x is None or camera_y is None:
            origin_x = 0.0
            origin_y = 0.0
        else:
            origin_x = camera_x - view_size / 2.0
            origin_y = camera_y - view_size / 2.0
        return cls(origin_x, origin_y, view_size, int(width), int(height))

    def map_x(self, value: float) -> float:
        return (value - self.origin_x) / self.view_size * self.pixel_width

    def map_y(self, value: float) -> float:
        return (value - self.origin_y) / self.view_size * self.pixel_height

    def projected_size(self, size: float) -> float:
        return size / self.view_size * self.pixel_width

    def intersects(self, rect: Rect) -> bool:
        """Whether ``rect`` overlaps the visible window."""

        x_max = self.origin_x + self.view_size
        y_max = self.origin_y + self.view_size
        return (
            rect.x < x_max
            and rect.x + rect.size > self.origin_x
            and rect.y < y_max
            and rect.y + rect.size > self.origin_y
        )


@dataclass(frozen=True)
class PixelViewport(Viewport):
    """Identity mapping for rects given directly in integer pixels."""

    @classmethod
    def square(cls, width: int) -> "PixelViewport":
        return cls(0.0, 0.0, float(width), int(width), int(width))

    def map_x(self, value: float) -> float:
        return value - self.origin_x

    def map_y(self, value: float) -> float:
        return value - self.origin_y

    def projected_size(self, size: float) -> float:
        return size


@dataclass(frozen=True)
class FrameRequest:
    """Complete description of a single rendered frame."""

    width: int
    height: int
    iterations: int
    zoom: float = 1.0
    camera_x: Optional[float] = None
    camera_y: Optional[float] = None

    @property
    def anchor(self) -> Anchor:
        if self.camera_x is None and self.camera_y is None:
            return Anchor.TOP_LEFT
        return Anchor.CENTER


def parse_hex_color(value: str) -> Color:
    """Convert ``#RRGGBB`` into an 8-bit RGB triple."""

    match = _HEX_COLOR.match(value.strip())
    if match is None:
        raise ValueError(f"Color '{value}' must be in the form #RRGGBB.")
    digits = match.group(1)
    return tuple(int(digits[i:i + 2], 16) for i in (0, 2, 4))  # type: ignore[return-value]


def _clamp_channel(value: float) -> int:
    return int(min(max(value, 0.0), 255.0))


def gradient_color(depth_remaining: int, total_depth: int) -> Color:
    """Depth gradient: blue-green for leaves, pink for squares cut short."""

    ratio = depth_remaining / total_depth if total_depth > 0 else 0.0
    return (
        _clamp_channel(50.0 + 205.0 * ratio),
        _clamp_channel(80.0 + 120.0 * (1.0 - ratio)),
        _clamp_channel(180.0 + 50.0 * ratio),
    )


@dataclass(frozen=True)
class ColorPolicy:
    """How terminal squares and the background are colored."""

    mode: str = "gradient"
    color: Color = (0, 0, 0)
    colormap: str = "viridis"
    background: Color = (255, 255, 255)

    MODES = ("solid", "gradient", "colormap")

    def __post_init__(self) -> None:
        if self.mode not in self.MODES:
            raise ValueError(f"Unknown color mode '{self.mode}'. Valid choices: {', '.join(self.MODES)}.")
        for name in ("color", "background"):
            value = getattr(self, name)
            if len(value) != 3 or any(not 0 <= int(channel) <= 255 for channel in value):
                raise ValueError(f"{name} must be an RGB triple with channels in [0, 255].")
        if self.mode == "colormap" and self.colormap not in _mpl_colormaps:
            raise ValueError(f"Unknown matplotlib colormap '{self.colormap}'.")

    def palette(self, total_depth: int) -> list[Color]:
        """Colors indexed by the remaining depth of a terminal square."""

        depths = range(total_depth + 1)
        if self.mode == "solid":
            return [tuple(self.color) for _ in depths]  # type: ignore[misc]
        if self.mode == "gradient":
            return [gradient_color(depth, total_depth) for depth in depths]

        cmap = _mpl_colormaps[self.colormap]
        ratios = np.array(
            [depth / total_depth if total_depth > 0 else 0.0 for depth in depths],
            dtype=np.float64,
        )
        rgba = np.asarray(cmap(ratios), dtype=np.float64)
        rgb = np.uint8(np.clip(rgba[:, :3] * 255, 0, 255))
        return [tuple(int(channel) for channel in row) for row in rgb]  # type: ignore[misc]


@dataclass(frozen=True)
class RenderResult:
    """A filled pixel buffer and what went into it."""

    pixels: np.ndarray
    terminal_squares: int
    viewport: Viewport = field(repr=False)


def validate_request(request: FrameRequest) -> None:
    """Reject requests the generator cannot render."""

    if int(request.width) <= 0 or int(request.height) <= 0:
        raise ValueError(f"Frame size must be positive, got {request.width}x{request.height}.")
    if request.iterations < 0:
        raise ValueError("Iteration budget must be non-negative.")
    if request.iterations > MAX_ITERATIONS:
        raise ValueError(f"Iteration budget must not exceed {MAX_ITERATIONS}.")
    if not math.isfinite(request.zoom) or request.zoom <= 0:
        raise ValueError("Zoom must be a positive finite number.")
    if not MIN_ZOOM <= request.zoom <= MAX_ZOOM:
        raise ValueError(f"Zoom must lie in [{MIN_ZOOM:g}, {MAX_ZOOM:g}], got {request.zoom:g}.")
    if (request.camera_x is None) != (request.camera_y is None):
        raise ValueError("camera_x and camera_y must be given together.")
    if request.camera_x is not None and not (
        math.isfinite(request.camera_x) and math.isfinite(request.camera_y)
    ):
        raise ValueError("Camera position must be finite.")


def new_buffer(width: int, height: int, background: Sequence[int]) -> np.ndarray:
    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[...] = np.asarray(background, dtype=np.uint8)
    return pixels


def fill_rect(pixels: np.ndarray, rect: Rect, color: Sequence[int], viewport: Viewport) -> int:
    """Fill the pixel footprint of ``rect``, clipped to the buffer.

    Returns the number of pixels written, zero when the clipped box is empty.
    """

    height, width = pixels.shape[:2]
    x0 = max(math.floor(viewport.map_x(rect.x)), 0)
    y0 = max(math.floor(viewport.map_y(rect.y)), 0)
    x1 = min(math.ceil(viewport.map_x(rect.x + rect.size)), width)
    y1 = min(math.ceil(viewport.map_y(rect.y + rect.size)), height)

    if x0 >= x1 or y0 >= y1:
        return 0

    pixels[y0:y1, x0:x1] = color
    return (x1 - x0) * (y1 - y0)


def _third(size: Number) -> Number:
    if isinstance(size, int):
        return size // 3
    return size / 3.0


def generate(
    pixels: np.ndarray,
    rect: Rect,
    depth_remaining: int,
    total_depth: int,
    viewport: Viewport,
    palette: Sequence[Color],
) -> int:
    """Recursively draw the Cantor square contained in ``rect``.

    Squares outside the viewport are culled. A square becomes terminal when
    the budget runs out or it projects to less than one pixel, and is filled
    with ``palette[depth_remaining]``. Returns the number of terminal squares.
    """

    if rect.size <= 0:
        return 0
    if not viewport.intersects(rect):
        return 0

    if depth_remaining == 0 or viewport.projected_size(rect.size) < 1.0:
        fill_rect(pixels, rect, palette[depth_remaining], viewport)
        return 1

    s = _third(rect.size)
    if s <= 0:
        fill_rect(pixels, rect, palette[depth_remaining], viewport)
        return 1

    count = 0
    for ox, oy in CORNER_OFFSETS:
        child = Rect(rect.x + ox * s, rect.y + oy * s, s)
        count += generate(pixels, child, depth_remaining - 1, total_depth, viewport, palette)
    return count


def render_frame(request: FrameRequest, policy: Optional[ColorPolicy] = None) -> RenderResult:
    """Render a Cantor-square frame given the supplied request."""

    validate_request(request)
    policy = policy if policy is not None else ColorPolicy()

    viewport = Viewport.from_zoom(
        request.width,
        request.height,
        request.zoom,
        request.camera_x,
        request.camera_y,
    )
    pixels = new_buffer(viewport.pixel_width, viewport.pixel_height, policy.background)
    palette = policy.palette(request.iterations)

    count = generate(
        pixels,
        Rect(0.0, 0.0, 1.0),
        request.iterations,
        request.iterations,
        viewport,
        palette,
    )
    return RenderResult(pixels=pixels, terminal_squares=count, viewport=viewport)


def render_pixel_frame(width: int, iterations: int, policy: Optional[ColorPolicy] = None) -> RenderResult:
    """Render a square frame with rects subdivided on the integer pixel grid."""

    validate_request(FrameRequest(width=width, height=width, iterations=iterations))
    policy = policy if policy is not None else ColorPolicy()

    viewport = PixelViewport.square(width)
    pixels = new_buffer(width, width, policy.background)
    palette = policy.palette(iterations)

    count = generate(pixels, Rect(0, 0, int(width)), iterations, iterations, viewport, palette)
    return RenderResult(pixels=pixels, terminal_squares=count, viewport=viewport)
