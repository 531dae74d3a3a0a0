"""Public API for Cantor-square rendering utilities."""

from .renderer import (
    MAX_ITERATIONS,
    MAX_ZOOM,
    MIN_ZOOM,
    Anchor,
    ColorPolicy,
    FrameRequest,
    PixelViewport,
    Rect,
    RenderResult,
    Viewport,
    fill_rect,
    generate,
    gradient_color,
    parse_hex_color,
    render_frame,
    render_pixel_frame,
    validate_request,
)
from .generator import (
    ViewerInput,
    ViewerState,
    ZoomPlanner,
    advance_viewer,
    clamp_zoom,
    compute_zoom_levels,
    smooth_zoom,
)

__all__ = [
    "MAX_ITERATIONS",
    "MAX_ZOOM",
    "MIN_ZOOM",
    "Anchor",
    "ColorPolicy",
    "FrameRequest",
    "PixelViewport",
    "Rect",
    "RenderResult",
    "ViewerInput",
    "ViewerState",
    "Viewport",
    "ZoomPlanner",
    "advance_viewer",
    "clamp_zoom",
    "compute_zoom_levels",
    "fill_rect",
    "generate",
    "gradient_color",
    "parse_hex_color",
    "render_frame",
    "render_pixel_frame",
    "smooth_zoom",
    "validate_request",
]
