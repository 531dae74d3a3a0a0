import os
import sys
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_suppress_messages = not _cli_verbose

if _suppress_messages:
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
    warnings.filterwarnings(
        "ignore",
        message=r"pkg_resources is deprecated as an API.*",
        category=UserWarning,
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import numpy as np

# Imports for output
import PIL.Image
import imageio
import pygame

from cantor import (
    MAX_ITERATIONS,
    Anchor,
    ColorPolicy,
    FrameRequest,
    ZoomPlanner,
    compute_zoom_levels,
    parse_hex_color,
    render_frame,
    render_pixel_frame,
    validate_request,
)
from cantor.generator import EASINGS
from cantor.viewer import run_viewer

from argparse import ArgumentParser

VALID_MODES = ("gif", "image", "frames", "view")


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Optional[Path]
    image_path: Optional[Path]
    frame_dir: Optional[Path]
    image_format: str


def build_parser():
    parser = ArgumentParser(
        description="Render the Cantor square as a still image, a zoom animation or an interactive view.",
    )

    parser.add_argument('width', type=int,
                        help='width of the rendered frame in pixels', metavar='WIDTH')

    parser.add_argument('iterations', type=int,
                        help=f'recursion budget (0-{MAX_ITERATIONS})', metavar='ITERATIONS')

    parser.add_argument('output', nargs='?', default=None,
                        help='destination for single-file outputs (gif/image) or container directory when both are requested',
                        metavar='OUTPUT')

    parser.add_argument('--height', type=int, default=None,
                        help='height of the rendered frame in pixels. Default: same as WIDTH.')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: gif, image, frames, view.')

    parser.add_argument('--frames', type=int, default=40,
                        help='number of animation frames to generate')

    parser.add_argument('--frame-delay', type=int, dest='frame_delay', default=5,
                        help='delay between GIF frames in hundredths of a second')

    parser.add_argument('--loop', type=int, default=0,
                        help='number of times the GIF repeats, 0 for forever')

    parser.add_argument('--zoom', type=float, default=1.0,
                        help='zoom of the first frame (and of still images)')

    parser.add_argument('--final-zoom', type=float, dest='final_zoom', default=3.0,
                        help='overall magnification across the animation. Powers of 3 loop seamlessly.')

    parser.add_argument('--easing', type=str, default='loop',
                        help='Zoom curve: "loop" (seamless, endpoint excluded), "linear" or "ease".')

    parser.add_argument('--camera-x', type=float, dest='camera_x', default=None,
                        help='normalized x coordinate to zoom around. Default: zoom toward the top-left corner.')

    parser.add_argument('--camera-y', type=float, dest='camera_y', default=None,
                        help='normalized y coordinate to zoom around')

    parser.add_argument('--drift-x', type=float, dest='drift_x', default=0.0,
                        help='camera movement along x per animation frame')

    parser.add_argument('--drift-y', type=float, dest='drift_y', default=0.0,
                        help='camera movement along y per animation frame')

    parser.add_argument('--color-mode', choices=ColorPolicy.MODES, dest='color_mode', default='gradient',
                        help='Coloring of terminal squares: a solid color, the depth gradient or a matplotlib colormap.')

    parser.add_argument('--color', type=str, default='#000000',
                        help='Hex color for the solid color mode.')

    parser.add_argument('--colormap', type=str, default='viridis',
                        help='matplotlib colormap for the colormap mode (e.g. "viridis", "inferno")')

    parser.add_argument('--background', type=str, default='#ffffff',
                        help='Hex color for everything outside the fractal.')

    parser.add_argument('--format', type=str, dest='format', default='png',
                        help='file format for image-based outputs. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store numbered frames.')

    parser.add_argument('--pixel-space', dest='pixel_space', action='store_true',
                        help='subdivide on the integer pixel grid instead of normalized coordinates (image mode only)')

    parser.add_argument('--anchor', choices=[anchor.value for anchor in Anchor], default=Anchor.TOP_LEFT.value,
                        help='view mode: keep the top-left corner fixed or pan a camera around the center')

    parser.add_argument('--fps', type=int, default=60,
                        help='view mode: display refresh rate')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    modes: list[str] = []
    for mode in opt.modes or ["gif"]:
        if mode not in VALID_MODES:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(VALID_MODES)}.")
        if mode not in modes:
            modes.append(mode)

    modes_tuple = tuple(modes)
    modes_set = set(modes_tuple)

    if "view" in modes_set and len(modes_set) > 1:
        parser.error("--mode view cannot be combined with file outputs.")
    if opt.pixel_space and modes_set != {"image"}:
        parser.error("--pixel-space is only valid with the image mode.")
    if opt.pixel_space and (opt.height is not None or opt.zoom != 1.0 or opt.camera_x is not None or opt.camera_y is not None):
        parser.error("--pixel-space renders a WIDTH x WIDTH grid and cannot be combined with --height, --zoom or --camera-x/--camera-y.")
    if opt.frames == 0 and modes_set & {"gif", "frames"}:
        parser.error("--frames must be at least 1 for the gif and frames modes.")

    image_format = (opt.format or "png").lower().lstrip(".")
    if not image_format:
        image_format = "png"
    if f".{image_format}" not in PIL.Image.registered_extensions():
        parser.error(f"Unsupported image format '{image_format}'.")

    frame_dir_path: Optional[Path] = None
    if "frames" in modes_set:
        frame_dir_path = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    file_modes = [mode for mode in modes_tuple if mode in {"gif", "image"}]
    output_arg = opt.output
    gif_path: Optional[Path] = None
    image_path: Optional[Path] = None

    if not file_modes:
        if output_arg:
            parser.error("OUTPUT is only valid when gif or image modes are requested.")
    elif len(file_modes) == 1:
        mode = file_modes[0]
        if output_arg:
            output_path = Path(output_arg).expanduser()
            if str(output_arg).endswith(("/", os.sep)):
                parser.error("OUTPUT must be a file path when a single file-based mode is selected.")
            if output_path.exists() and output_path.is_dir():
                parser.error("OUTPUT must point to a file, not a directory, when a single file mode is active.")
            if mode == "gif":
                if output_path.suffix:
                    if output_path.suffix.lower() != ".gif":
                        parser.error("GIF outputs must end with .gif.")
                else:
                    output_path = output_path.with_suffix(".gif")
                gif_path = output_path.resolve()
            else:
                expected_suffix = f".{image_format}"
                if output_path.suffix:
                    if output_path.suffix.lower() != expected_suffix:
                        parser.error(f"OUTPUT extension {output_path.suffix} does not match --format {image_format}.")
                else:
                    output_path = output_path.with_suffix(expected_suffix)
                image_path = output_path.resolve()
        elif mode == "gif":
            gif_path = Path("cantor.gif").resolve()
        else:
            image_path = Path(f"cantor.{image_format}").resolve()
    else:
        base_dir = Path(output_arg).expanduser() if output_arg else Path.cwd()
        if base_dir.exists() and not base_dir.is_dir():
            parser.error("OUTPUT must be a directory when both gif and image modes are active.")
        gif_path = (base_dir / "cantor.gif").resolve()
        image_path = (base_dir / f"cantor.{image_format}").resolve()

    return OutputConfig(
        modes=modes_tuple,
        gif_path=gif_path,
        image_path=image_path,
        frame_dir=frame_dir_path,
        image_format=image_format,
    )


def _pil_format_name(ext: str) -> str:
    return PIL.Image.registered_extensions().get(f".{ext.lower()}", ext.upper())


def write_single_image(pixels: np.ndarray, output_path: Path, image_format: str) -> None:
    """Write a single frame to ``output_path`` using the provided format."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    PIL.Image.fromarray(pixels).save(str(output_path), format=_pil_format_name(image_format))


def write_frame_sequence(
    pixels: np.ndarray,
    frame_dir: Path,
    index: int,
    digits: int,
    image_format: str,
    prefix: str = "frame",
) -> Path:
    """Persist a frame in a numbered sequence inside ``frame_dir``."""

    frame_path = frame_dir / f"{prefix}{index:0{digits}d}.{image_format}"
    frame_dir.mkdir(parents=True, exist_ok=True)
    PIL.Image.fromarray(pixels).save(str(frame_path), format=_pil_format_name(image_format))
    return frame_path


def write_gif(writer: Any, pixels: np.ndarray) -> None:
    """Append ``pixels`` to an active GIF writer."""

    writer.append_data(pixels)


@dataclass
class OutputWriters:
    config: OutputConfig
    frame_digits: int
    frame_delay: int = 5
    loop: int = 0

    def __post_init__(self) -> None:
        self._gif_writer = None
        if "gif" in self.config.modes and self.config.gif_path is not None:
            self.config.gif_path.parent.mkdir(parents=True, exist_ok=True)
            # Pillow takes GIF frame durations in milliseconds.
            self._gif_writer = imageio.get_writer(
                str(self.config.gif_path), mode='I', duration=self.frame_delay * 10, loop=self.loop
            )

    @property
    def animated(self) -> bool:
        return self._gif_writer is not None or "frames" in self.config.modes

    def write_frame(self, frame_index: int, pixels: np.ndarray) -> None:
        if self._gif_writer is not None:
            write_gif(self._gif_writer, pixels)
        if "frames" in self.config.modes and self.config.frame_dir is not None:
            write_frame_sequence(
                pixels,
                self.config.frame_dir,
                frame_index,
                self.frame_digits,
                self.config.image_format,
            )

    def write_still(self, pixels: np.ndarray) -> None:
        if "image" in self.config.modes and self.config.image_path is not None:
            write_single_image(pixels, self.config.image_path, self.config.image_format)

    def close(self) -> None:
        if self._gif_writer is not None:
            self._gif_writer.close()
            self._gif_writer = None


def build_color_policy(opt, parser: ArgumentParser) -> ColorPolicy:
    try:
        return ColorPolicy(
            mode=opt.color_mode,
            color=parse_hex_color(opt.color),
            colormap=opt.colormap,
            background=parse_hex_color(opt.background),
        )
    except ValueError as exc:
        parser.error(str(exc))


def _render_outputs(opt, output_config: OutputConfig, policy: ColorPolicy, height: int) -> None:
    planner = ZoomPlanner(
        width=opt.width,
        height=height,
        iterations=opt.iterations,
        camera_x=opt.camera_x,
        camera_y=opt.camera_y,
        drift_x=opt.drift_x,
        drift_y=opt.drift_y,
    )

    frame_digits = max(3, len(str(max(opt.frames - 1, 0))))
    writers = OutputWriters(
        output_config,
        frame_digits=frame_digits,
        frame_delay=opt.frame_delay,
        loop=opt.loop,
    )

    try:
        if "image" in output_config.modes:
            if opt.pixel_space:
                still = render_pixel_frame(opt.width, opt.iterations, policy)
            else:
                still = render_frame(planner.frame_request(0, opt.zoom), policy)
            log("Still frame: %d terminal squares" % still.terminal_squares)
            writers.write_still(still.pixels)
            print(f"Image saved to {output_config.image_path}")

        if writers.animated:
            zoom_levels = compute_zoom_levels(opt.frames, opt.zoom, opt.final_zoom, easing=opt.easing)
            for i, request in enumerate(planner.plan(zoom_levels)):
                print("frame {0} out of {1}".format(i, opt.frames), end='\r')
                result = render_frame(request, policy)
                log("frame %d: zoom %.3f, %d terminal squares" % (i, request.zoom, result.terminal_squares))
                writers.write_frame(i, result.pixels)
            print()
            if output_config.gif_path is not None:
                print(f"GIF saved to {output_config.gif_path}")
            if output_config.frame_dir is not None:
                print(f"Frames saved to {output_config.frame_dir}")
    finally:
        writers.close()


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_intermixed_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    output_config = resolve_output_config(opt, parser)
    policy = build_color_policy(opt, parser)
    height = opt.height if opt.height is not None else opt.width

    try:
        validate_request(FrameRequest(
            width=opt.width,
            height=height,
            iterations=opt.iterations,
            zoom=opt.zoom,
            camera_x=opt.camera_x,
            camera_y=opt.camera_y,
        ))
        if opt.frames < 0:
            raise ValueError("--frames must be non-negative.")
        if opt.frame_delay < 0 or opt.loop < 0:
            raise ValueError("--frame-delay and --loop must be non-negative.")
        if opt.final_zoom <= 0:
            raise ValueError("--final-zoom must be positive.")
        if opt.easing.lower() not in EASINGS:
            raise ValueError(f"Unknown easing '{opt.easing}'. Valid choices: {', '.join(EASINGS)}.")
    except ValueError as exc:
        parser.error(str(exc))

    log("Cantor square %dx%d, %d iterations, modes: %s" % (opt.width, height, opt.iterations, ", ".join(output_config.modes)))

    if output_config.modes == ("view",):
        anchor = Anchor(opt.anchor)
        try:
            run_viewer(opt.width, height, opt.iterations, anchor=anchor, policy=policy, fps=opt.fps)
        except pygame.error as exc:
            parser.exit(1, f"{parser.prog}: error: cannot open display: {exc}\n")
        return

    try:
        _render_outputs(opt, output_config, policy, height)
    except OSError as exc:
        parser.exit(1, f"{parser.prog}: error: could not write output: {exc}\n")


if __name__ == '__main__':
    main()
