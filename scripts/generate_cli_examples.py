from __future__ import annotations

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

EXAMPLES_ROOT = Path("examples/cli-options")
BASE_ARGS = ["160", "4", "--mode", "image"]


@dataclass
class Expected:
    path: Path
    is_dir: bool = False


@dataclass
class Example:
    name: str
    args: list[str]
    expected: list[Expected]
    clean: list[Path] | None = None

    def full_args(self) -> list[str]:
        return [sys.executable, "zoom.py", *self.args]


def _image(name: str, filename: str, *extra: str) -> Example:
    target = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=[*BASE_ARGS, *extra, str(target)],
        expected=[Expected(target)],
        clean=[EXAMPLES_ROOT / name],
    )


def _gif(name: str, filename: str, *extra: str) -> Example:
    target = EXAMPLES_ROOT / name / filename
    return Example(
        name=name,
        args=["160", "4", "--frames", "8", *extra, str(target)],
        expected=[Expected(target)],
        clean=[EXAMPLES_ROOT / name],
    )


EXAMPLES: list[Example] = [
    _image("iterations", "deep.png"),
    _image("height", "wide.png", "--height", "96"),
    _image("zoom", "zoomed.png", "--zoom", "2.5"),
    _image("camera", "centered.png", "--zoom", "9", "--camera-x", "0.5", "--camera-y", "0.1"),
    _image("color-mode", "solid.png", "--color-mode", "solid", "--color", "#1a2b3c"),
    _image("colormap", "inferno.png", "--color-mode", "colormap", "--colormap", "inferno"),
    _image("background", "dark.png", "--background", "#101010"),
    _image("pixel-space", "grid.png", "--pixel-space"),
    _image("format", "custom.webp", "--format", "webp"),
    _image("verbose", "diagnostic.png", "--verbose"),
    _gif("gif", "loop.gif"),
    _gif("frame-delay", "slow.gif", "--frame-delay", "20"),
    _gif("loop", "twice.gif", "--loop", "2"),
    _gif("final-zoom", "nine.gif", "--final-zoom", "9"),
    _gif("easing", "eased.gif", "--easing", "ease", "--final-zoom", "20"),
    _gif("drift", "drift.gif", "--camera-x", "0.2", "--camera-y", "0.2", "--drift-x", "0.01", "--zoom", "2"),
    Example(
        name="frames",
        args=["160", "3", "--mode", "frames", "--frames", "4", "--frame-dir", str(EXAMPLES_ROOT / "frames" / "seq")],
        expected=[Expected(EXAMPLES_ROOT / "frames" / "seq", is_dir=True)],
        clean=[EXAMPLES_ROOT / "frames"],
    ),
    Example(
        name="mode",
        args=["160", "3", "--mode", "gif", "--mode", "image", "--frames", "4", str(EXAMPLES_ROOT / "mode")],
        expected=[
            Expected(EXAMPLES_ROOT / "mode" / "cantor.gif"),
            Expected(EXAMPLES_ROOT / "mode" / "cantor.png"),
        ],
        clean=[EXAMPLES_ROOT / "mode"],
    ),
]


def _ensure_clean(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()


def _prepare(example: Example) -> None:
    clean = example.clean or []
    _ensure_clean(clean)
    for expected in example.expected:
        expected.path.parent.mkdir(parents=True, exist_ok=True)


def _verify(example: Example) -> None:
    for expected in example.expected:
        if expected.is_dir:
            if not expected.path.is_dir():
                raise RuntimeError(f"Expected directory {expected.path} was not created")
            if not any(expected.path.iterdir()):
                raise RuntimeError(f"Directory {expected.path} is empty")
        else:
            if not expected.path.is_file():
                raise RuntimeError(f"Expected file {expected.path} was not created")


def main() -> None:
    EXAMPLES_ROOT.mkdir(parents=True, exist_ok=True)
    for example in EXAMPLES:
        print(f"\n[cli-example] {example.name}")
        _prepare(example)
        subprocess.run(example.full_args(), check=True)
        _verify(example)
    print("\nAll CLI examples generated successfully.")


if __name__ == "__main__":
    main()
