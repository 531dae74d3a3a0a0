"""
Tests for the command-line entry point and its output sinks.
"""

import PIL.Image
import pytest

import zoom
from cantor.renderer import gradient_color


def _run(argv):
    with pytest.raises(SystemExit) as excinfo:
        zoom.main(argv)
    return excinfo.value.code


def test_missing_arguments_print_usage(capsys):
    assert _run([]) == 2
    assert "usage:" in capsys.readouterr().err

    assert _run(["128"]) == 2
    assert "usage:" in capsys.readouterr().err


def test_non_numeric_arguments(capsys):
    assert _run(["wide", "3"]) == 2
    err = capsys.readouterr().err
    assert "usage:" in err
    assert "invalid int value" in err

    assert _run(["64", "many"]) == 2
    assert "invalid int value" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv, message",
    [
        (["0", "3"], "Frame size must be positive"),
        (["64", "-1"], "non-negative"),
        (["64", "3", "--zoom", "0"], "positive finite"),
        (["64", "3", "--camera-x", "0.5"], "given together"),
        (["64", "3", "--easing", "bounce"], "Unknown easing"),
        (["64", "3", "--final-zoom", "-1"], "--final-zoom must be positive"),
        (["64", "3", "--frames", "-2"], "--frames must be non-negative"),
        (["64", "3", "--color", "blue"], "#RRGGBB"),
        (["64", "3", "--color-mode", "colormap", "--colormap", "nope"], "Unknown matplotlib colormap"),
        (["64", "3", "--mode", "sketch"], "Unknown output mode"),
        (["64", "3", "--mode", "view", "--mode", "gif"], "cannot be combined"),
        (["64", "3", "--mode", "gif", "--pixel-space"], "--pixel-space is only valid"),
        (["64", "3", "--format", "nosuchformat"], "Unsupported image format"),
        (["64", "3", "--frame-dir", "somewhere"], "--frame-dir is only valid"),
        (["27", "3", "--mode", "image", "--pixel-space", "--height", "9"], "cannot be combined with --height"),
        (["27", "3", "--mode", "image", "--pixel-space", "--zoom", "5"], "cannot be combined with --height"),
        (["27", "3", "--mode", "image", "--pixel-space", "--camera-x", "0.5", "--camera-y", "0.5"], "cannot be combined with --height"),
        (["64", "3", "--frames", "0"], "--frames must be at least 1"),
        (["64", "3", "--mode", "frames", "--frames", "0"], "--frames must be at least 1"),
    ],
)
def test_invalid_options_are_reported(argv, message, capsys):
    assert _run(argv) == 2
    err = capsys.readouterr().err
    assert "usage:" in err
    assert message in err


def test_output_extension_must_match(tmp_path, capsys):
    assert _run(["64", "2", str(tmp_path / "movie.mp4")]) == 2
    assert "GIF outputs must end with .gif" in capsys.readouterr().err

    assert _run(["64", "2", "--mode", "image", str(tmp_path / "still.jpg")]) == 2
    assert "does not match --format png" in capsys.readouterr().err


def test_still_image(tmp_path):
    target = tmp_path / "still.png"

    zoom.main(["90", "2", "--mode", "image", str(target)])

    with PIL.Image.open(target) as image:
        assert image.size == (90, 90)
        rgb = image.convert("RGB")
        assert rgb.getpixel((5, 5)) == gradient_color(0, 2)
        assert rgb.getpixel((45, 45)) == (255, 255, 255)


def test_still_image_options(tmp_path):
    target = tmp_path / "custom"

    zoom.main([
        "60", "1", "--mode", "image", "--height", "30",
        "--color-mode", "solid", "--color", "#102030", "--background", "#000000",
        str(target),
    ])

    with PIL.Image.open(tmp_path / "custom.png") as image:
        assert image.size == (60, 30)
        rgb = image.convert("RGB")
        assert rgb.getpixel((2, 2)) == (16, 32, 48)
        assert rgb.getpixel((30, 2)) == (0, 0, 0)


def test_pixel_space_still(tmp_path):
    target = tmp_path / "grid.png"

    zoom.main(["27", "3", "--mode", "image", "--pixel-space", str(target)])

    with PIL.Image.open(target) as image:
        rgb = image.convert("RGB")
        assert rgb.getpixel((0, 0)) == gradient_color(0, 3)
        assert rgb.getpixel((1, 0)) == (255, 255, 255)
        assert rgb.getpixel((2, 0)) == gradient_color(0, 3)


def test_gif_animation(tmp_path, capsys):
    target = tmp_path / "anim.gif"

    zoom.main(["60", "2", "--frames", "3", "--frame-delay", "7", "--loop", "2", str(target)])

    with PIL.Image.open(target) as image:
        assert image.size == (60, 60)
        assert image.n_frames == 3
        assert image.info["loop"] == 2
        durations = []
        for index in range(image.n_frames):
            image.seek(index)
            durations.append(image.info["duration"])
    assert durations == [70, 70, 70]
    out = capsys.readouterr().out
    assert "frame 2 out of 3" in out
    assert "GIF saved to" in out


def test_frame_sequence(tmp_path):
    frame_dir = tmp_path / "seq"

    zoom.main([
        "40", "2", "--mode", "frames", "--frames", "3",
        "--camera-x", "0.2", "--camera-y", "0.2", "--drift-x", "0.05",
        "--frame-dir", str(frame_dir),
    ])

    names = sorted(path.name for path in frame_dir.iterdir())
    assert names == ["frame000.png", "frame001.png", "frame002.png"]
    with PIL.Image.open(frame_dir / "frame002.png") as image:
        assert image.size == (40, 40)


def test_gif_and_image_share_a_directory(tmp_path):
    out_dir = tmp_path / "both"

    zoom.main(["30", "1", "--mode", "gif", "--mode", "image", "--frames", "2", str(out_dir)])

    assert (out_dir / "cantor.gif").is_file()
    assert (out_dir / "cantor.png").is_file()


def test_default_output_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    zoom.main(["24", "1", "--frames", "4"])

    with PIL.Image.open(tmp_path / "cantor.gif") as image:
        assert image.n_frames == 4


def test_verbose_logging(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr(zoom, "VERBOSE", False)

    zoom.main(["30", "2", "--mode", "image", str(tmp_path / "quiet.png")])
    assert "terminal squares" not in capsys.readouterr().out

    zoom.main(["30", "2", "--mode", "image", "--verbose", str(tmp_path / "loud.png")])
    out = capsys.readouterr().out
    assert "Still frame: 16 terminal squares" in out


def test_sink_failure_exits_non_zero(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")

    assert _run(["32", "1", "--mode", "image", str(blocker / "out.png")]) == 1
    assert "could not write output" in capsys.readouterr().err


def test_resolve_output_config_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    parser = zoom.build_parser()

    config = zoom.resolve_output_config(parser.parse_args(["64", "2"]), parser)
    assert config.modes == ("gif",)
    assert config.gif_path == tmp_path.resolve() / "cantor.gif"
    assert config.image_path is None
    assert config.frame_dir is None

    config = zoom.resolve_output_config(parser.parse_args(["64", "2", "--mode", "image", "--format", "JPG"]), parser)
    assert config.image_path == tmp_path.resolve() / "cantor.jpg"
    assert config.image_format == "jpg"

    config = zoom.resolve_output_config(parser.parse_args(["64", "2", "--mode", "frames"]), parser)
    assert config.frame_dir == tmp_path.resolve() / "frames"


def test_options_may_precede_output(tmp_path):
    target = tmp_path / "late.gif"

    zoom.main(["30", "1", "--frames", "2", "--loop", "1", str(target)])

    with PIL.Image.open(target) as image:
        assert image.n_frames == 2


def test_zero_frames_writes_nothing(tmp_path, capsys):
    target = tmp_path / "empty.gif"

    assert _run(["30", "1", "--frames", "0", str(target)]) == 2
    assert "GIF saved to" not in capsys.readouterr().out
    assert not target.exists()


def test_still_image_accepts_zero_frames(tmp_path):
    target = tmp_path / "still.png"

    zoom.main(["30", "1", "--mode", "image", "--frames", "0", str(target)])

    assert target.is_file()
