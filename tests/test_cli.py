import pytest

from backdrop.config import AppConfig

from main import apply_overrides, parse_args


def test_defaults_leave_config_untouched():
    config = apply_overrides(AppConfig(), parse_args([]))
    assert config == AppConfig()


def test_overrides_apply_on_top_of_settings():
    args = parse_args([
        "--width", "320", "--height", "240", "--fps", "15",
        "--speed", "--threshold", "0.7", "--mirror",
        "--color", "#0000ff", "--headless", "-b", "beach.jpg",
    ])

    config = apply_overrides(AppConfig(), args)

    assert (config.canvas.width, config.canvas.height) == (320, 240)
    assert config.scheduler.target_fps == 15
    assert config.segmentation.speed_accuracy_tradeoff == "speed"
    assert config.segmentation.confidence_threshold == 0.7
    assert config.segmentation.mirror is True
    assert config.background.default_color == "#0000ff"
    assert config.background.image == "beach.jpg"
    assert config.display.headless is True


def test_preset_flag_applies_preset():
    config = apply_overrides(AppConfig(), parse_args(["--preset", "FAST"]))
    assert config.scheduler.target_fps == 20


def test_explicit_fps_beats_preset():
    config = apply_overrides(AppConfig(), parse_args(["--preset", "FAST", "--fps", "25"]))
    assert config.scheduler.target_fps == 25


@pytest.mark.parametrize(
    "argv",
    [
        ["--fps", "0"],
        ["--threshold", "2"],
        ["--width", "-1"],
        ["--color", "green"],
    ],
)
def test_invalid_overrides_rejected(argv):
    with pytest.raises(ValueError):
        apply_overrides(AppConfig(), parse_args(argv))


def test_package_metadata_is_version_only():
    import backdrop

    assert backdrop.__version__ == "0.1.0"
    assert not hasattr(backdrop, "__author__")
