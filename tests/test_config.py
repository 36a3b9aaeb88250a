import pytest

from backdrop.config import (
    AppConfig,
    CanvasConfig,
    SchedulerConfig,
    SegmentationConfig,
    load_config,
)


def test_defaults_match_original_canvas():
    config = AppConfig()
    assert (config.canvas.width, config.canvas.height) == (640, 480)
    assert config.background.default_color == "#00ff00"
    assert config.scheduler.target_fps == 30
    assert config.scheduler.target_interval_ms == pytest.approx(33.333, rel=1e-3)


def test_preset_overrides_segmentation_and_rate():
    config = AppConfig(preset="FAST")
    assert config.segmentation.speed_accuracy_tradeoff == "speed"
    assert config.segmentation.confidence_threshold == 0.6
    assert config.scheduler.target_fps == 20


def test_unknown_preset_rejected():
    with pytest.raises(ValueError):
        AppConfig(preset="ULTRA")


@pytest.mark.parametrize(
    "factory",
    [
        lambda: CanvasConfig(width=0),
        lambda: SchedulerConfig(target_fps=0),
        lambda: SchedulerConfig(alert_after_failures=0),
        lambda: SegmentationConfig(confidence_threshold=1.5),
        lambda: SegmentationConfig(speed_accuracy_tradeoff="fastest"),
    ],
)
def test_invalid_values_rejected(factory):
    with pytest.raises(ValueError):
        factory()


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "canvas:\n"
        "  width: 320\n"
        "  height: 240\n"
        "segmentation:\n"
        "  mirror: true\n"
        "scheduler:\n"
        "  target_fps: 15\n"
        "background:\n"
        "  default_color: '#112233'\n"
    )

    config = load_config(str(path))

    assert (config.canvas.width, config.canvas.height) == (320, 240)
    assert config.segmentation.mirror is True
    assert config.scheduler.target_fps == 15
    assert config.background.default_color == "#112233"
    assert config.display.refresh_hz == 60.0


def test_load_config_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("")
    assert load_config(str(path)) == AppConfig()


def test_load_config_missing_explicit_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(str(path))
