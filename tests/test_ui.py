import numpy as np
import pytest

from backdrop.ui import BackgroundPicker, HeadlessUI, KeyboardControl, get_ui


def test_keyboard_actions():
    keyboard = KeyboardControl()
    assert keyboard.poll(ord('q')) == "quit"
    assert keyboard.poll(27) == "quit"
    assert keyboard.poll(ord('n')) == "next_background"
    assert keyboard.poll(ord('g')) == "default_background"
    assert keyboard.poll(ord('x')) is None
    assert keyboard.poll(None) is None


def test_picker_cycles_images_in_name_order(tmp_path):
    (tmp_path / "b.png").write_bytes(b"second")
    (tmp_path / "a.jpg").write_bytes(b"first")
    (tmp_path / "notes.txt").write_text("ignored")
    picker = BackgroundPicker(str(tmp_path))

    picks = [picker.next_payload() for _ in range(3)]

    assert [path.name for path, _ in picks] == ["a.jpg", "b.png", "a.jpg"]
    assert picks[0][1] == b"first"


def test_picker_without_directory_returns_none(tmp_path):
    assert BackgroundPicker(None).next_payload() is None
    assert BackgroundPicker(str(tmp_path / "missing")).next_payload() is None


def test_headless_ui_counts_frames():
    ui = get_ui("headless", 4, 3)
    assert isinstance(ui, HeadlessUI)

    ui.show(np.zeros((3, 4, 4), dtype=np.uint8))
    ui.show_status("Loading segmentation model...")

    assert ui.frames_shown == 1
    assert ui.last_status == "Loading segmentation model..."
    assert ui.poll_input() is None


def test_unknown_ui_rejected():
    with pytest.raises(ValueError):
        get_ui("tk")
