import asyncio

import numpy as np
import pytest

from backdrop.config import AppConfig, SegmentationConfig
from backdrop.core.contracts import CycleOutcome, SessionStatus, SolidFill
from backdrop.core.errors import CameraAccessError, ModelLoadError
from backdrop.pipeline import CompositingSession
from backdrop.segmentation import SelfieSegmentationProvider

from conftest import FakeFrameSource, FakeProvider, make_session, random_raster


def test_start_makes_session_ready():
    session = make_session()
    assert not session.is_ready

    asyncio.run(session.start())

    assert session.status == SessionStatus.READY
    assert session.is_ready
    assert session.frame_source.started


def test_model_load_error_makes_session_unavailable():
    source = FakeFrameSource()
    session = make_session(frame_source=source, provider=FakeProvider(load_error=True))

    with pytest.raises(ModelLoadError):
        asyncio.run(session.start())

    assert session.status == SessionStatus.UNAVAILABLE
    assert isinstance(session.last_error, ModelLoadError)
    assert not session.is_ready
    assert not source.started


def test_camera_error_makes_session_unavailable():
    session = make_session(frame_source=FakeFrameSource(start_error=True))

    with pytest.raises(CameraAccessError):
        asyncio.run(session.start())

    assert session.status == SessionStatus.UNAVAILABLE
    assert not session.is_ready


def test_run_cycle_draws_mirrored_frame_when_mirroring():
    frame = random_raster(20)
    provider = FakeProvider(
        mask_fn=lambda f: np.ones(f.shape[:2], dtype=bool),
        config=SegmentationConfig(mirror=True),
    )
    committed = []
    session = make_session(frame_source=FakeFrameSource(frame), provider=provider, committed=committed)

    async def scenario():
        await session.start()
        return await session.run_cycle()

    assert asyncio.run(scenario()) == CycleOutcome.COMPOSITED
    assert np.array_equal(committed[0], frame[:, ::-1])


def test_run_cycle_records_stage_timings():
    session = make_session()

    async def scenario():
        await session.start()
        await session.run_cycle()

    asyncio.run(scenario())

    assert set(session.last_timings) == {"frame", "segment", "composite", "total"}


def test_stop_releases_everything_and_resets_state():
    session = make_session()

    async def scenario():
        await session.start()
        await session.run_cycle()
        session.cycle_state.record_success(10.0)
        await session.stop()
        return await session.run_cycle()

    assert asyncio.run(scenario()) == CycleOutcome.STOPPED
    assert session.status == SessionStatus.STOPPED
    assert session.provider.released
    assert session.frame_source.stopped
    assert session.background_store.current() is None
    assert session.compositor.output is None
    assert session.cycle_state.last_composited_at is None


def test_stop_before_start_is_safe():
    session = make_session()
    asyncio.run(session.stop())
    assert session.status == SessionStatus.STOPPED
    assert not session.frame_source.stopped


def test_from_config_builds_default_components():
    config = AppConfig()
    config.canvas.width, config.canvas.height = 320, 240

    session = CompositingSession.from_config(config)

    assert isinstance(session.provider, SelfieSegmentationProvider)
    assert session.compositor.raster_shape == (240, 320, 4)
    assert session.frame_source.frame_size == (320, 240)
    assert session.background_store.current() == SolidFill(0, 255, 0)
    assert session.status == SessionStatus.IDLE


def test_from_config_without_default_colour_has_no_background():
    config = AppConfig()
    config.background.default_color = ""

    session = CompositingSession.from_config(config)

    assert session.background_store.current() is None
