import pytest

from faceauthd.camera import CameraManager, CaptureError, CaptureResult, CaptureTimeout
from faceauthd.frames import FrameFormat


def test_camera_manager_available():
    assert CameraManager(5000).is_available() is True


@pytest.mark.asyncio
async def test_capture_frames():
    camera = CameraManager(5000)
    result = await camera.capture_frames(3, 0)
    assert isinstance(result, CaptureResult)
    assert len(result.frames) == 3
    assert len(result.embeddings) == 3
    assert len(result.embeddings[0].vector) == 128


@pytest.mark.asyncio
async def test_capture_frames_are_valid_rgb():
    result = await CameraManager(5000).capture_frames(2, 1000)
    assert [frame.validate() for frame in result.frames] == [None, None]
    assert [frame.format for frame in result.frames] == [FrameFormat.RGB8] * 2
    assert [(frame.width, frame.height) for frame in result.frames] == [(1920, 1080)] * 2
    assert [frame.timestamp_ms for frame in result.frames] == [0, 100]
    assert result.quality_score == pytest.approx(0.85)
    assert result.embeddings[0].metadata.model == "sim_model"


@pytest.mark.asyncio
async def test_capture_frames_embeddings_differ_per_frame():
    result = await CameraManager(5000).capture_frames(2, 0)
    first, second = result.embeddings
    assert first.vector != second.vector
    assert second.vector[:-1] == first.vector[1:]


@pytest.mark.asyncio
async def test_capture_zero_frames():
    result = await CameraManager(5000).capture_frames(0, 0)
    assert result.frames == []
    assert result.embeddings == []


@pytest.mark.asyncio
async def test_test_capture_size():
    data = await CameraManager(5000).test_capture()
    assert len(data) == 640 * 480 * 3


@pytest.mark.asyncio
async def test_start_capture_stream():
    events = []
    await CameraManager(5000).start_capture_stream(5, 10000, events.append)
    summary = [
        (event.total_frames, event.width, event.height, len(event.frame_data))
        for event in events
    ]
    assert summary == [(5, 640, 480, 640 * 480 * 3)] * 5
    assert events[-1].is_last_frame()


@pytest.mark.asyncio
async def test_start_capture_stream_collects_frames():
    captured = []
    await CameraManager(5000).start_capture_stream(
        3, 10000, lambda event: captured.append(event.frame_number)
    )
    assert captured == [0, 1, 2]


@pytest.mark.asyncio
async def test_start_capture_stream_timestamps_increase():
    events = []
    await CameraManager(5000).start_capture_stream(3, 10000, events.append)
    stamps = [e.timestamp_ms for e in events]
    assert len(stamps) == 3
    assert stamps == sorted(stamps)


@pytest.mark.asyncio
async def test_start_capture_stream_times_out():
    events = []
    with pytest.raises(CaptureTimeout):
        await CameraManager(5000).start_capture_stream(10, 1, events.append)
    assert len(events) < 10


@pytest.mark.asyncio
async def test_capture_timeout_is_capture_error():
    with pytest.raises(CaptureError) as excinfo:
        await CameraManager(5000).start_capture_stream(10, 1, lambda event: None)
    assert isinstance(excinfo.value, CaptureTimeout)