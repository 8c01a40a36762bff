"""Emission of capture streaming signals to preview clients."""

from __future__ import annotations

import json
import logging
from typing import Any

from faceauthd.capture_stream import CaptureFrameEvent

logger = logging.getLogger(__name__)


class StreamingSignalEmitter:
    """Publishes capture progress, completion and error signals."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection

    async def emit_capture_progress(self, event: CaptureFrameEvent) -> str:
        """Emit a CaptureProgress signal and return its JSON payload."""
        payload = json.dumps(event.to_dict())
        logger.debug(
            "Emitting CaptureProgress: frame %d/%d, size=%d",
            event.frame_number + 1,
            event.total_frames,
            len(payload),
        )
        return payload

    async def emit_capture_completed(self, user_id: int) -> None:
        """Emit a CaptureCompleted signal for a user."""
        logger.debug("Emitting CaptureCompleted for user_id=%d", user_id)

    async def emit_capture_error(self, user_id: int, error_msg: str) -> None:
        """Emit a CaptureError signal for a user."""
        logger.debug("Emitting CaptureError for user_id=%d: %s", user_id, error_msg)