"""Service surface of the daemon: JSON-in, JSON-out operations for clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from faceauthd.camera import CaptureError
from faceauthd.capture_stream import CaptureFrameEvent
from faceauthd.daemon import FaceAuthDaemon
from faceauthd.errors import DaemonError
from faceauthd.protocol import DeleteFaceRequest, RegisterFaceRequest, VerifyRequest
from faceauthd.signals import StreamingSignalEmitter

logger = logging.getLogger(__name__)

SERVICE_NAME = "com.linuxhello.FaceAuth"
OBJECT_PATH = "/com/linuxhello/FaceAuth"
_VERSION = "0.1.0"


class ServiceError(Exception):
    """A service call failed; the message is what the client receives."""


class FaceAuthInterface:
    """Wraps a daemon and exposes its operations to clients.

    Without a connection no signals are emitted during capture streaming.
    """

    def __init__(self, daemon: FaceAuthDaemon, connection: Optional[Any] = None) -> None:
        self._daemon = daemon
        self._lock = asyncio.Lock()
        self._signal_emitter: Optional[StreamingSignalEmitter] = (
            StreamingSignalEmitter(connection) if connection is not None else None
        )
        self._version = _VERSION
        self._storage_path = str(daemon.config.storage_path)
        self._pending: set[asyncio.Task] = set()

    async def register_face(self, request_json: str) -> str:
        """Enrol a face from a RegisterFaceRequest; returns the response JSON."""
        logger.debug("Service call: register_face")
        try:
            request = RegisterFaceRequest.from_json(request_json)
        except ValueError as exc:
            logger.error("JSON parse error: %s", exc)
            raise ServiceError(f"JSON parse error: {exc}") from exc

        async with self._lock:
            try:
                response = await self._daemon.register_face(request)
            except DaemonError as exc:
                logger.error("register_face failed: %s", exc)
                raise ServiceError(str(exc)) from exc
        logger.info("register_face succeeded")
        return response

    async def delete_face(self, request_json: str) -> None:
        """Delete one face or all faces of a user from a DeleteFaceRequest."""
        logger.debug("Service call: delete_face")
        try:
            request = DeleteFaceRequest.from_json(request_json)
        except ValueError as exc:
            logger.error("JSON parse error: %s", exc)
            raise ServiceError(f"JSON parse error: {exc}") from exc

        async with self._lock:
            try:
                await self._daemon.delete_face(request)
            except DaemonError as exc:
                logger.error("delete_face failed: %s", exc)
                raise ServiceError(str(exc)) from exc
        logger.info("delete_face succeeded")

    async def verify(self, request_json: str) -> str:
        """Verify a user from a VerifyRequest; returns the VerifyResult JSON."""
        logger.debug("Service call: verify")
        try:
            request = VerifyRequest.from_json(request_json)
        except ValueError as exc:
            logger.error("JSON parse error: %s", exc)
            raise ServiceError(f"JSON parse error: {exc}") from exc

        async with self._lock:
            try:
                result = await self._daemon.verify(request)
            except DaemonError as exc:
                logger.error("verify failed: %s", exc)
                raise ServiceError(str(exc)) from exc
        logger.info("verify succeeded")
        return result.to_json()

    async def list_faces(self, user_id: int) -> str:
        """JSON array of the face records of a user."""
        logger.debug("Service call: list_faces for user_id=%d", user_id)
        async with self._lock:
            try:
                faces = await self._daemon.list_faces(user_id)
            except DaemonError as exc:
                logger.error("list_faces failed: %s", exc)
                raise ServiceError(str(exc)) from exc
        logger.info("list_faces succeeded")
        return faces

    async def ping(self) -> str:
        """Connectivity check."""
        return "pong"

    async def start_capture_stream(
        self, user_id: int, num_frames: int, timeout_ms: int
    ) -> str:
        """Run a streaming capture, emitting a progress signal per frame.

        Returns "OK" once every frame was captured; a completion or error
        signal follows the stream.
        """
        logger.debug(
            "Service call: start_capture_stream user_id=%d num_frames=%d timeout=%dms",
            user_id,
            num_frames,
            timeout_ms,
        )
        logger.info("Starting capture stream: user_id=%d, %d frames", user_id, num_frames)

        emitter = self._signal_emitter
        loop = asyncio.get_running_loop()

        def on_frame(event: CaptureFrameEvent) -> None:
            if emitter is None:
                logger.debug(
                    "Frame %d/%d - no signal emitter",
                    event.frame_number + 1,
                    event.total_frames,
                )
                return
            task = loop.create_task(self._emit_progress(emitter, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        async with self._lock:
            try:
                await self._daemon.camera_manager.start_capture_stream(
                    num_frames, timeout_ms, on_frame
                )
            except CaptureError as exc:
                failure: Optional[CaptureError] = exc
            else:
                failure = None

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

        if failure is not None:
            logger.error("start_capture_stream failed: %s", failure)
            if emitter is not None:
                await emitter.emit_capture_error(user_id, str(failure))
            raise ServiceError(str(failure)) from failure

        logger.info("start_capture_stream succeeded")
        if emitter is not None:
            await emitter.emit_capture_completed(user_id)
        return "OK"

    @staticmethod
    async def _emit_progress(
        emitter: StreamingSignalEmitter, event: CaptureFrameEvent
    ) -> None:
        try:
            await emitter.emit_capture_progress(event)
        except (TypeError, ValueError, OSError) as exc:
            logger.error("Signal emission failed: %s", exc)

    def version(self) -> str:
        """Version of the service."""
        return self._version

    def camera_available(self) -> bool:
        """Whether a camera is available; assumed so while the daemon is busy."""
        if self._lock.locked():
            return True
        return self._daemon.is_camera_available()

    def root_mode(self) -> bool:
        """Whether the daemon serves every user; reported false while busy."""
        if self._lock.locked():
            return False
        return self._daemon.config.root_mode

    def storage_path(self) -> str:
        """Directory holding the stored faces."""
        return self._storage_path