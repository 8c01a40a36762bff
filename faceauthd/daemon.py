"""The face authentication daemon: enrolment, verification and face management."""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from faceauthd.camera import CameraManager, CaptureError
from faceauthd.errors import AccessDenied, CameraFailure
from faceauthd.matcher import FaceMatcher
from faceauthd.protocol import (
    DeleteFaceRequest,
    RegisterFaceRequest,
    RegisterFaceResponse,
    VerifyOutcome,
    VerifyRequest,
    VerifyResult,
)
from faceauthd.storage import FaceRecord, FaceStorage

logger = logging.getLogger(__name__)

_ROOT_STORAGE = Path("/var/lib/linux-hello")
_USER_STORAGE = Path(".local/share/linux-hello")
_CAMERA_TIMEOUT_MS = 5000


def _is_root() -> bool:
    return os.getuid() == 0


def default_storage_path() -> Path:
    """System-wide storage for root, per-user storage under ``$HOME`` otherwise."""
    if _is_root():
        return _ROOT_STORAGE
    return Path(os.environ.get("HOME", ".")) / _USER_STORAGE


@dataclass
class DaemonConfig:
    """Settings of the daemon."""

    storage_path: Path = field(default_factory=default_storage_path)
    root_mode: bool = field(default_factory=_is_root)
    current_uid: Optional[int] = None
    default_similarity_threshold: float = 0.6
    debug: bool = False

    @classmethod
    def default(cls) -> "DaemonConfig":
        """Configuration derived from the running user."""
        return cls()


class FaceAuthDaemon:
    """Ties storage, camera and matcher together behind the service operations."""

    def __init__(self, config: DaemonConfig) -> None:
        self.config = config
        self.storage = FaceStorage(config.storage_path)
        self.camera_manager = CameraManager(_CAMERA_TIMEOUT_MS)
        self.matcher = FaceMatcher(config.default_similarity_threshold)
        logger.info("Daemon created with config: %r", config)

    async def register_face(self, request: RegisterFaceRequest) -> str:
        """Capture and store a new face; returns the JSON of the response."""
        self._check_user_permission(request.user_id)
        logger.info(
            "Registering face for user_id=%d, context=%s",
            request.user_id,
            request.context,
        )

        try:
            capture = await self.camera_manager.capture_frames(
                request.num_samples, request.timeout_ms
            )
        except CaptureError as exc:
            raise CameraFailure(str(exc)) from exc

        if not capture.embeddings:
            raise CameraFailure("No frame captured")
        embedding = capture.embeddings[0]

        now = int(time.time())
        face_id = f"face_{request.user_id}_{now}"
        record = FaceRecord(
            face_id=face_id,
            user_id=request.user_id,
            embedding_json=json.dumps(embedding.vector),
            quality_score=capture.quality_score,
            registered_at=now,
            context=request.context,
        )
        self.storage.save_face(record, embedding)
        logger.info("Face registered: face_id=%s", face_id)

        return RegisterFaceResponse(
            face_id=face_id,
            registered_at=now,
            quality_score=capture.quality_score,
        ).to_json()

    async def delete_face(self, request: DeleteFaceRequest) -> None:
        """Delete one face, or all of the user's faces when no face id is given."""
        self._check_user_permission(request.user_id)
        logger.info(
            "Deleting face for user_id=%d, face_id=%s", request.user_id, request.face_id
        )
        if request.face_id is not None:
            self.storage.delete_face(request.user_id, request.face_id)
        else:
            self.storage.delete_all_faces(request.user_id)

    async def verify(self, request: VerifyRequest) -> VerifyResult:
        """Capture a probe and compare it with the user's enrolled faces."""
        self._check_user_permission(request.user_id)
        logger.info(
            "Verifying user_id=%d, context=%s", request.user_id, request.context
        )

        faces = self.storage.list_user_faces(request.user_id)
        if not faces:
            logger.info("No face enrolled for user_id=%d", request.user_id)
            return VerifyResult(VerifyOutcome.NO_ENROLLMENT)

        try:
            capture = await self.camera_manager.capture_frames(1, request.timeout_ms)
        except CaptureError as exc:
            raise CameraFailure(str(exc)) from exc
        if not capture.embeddings:
            raise CameraFailure("No frame captured")
        probe = capture.embeddings[0]

        stored = {
            face.face_id: self.storage.load_face_embedding(request.user_id, face.face_id)
            for face in faces
        }
        match = self.matcher.match_embedding(probe, stored, request.context)

        if match.matched and match.face_id is not None:
            return VerifyResult.success(match.face_id, match.best_score)
        if match.best_score > 0.0:
            return VerifyResult.no_match(match.best_score, match.threshold)
        return VerifyResult(VerifyOutcome.NO_FACE_DETECTED)

    async def list_faces(self, user_id: int) -> str:
        """JSON array of the user's face records."""
        self._check_user_permission(user_id)
        faces = self.storage.list_user_faces(user_id)
        return json.dumps([face.to_dict() for face in faces])

    def is_camera_available(self) -> bool:
        return self.camera_manager.is_available()

    def _check_user_permission(self, target_uid: int) -> None:
        current_uid = os.getuid()
        if current_uid == 0 or current_uid == target_uid:
            return
        raise AccessDenied(f"UID {current_uid} cannot access UID {target_uid}")