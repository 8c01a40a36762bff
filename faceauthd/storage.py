"""Persistent storage of enrolled faces: metadata and embeddings as JSON files."""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

from faceauthd.errors import AccessDenied, StorageError
from faceauthd.matcher import Embedding

logger = logging.getLogger(__name__)

_META_SUFFIX = ".meta.json"
_EMBEDDING_SUFFIX = ".embedding.json"


@dataclass
class FaceRecord:
    """Metadata of an enrolled face."""

    face_id: str
    user_id: int
    embedding_json: str
    quality_score: float
    registered_at: int
    context: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "face_id": self.face_id,
            "user_id": self.user_id,
            "embedding_json": self.embedding_json,
            "quality_score": self.quality_score,
            "registered_at": self.registered_at,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FaceRecord":
        return cls(
            face_id=str(data["face_id"]),
            user_id=int(data["user_id"]),
            embedding_json=str(data["embedding_json"]),
            quality_score=float(data["quality_score"]),
            registered_at=int(data["registered_at"]),
            context=str(data["context"]),
        )


class FaceStorage:
    """Stores each user's faces under ``<base>/users/<uid>/``."""

    def __init__(self, base_path: Union[str, Path]) -> None:
        self.base_path = Path(base_path)
        self.db_path = self.base_path / "faces.db"
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"creating directory failed: {exc}") from exc
        try:
            (self.base_path / "embeddings").mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"creating embeddings directory: {exc}") from exc
        logger.info("Storage initialised at %s", self.base_path)

    def _user_dir(self, user_id: int) -> Path:
        user_dir = self.base_path / "users" / str(user_id)
        if not user_dir.resolve().is_relative_to(self.base_path.resolve()):
            raise AccessDenied(f"Path traversal attempt for user_id={user_id}")
        return user_dir

    def save_face(self, record: FaceRecord, embedding: Embedding) -> None:
        """Write the record's metadata and its embedding."""
        user_dir = self._user_dir(record.user_id)
        try:
            user_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"creating user directory: {exc}") from exc

        meta_path = user_dir / f"{record.face_id}{_META_SUFFIX}"
        try:
            meta_path.write_text(json.dumps(record.to_dict(), indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"writing metadata: {exc}") from exc

        emb_path = user_dir / f"{record.face_id}{_EMBEDDING_SUFFIX}"
        try:
            emb_path.write_text(json.dumps(embedding.to_dict(), indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"writing embedding: {exc}") from exc

        logger.debug("Face saved: user_id=%d, face_id=%s", record.user_id, record.face_id)

    def load_face_embedding(self, user_id: int, face_id: str) -> Embedding:
        """Read the embedding stored for a face."""
        path = self._user_dir(user_id) / f"{face_id}{_EMBEDDING_SUFFIX}"
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"reading embedding: {exc}") from exc
        try:
            return Embedding.from_dict(json.loads(content))
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageError(f"decoding embedding: {exc}") from exc

    def list_user_faces(self, user_id: int) -> list[FaceRecord]:
        """All face records of a user; empty when none were saved."""
        user_dir = self._user_dir(user_id)
        if not user_dir.exists():
            return []
        try:
            meta_paths = sorted(
                p for p in user_dir.iterdir() if p.name.endswith(_META_SUFFIX)
            )
        except OSError as exc:
            raise StorageError(f"reading user directory: {exc}") from exc

        faces = []
        for path in meta_paths:
            try:
                content = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise StorageError(f"reading metadata: {exc}") from exc
            try:
                faces.append(FaceRecord.from_dict(json.loads(content)))
            except (ValueError, KeyError, TypeError) as exc:
                raise StorageError(f"decoding metadata: {exc}") from exc
        return faces

    def delete_face(self, user_id: int, face_id: str) -> None:
        """Remove a face's files; missing files are ignored."""
        user_dir = self._user_dir(user_id)
        for suffix, what in ((_META_SUFFIX, "metadata"), (_EMBEDDING_SUFFIX, "embedding")):
            path = user_dir / f"{face_id}{suffix}"
            if path.exists():
                try:
                    path.unlink()
                except OSError as exc:
                    raise StorageError(f"deleting {what}: {exc}") from exc
        logger.debug("Face deleted: user_id=%d, face_id=%s", user_id, face_id)

    def delete_all_faces(self, user_id: int) -> None:
        """Remove every face of a user."""
        user_dir = self._user_dir(user_id)
        if user_dir.exists():
            try:
                shutil.rmtree(user_dir)
            except OSError as exc:
                raise StorageError(f"deleting user directory: {exc}") from exc
        logger.debug("All faces deleted for user_id=%d", user_id)