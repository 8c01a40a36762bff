"""Events and settings for live capture streaming with face detection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class FaceBox:
    """Bounding box of a detected face."""

    x: int
    y: int
    width: int
    height: int
    confidence: float

    def center(self) -> tuple[int, int]:
        """Centre point of the box."""
        return (self.x + self.width // 2, self.y + self.height // 2)

    def contains(self, px: int, py: int) -> bool:
        """Whether the point lies inside the box (right and bottom edges excluded)."""
        return (
            self.x <= px < self.x + self.width
            and self.y <= py < self.y + self.height
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FaceBox":
        return cls(
            x=int(data["x"]),
            y=int(data["y"]),
            width=int(data["width"]),
            height=int(data["height"]),
            confidence=float(data["confidence"]),
        )


@dataclass
class CaptureFrameEvent:
    """A frame captured during enrolment, as sent to a preview client."""

    frame_number: int
    total_frames: int
    width: int
    height: int
    frame_data: bytes = b""
    face_detected: bool = False
    face_box: Optional[FaceBox] = None
    quality_score: float = 0.0
    timestamp_ms: int = 0

    def progress_percent(self) -> int:
        """Progress from 0 to 100; zero when there are no frames to capture."""
        if self.total_frames == 0:
            return 0
        return (self.frame_number + 1) * 100 // self.total_frames

    def is_last_frame(self) -> bool:
        return self.frame_number + 1 >= self.total_frames

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-ready form; pixel data becomes a list of byte values."""
        return {
            "frame_number": self.frame_number,
            "total_frames": self.total_frames,
            "frame_data": list(self.frame_data),
            "width": self.width,
            "height": self.height,
            "face_detected": self.face_detected,
            "face_box": self.face_box.to_dict() if self.face_box else None,
            "quality_score": self.quality_score,
            "timestamp_ms": self.timestamp_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CaptureFrameEvent":
        box = data["face_box"]
        return cls(
            frame_number=int(data["frame_number"]),
            total_frames=int(data["total_frames"]),
            width=int(data["width"]),
            height=int(data["height"]),
            frame_data=bytes(data["frame_data"]),
            face_detected=bool(data["face_detected"]),
            face_box=FaceBox.from_dict(box) if box is not None else None,
            quality_score=float(data["quality_score"]),
            timestamp_ms=int(data["timestamp_ms"]),
        )


class CaptureState(enum.Enum):
    """State of a capture session; the value is its display label."""

    IDLE = "Inactif"
    WAITING = "En attente"
    CAPTURING = "Capture en cours"
    COMPLETED = "Terminé"
    FAILED = "Erreur"
    CANCELLED = "Annulé"

    def __str__(self) -> str:
        return self.value


@dataclass
class CaptureConfig:
    """Settings for a capture session (a timeout of 0 means none)."""

    num_frames: int = 30
    timeout_ms: int = 120000
    detection_confidence_threshold: float = 0.6
    quality_threshold: float = 0.5
    accept_no_face: bool = True