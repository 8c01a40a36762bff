"""Requests, responses and verification results exchanged with clients as JSON."""

from __future__ import annotations

import enum
import json
from dataclasses import asdict, dataclass
from typing import Any, Optional


def _parse_object(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


def _field(data: dict[str, Any], key: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"missing field `{key}`") from None


def _uint(data: dict[str, Any], key: str) -> int:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field `{key}` must be a non-negative integer")
    return value


def _number(data: dict[str, Any], key: str) -> float:
    value = _field(data, key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field `{key}` must be a number")
    return float(value)


def _string(data: dict[str, Any], key: str) -> str:
    value = _field(data, key)
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


@dataclass
class RegisterFaceRequest:
    """Request to enrol a new face for a user."""

    user_id: int
    context: str
    timeout_ms: int
    num_samples: int

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> "RegisterFaceRequest":
        data = _parse_object(text)
        return cls(
            user_id=_uint(data, "user_id"),
            context=_string(data, "context"),
            timeout_ms=_uint(data, "timeout_ms"),
            num_samples=_uint(data, "num_samples"),
        )


@dataclass
class RegisterFaceResponse:
    """Reply to a successful enrolment."""

    face_id: str
    registered_at: int
    quality_score: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> "RegisterFaceResponse":
        data = _parse_object(text)
        return cls(
            face_id=_string(data, "face_id"),
            registered_at=_uint(data, "registered_at"),
            quality_score=_number(data, "quality_score"),
        )


@dataclass
class DeleteFaceRequest:
    """Request to delete one face, or every face of the user when ``face_id`` is None."""

    user_id: int
    face_id: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> "DeleteFaceRequest":
        data = _parse_object(text)
        face_id = data.get("face_id")
        if face_id is not None and not isinstance(face_id, str):
            raise ValueError("field `face_id` must be a string or null")
        return cls(user_id=_uint(data, "user_id"), face_id=face_id)


@dataclass
class VerifyRequest:
    """Request to authenticate a user."""

    user_id: int
    context: str
    timeout_ms: int

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> "VerifyRequest":
        data = _parse_object(text)
        return cls(
            user_id=_uint(data, "user_id"),
            context=_string(data, "context"),
            timeout_ms=_uint(data, "timeout_ms"),
        )


class VerifyOutcome(enum.Enum):
    """Kind of verification result; the value is its tag on the wire."""

    SUCCESS = "Success"
    NO_FACE_DETECTED = "NoFaceDetected"
    NO_MATCH = "NoMatch"
    NO_ENROLLMENT = "NoEnrollment"
    CANCELLED = "Cancelled"
    ERROR = "Error"


_UNIT_OUTCOMES = {
    VerifyOutcome.NO_FACE_DETECTED,
    VerifyOutcome.NO_ENROLLMENT,
    VerifyOutcome.CANCELLED,
}


@dataclass(frozen=True)
class VerifyResult:
    """Result of a verification, with the fields its outcome carries."""

    outcome: VerifyOutcome
    face_id: Optional[str] = None
    similarity_score: Optional[float] = None
    best_score: Optional[float] = None
    threshold: Optional[float] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, face_id: str, similarity_score: float) -> "VerifyResult":
        return cls(VerifyOutcome.SUCCESS, face_id=face_id, similarity_score=similarity_score)

    @classmethod
    def no_match(cls, best_score: float, threshold: float) -> "VerifyResult":
        return cls(VerifyOutcome.NO_MATCH, best_score=best_score, threshold=threshold)

    @classmethod
    def error(cls, message: str) -> "VerifyResult":
        return cls(VerifyOutcome.ERROR, message=message)

    def _payload(self) -> dict[str, Any]:
        if self.outcome is VerifyOutcome.SUCCESS:
            return {"face_id": self.face_id, "similarity_score": self.similarity_score}
        if self.outcome is VerifyOutcome.NO_MATCH:
            return {"best_score": self.best_score, "threshold": self.threshold}
        return {"message": self.message}

    def to_json(self) -> str:
        """Externally tagged form: a bare tag, or a one-key object holding the fields."""
        if self.outcome in _UNIT_OUTCOMES:
            return json.dumps(self.outcome.value)
        return json.dumps({self.outcome.value: self._payload()})

    @classmethod
    def from_json(cls, text: str) -> "VerifyResult":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc

        if isinstance(data, str):
            try:
                outcome = VerifyOutcome(data)
            except ValueError:
                raise ValueError(f"unknown variant `{data}`") from None
            if outcome not in _UNIT_OUTCOMES:
                raise ValueError(f"variant `{data}` needs fields")
            return cls(outcome)

        if not isinstance(data, dict) or len(data) != 1:
            raise ValueError("expected a variant tag or a single-key object")
        (tag, body), = data.items()
        try:
            outcome = VerifyOutcome(tag)
        except ValueError:
            raise ValueError(f"unknown variant `{tag}`") from None
        if outcome in _UNIT_OUTCOMES:
            raise ValueError(f"variant `{tag}` takes no fields")
        if not isinstance(body, dict):
            raise ValueError(f"fields of `{tag}` must be an object")
        if outcome is VerifyOutcome.SUCCESS:
            return cls.success(_string(body, "face_id"), _number(body, "similarity_score"))
        if outcome is VerifyOutcome.NO_MATCH:
            return cls.no_match(_number(body, "best_score"), _number(body, "threshold"))
        return cls.error(_string(body, "message"))

    def __str__(self) -> str:
        if self.outcome is VerifyOutcome.SUCCESS:
            return f"Succès ({self.face_id}): {self.similarity_score:.2f}"
        if self.outcome is VerifyOutcome.NO_FACE_DETECTED:
            return "Aucun visage"
        if self.outcome is VerifyOutcome.NO_MATCH:
            return f"Non reconnu: {self.best_score:.2f} < {self.threshold:.2f}"
        if self.outcome is VerifyOutcome.NO_ENROLLMENT:
            return "Pas d'enregistrement"
        if self.outcome is VerifyOutcome.CANCELLED:
            return "Annulé"
        return f"Erreur: {self.message}"