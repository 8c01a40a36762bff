"""Face embeddings and similarity matching against stored faces."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

_CONTEXT_THRESHOLDS = {
    "login": 0.65,
    "sudo": 0.70,
    "sddm": 0.65,
    "screenlock": 0.60,
    "test": 0.50,
}


@dataclass
class EmbeddingMetadata:
    """Where and how an embedding was produced."""

    model: str
    model_version: str
    extracted_at: int
    quality_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "model_version": self.model_version,
            "extracted_at": self.extracted_at,
            "quality_score": self.quality_score,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmbeddingMetadata":
        return cls(
            model=str(data["model"]),
            model_version=str(data["model_version"]),
            extracted_at=int(data["extracted_at"]),
            quality_score=float(data["quality_score"]),
        )


@dataclass
class Embedding:
    """A face feature vector together with its metadata."""

    vector: list[float]
    metadata: EmbeddingMetadata

    def to_dict(self) -> dict[str, Any]:
        return {"vector": list(self.vector), "metadata": self.metadata.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Embedding":
        return cls(
            vector=[float(v) for v in data["vector"]],
            metadata=EmbeddingMetadata.from_dict(data["metadata"]),
        )


@dataclass
class MatchResult:
    """Outcome of comparing a probe with stored embeddings."""

    face_id: Optional[str]
    best_score: float
    threshold: float
    all_scores: dict[str, float] = field(default_factory=dict)
    matched: bool = False


class FaceMatcher:
    """Compares embeddings by cosine similarity with per-context thresholds."""

    def __init__(self, default_threshold: float) -> None:
        self.default_threshold = default_threshold
        self.context_thresholds = dict(_CONTEXT_THRESHOLDS)

    def get_threshold(self, context: str) -> float:
        """Threshold for a context, falling back to the default."""
        return self.context_thresholds.get(context, self.default_threshold)

    def match_embedding(
        self,
        probe: Embedding,
        stored: Mapping[str, Embedding],
        context: str,
    ) -> MatchResult:
        """Score the probe against every stored embedding and decide."""
        threshold = self.get_threshold(context)
        logger.info(
            "Matching probe vs %d stored faces, context=%s, threshold=%.2f",
            len(stored),
            context,
            threshold,
        )

        best_score = 0.0
        best_face_id: Optional[str] = None
        all_scores: dict[str, float] = {}

        for face_id, embedding in stored.items():
            score = self.cosine_similarity(probe.vector, embedding.vector)
            all_scores[face_id] = score
            logger.debug("Face %s score: %.4f", face_id, score)
            if score > best_score:
                best_score = score
                best_face_id = face_id

        matched = best_score >= threshold
        logger.info(
            "Best match: %s (score=%.4f, matched=%s)",
            best_face_id or "none",
            best_score,
            matched,
        )
        return MatchResult(
            face_id=best_face_id if matched else None,
            best_score=best_score,
            threshold=threshold,
            all_scores=all_scores,
            matched=matched,
        )

    def cosine_similarity(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Cosine similarity over the common length, clamped to [0, 1]."""
        if not a or not b:
            return 0.0
        dot = norm_a = norm_b = 0.0
        for x, y in zip(a, b):
            dot += x * y
            norm_a += x * x
            norm_b += y * y
        norm_a = math.sqrt(norm_a)
        norm_b = math.sqrt(norm_b)
        if norm_a == 0.0 or norm_b == 0.0:
            return 0.0
        return min(max(dot / (norm_a * norm_b), 0.0), 1.0)