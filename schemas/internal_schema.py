"""Internal schemas for security utilities.

These models are not part of the external API contract. They structure
internal signals (prompt injection screening of free text before it is sent
to the LLM) in a consistent, type-safe way.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, model_validator


class InjectionDetectionResult(BaseModel):
    """Standardized result for prompt injection detection.

    Attributes:
        is_safe:
            True when the scanned text may be forwarded to the LLM.
        detected_patterns:
            Tags of the patterns / heuristics that fired, e.g.
            "CRITICAL: ignore\\s+previous", "HEURISTIC: HIGH_SPECIAL_CHAR_RATIO".
        risk_score:
            Normalized score in [0.0, 1.0]; >= 0.8 is never safe.
    """

    is_safe: bool = Field(..., description="True if the input is considered safe enough to process.")
    detected_patterns: List[str] = Field(
        default_factory=list,
        description="List of patterns / heuristics that were triggered.",
    )
    risk_score: float = Field(0.0, ge=0.0, le=1.0, description="Normalized risk score in [0.0, 1.0].")

    @model_validator(mode="after")
    def _auto_is_safe_from_risk(self) -> "InjectionDetectionResult":
        """High-risk results are never marked safe."""
        if self.risk_score >= 0.8 and self.is_safe:
            self.is_safe = False
        return self

    @property
    def has_findings(self) -> bool:
        return bool(self.detected_patterns)

    @classmethod
    def safe(cls) -> "InjectionDetectionResult":
        return cls(is_safe=True, detected_patterns=[], risk_score=0.0)
