"""Result type returned by toxicity detection."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ToxicityResult:
    """Outcome of classifying one text.

    Attributes:
        toxic_probability: Highest category probability.
        safe_probability: ``1 - toxic_probability``.
        is_toxic: True if any category exceeded the fixed 0.5 decode threshold.
        has_error: True if detection failed. All numeric fields are then 0.0
            and ``category_scores`` is empty.
        category_scores: Probability per toxicity category.
    """

    toxic_probability: float
    safe_probability: float
    is_toxic: bool
    has_error: bool = False
    category_scores: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "category_scores", MappingProxyType(dict(self.category_scores))
        )

    @classmethod
    def error(cls) -> "ToxicityResult":
        """Sentinel result for a failed detection."""
        return cls(
            toxic_probability=0.0,
            safe_probability=0.0,
            is_toxic=False,
            has_error=True,
        )

    @property
    def toxic_score(self) -> float:
        return self.category_scores.get("toxic", 0.0)

    @property
    def severe_toxic_score(self) -> float:
        return self.category_scores.get("severe_toxic", 0.0)

    @property
    def obscene_score(self) -> float:
        return self.category_scores.get("obscene", 0.0)

    @property
    def threat_score(self) -> float:
        return self.category_scores.get("threat", 0.0)

    @property
    def insult_score(self) -> float:
        return self.category_scores.get("insult", 0.0)

    @property
    def identity_hate_score(self) -> float:
        return self.category_scores.get("identity_hate", 0.0)

    def flagged_categories(self, threshold: float = 0.5) -> list[str]:
        """Categories whose score is at or above ``threshold``."""
        return [label for label, score in self.category_scores.items() if score >= threshold]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "toxic_probability": self.toxic_probability,
            "safe_probability": self.safe_probability,
            "is_toxic": self.is_toxic,
            "has_error": self.has_error,
            "category_scores": dict(self.category_scores),
        }

    def __str__(self) -> str:
        return (
            f"ToxicityResult(is_toxic: {self.is_toxic}, "
            f"toxic_probability: {self.toxic_probability:.3f}, "
            f"category_scores: {dict(self.category_scores)})"
        )
