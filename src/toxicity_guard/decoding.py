"""Decode raw model logits into toxicity probabilities."""

from collections.abc import Sequence

import numpy as np
from scipy.special import expit

from .config import CATEGORY_LABELS, DECISION_THRESHOLD
from .exceptions import EmptyOutputError, InvalidOutputError
from .result import ToxicityResult


def sigmoid(logits: Sequence[float] | np.ndarray) -> np.ndarray:
    """Elementwise logistic function on a flattened copy of ``logits``."""
    values = np.asarray(logits, dtype=np.float64).reshape(-1)
    return expit(values)


def decode(logits: Sequence[float] | np.ndarray) -> dict[str, float]:
    """Map logits to per-category probabilities.

    The first ``len(CATEGORY_LABELS)`` probabilities are paired positionally
    with the category labels. Extra values are ignored; categories without a
    value get 0.0.

    Args:
        logits: Raw multi-label logits (any shape, flattened).

    Returns:
        Dict with every category label mapped to a probability in [0, 1].
    """
    probabilities = sigmoid(logits)
    return {
        label: float(probabilities[i]) if i < probabilities.size else 0.0
        for i, label in enumerate(CATEGORY_LABELS)
    }


def decode_result(logits: Sequence[float] | np.ndarray) -> ToxicityResult:
    """Build a ToxicityResult from raw logits.

    ``is_toxic`` always uses the fixed ``DECISION_THRESHOLD``; caller-chosen
    thresholds are applied later by the policy layer.

    Raises:
        EmptyOutputError: If ``logits`` holds no values.
        InvalidOutputError: If any logit is NaN.
    """
    values = np.asarray(logits, dtype=np.float64).reshape(-1)
    if values.size == 0:
        raise EmptyOutputError("Model returned empty logits")
    if np.isnan(values).any():
        raise InvalidOutputError("Model returned NaN logits")

    category_scores = decode(values)
    toxic_probability = max(category_scores.values())
    is_toxic = any(score > DECISION_THRESHOLD for score in category_scores.values())

    return ToxicityResult(
        toxic_probability=toxic_probability,
        safe_probability=1.0 - toxic_probability,
        is_toxic=is_toxic,
        category_scores=category_scores,
    )
