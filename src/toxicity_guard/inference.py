"""Inference pipeline: token ids -> input tensors -> engine -> raw outputs."""

import logging
from dataclasses import dataclass

import numpy as np

from .exceptions import (
    EmptyOutputError,
    EngineExecutionError,
    InferenceError,
    InvalidOutputError,
)
from .session import SessionManager

logger = logging.getLogger(__name__)

INPUT_IDS = "input_ids"
ATTENTION_MASK = "attention_mask"
TOKEN_TYPE_IDS = "token_type_ids"


def build_input_tensors(token_ids: list[int], pad_id: int) -> dict[str, np.ndarray]:
    """Build the three BERT input tensors for a single sequence.

    Args:
        token_ids: Fixed-length token ids from the tokenizer.
        pad_id: Id of the padding token.

    Returns:
        Dict of int64 arrays with shape ``[1, len(token_ids)]``:
        ``input_ids``, ``attention_mask`` (0 on padding, 1 elsewhere) and
        ``token_type_ids`` (all zero, single segment).
    """
    input_ids = np.asarray(token_ids, dtype=np.int64).reshape(1, -1)
    attention_mask = (input_ids != pad_id).astype(np.int64)
    token_type_ids = np.zeros_like(input_ids)
    return {
        INPUT_IDS: input_ids,
        ATTENTION_MASK: attention_mask,
        TOKEN_TYPE_IDS: token_type_ids,
    }


@dataclass(frozen=True)
class RawOutputs:
    """Copies of the engine's output tensors, in output order."""

    tensors: dict[str, np.ndarray]

    @property
    def names(self) -> list[str]:
        return list(self.tensors)

    @property
    def logits(self) -> np.ndarray:
        """First output tensor flattened to float64.

        Raises:
            InvalidOutputError: If the tensor cannot be converted to floats.
        """
        name, first = next(iter(self.tensors.items()))
        try:
            return np.asarray(first, dtype=np.float64).reshape(-1)
        except (TypeError, ValueError) as e:
            raise InvalidOutputError(f"Output '{name}' is not numeric: {e}") from e


class InferencePipeline:
    """Runs tokenized text through the model owned by a SessionManager.

    Example:
        >>> pipeline = InferencePipeline(manager)
        >>> outputs = await pipeline.run(manager.resources.tokenizer.encode("hi"))
        >>> outputs.logits
        array([-4.1, -7.9, -5.6, -7.2, -5.3, -6.8])
    """

    def __init__(self, manager: SessionManager) -> None:
        self.manager = manager

    async def run(self, token_ids: list[int]) -> RawOutputs:
        """Execute the model on one token sequence.

        Args:
            token_ids: Output of the tokenizer for a single text.

        Returns:
            RawOutputs holding copies of every named output tensor.

        Raises:
            SessionUnavailableError: If the manager is not READY.
            EmptyOutputError: If the engine returned no (or empty) outputs.
            EngineExecutionError: If the engine raised while running.
        """
        resources = self.manager.resources
        pad_id = resources.tokenizer.special_ids.pad_id

        inputs = build_input_tensors(token_ids, pad_id)
        try:
            outputs = await resources.model.run(inputs)
        except InferenceError:
            raise
        except Exception as e:
            raise EngineExecutionError(f"Model execution failed: {e}") from e
        finally:
            # Only drops references; the arrays are freed by garbage collection
            inputs.clear()

        if not outputs:
            raise EmptyOutputError("Model returned no outputs")

        try:
            copied = {name: np.array(value, copy=True) for name, value in outputs.items()}
        finally:
            # The engine's arrays are garbage collected once unreferenced
            outputs.clear()

        first_name = next(iter(copied))
        if copied[first_name].size == 0:
            raise EmptyOutputError(f"Output '{first_name}' is empty")

        logger.debug("Model returned outputs: %s", ", ".join(copied))
        return RawOutputs(copied)
