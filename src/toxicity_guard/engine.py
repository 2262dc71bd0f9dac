"""Adapter between the guard and the neural-network inference engine.

The rest of the package only sees the ModelSession protocol: named int64
tensors in, named float tensors out. ONNX Runtime is the default backend.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)


@runtime_checkable
class ModelSession(Protocol):
    """Protocol for a loaded model that can be executed.

    Example:
        >>> outputs = await session.run({"input_ids": ids, ...})
        >>> logits = outputs["logits"]
    """

    async def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Execute the model on named input tensors."""
        ...

    async def close(self) -> None:
        """Release engine resources held by the session."""
        ...


SessionFactory = Callable[[bytes], Awaitable[ModelSession]]


@dataclass(frozen=True)
class OnnxSessionConfig:
    """ONNX Runtime session options.

    Attributes:
        providers: Execution providers in priority order.
        intra_op_num_threads: Threads used within an operator (0 = default).
        inter_op_num_threads: Threads used across operators (0 = default).
        enable_graph_optimizations: Apply all graph optimizations.
        log_severity_level: ORT log level (3 = errors only).
    """

    providers: tuple[str, ...] = ("CPUExecutionProvider",)
    intra_op_num_threads: int = 0
    inter_op_num_threads: int = 0
    enable_graph_optimizations: bool = True
    log_severity_level: int = 3


class OnnxModelSession:
    """ModelSession backed by an ``onnxruntime.InferenceSession``.

    ``InferenceSession.run`` is blocking, so it is executed in a worker thread.
    """

    def __init__(self, session: Any) -> None:
        self._session = session
        self.input_names = [node.name for node in session.get_inputs()]
        self.output_names = [node.name for node in session.get_outputs()]

    async def run(self, inputs: Mapping[str, np.ndarray]) -> dict[str, np.ndarray]:
        if self._session is None:
            raise RuntimeError("ONNX session has been closed")
        # Models exported without token_type_ids reject unknown inputs
        feed = {name: tensor for name, tensor in inputs.items() if name in self.input_names}
        values = await asyncio.to_thread(self._session.run, self.output_names, feed)
        return dict(zip(self.output_names, values))

    async def close(self) -> None:
        # onnxruntime frees native memory when the session is garbage collected
        self._session = None


def _build_session_options(ort: Any, config: OnnxSessionConfig) -> Any:
    options = ort.SessionOptions()
    if config.enable_graph_optimizations:
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
    options.log_severity_level = config.log_severity_level
    options.intra_op_num_threads = config.intra_op_num_threads
    options.inter_op_num_threads = config.inter_op_num_threads
    return options


async def create_onnx_session(
    model_bytes: bytes,
    config: OnnxSessionConfig | None = None,
) -> OnnxModelSession:
    """Create an ONNX Runtime session from an in-memory model.

    Args:
        model_bytes: Serialized ONNX model.
        config: Session options (defaults to CPU execution).

    Returns:
        Ready-to-run OnnxModelSession.
    """
    import onnxruntime as ort

    config = config or OnnxSessionConfig()
    options = _build_session_options(ort, config)
    session = await asyncio.to_thread(
        ort.InferenceSession,
        model_bytes,
        options,
        providers=list(config.providers),
    )
    logger.debug(
        "Created ONNX session (providers=%s)", ", ".join(session.get_providers())
    )
    return OnnxModelSession(session)


def onnx_session_factory(config: OnnxSessionConfig | None = None) -> SessionFactory:
    """Return a session factory bound to the given ONNX options."""

    async def factory(model_bytes: bytes) -> ModelSession:
        return await create_onnx_session(model_bytes, config)

    return factory
