"""Lifecycle management for the model session and tokenizer resources.

The SessionManager loads the model, vocabulary and tokenizer settings at most
once per lifecycle, no matter how many coroutines ask for them at the same
time:

    UNLOADED --ensure_ready()--> LOADING --ok--> READY
                                    |
                                    +--error--> FAILED --ensure_ready()--> LOADING

dispose() returns the manager to UNLOADED from any state.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

from .assets import AssetSource
from .config import (
    AssetConfig,
    SpecialTokens,
    TokenizerConfig,
    load_special_tokens,
    load_tokenizer_config,
)
from .engine import ModelSession, SessionFactory, create_onnx_session
from .exceptions import (
    InitError,
    LoadError,
    SessionUnavailableError,
    UnreadableResourceError,
)
from .tokenizer import WordPieceTokenizer
from .vocabulary import Vocabulary

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionState(Enum):
    """Lifecycle state of a SessionManager."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionResources:
    """Everything produced by one successful load."""

    model: ModelSession
    vocabulary: Vocabulary
    tokenizer_config: TokenizerConfig
    special_tokens: SpecialTokens
    tokenizer: WordPieceTokenizer = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "tokenizer",
            WordPieceTokenizer(self.vocabulary, self.tokenizer_config, self.special_tokens),
        )


class SessionManager:
    """Owns the model session and coordinates its one-time initialization.

    Concurrent callers of :meth:`ensure_ready` share a single load task: the
    first caller starts it, later callers await the same task and observe the
    same outcome. A failed load leaves the manager FAILED; the next call
    retries from scratch.

    Example:
        >>> manager = SessionManager(DirectoryAssetSource("./assets"))
        >>> await manager.ensure_ready()
        >>> manager.state
        <SessionState.READY: 'ready'>
    """

    def __init__(
        self,
        assets: AssetSource,
        session_factory: SessionFactory | None = None,
        asset_config: AssetConfig | None = None,
    ) -> None:
        """Initialize the manager without loading anything.

        Args:
            assets: Source of model bundle resources.
            session_factory: Coroutine turning model bytes into a ModelSession.
                Defaults to ONNX Runtime.
            asset_config: Resource names inside the bundle.
        """
        self.assets = assets
        self.session_factory = session_factory or create_onnx_session
        self.asset_config = asset_config or AssetConfig()

        self._state = SessionState.UNLOADED
        self._resources: SessionResources | None = None
        self._load_task: asyncio.Task[None] | None = None
        # Bumped by every new load and by dispose(); stale loads discard their work
        self._generation = 0
        self.load_count = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is SessionState.READY

    @property
    def resources(self) -> SessionResources:
        """Loaded resources.

        Raises:
            SessionUnavailableError: If the manager is not READY.
        """
        if self._state is not SessionState.READY or self._resources is None:
            raise SessionUnavailableError(
                f"Model session is not ready (state: {self._state.value})"
            )
        return self._resources

    async def ensure_ready(self) -> None:
        """Load resources unless already loaded; wait for an in-flight load.

        Raises:
            InitError: If the load this call started or joined failed.
        """
        if self._state is SessionState.READY:
            return

        task = self._load_task
        if task is None:
            task = self._start_load()

        # Cancelling one waiter must not abort the load shared with others
        await asyncio.shield(task)

    async def dispose(self) -> None:
        """Release the model session and return to UNLOADED.

        An in-flight load is invalidated: its result is discarded and the next
        :meth:`ensure_ready` starts a fresh load.
        """
        self._generation += 1
        self._load_task = None
        resources, self._resources = self._resources, None
        self._state = SessionState.UNLOADED

        if resources is not None:
            await self._close_model(resources.model)
            logger.info("Model session disposed")

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _start_load(self) -> "asyncio.Task[None]":
        self._generation += 1
        self.load_count += 1
        self._state = SessionState.LOADING
        task = asyncio.get_running_loop().create_task(self._load(self._generation))
        self._load_task = task
        return task

    async def _load(self, generation: int) -> None:
        try:
            resources = await self._load_resources()
        except Exception as e:
            if generation == self._generation:
                self._state = SessionState.FAILED
                self._load_task = None
            logger.error("Failed to initialize model session: %s", e)
            load_error = e if isinstance(e, LoadError) else None
            raise InitError(
                f"Model session initialization failed: {e}", load_error=load_error
            ) from e

        if generation != self._generation:
            await self._close_model(resources.model)
            raise InitError("Model session was disposed while loading")

        self._resources = resources
        self._state = SessionState.READY
        self._load_task = None
        logger.info(
            "Model session ready (vocabulary: %d tokens, max length: %d)",
            len(resources.vocabulary),
            resources.tokenizer_config.max_sequence_length,
        )

    async def _load_resources(self) -> SessionResources:
        names = self.asset_config
        model = await self._create_model(await self._read(names.model_file))

        try:
            vocabulary, tokenizer_config, special_tokens = await asyncio.gather(
                self._load_vocabulary(names.vocabulary_file),
                self._load_optional(names.tokenizer_config_file, load_tokenizer_config),
                self._load_optional(names.special_tokens_file, load_special_tokens),
            )
        except Exception:
            await self._close_model(model)
            raise

        return SessionResources(
            model=model,
            vocabulary=vocabulary,
            tokenizer_config=tokenizer_config,
            special_tokens=special_tokens,
        )

    async def _read(self, name: str) -> bytes:
        try:
            return await self.assets.load(name)
        except LoadError:
            raise
        except Exception as e:
            raise UnreadableResourceError(name, f"Could not read '{name}': {e}") from e

    async def _create_model(self, model_bytes: bytes) -> ModelSession:
        name = self.asset_config.model_file
        try:
            return await self.session_factory(model_bytes)
        except Exception as e:
            raise UnreadableResourceError(
                name, f"Inference engine rejected model '{name}': {e}"
            ) from e

    async def _load_vocabulary(self, name: str) -> Vocabulary:
        return Vocabulary.from_bytes(await self._read(name), name=name)

    async def _load_optional(self, name: str, parse: Callable[[bytes | None], T]) -> T:
        # Optional resources degrade to defaults instead of failing the load
        try:
            data = await self._read(name)
        except LoadError as e:
            logger.warning("Could not load %s: %s", name, e)
            data = None
        return parse(data)

    async def _close_model(self, model: ModelSession) -> None:
        try:
            await model.close()
        except Exception as e:
            logger.warning("Error closing model session: %s", e)
