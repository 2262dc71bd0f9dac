"""Public entry point for toxicity detection.

ToxicityGuard ties together the session manager, tokenizer, inference
pipeline and score decoder. None of its methods raise: failures are logged
and surface as ``ToxicityResult.has_error``.
"""

import logging
from pathlib import Path

from .assets import AssetSource, DirectoryAssetSource
from .config import AssetConfig
from .decoding import decode_result
from .engine import SessionFactory
from .exceptions import InitError, ToxicityGuardError
from .inference import InferencePipeline
from .result import ToxicityResult
from .session import SessionManager, SessionState

logger = logging.getLogger(__name__)


class ToxicityGuard:
    """On-device toxicity classifier.

    Example:
        >>> guard = ToxicityGuard.from_directory("./assets/toxicity_model")
        >>> await guard.initialize()
        True
        >>> result = await guard.detect_toxicity("you are wonderful")
        >>> result.is_toxic
        False
    """

    def __init__(
        self,
        assets: AssetSource,
        session_factory: SessionFactory | None = None,
        asset_config: AssetConfig | None = None,
    ) -> None:
        """Initialize the guard. Nothing is loaded until first use.

        Args:
            assets: Source of the model bundle resources.
            session_factory: Creates a ModelSession from model bytes
                (defaults to ONNX Runtime).
            asset_config: Resource names inside the bundle.
        """
        self.manager = SessionManager(assets, session_factory, asset_config)
        self.pipeline = InferencePipeline(self.manager)

    @classmethod
    def from_directory(
        cls,
        path: str | Path,
        session_factory: SessionFactory | None = None,
        asset_config: AssetConfig | None = None,
    ) -> "ToxicityGuard":
        """Create a guard reading its model bundle from a directory."""
        return cls(DirectoryAssetSource(path), session_factory, asset_config)

    @property
    def is_ready(self) -> bool:
        return self.manager.is_ready

    @property
    def state(self) -> SessionState:
        return self.manager.state

    async def initialize(self) -> bool:
        """Load the model and tokenizer resources.

        Safe to call repeatedly and concurrently.

        Returns:
            True if the guard is ready, False if loading failed.
        """
        try:
            await self.manager.ensure_ready()
        except InitError as e:
            logger.error("Toxicity model initialization failed: %s", e)
            return False
        except Exception:
            logger.exception("Unexpected error during toxicity model initialization")
            return False
        return True

    async def detect_toxicity(self, text: str) -> ToxicityResult:
        """Classify ``text``.

        Initializes the model on first use.

        Returns:
            ToxicityResult; ``has_error`` is True if anything failed.
        """
        if not await self.initialize():
            return ToxicityResult.error()

        try:
            tokenizer = self.manager.resources.tokenizer
            outputs = await self.pipeline.run(tokenizer.encode(text))
            return decode_result(outputs.logits)
        except ToxicityGuardError as e:
            logger.error("Error during toxicity inference: %s", e)
            return ToxicityResult.error()
        except Exception:
            logger.exception("Unexpected error during toxicity inference")
            return ToxicityResult.error()

    async def detect_toxicity_batch(self, texts: list[str]) -> list[ToxicityResult]:
        """Classify several texts one after another."""
        return [await self.detect_toxicity(text) for text in texts]

    async def analyze_text(self, text: str) -> ToxicityResult | None:
        """Like :meth:`detect_toxicity` but returns None instead of an error result."""
        result = await self.detect_toxicity(text)
        if result.has_error:
            return None
        return result

    async def is_toxic(self, text: str, threshold: float = 0.5) -> bool:
        """Decide whether ``text`` is toxic under a caller-chosen threshold.

        True if any category score is at or above ``threshold``, or if the
        decoder's own fixed-threshold flag is set. False when analysis fails.
        """
        result = await self.analyze_text(text)
        if result is None:
            return False

        flagged = result.flagged_categories(threshold)
        if flagged:
            logger.debug("Text flagged as toxic: %s", ", ".join(flagged))
            return True
        return result.is_toxic

    async def get_detailed_analysis(self, text: str) -> dict[str, float] | None:
        """Per-category scores for ``text``, or None if analysis failed."""
        result = await self.analyze_text(text)
        if result is None:
            return None
        return dict(result.category_scores)

    async def dispose(self) -> None:
        """Release the model. The next call reloads it."""
        await self.manager.dispose()
