"""Toxicity Guard: on-device text toxicity classification."""

from .assets import AssetSource, DirectoryAssetSource, InMemoryAssetSource
from .config import (
    CATEGORY_LABELS,
    DECISION_THRESHOLD,
    AssetConfig,
    SpecialTokens,
    TokenizerConfig,
    load_special_tokens,
    load_tokenizer_config,
)
from .decoding import decode, decode_result, sigmoid
from .engine import (
    ModelSession,
    OnnxModelSession,
    OnnxSessionConfig,
    create_onnx_session,
    onnx_session_factory,
)
from .exceptions import (
    EmptyOutputError,
    EngineExecutionError,
    InferenceError,
    InitError,
    InvalidOutputError,
    LoadError,
    ResourceNotFoundError,
    SessionUnavailableError,
    ToxicityGuardError,
    UnreadableResourceError,
)
from .guard import ToxicityGuard
from .inference import InferencePipeline, RawOutputs, build_input_tensors
from .result import ToxicityResult
from .session import SessionManager, SessionResources, SessionState
from .tokenizer import SpecialTokenIds, WordPieceTokenizer, tokenize
from .vocabulary import Vocabulary

__all__ = [
    # Main class
    "ToxicityGuard",
    "ToxicityResult",
    # Config
    "AssetConfig",
    "TokenizerConfig",
    "SpecialTokens",
    "CATEGORY_LABELS",
    "DECISION_THRESHOLD",
    "load_tokenizer_config",
    "load_special_tokens",
    # Assets
    "AssetSource",
    "DirectoryAssetSource",
    "InMemoryAssetSource",
    # Tokenization
    "Vocabulary",
    "WordPieceTokenizer",
    "SpecialTokenIds",
    "tokenize",
    # Session
    "SessionManager",
    "SessionResources",
    "SessionState",
    # Engine
    "ModelSession",
    "OnnxModelSession",
    "OnnxSessionConfig",
    "create_onnx_session",
    "onnx_session_factory",
    # Inference
    "InferencePipeline",
    "RawOutputs",
    "build_input_tensors",
    # Decoding
    "sigmoid",
    "decode",
    "decode_result",
    # Exceptions
    "ToxicityGuardError",
    "LoadError",
    "ResourceNotFoundError",
    "UnreadableResourceError",
    "InitError",
    "InferenceError",
    "SessionUnavailableError",
    "EmptyOutputError",
    "InvalidOutputError",
    "EngineExecutionError",
]
