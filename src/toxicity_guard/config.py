"""Configuration dataclasses and resource loaders for the toxicity guard.

Tokenizer settings and special tokens come from the JSON files shipped next to
the model. Both are optional: when a file is missing or malformed the loaders
fall back to documented defaults instead of failing initialization.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Toxicity labels in model output order (Jigsaw toxic comment categories)
CATEGORY_LABELS = [
    "toxic",
    "severe_toxic",
    "obscene",
    "threat",
    "insult",
    "identity_hate",
]

# Fixed decode-time threshold for ToxicityResult.is_toxic
DECISION_THRESHOLD = 0.5

DEFAULT_MAX_SEQUENCE_LENGTH = 512

# transformers writes int(1e30) when a tokenizer has no length limit
UNSET_MAX_LENGTH_SENTINEL = int(1e30)

# BERT uncased ids, used when a special token is missing from the vocabulary
FALLBACK_CLS_ID = 101
FALLBACK_SEP_ID = 102
FALLBACK_UNK_ID = 100
FALLBACK_PAD_ID = 0


@dataclass(frozen=True)
class TokenizerConfig:
    """Normalization options for the WordPiece tokenizer."""

    max_sequence_length: int = DEFAULT_MAX_SEQUENCE_LENGTH
    lowercase: bool = True

    def __post_init__(self) -> None:
        if self.max_sequence_length < 1:
            raise ValueError(
                f"max_sequence_length must be positive, got {self.max_sequence_length}"
            )


@dataclass(frozen=True)
class SpecialTokens:
    """Special token strings looked up in the vocabulary."""

    cls_token: str = "[CLS]"
    sep_token: str = "[SEP]"
    unk_token: str = "[UNK]"
    pad_token: str = "[PAD]"
    mask_token: str = "[MASK]"


@dataclass(frozen=True)
class AssetConfig:
    """Names of the resources that make up a model bundle.

    Attributes:
        model_file: ONNX model binary.
        vocabulary_file: WordPiece vocabulary, one token per line.
        tokenizer_config_file: Optional tokenizer settings (JSON).
        special_tokens_file: Optional special token map (JSON).
    """

    model_file: str = "minilmv2_toxic_jigsaw.onnx"
    vocabulary_file: str = "vocab.txt"
    tokenizer_config_file: str = "tokenizer_config.json"
    special_tokens_file: str = "special_tokens_map.json"


# -----------------------------------------------------------------------------
# Loaders
# -----------------------------------------------------------------------------


def _parse_json_object(data: bytes | None, what: str) -> dict[str, Any] | None:
    """Decode a JSON object, returning None (and logging) on any problem."""
    if data is None:
        logger.warning("No %s resource available, using defaults", what)
        return None
    # ValueError also covers UnicodeDecodeError, JSONDecodeError and integer
    # literals past the int conversion digit limit
    try:
        document = json.loads(data.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        logger.warning("Could not parse %s, using defaults: %s", what, e)
        return None
    if not isinstance(document, dict):
        logger.warning(
            "Expected a JSON object in %s, got %s; using defaults",
            what,
            type(document).__name__,
        )
        return None
    return document


def load_tokenizer_config(data: bytes | None) -> TokenizerConfig:
    """Load tokenizer settings from a ``tokenizer_config.json`` document.

    Reads ``model_max_length`` and ``do_lower_case``. Keys that are absent or
    have the wrong type keep their default values. Never raises.

    Args:
        data: Raw file contents, or None if the resource is absent.

    Returns:
        TokenizerConfig built from the document or from defaults.
    """
    document = _parse_json_object(data, "tokenizer config")
    if document is None:
        return TokenizerConfig()

    max_length = document.get("model_max_length")
    if (
        not isinstance(max_length, int)
        or isinstance(max_length, bool)
        or max_length < 1
        or max_length >= UNSET_MAX_LENGTH_SENTINEL
    ):
        if max_length is not None:
            logger.warning(
                "Ignoring model_max_length=%r, using %d",
                max_length,
                DEFAULT_MAX_SEQUENCE_LENGTH,
            )
        max_length = DEFAULT_MAX_SEQUENCE_LENGTH

    lowercase = document.get("do_lower_case")
    if not isinstance(lowercase, bool):
        lowercase = True

    return TokenizerConfig(max_sequence_length=max_length, lowercase=lowercase)


def _token_content(value: Any) -> str | None:
    # transformers may serialize special tokens as AddedToken dicts
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict):
        content = value.get("content")
        if isinstance(content, str) and content:
            return content
    return None


def load_special_tokens(data: bytes | None) -> SpecialTokens:
    """Load special token strings from a ``special_tokens_map.json`` document.

    Never raises; missing or malformed entries keep their defaults.

    Args:
        data: Raw file contents, or None if the resource is absent.

    Returns:
        SpecialTokens built from the document or from defaults.
    """
    document = _parse_json_object(data, "special tokens map")
    if document is None:
        return SpecialTokens()

    defaults = SpecialTokens()
    overrides: dict[str, str] = {}
    for name in ("cls_token", "sep_token", "unk_token", "pad_token", "mask_token"):
        content = _token_content(document.get(name))
        overrides[name] = content if content is not None else getattr(defaults, name)

    return SpecialTokens(**overrides)
