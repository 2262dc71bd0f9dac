"""WordPiece tokenizer producing fixed-length BERT input ids."""

import re
from dataclasses import dataclass

from .config import (
    FALLBACK_CLS_ID,
    FALLBACK_PAD_ID,
    FALLBACK_SEP_ID,
    FALLBACK_UNK_ID,
    SpecialTokens,
    TokenizerConfig,
)
from .vocabulary import Vocabulary

# Characters split off as standalone words before subword matching
PUNCTUATION_RE = re.compile(r'([.,!?;:()\[\]{}"\-])')

CONTINUATION_PREFIX = "##"


@dataclass(frozen=True)
class SpecialTokenIds:
    """Vocabulary ids of the special tokens."""

    cls_id: int
    sep_id: int
    unk_id: int
    pad_id: int

    @classmethod
    def resolve(cls, vocabulary: Vocabulary, special_tokens: SpecialTokens) -> "SpecialTokenIds":
        """Look up special tokens, falling back to BERT uncased ids when absent."""

        def lookup(token: str, fallback: int) -> int:
            token_id = vocabulary.id_of(token)
            return fallback if token_id is None else token_id

        return cls(
            cls_id=lookup(special_tokens.cls_token, FALLBACK_CLS_ID),
            sep_id=lookup(special_tokens.sep_token, FALLBACK_SEP_ID),
            unk_id=lookup(special_tokens.unk_token, FALLBACK_UNK_ID),
            pad_id=lookup(special_tokens.pad_token, FALLBACK_PAD_ID),
        )


def split_words(text: str, lowercase: bool = True) -> list[str]:
    """Normalize text and split it into word candidates.

    Punctuation characters become their own words; runs of whitespace
    separate words and empty candidates are dropped.
    """
    normalized = text.lower().strip() if lowercase else text.strip()
    normalized = PUNCTUATION_RE.sub(r" \1 ", normalized)
    return normalized.split()


class WordPieceTokenizer:
    """Greedy longest-match-first WordPiece tokenizer.

    Output is always exactly ``config.max_sequence_length`` ids:
    ``[CLS] tokens... [SEP] [PAD]...``. SEP is dropped only when truncation
    leaves no room for it.

    Example:
        >>> tokenizer = WordPieceTokenizer(vocab, TokenizerConfig(max_sequence_length=8))
        >>> tokenizer.encode("Hello, world!")
        [101, 7592, 1010, 2088, 999, 102, 0, 0]
    """

    def __init__(
        self,
        vocabulary: Vocabulary,
        config: TokenizerConfig | None = None,
        special_tokens: SpecialTokens | None = None,
    ) -> None:
        self.vocabulary = vocabulary
        self.config = config or TokenizerConfig()
        self.special_tokens = special_tokens or SpecialTokens()
        self.special_ids = SpecialTokenIds.resolve(vocabulary, self.special_tokens)

    @property
    def max_length(self) -> int:
        return self.config.max_sequence_length

    def encode(self, text: str) -> list[int]:
        """Convert text into a fixed-length list of token ids.

        Args:
            text: Raw input text.

        Returns:
            List of exactly ``max_length`` ids.
        """
        max_length = self.max_length
        # Last slot is reserved for SEP
        budget = max_length - 1
        ids = [self.special_ids.cls_id]

        for word in split_words(text, self.config.lowercase):
            if len(ids) >= budget:
                break

            word_id = self.vocabulary.id_of(word)
            if word_id is not None:
                ids.append(word_id)
                continue

            for piece_id in self.tokenize_word(word):
                if len(ids) >= budget:
                    break
                ids.append(piece_id)

        if len(ids) < max_length:
            ids.append(self.special_ids.sep_id)

        ids.extend([self.special_ids.pad_id] * (max_length - len(ids)))
        return ids[:max_length]

    def tokenize_word(self, word: str) -> list[int]:
        """Split a single word into subword ids.

        Repeatedly takes the longest vocabulary prefix of the remaining
        characters, with non-initial pieces carrying the ``##`` prefix. If at
        any point no prefix matches, the whole word maps to a single UNK id.
        """
        pieces: list[int] = []
        start = 0
        while start < len(word):
            match_id = None
            end = len(word)
            while end > start:
                candidate = word[start:end]
                if pieces:
                    candidate = CONTINUATION_PREFIX + candidate
                match_id = self.vocabulary.id_of(candidate)
                if match_id is not None:
                    break
                end -= 1

            if match_id is None:
                return [self.special_ids.unk_id]

            pieces.append(match_id)
            start = end

        return pieces

    def decode_ids(self, ids: list[int]) -> list[str]:
        """Map ids back to token strings (``[UNK]`` for unknown ids)."""
        return [self.vocabulary.token_of(i) or self.special_tokens.unk_token for i in ids]


def tokenize(
    text: str,
    vocabulary: Vocabulary,
    config: TokenizerConfig | None = None,
    special_tokens: SpecialTokens | None = None,
) -> list[int]:
    """Tokenize ``text`` into a fixed-length id sequence.

    Convenience wrapper around :class:`WordPieceTokenizer` for one-off calls.
    """
    return WordPieceTokenizer(vocabulary, config, special_tokens).encode(text)
