"""WordPiece vocabulary store."""

import logging
from collections.abc import Iterator

from .exceptions import UnreadableResourceError

logger = logging.getLogger(__name__)


class Vocabulary:
    """Mapping from token string to integer id.

    The id of a token is the (zero-based) index of the line it appears on.
    Blank lines add no entry. If a token appears on several lines, the last
    occurrence wins.

    Example:
        >>> vocab = Vocabulary.from_bytes(b"[PAD]\\n[UNK]\\nhello\\n")
        >>> vocab.id_of("hello")
        2
    """

    def __init__(self, token_to_id: dict[str, int] | None = None) -> None:
        self._token_to_id: dict[str, int] = dict(token_to_id or {})
        self._id_to_token: dict[int, str] = {i: t for t, i in self._token_to_id.items()}

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "vocabulary") -> "Vocabulary":
        """Build a vocabulary from the raw bytes of a ``vocab.txt`` file.

        Args:
            data: UTF-8 encoded text, one token per line.
            name: Resource name used in error messages.

        Returns:
            Loaded Vocabulary.

        Raises:
            UnreadableResourceError: If the bytes are not valid UTF-8.
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnreadableResourceError(
                name, f"Vocabulary '{name}' is not valid UTF-8: {e}"
            ) from e
        return cls.from_lines(text.split("\n"))

    @classmethod
    def from_lines(cls, lines: list[str]) -> "Vocabulary":
        """Build a vocabulary from already decoded lines."""
        token_to_id: dict[str, int] = {}
        duplicates = 0
        for index, line in enumerate(lines):
            token = line.strip()
            if not token:
                continue
            if token in token_to_id:
                duplicates += 1
            token_to_id[token] = index

        if duplicates:
            logger.warning(
                "Vocabulary contains %d duplicate token(s); later lines take precedence",
                duplicates,
            )
        return cls(token_to_id)

    def id_of(self, token: str) -> int | None:
        """Return the id of ``token``, or None if it is not in the vocabulary."""
        return self._token_to_id.get(token)

    def token_of(self, token_id: int) -> str | None:
        """Return the token for ``token_id``, or None if unknown."""
        return self._id_to_token.get(token_id)

    def __contains__(self, token: object) -> bool:
        return token in self._token_to_id

    def __len__(self) -> int:
        return len(self._token_to_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self._token_to_id)
