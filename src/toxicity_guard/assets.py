"""Sources for model bundle resources (vocabulary, configs, model binary)."""

import asyncio
from pathlib import Path
from typing import Protocol, runtime_checkable

from .exceptions import ResourceNotFoundError, UnreadableResourceError


@runtime_checkable
class AssetSource(Protocol):
    """Protocol for anything that can supply resource bytes by name.

    Implementations raise ResourceNotFoundError for unknown names and
    UnreadableResourceError when a resource exists but cannot be read.
    """

    async def load(self, name: str) -> bytes:
        """Return the raw bytes of resource ``name``."""
        ...


class DirectoryAssetSource:
    """Reads resources from files in a directory.

    File reads run in a worker thread so the event loop is not blocked while
    a large model binary is read.

    Example:
        >>> source = DirectoryAssetSource("./assets/toxicity_model")
        >>> vocab_bytes = await source.load("vocab.txt")
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / name

    async def load(self, name: str) -> bytes:
        path = self.path_for(name)
        if not path.is_file():
            raise ResourceNotFoundError(name, f"Resource '{name}' not found at {path}")
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise UnreadableResourceError(name, f"Could not read {path}: {e}") from e

    def __repr__(self) -> str:
        return f"DirectoryAssetSource({str(self.root)!r})"


class InMemoryAssetSource:
    """Serves resources from a dict. Useful for tests and embedded bundles."""

    def __init__(self, resources: dict[str, bytes] | None = None) -> None:
        self.resources: dict[str, bytes] = dict(resources or {})

    async def load(self, name: str) -> bytes:
        try:
            return self.resources[name]
        except KeyError:
            raise ResourceNotFoundError(name) from None
