"""Pytest fixtures for toxicity guard tests."""

import asyncio
import json

import numpy as np
import pytest

from toxicity_guard import InMemoryAssetSource, Vocabulary

# Small WordPiece vocabulary; the id of each token is its index
VOCAB_TOKENS = [
    "[PAD]",  # 0
    "[UNK]",  # 1
    "[CLS]",  # 2
    "[SEP]",  # 3
    "[MASK]",  # 4
    "hello",  # 5
    "world",  # 6
    "un",  # 7
    "##aff",  # 8
    "##able",  # 9
    "the",  # 10
    "!",  # 11
    ",",  # 12
    ".",  # 13
    "-",  # 14
    "a",  # 15
    "##b",  # 16
]

# Logits for which the decoded toxic score is ~0.881
TOXIC_LOGITS = [2.0, -2.0, 0.0, 0.0, 0.0, 0.0]

# Every category well below 0.5
CLEAN_LOGITS = [-3.0, -5.0, -4.0, -6.0, -4.5, -5.5]


class FakeModelSession:
    """In-memory ModelSession returning canned logits."""

    def __init__(self, logits=None, outputs=None, error=None, delay=0.0):
        self.logits = TOXIC_LOGITS if logits is None else logits
        self.outputs = outputs
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, np.ndarray]] = []
        self.last_inputs = None
        self.last_outputs = None
        self.closed = False

    async def run(self, inputs):
        self.calls.append({name: np.array(value) for name, value in inputs.items()})
        self.last_inputs = inputs
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.outputs is not None:
            result = dict(self.outputs)
        else:
            result = {"logits": np.array([self.logits], dtype=np.float32)}
        self.last_outputs = result
        return result

    async def close(self):
        self.closed = True


class CountingSessionFactory:
    """Session factory that records calls and can be slowed down or fail."""

    def __init__(self, logits=None, delay=0.01, error=None):
        self.logits = logits
        self.delay = delay
        self.error = error
        self.calls = 0
        self.received: list[bytes] = []
        self.sessions: list[FakeModelSession] = []

    async def __call__(self, model_bytes):
        self.calls += 1
        self.received.append(model_bytes)
        # Yield so concurrent callers arrive while the load is in flight
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        session = FakeModelSession(logits=self.logits)
        self.sessions.append(session)
        return session


@pytest.fixture
def vocab_bytes() -> bytes:
    """Raw vocab.txt contents."""
    return ("\n".join(VOCAB_TOKENS) + "\n").encode("utf-8")


@pytest.fixture
def vocabulary(vocab_bytes) -> Vocabulary:
    """Loaded test vocabulary."""
    return Vocabulary.from_bytes(vocab_bytes)


@pytest.fixture
def bundle(vocab_bytes) -> dict[str, bytes]:
    """Complete model bundle keyed by default resource names."""
    return {
        "minilmv2_toxic_jigsaw.onnx": b"fake-onnx-model",
        "vocab.txt": vocab_bytes,
        "tokenizer_config.json": json.dumps(
            {"model_max_length": 16, "do_lower_case": True}
        ).encode("utf-8"),
        "special_tokens_map.json": json.dumps(
            {
                "cls_token": "[CLS]",
                "sep_token": "[SEP]",
                "unk_token": "[UNK]",
                "pad_token": "[PAD]",
                "mask_token": "[MASK]",
            }
        ).encode("utf-8"),
    }


@pytest.fixture
def asset_source(bundle) -> InMemoryAssetSource:
    """Asset source serving the complete bundle."""
    return InMemoryAssetSource(bundle)


@pytest.fixture
def session_factory() -> CountingSessionFactory:
    """Factory producing sessions that return TOXIC_LOGITS."""
    return CountingSessionFactory()


@pytest.fixture
def make_session():
    """Build FakeModelSession instances with custom behaviour."""
    return FakeModelSession


@pytest.fixture
def make_factory():
    """Build CountingSessionFactory instances with custom behaviour."""
    return CountingSessionFactory
