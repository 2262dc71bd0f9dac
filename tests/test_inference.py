"""Tests for input tensor construction and the inference pipeline."""

import asyncio

import numpy as np
import pytest

from toxicity_guard.exceptions import (
    EmptyOutputError,
    EngineExecutionError,
    InvalidOutputError,
    SessionUnavailableError,
)
from toxicity_guard.inference import (
    ATTENTION_MASK,
    INPUT_IDS,
    TOKEN_TYPE_IDS,
    InferencePipeline,
    RawOutputs,
    build_input_tensors,
)
from toxicity_guard.session import SessionManager


def _ready_pipeline(asset_source, session) -> InferencePipeline:
    """Return a pipeline whose manager is READY with ``session`` as model."""

    async def factory(model_bytes):
        return session

    manager = SessionManager(asset_source, factory)
    asyncio.run(manager.ensure_ready())
    return InferencePipeline(manager)


class TestBuildInputTensors:
    """Test BERT input tensor construction."""

    def test_shapes_and_dtypes(self):
        tensors = build_input_tensors([2, 5, 6, 3, 0, 0], pad_id=0)

        assert list(tensors) == [INPUT_IDS, ATTENTION_MASK, TOKEN_TYPE_IDS]
        for tensor in tensors.values():
            assert tensor.shape == (1, 6)
            assert tensor.dtype == np.int64

    def test_values(self):
        tensors = build_input_tensors([2, 5, 6, 3, 0, 0], pad_id=0)

        np.testing.assert_array_equal(tensors[INPUT_IDS], [[2, 5, 6, 3, 0, 0]])
        np.testing.assert_array_equal(tensors[ATTENTION_MASK], [[1, 1, 1, 1, 0, 0]])
        np.testing.assert_array_equal(tensors[TOKEN_TYPE_IDS], [[0, 0, 0, 0, 0, 0]])

    def test_mask_uses_pad_id(self):
        """Padding is detected by the configured pad id, not by zero."""
        tensors = build_input_tensors([1, 0, 7, 9, 9], pad_id=9)
        np.testing.assert_array_equal(tensors[ATTENTION_MASK], [[1, 1, 1, 0, 0]])

    def test_no_padding(self):
        tensors = build_input_tensors([2, 5, 3], pad_id=0)
        assert tensors[ATTENTION_MASK].sum() == 3


class TestRawOutputs:
    """Test the raw output container."""

    def test_logits_from_first_output(self):
        outputs = RawOutputs(
            {
                "logits": np.array([[1.0, 2.0]], dtype=np.float32),
                "hidden": np.zeros((1, 4)),
            }
        )

        assert outputs.names == ["logits", "hidden"]
        assert outputs.logits.dtype == np.float64
        np.testing.assert_array_equal(outputs.logits, [1.0, 2.0])

    def test_non_numeric_logits(self):
        outputs = RawOutputs({"labels": np.array([["toxic", "clean"]])})

        with pytest.raises(InvalidOutputError, match="labels"):
            _ = outputs.logits


class TestInferencePipeline:
    """Test running token ids through the model."""

    def test_run_before_ready(self, asset_source, session_factory):
        pipeline = InferencePipeline(SessionManager(asset_source, session_factory))

        with pytest.raises(SessionUnavailableError):
            asyncio.run(pipeline.run([2, 3, 0, 0]))

    def test_run_returns_logits(self, asset_source, make_session):
        session = make_session(logits=[1.0, -1.0, 0.5, 0.0, 0.0, 0.0])
        pipeline = _ready_pipeline(asset_source, session)

        outputs = asyncio.run(pipeline.run([2, 5, 3, 0]))

        assert outputs.names == ["logits"]
        np.testing.assert_allclose(outputs.logits, [1.0, -1.0, 0.5, 0.0, 0.0, 0.0])

    def test_feeds_three_tensors(self, asset_source, make_session):
        session = make_session()
        pipeline = _ready_pipeline(asset_source, session)

        asyncio.run(pipeline.run([2, 5, 3, 0]))

        fed = session.calls[0]
        assert set(fed) == {INPUT_IDS, ATTENTION_MASK, TOKEN_TYPE_IDS}
        np.testing.assert_array_equal(fed[INPUT_IDS], [[2, 5, 3, 0]])
        np.testing.assert_array_equal(fed[ATTENTION_MASK], [[1, 1, 1, 0]])

    def test_buffers_released_after_run(self, asset_source, make_session):
        """Input and engine output containers are emptied once results are copied."""
        session = make_session()
        pipeline = _ready_pipeline(asset_source, session)

        outputs = asyncio.run(pipeline.run([2, 5, 3, 0]))

        assert session.last_inputs == {}
        assert session.last_outputs == {}
        assert outputs.logits.size == 6

    def test_outputs_are_copies(self, asset_source, make_session):
        engine_tensor = np.array([[3.0, 0.0, 0.0, 0.0, 0.0, 0.0]], dtype=np.float32)
        session = make_session(outputs={"logits": engine_tensor})
        pipeline = _ready_pipeline(asset_source, session)

        outputs = asyncio.run(pipeline.run([2, 3]))
        engine_tensor[0, 0] = -99.0

        assert outputs.logits[0] == pytest.approx(3.0)

    def test_buffers_released_on_engine_error(self, asset_source, make_session):
        session = make_session(error=RuntimeError("bad shape"))
        pipeline = _ready_pipeline(asset_source, session)

        with pytest.raises(EngineExecutionError, match="bad shape") as exc_info:
            asyncio.run(pipeline.run([2, 3]))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert session.last_inputs == {}

    def test_no_outputs(self, asset_source, make_session):
        pipeline = _ready_pipeline(asset_source, make_session(outputs={}))

        with pytest.raises(EmptyOutputError):
            asyncio.run(pipeline.run([2, 3]))

    def test_empty_first_output(self, asset_source, make_session):
        session = make_session(outputs={"logits": np.zeros((1, 0), dtype=np.float32)})
        pipeline = _ready_pipeline(asset_source, session)

        with pytest.raises(EmptyOutputError, match="logits"):
            asyncio.run(pipeline.run([2, 3]))
