"""Compiled model tests: compilation, buffer creation and inference."""

import logging
from pathlib import Path

import numpy as np
import pytest

from chopsticks.runtime import (
    CompilationError,
    CompiledModel,
    DelegateSpec,
    Environment,
    EnvironmentOptions,
    HwAccelerator,
    InferenceError,
    LiteRtEnvironmentError,
    Model,
    Options,
)

from conftest import TFLITE_BYTES, FakeRuntime


@pytest.fixture
def model() -> Model:
    return Model.from_buffer(TFLITE_BYTES, path="model.tflite")


def _compile(runtime: FakeRuntime, model: Model, options: Options | None = None) -> CompiledModel:
    env = Environment.create(interpreter_factory=runtime)
    return CompiledModel.create(env, model, options or Options.create())


# =============================================================================
# 1. Compilation
# =============================================================================


class TestCompile:

    def test_passes_model_content_and_threads(self, fake_runtime, model):
        _compile(fake_runtime, model, Options.create(num_threads=2))

        interp = fake_runtime.interpreters[0]
        assert interp.kwargs["model_content"] == TFLITE_BYTES
        assert interp.kwargs["num_threads"] == 2
        assert "experimental_delegates" not in interp.kwargs
        assert interp.allocated

    def test_signature_from_runtime(self, model):
        runtime = FakeRuntime(
            inputs=[("a", (1, 3), np.float32), ("b", (2,), np.int32)],
            outputs=[("y", (1, 3), np.float32)],
        )
        compiled = _compile(runtime, model)

        assert [s.name for s in compiled.input_specs] == ["a", "b"]
        assert [s.index for s in compiled.input_specs] == [0, 1]
        assert compiled.input_specs[1].dtype == np.int32
        assert compiled.output_specs[0].index == 2

    def test_dynamic_dimensions_resolved(self, model):
        runtime = FakeRuntime(inputs=[("x", (-1, 4), np.float32)], outputs=[("y", (-1, 4), np.float32)])
        compiled = _compile(runtime, model)
        assert compiled.input_specs[0].shape == (1, 4)

    def test_requested_delegate_is_passed(self, fake_runtime, delegate_loader, model):
        env = Environment.create(
            EnvironmentOptions(delegates=(DelegateSpec(HwAccelerator.GPU, Path("libgpu.so")),)),
            interpreter_factory=fake_runtime,
            delegate_loader=delegate_loader,
        )
        compiled = CompiledModel.create(env, model, Options.create(HwAccelerator.GPU))

        handle = delegate_loader.loaded[0][1]
        assert fake_runtime.interpreters[0].kwargs["experimental_delegates"] == [handle]
        assert compiled.accelerators == HwAccelerator.GPU

    def test_missing_accelerator_without_cpu_fails(self, fake_runtime, model):
        with pytest.raises(CompilationError, match="npu"):
            _compile(fake_runtime, model, Options.create(HwAccelerator.NPU))
        assert fake_runtime.interpreters == []

    def test_missing_accelerator_falls_back_to_cpu(self, fake_runtime, model, caplog):
        caplog.set_level(logging.WARNING, logger="chopsticks")
        compiled = _compile(fake_runtime, model, Options.create(HwAccelerator.GPU | HwAccelerator.CPU))

        assert compiled.accelerators == HwAccelerator.CPU
        assert "falling back to CPU" in caplog.text

    @pytest.mark.parametrize("fail_on", ["construct", "allocate"])
    def test_runtime_failure_is_compilation_error(self, model, fail_on):
        with pytest.raises(CompilationError) as excinfo:
            _compile(FakeRuntime(fail_on=fail_on), model)
        assert excinfo.value.stage == "compile"
        assert excinfo.value.__cause__ is not None

    def test_closed_environment(self, fake_runtime, model):
        env = Environment.create(interpreter_factory=fake_runtime)
        env.close()
        with pytest.raises(LiteRtEnvironmentError):
            CompiledModel.create(env, model, Options.create())


# =============================================================================
# 2. Buffers and inference
# =============================================================================


class TestRun:

    def test_buffers_match_signature(self, model):
        runtime = FakeRuntime(
            inputs=[("a", (1, 3), np.float32), ("b", (1, 3), np.float32)],
            outputs=[("y", (1, 3), np.float32)],
        )
        compiled = _compile(runtime, model)

        inputs = compiled.create_input_buffers()
        outputs = compiled.create_output_buffers()
        assert len(inputs) == 2
        assert len(outputs) == 1
        assert [b.shape for b in inputs] == [(1, 3), (1, 3)]

    def test_run_copies_inputs_and_outputs(self, fake_runtime, model):
        compiled = _compile(fake_runtime, model)
        inputs = compiled.create_input_buffers()
        outputs = compiled.create_output_buffers()

        inputs[0].write(np.array([[1.0, 2.0, 3.0, 4.0]]))
        compiled.run(inputs, outputs)

        np.testing.assert_allclose(outputs[0].read(), [[2.0, 4.0, 6.0, 8.0]])
        assert fake_runtime.interpreters[0].invocations == 1

    def test_run_with_zeroed_inputs(self, fake_runtime, model):
        compiled = _compile(fake_runtime, model)
        outputs = compiled.create_output_buffers()
        compiled.run(compiled.create_input_buffers(), outputs)
        assert not outputs[0].read().any()

    def test_wrong_buffer_count(self, fake_runtime, model):
        compiled = _compile(fake_runtime, model)
        with pytest.raises(InferenceError, match="Expected 1 input buffer"):
            compiled.run([], compiled.create_output_buffers())
        assert fake_runtime.interpreters[0].invocations == 0

    def test_swapped_buffers_rejected(self, model):
        runtime = FakeRuntime(inputs=[("x", (1, 4), np.float32)], outputs=[("y", (1, 2), np.float32)])
        compiled = _compile(runtime, model)
        with pytest.raises(InferenceError, match="does not match"):
            compiled.run(compiled.create_output_buffers(), compiled.create_input_buffers())

    def test_invoke_failure(self, model):
        runtime = FakeRuntime(fail_on="invoke")
        compiled = _compile(runtime, model)
        with pytest.raises(InferenceError, match="failed to invoke") as excinfo:
            compiled.run(compiled.create_input_buffers(), compiled.create_output_buffers())
        assert excinfo.value.stage == "run"
