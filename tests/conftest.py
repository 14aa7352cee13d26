import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    """Make `src/` importable in tests without requiring installation."""
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


# Smallest byte string that passes the flatbuffer identifier check.
TFLITE_BYTES = b"\x1c\x00\x00\x00TFL3" + b"\x00" * 56


class FakeInterpreter:
    """Stand-in for `ai_edge_litert.interpreter.Interpreter`.

    Outputs whose shape matches the first input receive ``2 * input``; any
    other output is filled with the sum of the first input.
    """

    def __init__(self, runtime: "FakeRuntime", kwargs: dict) -> None:
        if runtime.fail_on == "construct":
            raise ValueError("Model provided has model identifier 'XXXX', should be 'TFL3'")
        self.runtime = runtime
        self.kwargs = kwargs
        self.invocations = 0
        self.allocated = False
        self._tensors: dict[int, np.ndarray] = {}
        n_in = len(runtime.inputs)
        self._inputs = [
            {"name": name, "index": i, "shape": np.array(shape, dtype=np.int64), "dtype": dtype}
            for i, (name, shape, dtype) in enumerate(runtime.inputs)
        ]
        self._outputs = [
            {"name": name, "index": n_in + i, "shape": np.array(shape, dtype=np.int64), "dtype": dtype}
            for i, (name, shape, dtype) in enumerate(runtime.outputs)
        ]

    def allocate_tensors(self) -> None:
        if self.runtime.fail_on == "allocate":
            raise RuntimeError("Failed to allocate tensors")
        self.allocated = True

    def _tensor(self, index: int) -> np.ndarray:
        # Tensors are materialised on first use so huge signatures only fail host-side.
        if index not in self._tensors:
            detail = next(d for d in self._inputs + self._outputs if d["index"] == index)
            shape = tuple(max(int(d), 1) for d in detail["shape"])
            self._tensors[index] = np.zeros(shape, dtype=detail["dtype"])
        return self._tensors[index]

    def get_input_details(self) -> list[dict]:
        return list(self._inputs)

    def get_output_details(self) -> list[dict]:
        return list(self._outputs)

    def set_tensor(self, index: int, value: np.ndarray) -> None:
        current = self._tensor(index)
        if current.shape != value.shape:
            raise ValueError(f"Cannot set tensor: Dimension mismatch. Got {value.shape}, expected {current.shape}")
        self._tensors[index] = np.array(value, dtype=current.dtype, copy=True)

    def invoke(self) -> None:
        if not self.allocated:
            raise RuntimeError("Invoke called on model that is not ready.")
        if self.runtime.fail_on == "invoke":
            raise RuntimeError("Node number 0 (CONV_2D) failed to invoke.")
        self.invocations += 1
        first = self._tensor(self._inputs[0]["index"]) if self._inputs else np.zeros(())
        for detail in self._outputs:
            out = self._tensor(detail["index"])
            if out.shape == first.shape:
                self._tensors[detail["index"]] = (first * 2).astype(out.dtype)
            else:
                self._tensors[detail["index"]] = np.full(out.shape, first.sum(), dtype=out.dtype)

    def get_tensor(self, index: int) -> np.ndarray:
        return self._tensor(index).copy()


class FakeRuntime:
    """Interpreter factory with a configurable signature and failure point."""

    def __init__(self, inputs=None, outputs=None, fail_on: str | None = None) -> None:
        self.inputs = inputs if inputs is not None else [("input", (1, 4), np.float32)]
        self.outputs = outputs if outputs is not None else [("output", (1, 4), np.float32)]
        self.fail_on = fail_on
        self.interpreters: list[FakeInterpreter] = []

    def __call__(self, **kwargs) -> FakeInterpreter:
        interp = FakeInterpreter(self, kwargs)
        self.interpreters.append(interp)
        return interp


class FakeDelegateLoader:
    """Records delegate loads; raises ValueError for libraries in `broken`."""

    def __init__(self, broken: tuple[str, ...] = ()) -> None:
        self.broken = broken
        self.loaded: list[tuple[str, object]] = []

    def __call__(self, library: str, options=None) -> object:
        if library in self.broken:
            raise ValueError(f"Failed to load delegate from {library}")
        handle = object()
        self.loaded.append((library, handle))
        return handle


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def delegate_loader() -> FakeDelegateLoader:
    return FakeDelegateLoader()


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    path = tmp_path / "model.tflite"
    path.write_bytes(TFLITE_BYTES)
    return path
