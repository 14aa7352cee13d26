from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class TensorSpec:
	"""One entry of a compiled model's input or output signature."""

	name: str
	index: int
	shape: tuple[int, ...]
	dtype: np.dtype

	@property
	def nbytes(self) -> int:
		return int(np.prod(self.shape, dtype=np.int64)) * self.dtype.itemsize


class TensorBuffer:
	"""Host memory for one input or output tensor.

	Buffers are zero-initialised and shaped per their `TensorSpec`. Write
	inputs (and read outputs) through `lock()`:

	Example:
		>>> with buf.lock() as data:
		...     data[...] = image
	"""

	def __init__(self, spec: TensorSpec) -> None:
		self.spec = spec
		self._data = np.zeros(spec.shape, dtype=spec.dtype)
		self._locked = False

	@classmethod
	def for_spec(cls, spec: TensorSpec) -> TensorBuffer:
		return cls(spec)

	@property
	def name(self) -> str:
		return self.spec.name

	@property
	def shape(self) -> tuple[int, ...]:
		return self.spec.shape

	@property
	def dtype(self) -> np.dtype:
		return self.spec.dtype

	@property
	def size(self) -> int:
		"""Size of the buffer in bytes."""
		return self._data.nbytes

	@contextmanager
	def lock(self) -> Iterator[np.ndarray]:
		"""Yield the writable backing array; nested locks are rejected."""
		if self._locked:
			raise RuntimeError(f"Tensor buffer '{self.name}' is already locked")
		self._locked = True
		try:
			yield self._data
		finally:
			self._locked = False

	def write(self, data: np.ndarray) -> None:
		"""Copy `data` into the buffer, casting to the buffer dtype."""
		arr = np.asarray(data)
		if arr.shape != self.shape:
			raise ValueError(
				f"Shape mismatch for '{self.name}': "
				f"expected {self.shape}, got {arr.shape}"
			)
		with self.lock() as dst:
			dst[...] = arr.astype(self.dtype, copy=False)

	def read(self) -> np.ndarray:
		"""Return a copy of the buffer contents."""
		return self._data.copy()

	def __repr__(self) -> str:
		return f"TensorBuffer(name={self.name!r}, shape={self.shape}, dtype={self.dtype})"
