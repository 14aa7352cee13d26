"""Compiled model: the executable artifact the demo runs.

Compilation here means handing the model flatbuffer to the LiteRT interpreter
together with the delegates selected by `Options`, then allocating its
tensors. After that the input/output signature is fixed and buffers can be
created against it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from .errors import BufferCreationError, CompilationError, InferenceError
from .options import HwAccelerator
from .tensor_buffer import TensorBuffer, TensorSpec

if TYPE_CHECKING:
	from .environment import Environment
	from .model import Model
	from .options import Options

logger = logging.getLogger(__name__)


def _spec_from_detail(detail: dict[str, Any]) -> TensorSpec:
	# Dynamic dimensions are reported as -1; buffers get a single element there.
	shape = tuple(1 if int(d) < 0 else int(d) for d in detail["shape"])
	return TensorSpec(
		name=str(detail.get("name", "")),
		index=int(detail["index"]),
		shape=shape,
		dtype=np.dtype(detail["dtype"]),
	)


class CompiledModel:
	"""An interpreter with allocated tensors, plus its tensor signature."""

	def __init__(
		self,
		model: Model,
		interpreter: Any,
		input_specs: list[TensorSpec],
		output_specs: list[TensorSpec],
		accelerators: HwAccelerator = HwAccelerator.CPU,
	) -> None:
		self.model = model
		self.input_specs = input_specs
		self.output_specs = output_specs
		self.accelerators = accelerators
		self._interpreter = interpreter

	@classmethod
	def create(cls, env: Environment, model: Model, options: Options) -> CompiledModel:
		"""Compile `model` for the accelerators selected in `options`.

		Args:
			env: Open environment; supplies the interpreter and delegates.
			model: Loaded model.
			options: Accelerator and threading choices.

		Returns:
			A compiled model ready for buffer creation.

		Raises:
			CompilationError: If a requested accelerator is unavailable with no
				CPU fallback, or the runtime rejects the model.
			LiteRtEnvironmentError: If `env` has been closed.
		"""
		requested = options.hardware_accelerators
		available = env.available_accelerators()
		missing = requested & ~available
		if missing:
			missing_names = ", ".join(missing.names())
			if HwAccelerator.CPU not in requested:
				raise CompilationError(
					f"No delegate loaded for requested accelerator(s): {missing_names}"
				)
			logger.warning("No delegate loaded for %s; falling back to CPU", missing_names)
		effective = requested & available

		delegates = env.delegates_for(effective)
		kwargs: dict[str, Any] = {"model_content": model.content}
		if delegates:
			kwargs["experimental_delegates"] = delegates
		if options.num_threads is not None:
			kwargs["num_threads"] = options.num_threads

		try:
			interpreter = env.make_interpreter(**kwargs)
			interpreter.allocate_tensors()
			input_specs = [_spec_from_detail(d) for d in interpreter.get_input_details()]
			output_specs = [_spec_from_detail(d) for d in interpreter.get_output_details()]
		except (ValueError, RuntimeError, KeyError, TypeError) as e:
			raise CompilationError(str(e)) from e

		logger.debug(
			"Compiled %s for %s: %d input(s), %d output(s)",
			model.path,
			"+".join(effective.names()),
			len(input_specs),
			len(output_specs),
		)
		return cls(model, interpreter, input_specs, output_specs, effective)

	def create_input_buffers(self) -> list[TensorBuffer]:
		return self._create_buffers(self.input_specs)

	def create_output_buffers(self) -> list[TensorBuffer]:
		return self._create_buffers(self.output_specs)

	def _create_buffers(self, specs: Sequence[TensorSpec]) -> list[TensorBuffer]:
		try:
			return [TensorBuffer.for_spec(spec) for spec in specs]
		except (ValueError, TypeError, MemoryError) as e:
			raise BufferCreationError(str(e)) from e

	def run(self, inputs: Sequence[TensorBuffer], outputs: Sequence[TensorBuffer]) -> None:
		"""Run one inference pass.

		Input buffers are copied into the runtime, the graph is invoked, and
		results are copied back into `outputs`.

		Raises:
			InferenceError: On buffer/signature mismatch or runtime failure.
		"""
		_check_buffers("input", inputs, self.input_specs)
		_check_buffers("output", outputs, self.output_specs)

		try:
			for buf in inputs:
				with buf.lock() as data:
					self._interpreter.set_tensor(buf.spec.index, data)
			self._interpreter.invoke()
			for buf in outputs:
				buf.write(self._interpreter.get_tensor(buf.spec.index))
		except (ValueError, RuntimeError) as e:
			raise InferenceError(str(e)) from e


def _check_buffers(kind: str, buffers: Sequence[TensorBuffer], specs: Sequence[TensorSpec]) -> None:
	if len(buffers) != len(specs):
		raise InferenceError(f"Expected {len(specs)} {kind} buffer(s), got {len(buffers)}")
	for buf, spec in zip(buffers, specs):
		if buf.spec.index != spec.index or buf.shape != spec.shape:
			raise InferenceError(
				f"{kind.capitalize()} buffer '{buf.name}' {buf.shape} does not match "
				f"signature tensor '{spec.name}' {spec.shape}"
			)
