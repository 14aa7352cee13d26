"""Process-wide runtime context.

The environment is the first handle created and the last one released. It
resolves the LiteRT Python runtime, loads accelerator delegate libraries once,
and hands both to `CompiledModel.create`. Use it as a context manager so the
delegates are dropped on every exit path:

    with Environment.create(EnvironmentOptions()) as env:
        compiled = CompiledModel.create(env, model, options)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType
from typing import Any

from .errors import LiteRtEnvironmentError
from .options import HwAccelerator

logger = logging.getLogger(__name__)

InterpreterFactory = Callable[..., Any]
DelegateLoader = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class DelegateSpec:
	"""A delegate shared library that serves one accelerator."""

	accelerator: HwAccelerator
	library: Path
	options: dict[str, str] = field(default_factory=dict)

	def __post_init__(self) -> None:
		if self.accelerator not in (HwAccelerator.GPU, HwAccelerator.NPU):
			raise LiteRtEnvironmentError(
				f"Delegates serve GPU or NPU only, got {self.accelerator}"
			)

	@classmethod
	def parse(cls, text: str) -> DelegateSpec:
		"""Parse ``"gpu=/path/lib.so"`` style CLI values."""
		accel, sep, library = text.partition("=")
		if not sep or not library:
			raise LiteRtEnvironmentError(
				f"Delegate must be given as ACCELERATOR=LIBRARY, got {text!r}"
			)
		key = accel.strip().upper()
		if key not in ("GPU", "NPU"):
			raise LiteRtEnvironmentError(f"Unknown delegate accelerator: {accel!r}")
		return cls(accelerator=HwAccelerator[key], library=Path(library))


@dataclass(frozen=True, slots=True)
class EnvironmentOptions:
	delegates: tuple[DelegateSpec, ...] = ()


def _import_runtime() -> tuple[InterpreterFactory, DelegateLoader]:
	try:
		from ai_edge_litert import interpreter as litert_interpreter
	except ImportError as e:
		raise LiteRtEnvironmentError(
			"LiteRT runtime not found. "
			"Install with: pip install ai-edge-litert"
		) from e
	return litert_interpreter.Interpreter, litert_interpreter.load_delegate


class Environment:
	"""Owns the interpreter factory and loaded accelerator delegates."""

	def __init__(
		self,
		interpreter_factory: InterpreterFactory,
		delegates: dict[HwAccelerator, list[Any]] | None = None,
	) -> None:
		self._interpreter_factory = interpreter_factory
		self._delegates: dict[HwAccelerator, list[Any]] = {k: list(v) for k, v in (delegates or {}).items()}
		self._closed = False

	@classmethod
	def create(
		cls,
		options: EnvironmentOptions | None = None,
		*,
		interpreter_factory: InterpreterFactory | None = None,
		delegate_loader: DelegateLoader | None = None,
	) -> Environment:
		"""Resolve the runtime and load every configured delegate.

		Args:
			options: Delegate libraries to load. Defaults to none (CPU only).
			interpreter_factory: Callable building an interpreter. Defaults to
				`ai_edge_litert.interpreter.Interpreter`.
			delegate_loader: Callable loading a delegate library. Defaults to
				`ai_edge_litert.interpreter.load_delegate`.

		Raises:
			LiteRtEnvironmentError: If the runtime is missing or a delegate
				library fails to load.
		"""
		options = options or EnvironmentOptions()
		if interpreter_factory is None:
			interpreter_factory, _ = _import_runtime()
		if options.delegates and delegate_loader is None:
			_, delegate_loader = _import_runtime()

		delegates: dict[HwAccelerator, list[Any]] = {}
		for spec in options.delegates:
			try:
				handle = delegate_loader(str(spec.library), spec.options or None)
			except (ValueError, OSError, RuntimeError) as e:
				raise LiteRtEnvironmentError(
					f"Failed to load {spec.accelerator.name} delegate '{spec.library}': {e}"
				) from e
			delegates.setdefault(spec.accelerator, []).append(handle)
			logger.debug("Loaded %s delegate from %s", spec.accelerator.name, spec.library)

		return cls(interpreter_factory, delegates)

	@property
	def closed(self) -> bool:
		return self._closed

	def available_accelerators(self) -> HwAccelerator:
		"""CPU is always available; GPU/NPU only with a loaded delegate."""
		flags = HwAccelerator.CPU
		for accel, handles in self._delegates.items():
			if handles:
				flags |= accel
		return flags

	def delegates_for(self, accelerators: HwAccelerator) -> list[Any]:
		self._check_open()
		selected: list[Any] = []
		for accel in (HwAccelerator.NPU, HwAccelerator.GPU):
			if accel in accelerators:
				selected.extend(self._delegates.get(accel, []))
		return selected

	def make_interpreter(self, **kwargs: Any) -> Any:
		self._check_open()
		return self._interpreter_factory(**kwargs)

	def close(self) -> None:
		self._delegates.clear()
		self._closed = True

	def _check_open(self) -> None:
		if self._closed:
			raise LiteRtEnvironmentError("Environment has already been closed")

	def __enter__(self) -> Environment:
		return self

	def __exit__(
		self,
		exc_type: type[BaseException] | None,
		exc: BaseException | None,
		tb: TracebackType | None,
	) -> None:
		self.close()
