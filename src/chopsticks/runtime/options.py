from __future__ import annotations

import enum
from dataclasses import dataclass

from .errors import OptionsError


class HwAccelerator(enum.Flag):
	"""Hardware targets a model can be compiled for. Combine with `|`."""

	NONE = 0
	CPU = 1
	GPU = 2
	NPU = 4

	@classmethod
	def parse(cls, names: str | list[str] | tuple[str, ...]) -> HwAccelerator:
		"""Build a flag from names such as ``"cpu"`` or ``["gpu", "cpu"]``."""
		if isinstance(names, str):
			names = [names]
		flags = cls.NONE
		for raw in names:
			key = raw.strip().upper()
			if key not in cls.__members__ or key == "NONE":
				raise OptionsError(f"Unknown hardware accelerator: {raw!r}")
			flags |= cls[key]
		return flags

	def names(self) -> list[str]:
		return [member.name.lower() for member in (HwAccelerator.CPU, HwAccelerator.GPU, HwAccelerator.NPU) if member in self]


@dataclass(slots=True)
class Options:
	"""Compilation options, consumed once by `CompiledModel.create`.

	`num_threads` of `None` or `-1` leaves the choice to the runtime.
	"""

	hardware_accelerators: HwAccelerator = HwAccelerator.CPU
	num_threads: int | None = None

	@classmethod
	def create(
		cls,
		hardware_accelerators: HwAccelerator = HwAccelerator.CPU,
		num_threads: int | None = None,
	) -> Options:
		options = cls()
		options.set_hardware_accelerators(hardware_accelerators)
		options.set_num_threads(num_threads)
		return options

	def set_hardware_accelerators(self, accelerators: HwAccelerator) -> None:
		if not isinstance(accelerators, HwAccelerator):
			raise OptionsError(f"Expected HwAccelerator, got {type(accelerators).__name__}")
		if not accelerators:
			raise OptionsError("At least one hardware accelerator must be selected")
		self.hardware_accelerators = accelerators

	def set_num_threads(self, num_threads: int | None) -> None:
		if num_threads is not None and num_threads != -1 and num_threads < 1:
			raise OptionsError(f"num_threads must be >= 1 or -1, got {num_threads}")
		self.num_threads = num_threads
