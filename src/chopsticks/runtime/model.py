from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import ModelLoadError

logger = logging.getLogger(__name__)

# FlatBuffers store a 4-byte file identifier right after the root offset.
TFLITE_FILE_IDENTIFIER = b"TFL3"
_IDENTIFIER_OFFSET = 4


@dataclass(frozen=True, slots=True)
class Model:
	"""A model file read into memory, ready to hand to the runtime.

	The flatbuffer itself is parsed by the runtime at compile time; here we
	only check that the bytes carry the TFLite file identifier so an obviously
	wrong file fails at load time rather than deep inside compilation.
	"""

	path: Path
	content: bytes

	@classmethod
	def from_file(cls, path: str | Path) -> Model:
		"""Read and sanity-check a ``.tflite`` file.

		Args:
			path: Location of the model file.

		Returns:
			The loaded model.

		Raises:
			ModelLoadError: If the file cannot be read or is not a TFLite model.
		"""
		path = Path(path)
		try:
			content = path.read_bytes()
		except OSError as exc:
			raise ModelLoadError(f"Cannot read '{path}': {exc.strerror or exc}") from exc
		return cls.from_buffer(content, path=path)

	@classmethod
	def from_buffer(cls, content: bytes, *, path: str | Path = "<buffer>") -> Model:
		if not content:
			raise ModelLoadError("Model file is empty")
		ident = content[_IDENTIFIER_OFFSET : _IDENTIFIER_OFFSET + len(TFLITE_FILE_IDENTIFIER)]
		if ident != TFLITE_FILE_IDENTIFIER:
			raise ModelLoadError(
				f"Not a TFLite flatbuffer (file identifier {ident!r}, expected {TFLITE_FILE_IDENTIFIER!r})"
			)
		logger.debug("Read %d bytes of model data from %s", len(content), path)
		return cls(path=Path(path), content=bytes(content))

	@property
	def size(self) -> int:
		return len(self.content)
