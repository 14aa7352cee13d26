from __future__ import annotations


class LiteRtError(RuntimeError):
	"""Base class for failures surfaced by the runtime handle layer.

	Every subclass carries a `stage` tag naming the setup step that failed, so
	callers can report which step of the demo flow stopped the run.
	"""

	stage: str = "runtime"


class LiteRtEnvironmentError(LiteRtError):
	stage = "environment"


class ModelLoadError(LiteRtError):
	stage = "model"


class OptionsError(LiteRtError):
	stage = "options"


class CompilationError(LiteRtError):
	stage = "compile"


class BufferCreationError(LiteRtError):
	stage = "buffers"


class InferenceError(LiteRtError):
	stage = "run"
