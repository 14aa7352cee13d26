"""Thin handle layer over the LiteRT Python runtime."""

from chopsticks.runtime.compiled_model import CompiledModel
from chopsticks.runtime.environment import (
    DelegateSpec,
    Environment,
    EnvironmentOptions,
)
from chopsticks.runtime.errors import (
    BufferCreationError,
    CompilationError,
    InferenceError,
    LiteRtEnvironmentError,
    LiteRtError,
    ModelLoadError,
    OptionsError,
)
from chopsticks.runtime.model import TFLITE_FILE_IDENTIFIER, Model
from chopsticks.runtime.options import HwAccelerator, Options
from chopsticks.runtime.tensor_buffer import TensorBuffer, TensorSpec

__all__ = [
    # environment.py
    "Environment",
    "EnvironmentOptions",
    "DelegateSpec",
    # model.py
    "Model",
    "TFLITE_FILE_IDENTIFIER",
    # options.py
    "Options",
    "HwAccelerator",
    # compiled_model.py
    "CompiledModel",
    # tensor_buffer.py
    "TensorBuffer",
    "TensorSpec",
    # errors.py
    "LiteRtError",
    "LiteRtEnvironmentError",
    "ModelLoadError",
    "OptionsError",
    "CompilationError",
    "BufferCreationError",
    "InferenceError",
]
