"""chopsticks: load a .tflite model, compile it with LiteRT, run one inference.

Every heavy operation belongs to the LiteRT runtime; this package only wraps
its handles and sequences the demo flow.
"""

from .config import DemoConfig
from .demo import main, run_demo
from .runtime import CompiledModel, Environment, HwAccelerator, LiteRtError, Model, Options

__all__ = [
    "DemoConfig",
    "main",
    "run_demo",
    "CompiledModel",
    "Environment",
    "HwAccelerator",
    "LiteRtError",
    "Model",
    "Options",
]
