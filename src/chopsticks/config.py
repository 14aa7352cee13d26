from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

from chopsticks.runtime.environment import DelegateSpec, EnvironmentOptions
from chopsticks.runtime.options import HwAccelerator

DEFAULT_MODEL_PATH = Path("model.tflite")
FILL_MODES = ("zeros", "random")


@dataclass(frozen=True, slots=True)
class DemoConfig:
    """Configuration for one demo run.

    Attributes:
        model_path: The ``.tflite`` file to load. Default ``model.tflite`` in
                    the working directory.
        accelerators: Hardware targets to compile for.
        num_threads: CPU threads for the runtime; None leaves it to LiteRT.
        delegates: Delegate libraries the environment loads up front.
        fill_inputs: ``"zeros"`` leaves inputs zeroed, ``"random"`` fills them
                     from a seeded generator.
        seed: Seed for ``fill_inputs="random"``.
        print_outputs: Log a summary line per output buffer after the run.
        log_level: Level for the package logger.
    """

    model_path: Path = DEFAULT_MODEL_PATH
    accelerators: HwAccelerator = HwAccelerator.CPU
    num_threads: int | None = None
    delegates: tuple[DelegateSpec, ...] = ()
    fill_inputs: str = "zeros"
    seed: int = 0
    print_outputs: bool = False
    log_level: int = logging.INFO

    def __post_init__(self) -> None:
        if self.fill_inputs not in FILL_MODES:
            raise ValueError(
                f"fill_inputs must be one of {FILL_MODES}, got {self.fill_inputs!r}"
            )

    @property
    def environment_options(self) -> EnvironmentOptions:
        return EnvironmentOptions(delegates=self.delegates)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> DemoConfig:
        level = logging.INFO
        if args.verbose:
            level = logging.DEBUG
        elif args.quiet:
            level = logging.WARNING
        return cls(
            model_path=Path(args.model),
            accelerators=HwAccelerator.parse(args.accelerator or ["cpu"]),
            num_threads=args.num_threads,
            delegates=tuple(DelegateSpec.parse(d) for d in args.delegate or ()),
            fill_inputs=args.fill_inputs,
            seed=args.seed,
            print_outputs=args.print_outputs,
            log_level=level,
        )
