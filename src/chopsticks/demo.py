"""LiteRT demo: load a model, compile it, create buffers, run one inference.

Run with:
    python -m chopsticks [--model model.tflite] [--accelerator cpu]

Exit status is 0 on success and 1 on the first failed step. A missing model
file is reported as a warning and also exits 0, with no runtime calls made
after the environment is created.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

import numpy as np

from chopsticks.config import DEFAULT_MODEL_PATH, FILL_MODES, DemoConfig
from chopsticks.logging_utils import configure_logging
from chopsticks.runtime import (
    BufferCreationError,
    CompiledModel,
    Environment,
    LiteRtError,
    Model,
    Options,
    TensorBuffer,
)
from chopsticks.runtime.environment import DelegateLoader, InterpreterFactory

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def fill_random(buffers: Sequence[TensorBuffer], seed: int) -> None:
    """Fill input buffers with reproducible random data of the right dtype."""
    rng = np.random.default_rng(seed)
    for buf in buffers:
        with buf.lock() as data:
            if np.issubdtype(buf.dtype, np.floating):
                data[...] = rng.standard_normal(buf.shape)
            elif np.issubdtype(buf.dtype, np.integer):
                info = np.iinfo(buf.dtype)
                data[...] = rng.integers(info.min, info.max, size=buf.shape, endpoint=True, dtype=buf.dtype)
            elif buf.dtype == np.bool_:
                data[...] = rng.integers(0, 2, size=buf.shape).astype(bool)
            else:
                logger.debug("Leaving '%s' (%s) zeroed", buf.name, buf.dtype)


def summarize_output(buf: TensorBuffer) -> str:
    data = buf.read()
    if data.size and np.issubdtype(data.dtype, np.number):
        return (
            f"{buf.name}: shape={buf.shape} dtype={buf.dtype} "
            f"min={data.min()} max={data.max()}"
        )
    return f"{buf.name}: shape={buf.shape} dtype={buf.dtype}"


def run_demo(
    config: DemoConfig,
    *,
    interpreter_factory: InterpreterFactory | None = None,
    delegate_loader: DelegateLoader | None = None,
) -> int:
    """Run the demo flow and return the process exit status.

    `interpreter_factory` and `delegate_loader` default to the LiteRT runtime;
    they are parameters so the flow can run against a stand-in interpreter.
    """
    logger.info("Starting LiteRT demo")

    try:
        env = Environment.create(
            config.environment_options,
            interpreter_factory=interpreter_factory,
            delegate_loader=delegate_loader,
        )
    except LiteRtError as e:
        logger.error("Failed to create LiteRT environment: %s", e)
        return EXIT_FAILURE
    logger.info("LiteRT Environment created")

    with env:
        model_path = config.model_path
        if not model_path.exists():
            logger.warning(
                "Model file '%s' not found. Please place a valid .tflite model in the working directory.",
                model_path,
            )
            logger.warning("Skipping model loading and inference steps for this run.")
            return EXIT_OK

        try:
            model = Model.from_file(model_path)
        except LiteRtError as e:
            logger.error("Failed to load model from %s: %s", model_path, e)
            return EXIT_FAILURE
        logger.info("Model loaded successfully")

        try:
            options = Options.create(config.accelerators, config.num_threads)
        except LiteRtError as e:
            logger.error("Failed to create compilation options: %s", e)
            return EXIT_FAILURE

        try:
            compiled_model = CompiledModel.create(env, model, options)
        except LiteRtError as e:
            logger.error("Failed to compile model: %s", e)
            return EXIT_FAILURE
        logger.info("Model compiled successfully")

        try:
            input_buffers = compiled_model.create_input_buffers()
        except BufferCreationError as e:
            logger.error("Failed to create input buffers: %s", e)
            return EXIT_FAILURE
        logger.info("Created %d input buffer(s)", len(input_buffers))

        if config.fill_inputs == "random":
            fill_random(input_buffers, config.seed)

        try:
            output_buffers = compiled_model.create_output_buffers()
        except BufferCreationError as e:
            logger.error("Failed to create output buffers: %s", e)
            return EXIT_FAILURE
        logger.info("Created %d output buffer(s)", len(output_buffers))

        logger.info("Running inference...")
        try:
            compiled_model.run(input_buffers, output_buffers)
        except LiteRtError as e:
            logger.error("Inference failed: %s", e)
            return EXIT_FAILURE
        logger.info("Inference completed successfully")

        if config.print_outputs:
            for buf in output_buffers:
                logger.info("Output %s", summarize_output(buf))

    return EXIT_OK


def build_argparser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chopsticks",
        description="Load a .tflite model, compile it with LiteRT and run one inference.",
    )
    parser.add_argument(
        "--model",
        default=str(DEFAULT_MODEL_PATH),
        help=f"Path to the .tflite model (default: {DEFAULT_MODEL_PATH})",
    )
    parser.add_argument(
        "--accelerator",
        action="append",
        choices=["cpu", "gpu", "npu"],
        help="Hardware accelerator to compile for; repeat to combine (default: cpu)",
    )
    parser.add_argument("--num-threads", type=int, default=None, help="CPU threads for the runtime")
    parser.add_argument(
        "--delegate",
        action="append",
        metavar="ACCEL=LIBRARY",
        help="Delegate library to load, e.g. gpu=libtensorflowlite_gpu_delegate.so",
    )
    parser.add_argument("--fill-inputs", choices=FILL_MODES, default="zeros", help="How to fill input buffers")
    parser.add_argument("--seed", type=int, default=0, help="Seed for --fill-inputs random")
    parser.add_argument("--print-outputs", action="store_true", help="Log a summary of each output tensor")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argparser()
    args = parser.parse_args(argv)
    try:
        config = DemoConfig.from_args(args)
    except (LiteRtError, ValueError) as e:
        parser.error(str(e))
    logging.captureWarnings(True)
    configure_logging(config.log_level)
    return run_demo(config)
