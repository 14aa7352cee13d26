#!/usr/bin/env python3
"""Step-by-step LiteRT run with real input data.

This walks the same handles the `chopsticks` CLI uses, but fills the first
input tensor from a ``.npy`` file and prints every output tensor:

1. Create environment
2. Load model
3. Create compilation options
4. Compile model
5. Create input/output buffers and fill inputs
6. Run inference and read outputs

Run with:
    python -m examples.run_with_inputs model.tflite input.npy
"""

import sys
from pathlib import Path

import numpy as np

from chopsticks.runtime import (
    CompiledModel,
    Environment,
    HwAccelerator,
    LiteRtError,
    Model,
    Options,
)


def main(argv: list[str]) -> int:
    if len(argv) not in (2, 3):
        print("Usage: run_with_inputs.py <model.tflite> [input.npy]", file=sys.stderr)
        return 2
    model_path = Path(argv[1])
    input_path = Path(argv[2]) if len(argv) == 3 else None

    print("=" * 70)
    print(f"LiteRT step-by-step run: {model_path}")
    print("=" * 70)

    try:
        with Environment.create() as env:
            print("\n[1] Environment created")

            model = Model.from_file(model_path)
            print(f"\n[2] Model loaded ({model.size} bytes)")

            options = Options.create(HwAccelerator.CPU)
            print(f"\n[3] Options: {'+'.join(options.hardware_accelerators.names())}")

            compiled = CompiledModel.create(env, model, options)
            print("\n[4] Model compiled")

            inputs = compiled.create_input_buffers()
            outputs = compiled.create_output_buffers()
            print(f"\n[5] Buffers: {len(inputs)} input(s), {len(outputs)} output(s)")
            for buf in inputs:
                print(f"      in  - {buf.name}: {buf.shape} {buf.dtype} ({buf.size} bytes)")
            for buf in outputs:
                print(f"      out - {buf.name}: {buf.shape} {buf.dtype} ({buf.size} bytes)")

            if input_path is not None and inputs:
                data = np.load(input_path)
                inputs[0].write(data.reshape(inputs[0].shape))
                print(f"\n    Filled '{inputs[0].name}' from {input_path}")

            compiled.run(inputs, outputs)
            print("\n[6] Inference complete")
            for buf in outputs:
                result = buf.read()
                flat = result.reshape(-1)
                print(f"      {buf.name}: first values {flat[:5]}")
                if np.issubdtype(result.dtype, np.number) and result.size:
                    print(f"        argmax={int(flat.argmax())} max={flat.max()}")
    except LiteRtError as e:
        print(f"\n  {e.stage} step failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
