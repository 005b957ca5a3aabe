#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

import os
import sys
import time
import logging
import argparse
from typing import List, Optional

from dx_network import DenseDataset, DataType, NetworkConfig, NetworkError, load
from dx_network.engine import DEFAULT_NATIVE_MODULE, Engine, import_engine
from dx_network.logger import LogLevel, setup_logging

APP_NAME = "DXNN Python run_network"

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="run_network",
        description=APP_NAME,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  run_network -m model.nc -b 4
  run_network -m model.nc -b 4 --k 10
  run_network -c network.json -l 100 -v"""
    )
    parser.add_argument("--model", "-m", type=str, help="Path to trained network file")
    parser.add_argument("--config", "-c", type=str, help="JSON network config (model_path, batch_size, k)")
    parser.add_argument("--batch", "-b", type=int, help="Batch size (overrides config)")
    parser.add_argument("--k", type=str, help="'all' or number of top scoring outputs (overrides config)")
    parser.add_argument("--engine", "-e", type=str, default=DEFAULT_NATIVE_MODULE,
                        help=f"Engine module or module:attribute (default: {DEFAULT_NATIVE_MODULE})")
    parser.add_argument("--loops", "-l", type=int, default=1, help="Number of inference loops (default: 1)")
    parser.add_argument("--verbose", "-v", action="store_true", default=False, help="Enable debug logging")

    args = parser.parse_args(argv)

    if args.model is None and args.config is None:
        parser.error("one of --model or --config is required")
    if args.config is not None and not os.path.exists(args.config):
        parser.error(f"Config path '{args.config}' does not exist.")
    if args.loops < 1:
        parser.error("--loops must be a positive integer")
    return args


def build_config(args: argparse.Namespace) -> NetworkConfig:
    values = {}
    if args.config is not None:
        values = NetworkConfig.from_json_file(args.config).to_dict()
    if args.model is not None:
        values["model_path"] = args.model
    if args.batch is not None:
        values["batch_size"] = args.batch
    if args.k is not None:
        values["k"] = args.k
    return NetworkConfig.from_dict(values)


def run(config: NetworkConfig, engine: Engine, loops: int = 1) -> int:
    with load(config, engine) as network:
        logger.info("Loaded network: %r", network)

        inputs = []
        for input_layer in network.input_layers:
            dataset = DenseDataset(
                input_layer.dim.with_examples(config.batch_size),
                DataType.INT32,
                name=input_layer.dataset_name,
            )
            inputs.append(dataset)
        network.load(inputs)

        start = time.perf_counter()
        for _ in range(loops):
            outputs = network.predict(inputs)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

    print(f"* Network : {config.model_path}")
    print(f"* Batch size : {config.batch_size}, k : {config.k}")
    for output in outputs:
        print(f"  - {output.name} : shape {output.data.shape}")
        indices = output.top_k_indices()
        if indices is not None:
            print(f"    top-{config.k.top_k} of example 0 : {indices[0].tolist()}")
    print(f"* Average latency : {elapsed_ms / loops:.3f} ms ({loops} loops)")
    return 0


def main(argv: Optional[List[str]] = None, engine: Optional[Engine] = None) -> int:
    args = parse_args(argv)
    setup_logging(LogLevel.DEBUG if args.verbose else None)

    try:
        config = build_config(args)
        if not os.path.exists(config.model_path):
            print(f"Error: Model path '{config.model_path}' does not exist.", file=sys.stderr)
            return 1
        if engine is None:
            engine = import_engine(args.engine)
        return run(config, engine, args.loops)
    except (NetworkError, OSError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(1)
