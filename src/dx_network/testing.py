#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#
"""
In-process engine for tests and dry runs.

RecordingEngine implements the Engine protocol without native code. It
records every call so tests can assert how (and whether) the engine was
driven, and fills outputs from a scoring function so results are
deterministic.

Usage:
    engine = RecordingEngine(
        input_layers=[Layer.input("input", "input", Dim.of_1d(10))],
        output_layers=[Layer.output("output", "output", Dim.of_1d(3))],
    )
    network = dx_network.load(config, engine)
    network.predict(inputs, outputs)
    assert engine.calls_to("predict") == 1
"""

import itertools
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from dx_network.layer import Layer
from dx_network.network_config import NetworkConfig
from dx_network.dataset import Dataset, OutputDataset
from dx_network.engine import EngineHandle

Scorer = Callable[[int, int], np.ndarray]


def ramp_scorer(example: int, stride: int) -> np.ndarray:
    """Scores position ``p`` of every example as ``p / stride``."""
    return np.arange(stride, dtype=np.float32) / stride


class RecordingEngine:
    def __init__(
        self,
        input_layers: Sequence[Layer] = (),
        output_layers: Sequence[Layer] = (),
        scorer: Scorer = ramp_scorer,
        failures: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.input_layers: Tuple[Layer, ...] = tuple(input_layers)
        self.output_layers: Tuple[Layer, ...] = tuple(output_layers)
        self.scorer = scorer
        self.failures: Dict[str, Exception] = dict(failures or {})
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.live_handles: set = set()
        self._ptrs = itertools.count(1)

    def calls_to(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        if operation in self.failures:
            raise self.failures[operation]

    def _require_live(self, handle: EngineHandle) -> None:
        if handle.ptr not in self.live_handles:
            raise RuntimeError(f"Engine handle {handle.ptr} is not loaded")

    def load(self, config: NetworkConfig) -> EngineHandle:
        self._record("load", config)
        handle = EngineHandle(next(self._ptrs), self.input_layers, self.output_layers)
        self.live_handles.add(handle.ptr)
        return handle

    def load_datasets(self, handle: EngineHandle, datasets: Sequence[Dataset]) -> None:
        self._record("load_datasets", handle, list(datasets))
        self._require_live(handle)

    def predict(
        self,
        handle: EngineHandle,
        k: int,
        inputs: Sequence[Dataset],
        outputs: Sequence[OutputDataset],
    ) -> None:
        self._record("predict", handle, k, list(inputs), list(outputs))
        self._require_live(handle)
        for output, layer in zip(outputs, handle.output_layers):
            stride = layer.dim.stride
            examples = output.dim.examples
            rows = np.stack([self.scorer(e, stride) for e in range(examples)])
            if k == NetworkConfig.ALL:
                output.data.reshape(examples, stride)[:] = rows
            else:
                # stable sort keeps the lower index first on ties
                order = np.argsort(-rows, axis=1, kind="stable")[:, :k]
                output.top_k_indices()[:] = order
                output.top_k_scores()[:] = np.take_along_axis(rows, order, axis=1)
                output.data.reshape(examples, k)[:] = output.top_k_scores()

    def shutdown(self, handle: EngineHandle) -> None:
        self._record("shutdown", handle)
        self._require_live(handle)
        self.live_handles.discard(handle.ptr)
