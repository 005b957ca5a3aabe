#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

import logging
import threading
import warnings
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from dx_network.dim import Dim
from dx_network.layer import Layer, LayerKind
from dx_network.network_config import NetworkConfig
from dx_network.dataset import Dataset, OutputDataset, DenseOutputDataset
from dx_network.engine import Engine, EngineHandle, NativeEngine
from dx_network.errors import (
    ArityMismatchError,
    BatchSizeMismatchError,
    EngineFailure,
    NetworkClosedError,
    NetworkError,
    ShapeMismatchError,
    UnsupportedOperationError,
    UnsupportedTopologyError,
)

logger = logging.getLogger(__name__)


def _call_engine(operation: str, fn: Callable[..., Any], *args: Any) -> Any:
    try:
        return fn(*args)
    except NetworkError:
        raise
    except Exception as e:
        logger.error("Engine %s failed: %s", operation, e)
        raise EngineFailure(f"Engine {operation} failed: {e}") from e


class Network:
    """
    A loaded neural network.

    Binds the network's input and output layers to caller-supplied datasets,
    checks every shape and batch-size contract before the engine is called,
    and owns the engine handle until ``close()``.

    Datasets are matched to layers by position: ``inputs[i]`` feeds
    ``input_layers[i]`` and ``outputs[i]`` receives ``output_layers[i]``.

    Calls are serialized on an internal lock, so a ``close()`` running
    concurrently with ``predict()`` waits for it and the engine never sees a
    released handle.
    """
    # More than one output layer needs a k per output layer; lifting this
    # limit only changes the check in __init__.
    MAX_OUTPUT_LAYERS = 1

    def __init__(
        self,
        config: NetworkConfig,
        engine: Engine,
        handle: EngineHandle,
        input_layers: Sequence[Layer],
        output_layers: Sequence[Layer],
    ) -> None:
        if not isinstance(config, NetworkConfig):
            raise TypeError("config must be an instance of dx_network.NetworkConfig.")

        if len(output_layers) > self.MAX_OUTPUT_LAYERS:
            raise UnsupportedTopologyError(
                f"Only {self.MAX_OUTPUT_LAYERS} output layer is supported at the moment. "
                f"Got {len(output_layers)}"
            )

        for layer in input_layers:
            if layer.kind is not LayerKind.INPUT:
                raise ValueError(f"Layer '{layer.name}' is not an input layer")
        for layer in output_layers:
            if layer.kind is not LayerKind.OUTPUT:
                raise ValueError(f"Layer '{layer.name}' is not an output layer")

        self._config = config
        self._engine = engine
        self._handle = handle
        self._input_layers: Tuple[Layer, ...] = tuple(input_layers)
        self._output_layers: Tuple[Layer, ...] = tuple(output_layers)
        self._closed = False
        self._lock = threading.RLock()

    @property
    def config(self) -> NetworkConfig:
        return self._config

    @property
    def input_layers(self) -> Tuple[Layer, ...]:
        return self._input_layers

    @property
    def output_layers(self) -> Tuple[Layer, ...]:
        return self._output_layers

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise NetworkClosedError("Network has been closed; its engine handle is released")

    def load(self, datasets: Sequence[Dataset]) -> None:
        """
        Stages input datasets in the engine.

        The datasets get the same arity, shape and batch-size checks as the
        inputs of ``predict()``.
        """
        datasets = _as_sequence(datasets, "datasets")
        with self._lock:
            self._ensure_open()
            self._check_inputs(datasets, "datasets")
            logger.debug("Loading %d dataset(s) into %s", len(datasets), self._config.model_path)
            _call_engine("load_datasets", self._engine.load_datasets, self._handle, datasets)

    def predict(
        self,
        inputs: Union[Dataset, Sequence[Dataset]],
        outputs: Optional[Union[OutputDataset, Sequence[OutputDataset]]] = None,
    ) -> Union[OutputDataset, List[OutputDataset]]:
        """
        Runs inference and returns the populated output dataset(s).

        Args:
            inputs:
                - Single input: a Dataset (network must have exactly one input
                  and one output layer)
                - Multi-input: a sequence of Datasets, one per input layer
            outputs (Optional):
                - Single: an OutputDataset
                - Multi: a sequence of OutputDatasets, one per output layer
                If omitted, outputs are created with ``create_output_dataset``.

        Returns:
            - Single: the OutputDataset
            - Multi: List[OutputDataset]
        """
        with self._lock:
            self._ensure_open()

            if isinstance(inputs, Dataset):
                if len(self._input_layers) != 1 or len(self._output_layers) != 1:
                    raise UnsupportedOperationError(
                        "method can only valid with networks with single input/output layer")
                if outputs is None:
                    return self.predict([inputs])[0]
                self._predict([inputs], [outputs])
                return outputs

            input_list = _as_sequence(inputs, "inputs")
            if outputs is None:
                output_list: List[OutputDataset] = [
                    self.create_output_dataset(layer) for layer in self._output_layers
                ]
            else:
                output_list = _as_sequence(outputs, "outputs")

            self._predict(input_list, output_list)
            return output_list

    def _predict(self, inputs: List[Dataset], outputs: List[OutputDataset]) -> None:
        self._check_arguments(inputs, outputs)
        logger.debug("Predicting %d input(s) with k=%s", len(inputs), self._config.k)
        _call_engine("predict", self._engine.predict, self._handle, self._config.k.value, inputs, outputs)

    def create_output_dataset(self, output_layer: Layer) -> DenseOutputDataset:
        """
        Creates an empty output dataset shaped for ``output_layer``.

        With k = All the dataset mirrors the layer's dim at the configured
        batch size. With k = Top(n) it is ``(n, 1, 1, batch_size)``.

        Top-K is defined over a flat list of positions; for output layers of
        rank > 1 the spatial extents are collapsed into that list.
        """
        with self._lock:
            self._ensure_open()
            if output_layer.kind is not LayerKind.OUTPUT:
                raise ValueError(f"Layer '{output_layer.name}' is not an output layer")

            batch_size = self._config.batch_size
            k = self._config.k
            if k.is_all:
                return DenseOutputDataset(
                    output_layer.dim.with_examples(batch_size),
                    name=output_layer.dataset_name,
                )
            return DenseOutputDataset(
                Dim.of_1d(k.top_k, batch_size),
                name=output_layer.dataset_name,
                top_k=k.top_k,
            )

    def _check_arguments(self, inputs: Sequence[Dataset], outputs: Sequence[OutputDataset]) -> None:
        """
        Checks that the number of data matches the number of layers and that
        the dimensions match. Inputs are checked fully before outputs; on each
        side a dataset of the wrong type is reported before arity and shape.
        """
        self._check_inputs(inputs)
        self._check_outputs(outputs)

    def _check_inputs(self, inputs: Sequence[Dataset], arg_name: str = "inputs") -> None:
        _require_datasets(inputs, arg_name, Dataset)
        if len(inputs) != len(self._input_layers):
            raise ArityMismatchError("input", len(self._input_layers), len(inputs))

        batch_size = self._config.batch_size
        for i, (dataset, input_layer) in enumerate(zip(inputs, self._input_layers)):
            data_dim = dataset.dim
            layer_dim = input_layer.dim

            if data_dim.rank != layer_dim.rank:
                raise ShapeMismatchError(
                    f"Num dimension mismatch between layer {input_layer.name} and data {dataset.name}",
                    i, input_layer.name, dataset.name, layer_dim.rank, data_dim.rank,
                )

            if not data_dim.same_extents(layer_dim):
                raise ShapeMismatchError(
                    f"Dimension mismatch between input layer {input_layer.name} and input data {dataset.name}",
                    i, input_layer.name, dataset.name, layer_dim.extents, data_dim.extents,
                )

            if data_dim.examples != batch_size:
                raise BatchSizeMismatchError("input", i, batch_size, data_dim.examples)

    def _check_outputs(self, outputs: Sequence[OutputDataset]) -> None:
        _require_datasets(outputs, "outputs", OutputDataset)
        if len(outputs) != len(self._output_layers):
            raise ArityMismatchError("output", len(self._output_layers), len(outputs))

        batch_size = self._config.batch_size
        k = self._config.k
        for i, (dataset, output_layer) in enumerate(zip(outputs, self._output_layers)):
            data_dim = dataset.dim

            if k.is_all:
                if not data_dim.same_extents(output_layer.dim):
                    raise ShapeMismatchError(
                        f"Dimension mismatch between output layer {output_layer.name} "
                        f"and output data {dataset.name}",
                        i, output_layer.name, dataset.name, output_layer.dim.extents, data_dim.extents,
                    )
            else:
                expected = (k.top_k, 1, 1)
                if data_dim.extents != expected:
                    raise ShapeMismatchError(
                        f"Data dimX != k or dimY != dimZ != 1 for output layer {output_layer.name} "
                        f"and dataset {dataset.name}",
                        i, output_layer.name, dataset.name, expected, data_dim.extents,
                    )

            if data_dim.examples != batch_size:
                raise BatchSizeMismatchError("output", i, batch_size, data_dim.examples)

    def close(self) -> None:
        """
        Releases the engine handle.

        Only the first call reaches the engine; later calls do nothing.
        """
        with self._lock:
            if self._closed:
                logger.debug("Network for %s is already closed", self._config.model_path)
                return
            self._closed = True
            logger.debug("Shutting down network for %s", self._config.model_path)
            _call_engine("shutdown", self._engine.shutdown, self._handle)

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def __repr__(self) -> str:
        return (f"Network(config={self._config!r}, "
                f"input_layers={[layer.name for layer in self._input_layers]}, "
                f"output_layers={[layer.name for layer in self._output_layers]}, "
                f"closed={self._closed})")

    # --- Deprecated Methods ---
    def createOutputDataSet(self, output_layer: Layer) -> DenseOutputDataset:
        warnings.warn("Method createOutputDataSet() is deprecated. Use create_output_dataset() instead.",
                      DeprecationWarning, stacklevel=2)
        return self.create_output_dataset(output_layer)

    def getInputLayers(self) -> Tuple[Layer, ...]:
        warnings.warn("Method getInputLayers() is deprecated. Use the input_layers property instead.",
                      DeprecationWarning, stacklevel=2)
        return self.input_layers

    def getOutputLayers(self) -> Tuple[Layer, ...]:
        warnings.warn("Method getOutputLayers() is deprecated. Use the output_layers property instead.",
                      DeprecationWarning, stacklevel=2)
        return self.output_layers


def _as_sequence(datasets: Any, arg_name: str) -> List[Any]:
    if isinstance(datasets, (str, bytes)) or not isinstance(datasets, (list, tuple)):
        raise TypeError(f"{arg_name} must be a list or tuple of datasets.")
    return list(datasets)


def _require_datasets(datasets: Sequence[Any], arg_name: str, protocol: type) -> None:
    for i, dataset in enumerate(datasets):
        if not isinstance(dataset, protocol):
            raise TypeError(f"{arg_name}[{i}] must implement {protocol.__name__}, got {type(dataset).__name__}.")
        # name and dim are read as attributes, not called
        if not isinstance(dataset.dim, Dim):
            raise TypeError(f"{arg_name}[{i}].dim must be a dx_network.Dim, got {type(dataset.dim).__name__}.")
        if not isinstance(dataset.name, str):
            raise TypeError(f"{arg_name}[{i}].name must be a string, got {type(dataset.name).__name__}.")


def load(config: NetworkConfig, engine: Optional[Engine] = None) -> Network:
    """
    Loads the model named by ``config`` and returns a Network that owns it.

    Args:
        config: Run configuration.
        engine (Optional): Engine to load with. Defaults to NativeEngine.
    """
    if not isinstance(config, NetworkConfig):
        raise TypeError("config must be an instance of dx_network.NetworkConfig.")
    if engine is None:
        engine = NativeEngine()

    logger.debug("Loading %r", config)
    handle: EngineHandle = _call_engine("load", engine.load, config)

    try:
        network = Network(config, engine, handle, handle.input_layers, handle.output_layers)
    except Exception:
        try:
            engine.shutdown(handle)
        except Exception as shutdown_error:
            logger.error("Failed to release engine handle for %s: %s", config.model_path, shutdown_error)
        raise

    logger.debug("Loaded %r", network)
    return network
