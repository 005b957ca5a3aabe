#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

import importlib
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Dict, List, Protocol, Sequence, Tuple

from dx_network.dim import Dim
from dx_network.layer import Layer, LayerKind
from dx_network.network_config import NetworkConfig
from dx_network.dataset import Dataset, OutputDataset
from dx_network.errors import EngineFailure

DEFAULT_NATIVE_MODULE = "dx_network.capi._pydxnn"


@dataclass(frozen=True)
class EngineHandle:
    """Opaque engine reference plus the layer metadata reported at load time."""
    ptr: Any
    input_layers: Tuple[Layer, ...]
    output_layers: Tuple[Layer, ...]


class Engine(Protocol):
    """The four operations the network uses to drive an inference engine."""

    def load(self, config: NetworkConfig) -> EngineHandle: ...

    def load_datasets(self, handle: EngineHandle, datasets: Sequence[Dataset]) -> None: ...

    def predict(
        self,
        handle: EngineHandle,
        k: int,
        inputs: Sequence[Dataset],
        outputs: Sequence[OutputDataset],
    ) -> None: ...

    def shutdown(self, handle: EngineHandle) -> None: ...


def _layer_from_info(info: Dict[str, Any], kind: LayerKind) -> Layer:
    try:
        dim = Dim(
            int(info["dimensions"]),
            int(info.get("x", 1)),
            int(info.get("y", 1)),
            int(info.get("z", 1)),
        )
        return Layer(info["name"], info.get("dataset_name", ""), dim, kind)
    except (KeyError, TypeError, ValueError) as e:
        raise EngineFailure(f"Engine reported an invalid {kind.value.lower()} layer {info!r}: {e}") from e


class NativeEngine:
    """
    Engine backed by the compiled extension module.

    The module is imported on first use and must expose ``load(model_path,
    batch_size) -> ptr``, ``get_layers(ptr, kind) -> list of dict`` (keys
    ``name``, ``dataset_name``, ``dimensions``, ``x``, ``y``, ``z``; kind is
    ``"Input"`` or ``"Output"``), ``load_datasets(ptr, datasets)``,
    ``predict(ptr, k, inputs, outputs)`` and ``shutdown(ptr)``.
    """

    def __init__(self, module_name: str = DEFAULT_NATIVE_MODULE) -> None:
        if not isinstance(module_name, str) or not module_name:
            raise ValueError("module_name must be a non-empty string")
        self.module_name = module_name
        self._module: Any = None

    @property
    def module(self) -> ModuleType:
        if self._module is None:
            try:
                self._module = importlib.import_module(self.module_name)
            except ImportError as e:
                raise EngineFailure(
                    f"Failed to import the native engine extension `{self.module_name}`. "
                    "Ensure it's compiled and in the Python path."
                ) from e
        return self._module

    def load(self, config: NetworkConfig) -> EngineHandle:
        C = self.module
        ptr = C.load(config.model_path, config.batch_size)
        try:
            input_layers: List[Layer] = [
                _layer_from_info(info, LayerKind.INPUT) for info in C.get_layers(ptr, LayerKind.INPUT.value)
            ]
            output_layers: List[Layer] = [
                _layer_from_info(info, LayerKind.OUTPUT) for info in C.get_layers(ptr, LayerKind.OUTPUT.value)
            ]
        except BaseException:
            C.shutdown(ptr)
            raise
        return EngineHandle(ptr, tuple(input_layers), tuple(output_layers))

    def load_datasets(self, handle: EngineHandle, datasets: Sequence[Dataset]) -> None:
        self.module.load_datasets(handle.ptr, list(datasets))

    def predict(
        self,
        handle: EngineHandle,
        k: int,
        inputs: Sequence[Dataset],
        outputs: Sequence[OutputDataset],
    ) -> None:
        self.module.predict(handle.ptr, k, list(inputs), list(outputs))

    def shutdown(self, handle: EngineHandle) -> None:
        self.module.shutdown(handle.ptr)


def import_engine(spec: str) -> Engine:
    """
    Resolves an engine from ``module`` or ``module:attribute``.

    A bare module name is wrapped in NativeEngine. With an attribute, the
    attribute is returned as is, or called first when it is a class or
    factory function.
    """
    if ":" not in spec:
        return NativeEngine(spec)
    module_name, _, attr = spec.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise EngineFailure(f"Failed to import engine module `{module_name}`") from e
    try:
        target = getattr(module, attr)
    except AttributeError:
        raise EngineFailure(f"Engine module `{module_name}` has no attribute `{attr}`") from None
    if isinstance(target, type) or not hasattr(target, "predict"):
        if not callable(target):
            raise EngineFailure(f"`{spec}` is neither an engine nor an engine factory")
        return target()
    return target
