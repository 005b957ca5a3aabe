#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

from dataclasses import dataclass
from enum import Enum

from dx_network.dim import Dim


class LayerKind(Enum):
    INPUT = "Input"
    OUTPUT = "Output"


@dataclass(frozen=True)
class Layer:
    """A named endpoint of a loaded network and the dataset it reads or writes."""
    name: str
    dataset_name: str
    dim: Dim
    kind: LayerKind

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Layer name must be a non-empty string.")
        if not isinstance(self.dataset_name, str):
            raise TypeError("Layer dataset_name must be a string.")
        if not isinstance(self.dim, Dim):
            raise TypeError("Layer dim must be an instance of dx_network.Dim.")
        if not isinstance(self.kind, LayerKind):
            raise TypeError("Layer kind must be an instance of dx_network.LayerKind.")

    @classmethod
    def input(cls, name: str, dataset_name: str, dim: Dim) -> "Layer":
        return cls(name, dataset_name, dim, LayerKind.INPUT)

    @classmethod
    def output(cls, name: str, dataset_name: str, dim: Dim) -> "Layer":
        return cls(name, dataset_name, dim, LayerKind.OUTPUT)

    @property
    def dimensions(self) -> int:
        return self.dim.rank

    @property
    def dim_x(self) -> int:
        return self.dim.x

    @property
    def dim_y(self) -> int:
        return self.dim.y

    @property
    def dim_z(self) -> int:
        return self.dim.z
