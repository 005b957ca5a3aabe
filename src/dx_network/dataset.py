#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

from typing import Optional, Protocol, Union, runtime_checkable

import numpy as np

from dx_network.dim import Dim
from dx_network.dtype import DataType, NumpyDataTypeMapper
from dx_network.utils import ensure_contiguous


@runtime_checkable
class Dataset(Protocol):
    """
    Anything the network can bind to a layer.

    ``name`` (a str) and ``dim`` (a Dim) are read as attributes or properties;
    objects exposing them as methods are rejected with TypeError.
    """

    @property
    def name(self) -> str: ...

    @property
    def dim(self) -> Dim: ...


@runtime_checkable
class OutputDataset(Dataset, Protocol):
    """A dataset the engine writes results into."""

    def top_k_indices(self) -> Optional[np.ndarray]: ...

    def top_k_scores(self) -> Optional[np.ndarray]: ...


class DenseDataset:
    """
    Dense numpy-backed dataset.

    ``data`` has shape ``dim.shape``: one row per example followed by the
    rank-many feature extents.
    """

    def __init__(
        self,
        dim: Dim,
        data_type: Union[DataType, str] = DataType.FLOAT,
        name: str = "",
        data: Optional[np.ndarray] = None,
    ) -> None:
        if not isinstance(dim, Dim):
            raise TypeError("dim must be an instance of dx_network.Dim.")
        if isinstance(data_type, str):
            data_type = DataType.from_string(data_type)
        if not isinstance(data_type, DataType):
            raise TypeError("data_type must be an instance of dx_network.DataType or a string.")

        self._dim = dim
        self.data_type = data_type
        self.name = name

        if data is None:
            self.data = np.zeros(dim.shape, dtype=data_type.numpy_dtype)
        else:
            if not isinstance(data, np.ndarray):
                raise TypeError("data must be a numpy array.")
            if data.shape != dim.shape:
                raise ValueError(f"data shape {data.shape} does not match dim shape {dim.shape}")
            self.data = ensure_contiguous(data.astype(data_type.numpy_dtype, copy=False))

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError("name must be a string.")
        self._name = value

    @property
    def dim(self) -> Dim:
        return self._dim

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(name={self.name!r}, dim={self.dim}, "
                f"data_type={self.data_type.name})")


class DenseOutputDataset(DenseDataset):
    """
    Output dataset for a network.

    With ``top_k`` set, the dim is ``(k, 1, 1, examples)`` and the engine fills
    ``indexes``/``scores`` with the k best positions per example, highest
    score first. Without it only ``data`` is filled.
    """

    def __init__(
        self,
        dim: Dim,
        name: str = "",
        top_k: Optional[int] = None,
        data_type: Union[DataType, str] = DataType.FLOAT,
    ) -> None:
        super().__init__(dim, data_type=data_type, name=name)
        self.top_k = top_k
        self.indexes: Optional[np.ndarray] = None
        self.scores: Optional[np.ndarray] = None
        if top_k is not None:
            shape = (dim.examples, top_k)
            self.indexes = np.zeros(shape, dtype=NumpyDataTypeMapper.INDEX)
            self.scores = np.zeros(shape, dtype=NumpyDataTypeMapper.SCORE)

    def top_k_indices(self) -> Optional[np.ndarray]:
        return self.indexes

    def top_k_scores(self) -> Optional[np.ndarray]:
        return self.scores
