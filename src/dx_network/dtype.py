#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

from enum import Enum

import numpy as np


class DataType(Enum):
    UINT8 = "UINT8"
    UINT16 = "UINT16"
    UINT32 = "UINT32"
    UINT64 = "UINT64"
    INT8 = "INT8"
    INT16 = "INT16"
    INT32 = "INT32"
    INT64 = "INT64"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"

    @property
    def numpy_dtype(self) -> np.dtype:
        return np.dtype(NumpyDataTypeMapper.from_string(self.value))

    @classmethod
    def from_string(cls, dtype_str: str) -> "DataType":
        dtype_str = dtype_str.upper()
        if dtype_str in cls.__members__:
            return cls[dtype_str]
        raise ValueError(f"Unknown data type string: {dtype_str}")


class NumpyDataTypeMapper:
    UINT8 = np.uint8
    UINT16 = np.uint16
    UINT32 = np.uint32
    UINT64 = np.uint64
    INT8 = np.int8
    INT16 = np.int16
    INT32 = np.int32
    INT64 = np.int64
    FLOAT = np.float32
    DOUBLE = np.float64

    # engine-side buffer types for top-K results
    INDEX = np.int64
    SCORE = np.float32

    @classmethod
    def from_string(cls, dtype_str: str):
        dtype_str = dtype_str.upper()
        if hasattr(cls, dtype_str) and not dtype_str.startswith("_"):
            return getattr(cls, dtype_str)
        raise ValueError(f"Unknown data type string: {dtype_str}")
