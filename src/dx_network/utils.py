#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

import warnings

import numpy as np


def ensure_contiguous(data: np.ndarray) -> np.ndarray:
    if not isinstance(data, np.ndarray):
        raise TypeError(f"Unsupported type for ensure_contiguous: {type(data)}")
    if not data.flags['C_CONTIGUOUS']:
        warnings.warn(
            f"ndarray(shape={data.shape}, dtype={data.dtype}) is not contiguous; converting.",
            UserWarning
        )
        try:
            return np.ascontiguousarray(data)
        except MemoryError:
            raise MemoryError(
                f"Unable to allocate contiguous array for shape {data.shape}"
            )
    return data
