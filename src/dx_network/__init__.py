#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

from dx_network.dim import Dim
from dx_network.layer import Layer, LayerKind
from dx_network.network_config import KSelector, NetworkConfig, NetworkConfigBuilder
from dx_network.dtype import DataType
from dx_network.dataset import Dataset, OutputDataset, DenseDataset, DenseOutputDataset
from dx_network.engine import Engine, EngineHandle, NativeEngine
from dx_network.network import Network, load
from dx_network.errors import (
    NetworkError,
    UnsupportedTopologyError,
    ArityMismatchError,
    ShapeMismatchError,
    BatchSizeMismatchError,
    UnsupportedOperationError,
    EngineFailure,
    NetworkClosedError,
)
