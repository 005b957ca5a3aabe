#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

from typing import Any, Optional


class NetworkError(Exception):
    """Base class for every error raised by dx_network."""


class UnsupportedTopologyError(NetworkError, ValueError):
    """The network has a layer layout this wrapper cannot drive."""


class ArityMismatchError(NetworkError, ValueError):
    """Number of datasets does not match the number of layers."""

    def __init__(self, role: str, expected: int, actual: int) -> None:
        self.role = role
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Number of {role} data and {role} layers do not match: "
            f"expected {expected}, got {actual}"
        )


class ShapeMismatchError(NetworkError, ValueError):
    """A dataset's dimensions disagree with the layer it is bound to."""

    def __init__(
        self,
        message: str,
        index: int,
        layer_name: str,
        dataset_name: Optional[str],
        expected: Any,
        actual: Any,
    ) -> None:
        self.index = index
        self.layer_name = layer_name
        self.dataset_name = dataset_name
        self.expected = expected
        self.actual = actual
        super().__init__(f"{message} (expected {expected}, got {actual})")


class BatchSizeMismatchError(NetworkError, ValueError):
    """A dataset's example count differs from the configured batch size."""

    def __init__(self, role: str, index: int, expected: int, actual: int) -> None:
        self.role = role
        self.index = index
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Examples in {role} data {index} does not match the batch size of the network: "
            f"expected {expected}, got {actual}"
        )


class UnsupportedOperationError(NetworkError, NotImplementedError):
    """The requested call form is not valid for this network's layout."""


class EngineFailure(NetworkError, RuntimeError):
    """The native engine reported a failure."""


class NetworkClosedError(NetworkError, RuntimeError):
    """The network was used after its engine handle was released."""
