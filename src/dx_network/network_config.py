#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class KSelector:
    """
    Output reduction mode.

    ``KSelector.ALL`` returns the full output layer. ``KSelector.top(n)``
    returns only the ``n`` highest scoring positions per example, with their
    indices and scores.
    """
    top_k: Optional[int] = None

    def __post_init__(self) -> None:
        if self.top_k is not None:
            if isinstance(self.top_k, bool) or not isinstance(self.top_k, int):
                raise TypeError("top_k must be an integer or None.")
            if self.top_k < 1:
                raise ValueError(f"top_k must be >= 1, got {self.top_k}")

    @classmethod
    def top(cls, k: int) -> "KSelector":
        return cls(k)

    @classmethod
    def parse(cls, value: Union["KSelector", int, str, None]) -> "KSelector":
        """
        Accepts a KSelector, ``None``/``"all"``/``NetworkConfig.ALL`` for the
        full output, or a positive int (or its string form) for top-K.
        """
        if isinstance(value, KSelector):
            return value
        if value is None:
            return cls.ALL
        if isinstance(value, str):
            if value.strip().lower() == "all":
                return cls.ALL
            try:
                value = int(value)
            except ValueError:
                raise ValueError(f"k must be 'all' or an integer, got '{value}'") from None
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"k must be 'all' or an integer, got {type(value).__name__}.")
        if value == NetworkConfig.ALL:
            return cls.ALL
        return cls(value)

    @property
    def is_all(self) -> bool:
        return self.top_k is None

    @property
    def value(self) -> int:
        """Integer form handed to the engine: ``NetworkConfig.ALL`` or k."""
        return NetworkConfig.ALL if self.top_k is None else self.top_k

    def __str__(self) -> str:
        return "All" if self.top_k is None else f"Top({self.top_k})"


KSelector.ALL = KSelector()


@dataclass(frozen=True)
class NetworkConfig:
    """Run configuration for a network: model file, batch size and output mode."""
    ALL = -1

    model_path: str
    batch_size: int = 32
    k: KSelector = field(default_factory=lambda: KSelector.ALL)

    def __post_init__(self) -> None:
        if not isinstance(self.model_path, str):
            raise TypeError("model_path must be a string.")
        if not self.model_path:
            raise ValueError("model_path must be a non-empty string")
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int):
            raise TypeError("batch_size must be an integer.")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if not isinstance(self.k, KSelector):
            # frozen dataclass, so go through object.__setattr__
            object.__setattr__(self, "k", KSelector.parse(self.k))

    @staticmethod
    def builder() -> "NetworkConfigBuilder":
        return NetworkConfigBuilder()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "NetworkConfig":
        unknown = set(values) - {"model_path", "batch_size", "k"}
        if unknown:
            raise ValueError(f"Unknown network config keys: {sorted(unknown)}")
        if "model_path" not in values:
            raise ValueError("Network config requires 'model_path'")
        return cls(
            model_path=values["model_path"],
            batch_size=values.get("batch_size", 32),
            k=KSelector.parse(values.get("k")),
        )

    @classmethod
    def from_json_file(cls, file_name: str) -> "NetworkConfig":
        if not isinstance(file_name, str) or not file_name:
            raise ValueError("file_name must be a non-empty string")
        with open(file_name, "r", encoding="utf-8") as f:
            values = json.load(f)
        if not isinstance(values, dict):
            raise ValueError(f"Network config file '{file_name}' must contain a JSON object")
        return cls.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_path": self.model_path,
            "batch_size": self.batch_size,
            "k": "all" if self.k.is_all else self.k.top_k,
        }

    def __repr__(self) -> str:
        return (f"NetworkConfig(model_path={self.model_path!r}, "
                f"batch_size={self.batch_size}, k={self.k})")


class NetworkConfigBuilder:
    """Fluent builder for NetworkConfig."""

    def __init__(self) -> None:
        self._model_path: Optional[str] = None
        self._batch_size: int = 32
        self._k: KSelector = KSelector.ALL

    def network_file_path(self, model_path: str) -> "NetworkConfigBuilder":
        self._model_path = model_path
        return self

    def batch_size(self, batch_size: int) -> "NetworkConfigBuilder":
        self._batch_size = batch_size
        return self

    def k(self, k: Union[KSelector, int, str, None]) -> "NetworkConfigBuilder":
        self._k = KSelector.parse(k)
        return self

    def build(self) -> NetworkConfig:
        if self._model_path is None:
            raise ValueError("network_file_path must be set before build()")
        return NetworkConfig(self._model_path, self._batch_size, self._k)
