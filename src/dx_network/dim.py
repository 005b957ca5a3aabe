#
# Copyright (C) 2018- DEEPX Ltd.
# All rights reserved.
#
# This software is the property of DEEPX and is provided exclusively to customers
# who are supplied with DEEPX NPU (Neural Processing Unit).
# Unauthorized sharing or usage is strictly prohibited by law.
#

from dataclasses import dataclass
from typing import Tuple

MIN_RANK = 1
MAX_RANK = 3


@dataclass(frozen=True)
class Dim:
    """
    Shape of a layer or dataset.

    ``rank`` selects how many of x/y/z describe the feature space; the unused
    trailing extents are always 1. ``examples`` is the batch width and never
    part of the feature shape.
    """
    rank: int
    x: int
    y: int = 1
    z: int = 1
    examples: int = 1

    def __post_init__(self) -> None:
        for field_name in ("rank", "x", "y", "z", "examples"):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"Dim.{field_name} must be an integer, got {type(value).__name__}.")

        if not MIN_RANK <= self.rank <= MAX_RANK:
            raise ValueError(f"Dim rank must be between {MIN_RANK} and {MAX_RANK}, got {self.rank}")

        for field_name in ("x", "y", "z", "examples"):
            if getattr(self, field_name) < 1:
                raise ValueError(f"Dim.{field_name} must be >= 1, got {getattr(self, field_name)}")

        if self.rank < 2 and self.y != 1:
            raise ValueError(f"Dim of rank {self.rank} must have y == 1, got {self.y}")
        if self.rank < 3 and self.z != 1:
            raise ValueError(f"Dim of rank {self.rank} must have z == 1, got {self.z}")

    @classmethod
    def of_1d(cls, x: int, examples: int = 1) -> "Dim":
        return cls(1, x, 1, 1, examples)

    @classmethod
    def of_2d(cls, x: int, y: int, examples: int = 1) -> "Dim":
        return cls(2, x, y, 1, examples)

    @classmethod
    def of_3d(cls, x: int, y: int, z: int, examples: int = 1) -> "Dim":
        return cls(3, x, y, z, examples)

    def with_examples(self, examples: int) -> "Dim":
        """Returns a copy of this dim sized for ``examples`` rows."""
        return Dim(self.rank, self.x, self.y, self.z, examples)

    @property
    def stride(self) -> int:
        """Number of feature values per example."""
        return self.x * self.y * self.z

    @property
    def feature_shape(self) -> Tuple[int, ...]:
        return (self.x, self.y, self.z)[:self.rank]

    @property
    def shape(self) -> Tuple[int, ...]:
        """numpy shape of a buffer holding every example."""
        return (self.examples,) + self.feature_shape

    @property
    def extents(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)

    def same_extents(self, other: "Dim") -> bool:
        return self.extents == other.extents

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z}, examples={self.examples}, rank={self.rank})"
