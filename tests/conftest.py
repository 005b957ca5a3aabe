"""Shared fixtures for dx_network tests."""

from __future__ import annotations

import pytest

from dx_network import Dim, KSelector, Layer, NetworkConfig, load
from dx_network.network import Network
from dx_network.testing import RecordingEngine

BATCH_SIZE = 4


def make_engine(
    input_dims: tuple[Dim, ...] = (Dim.of_1d(10),),
    output_dims: tuple[Dim, ...] = (Dim.of_1d(3),),
) -> RecordingEngine:
    """Engine whose layers are named input0.., output0.. with matching dataset names."""
    return RecordingEngine(
        input_layers=[Layer.input(f"input{i}", f"input{i}_data", d) for i, d in enumerate(input_dims)],
        output_layers=[Layer.output(f"output{i}", f"output{i}_data", d) for i, d in enumerate(output_dims)],
    )


def make_config(k: KSelector = KSelector.ALL, batch_size: int = BATCH_SIZE) -> NetworkConfig:
    return NetworkConfig("model.nc", batch_size=batch_size, k=k)


@pytest.fixture
def engine() -> RecordingEngine:
    return make_engine()


@pytest.fixture
def network(engine: RecordingEngine) -> Network:
    return load(make_config(), engine)


@pytest.fixture
def top2_network(engine: RecordingEngine) -> Network:
    return load(make_config(KSelector.top(2)), engine)
