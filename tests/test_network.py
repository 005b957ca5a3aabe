"""Tests for Network validation and prediction."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import BATCH_SIZE, make_config, make_engine
from dx_network import (
    ArityMismatchError,
    BatchSizeMismatchError,
    DenseDataset,
    DenseOutputDataset,
    Dim,
    KSelector,
    Layer,
    ShapeMismatchError,
    UnsupportedOperationError,
    UnsupportedTopologyError,
    load,
)
from dx_network.engine import EngineHandle
from dx_network.network import Network
from dx_network.testing import RecordingEngine


def _input(x: int = 10, examples: int = BATCH_SIZE, name: str = "input0_data") -> DenseDataset:
    return DenseDataset(Dim.of_1d(x, examples), name=name)


def _output(x: int = 3, examples: int = BATCH_SIZE, name: str = "output0_data") -> DenseOutputDataset:
    return DenseOutputDataset(Dim.of_1d(x, examples), name=name)


def test_matching_shapes_call_engine_once(network: Network, engine: RecordingEngine) -> None:
    output = _output()
    result = network.predict([_input()], [output])

    assert result == [output]
    assert engine.calls_to("predict") == 1
    np.testing.assert_allclose(output.data[0], [0.0, 1 / 3, 2 / 3], rtol=1e-6)


def test_output_with_wrong_extent_names_the_output_layer(network: Network, engine: RecordingEngine) -> None:
    with pytest.raises(ShapeMismatchError, match="output0") as excinfo:
        network.predict([_input()], [_output(x=4)])

    assert excinfo.value.layer_name == "output0"
    assert excinfo.value.index == 0
    assert excinfo.value.expected == (3, 1, 1)
    assert excinfo.value.actual == (4, 1, 1)
    assert engine.calls_to("predict") == 0


@pytest.mark.parametrize("count", [0, 2, 3])
def test_input_arity_mismatch_happens_before_engine_call(
    network: Network, engine: RecordingEngine, count: int
) -> None:
    with pytest.raises(ArityMismatchError) as excinfo:
        network.predict([_input() for _ in range(count)], [_output()])

    assert excinfo.value.expected == 1
    assert excinfo.value.actual == count
    assert engine.calls_to("predict") == 0


def test_output_arity_mismatch(network: Network, engine: RecordingEngine) -> None:
    with pytest.raises(ArityMismatchError, match="output"):
        network.predict([_input()], [_output(), _output()])
    assert engine.calls_to("predict") == 0


def test_input_rank_mismatch(network: Network) -> None:
    dataset = DenseDataset(Dim.of_2d(10, 1, BATCH_SIZE), name="input0_data")
    with pytest.raises(ShapeMismatchError, match="Num dimension") as excinfo:
        network.predict([dataset], [_output()])
    assert excinfo.value.expected == 1
    assert excinfo.value.actual == 2


def test_input_extent_mismatch(network: Network) -> None:
    with pytest.raises(ShapeMismatchError, match="input layer input0") as excinfo:
        network.predict([_input(x=11)], [_output()])
    assert excinfo.value.dataset_name == "input0_data"


@pytest.mark.parametrize("examples", [1, 3, 5])
def test_input_batch_size_mismatch(network: Network, engine: RecordingEngine, examples: int) -> None:
    with pytest.raises(BatchSizeMismatchError) as excinfo:
        network.predict([_input(examples=examples)], [_output()])
    assert excinfo.value.role == "input"
    assert excinfo.value.expected == BATCH_SIZE
    assert excinfo.value.actual == examples
    assert engine.calls_to("predict") == 0


def test_output_batch_size_mismatch(network: Network) -> None:
    with pytest.raises(BatchSizeMismatchError) as excinfo:
        network.predict([_input()], [_output(examples=2)])
    assert excinfo.value.role == "output"


def test_shape_is_reported_before_batch_size() -> None:
    network = load(make_config(), make_engine())
    with pytest.raises(ShapeMismatchError):
        network.predict([_input(x=9, examples=1)], [_output()])


def test_inputs_are_validated_before_outputs(network: Network) -> None:
    with pytest.raises(BatchSizeMismatchError) as excinfo:
        network.predict([_input(examples=1)], [_output(x=7)])
    assert excinfo.value.role == "input"


def test_multi_input_network_validates_each_input_in_order() -> None:
    engine = make_engine(input_dims=(Dim.of_1d(10), Dim.of_2d(4, 4)))
    network = load(make_config(), engine)
    second = DenseDataset(Dim.of_2d(4, 5, BATCH_SIZE), name="input1_data")

    with pytest.raises(ShapeMismatchError) as excinfo:
        network.predict([_input(), second], [_output()])

    assert excinfo.value.index == 1
    assert excinfo.value.layer_name == "input1"


def test_single_dataset_form(network: Network, engine: RecordingEngine) -> None:
    output = _output()
    assert network.predict(_input(), output) is output
    assert engine.calls_to("predict") == 1


def test_single_dataset_form_allocates_output(network: Network) -> None:
    output = network.predict(_input())
    assert isinstance(output, DenseOutputDataset)
    assert output.name == "output0_data"
    assert output.dim == Dim.of_1d(3, BATCH_SIZE)


def test_single_dataset_form_on_multi_input_network_is_unsupported() -> None:
    engine = make_engine(input_dims=(Dim.of_1d(10), Dim.of_1d(10)))
    network = load(make_config(), engine)
    with pytest.raises(UnsupportedOperationError):
        network.predict(_input(), _output())
    assert engine.calls_to("predict") == 0


def test_predict_without_outputs_allocates_one_per_output_layer(network: Network) -> None:
    outputs = network.predict([_input()])
    assert len(outputs) == 1
    assert outputs[0].dim == Dim.of_1d(3, BATCH_SIZE)
    assert outputs[0].name == "output0_data"


def test_predict_rejects_non_dataset_arguments(network: Network) -> None:
    with pytest.raises(TypeError):
        network.predict("input0_data")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        network.predict([_input()], [_input()])  # type: ignore[list-item]
    with pytest.raises(TypeError):
        network.predict(_input(), [_output()])  # type: ignore[arg-type]


def test_create_output_dataset_top_k_collapses_layer_shape() -> None:
    engine = make_engine(output_dims=(Dim.of_1d(100),))
    network = load(make_config(KSelector.top(5)), engine)

    output = network.create_output_dataset(network.output_layers[0])

    assert output.dim == Dim(1, 5, 1, 1, BATCH_SIZE)
    assert output.top_k_indices().shape == (BATCH_SIZE, 5)


def test_create_output_dataset_all_mirrors_layer() -> None:
    engine = make_engine(output_dims=(Dim.of_2d(6, 2),))
    network = load(make_config(), engine)

    output = network.create_output_dataset(network.output_layers[0])

    assert output.dim == Dim.of_2d(6, 2, BATCH_SIZE)
    assert output.top_k_indices() is None


def test_create_output_dataset_top_k_on_multi_rank_layer_is_flat() -> None:
    engine = make_engine(output_dims=(Dim.of_3d(4, 4, 2),))
    network = load(make_config(KSelector.top(3)), engine)

    output = network.create_output_dataset(network.output_layers[0])

    assert output.dim == Dim.of_1d(3, BATCH_SIZE)


def test_create_output_dataset_rejects_input_layer(network: Network) -> None:
    with pytest.raises(ValueError):
        network.create_output_dataset(network.input_layers[0])


def test_top_k_scenario(top2_network: Network, engine: RecordingEngine) -> None:
    output = top2_network.create_output_dataset(top2_network.output_layers[0])
    assert output.dim == Dim(1, 2, 1, 1, BATCH_SIZE)

    with pytest.raises(ShapeMismatchError):
        top2_network.predict([_input()], [_output(x=3)])
    assert engine.calls_to("predict") == 0

    top2_network.predict([_input()], [output])
    _, args = engine.calls[-1]
    assert args[1] == 2
    np.testing.assert_array_equal(output.top_k_indices(), [[2, 1]] * BATCH_SIZE)
    np.testing.assert_allclose(output.top_k_scores()[0], [2 / 3, 1 / 3], rtol=1e-6)


def test_top_k_output_must_be_flat(top2_network: Network) -> None:
    output = DenseOutputDataset(Dim.of_2d(2, 2, BATCH_SIZE), top_k=2)
    with pytest.raises(ShapeMismatchError, match="dimX != k"):
        top2_network.predict([_input()], [output])


def test_all_mode_passes_all_sentinel_to_engine(network: Network, engine: RecordingEngine) -> None:
    network.predict([_input()], [_output()])
    _, args = engine.calls[-1]
    assert args[1] == -1


def test_two_output_layers_is_unsupported_topology() -> None:
    layers = (
        Layer.output("a", "a", Dim.of_1d(3)),
        Layer.output("b", "b", Dim.of_1d(3)),
    )
    inputs = (Layer.input("in", "in", Dim.of_1d(10)),)
    handle = EngineHandle(1, inputs, layers)
    with pytest.raises(UnsupportedTopologyError, match="Got 2"):
        Network(make_config(), RecordingEngine(), handle, inputs, layers)


def test_layer_kinds_are_checked_at_construction() -> None:
    inputs = (Layer.output("in", "in", Dim.of_1d(10)),)
    outputs = (Layer.output("out", "out", Dim.of_1d(3)),)
    with pytest.raises(ValueError, match="not an input layer"):
        Network(make_config(), RecordingEngine(), EngineHandle(1, inputs, outputs), inputs, outputs)


class _AccessorDataset:
    """Exposes name and dim as methods instead of attributes."""

    def __init__(self, dim: Dim) -> None:
        self._dim = dim

    def name(self) -> str:
        return "input0_data"

    def dim(self) -> Dim:
        return self._dim


def test_dataset_with_accessor_methods_is_a_type_error(network: Network, engine: RecordingEngine) -> None:
    dataset = _AccessorDataset(Dim.of_1d(10, BATCH_SIZE))
    with pytest.raises(TypeError, match=r"inputs\[0\]\.dim must be a dx_network.Dim"):
        network.predict([dataset], [_output()])  # type: ignore[list-item]
    with pytest.raises(TypeError, match=r"datasets\[0\]\.dim"):
        network.load([dataset])  # type: ignore[list-item]
    with pytest.raises(TypeError):
        network.predict(dataset)  # type: ignore[arg-type]
    assert engine.calls_to("predict") == 0
    assert engine.calls_to("load_datasets") == 0


def test_input_shape_errors_come_before_output_type_errors(network: Network) -> None:
    with pytest.raises(ShapeMismatchError):
        network.predict([_input(x=9)], ["output0_data"])  # type: ignore[list-item]
    with pytest.raises(BatchSizeMismatchError):
        network.predict(_input(examples=1), "output0_data")  # type: ignore[arg-type]
    with pytest.raises(TypeError, match=r"outputs\[0\]"):
        network.predict([_input()], [_input()])  # type: ignore[list-item]
