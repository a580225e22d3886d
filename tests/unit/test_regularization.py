import numpy as np
import pytest

from layerchain.core.regularization import Regularization
from layerchain.core.types import ErrorAccumulator, OutputInfo
from layerchain.errors import ConfigurationError
from layerchain.layers import FullyConnected, Subsampling


def test_projection_caps_rows_and_keeps_small_rows():
    weights = np.array([[3.0, 4.0], [0.1, 0.2], [-2.0, 0.0]])
    Regularization(max_squared_weight_norm=4.0).project(weights)
    squared = np.square(weights).sum(axis=1)
    assert np.all(squared <= 4.0 + 1e-12)
    assert squared[0] == pytest.approx(4.0)
    assert np.array_equal(weights[1], [0.1, 0.2])
    assert np.array_equal(weights[2], [-2.0, 0.0])
    assert np.allclose(weights[0], [1.2, 1.6])


def test_projection_writes_through_layer_storage():
    layer = FullyConnected(
        OutputInfo((3,)), 2, regularization=Regularization(max_squared_weight_norm=1.0)
    )
    layer.initialize([], np.random.default_rng(0))
    layer.parameter_storage[...] = 2.0
    layer.updated_parameters()
    assert np.allclose(np.square(layer.W).sum(axis=1), 1.0)
    assert np.allclose(layer.b, 2.0)
    assert np.allclose(layer.parameter_storage.reshape(2, 4)[:, :3], layer.W)


def test_disabled_projection_is_a_no_op():
    weights = np.full((2, 2), 10.0)
    Regularization().project(weights)
    assert np.all(weights == 10.0)


def test_l1_gradient_at_zero_weight():
    weights = np.array([0.0, 2.0, -3.0])
    derivatives = np.zeros(3)
    Regularization(l1_penalty=0.5).add_gradient(weights, derivatives)
    assert np.array_equal(derivatives, [0.0, 0.5, -0.5])


def test_penalties_accumulate():
    weights = np.array([[1.0, -2.0]])
    error = ErrorAccumulator()
    Regularization(l1_penalty=0.1, l2_penalty=0.2).add_penalty(weights, error)
    assert error.value == pytest.approx(0.1 * 3.0 + 0.2 * 5.0 / 2.0)
    Regularization().add_penalty(weights, error)
    assert error.value == pytest.approx(0.8)


def test_negative_penalty_is_rejected():
    with pytest.raises(ConfigurationError):
        Regularization(l2_penalty=-1.0)


def test_subsampling_projection_caps_each_feature_map():
    layer = Subsampling(
        OutputInfo((2, 4, 4)), 2, 2, regularization=Regularization(max_squared_weight_norm=1.0)
    )
    layer.initialize([], np.random.default_rng(0))
    layer.w[...] = 1.0
    layer.b[...] = 3.0
    layer.updated_parameters()
    assert np.allclose(np.square(layer.w.reshape(2, -1)).sum(axis=1), [1.0, 1.0])
    assert np.allclose(layer.w, 0.5)
    assert np.all(layer.b == 3.0)
