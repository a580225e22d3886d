import numpy as np
import pytest

from layerchain import finite_differences
from layerchain.adapters import LayerAdapter
from layerchain.core.regularization import Regularization
from layerchain.core.types import OutputInfo
from layerchain.layers import (
    Compressed,
    Convolutional,
    Dropout,
    Extreme,
    FullyConnected,
    LocalResponseNormalization,
    MaxPooling,
    SigmaPi,
    Subsampling,
)


def _bind_random(adapter, samples, seed=7):
    rng = np.random.default_rng(seed)
    X = rng.uniform(-1.0, 1.0, size=(samples, adapter.info.outputs()))
    Y = rng.uniform(-1.0, 1.0, size=(samples, adapter.output_info.outputs()))
    adapter.training_set(X, Y)
    return X, Y


def _check_parameters(adapter, tolerance):
    analytic = adapter.gradient()
    numeric = finite_differences.parameter_gradient(adapter)
    assert analytic.shape == (adapter.dimension(),)
    assert np.max(np.abs(analytic - numeric)) < tolerance


def _check_inputs(adapter, X, Y, tolerance):
    analytic = adapter.input_gradient()
    numeric = finite_differences.input_gradient(X, Y, adapter)
    assert analytic.shape == X.shape
    assert np.max(np.abs(analytic - numeric)) < tolerance


@pytest.mark.parametrize("act", ["tanh", "logistic", "linear", "tanh_scaled"])
def test_fully_connected_gradients(act):
    info = OutputInfo((3,))
    adapter = LayerAdapter(FullyConnected(info, 2, bias=True, act=act, std_dev=0.5), info)
    X, Y = _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)
    _check_inputs(adapter, X, Y, 1e-4)


def test_regularized_fully_connected_gradients():
    info = OutputInfo((4,))
    regularization = Regularization(l1_penalty=0.1, l2_penalty=0.2)
    layer = FullyConnected(info, 3, act="tanh", std_dev=0.5, regularization=regularization)
    adapter = LayerAdapter(layer, info)
    _bind_random(adapter, samples=3)
    _check_parameters(adapter, 1e-4)


@pytest.mark.parametrize("compression", ["gaussian", "sparse", "dct", "average"])
def test_compressed_gradients(compression):
    info = OutputInfo((10,))
    layer = Compressed(info, 3, 4, bias=True, act="tanh", compression=compression, std_dev=0.3)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)
    _check_inputs(adapter, X, Y, 1e-4)


def test_extreme_input_gradient():
    info = OutputInfo((4,))
    adapter = LayerAdapter(Extreme(info, 5, act="tanh", std_dev=0.5), info)
    X, Y = _bind_random(adapter, samples=2)
    assert adapter.dimension() == 0
    assert adapter.gradient().size == 0
    _check_inputs(adapter, X, Y, 1e-4)


def test_convolutional_gradients():
    info = OutputInfo((3, 15, 15))
    layer = Convolutional(info, 2, 3, 3, bias=True, act="linear", std_dev=0.05)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=1)
    _check_parameters(adapter, 1e-2)
    _check_inputs(adapter, X, Y, 1e-4)


def test_convolutional_rectangular_kernel_gradients():
    info = OutputInfo((2, 5, 6))
    layer = Convolutional(info, 3, 2, 3, bias=True, act="tanh", std_dev=0.3)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)
    _check_inputs(adapter, X, Y, 1e-4)


def test_subsampling_gradients():
    info = OutputInfo((3, 6, 6))
    layer = Subsampling(info, 3, 3, bias=True, act="tanh", std_dev=0.1)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)
    _check_inputs(adapter, X, Y, 1e-4)


def test_max_pooling_input_gradient():
    info = OutputInfo((3, 6, 6))
    adapter = LayerAdapter(MaxPooling(info, 3, 3), info)
    X, Y = _bind_random(adapter, samples=1)
    assert adapter.dimension() == 0
    _check_inputs(adapter, X, Y, 1e-4)


def test_local_response_normalization_input_gradient():
    info = OutputInfo((3, 3, 3))
    layer = LocalResponseNormalization(info, k=1.0, n=3, alpha=1e-5, beta=0.75)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=1)
    _check_inputs(adapter, X, Y, 1e-4)


def test_local_response_normalization_strong_coupling():
    info = OutputInfo((5, 2, 2))
    layer = LocalResponseNormalization(info, k=2.0, n=3, alpha=0.5, beta=0.75)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=2)
    _check_inputs(adapter, X, Y, 1e-4)


def test_dropout_input_gradient_at_inference():
    info = OutputInfo((6,))
    adapter = LayerAdapter(Dropout(info, 0.3), info)
    X, Y = _bind_random(adapter, samples=2)
    _check_inputs(adapter, X, Y, 1e-6)


def test_sigma_pi_second_order_gradients():
    info = OutputInfo((1, 5, 5))
    layer = SigmaPi(info, bias=False, act="tanh", std_dev=0.05)
    layer.second_order_nodes(2)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=1)
    _check_parameters(adapter, 1e-4)
    _check_inputs(adapter, X, Y, 1e-4)


def test_sigma_pi_constrained_gradients():
    def distance(p1, p2):
        r1, c1 = divmod(p1, 5)
        r2, c2 = divmod(p2, 5)
        return round(float(np.hypot(r1 - r2, c1 - c2)), 6)

    info = OutputInfo((1, 5, 5))
    layer = SigmaPi(info, bias=True, act="tanh", std_dev=0.05)
    layer.second_order_nodes(2, constraint=distance)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=1)
    _check_parameters(adapter, 1e-2)
    _check_inputs(adapter, X, Y, 1e-2)


def test_sigma_pi_third_order_gradients():
    info = OutputInfo((6,))
    layer = SigmaPi(info, bias=True, act="tanh", std_dev=0.2)
    layer.second_order_nodes(1).third_order_nodes(2)
    adapter = LayerAdapter(layer, info)
    X, Y = _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)
    _check_inputs(adapter, X, Y, 1e-4)


def test_regularized_convolutional_gradients():
    info = OutputInfo((2, 5, 5))
    regularization = Regularization(l1_penalty=0.05, l2_penalty=0.1)
    layer = Convolutional(info, 2, 3, 3, act="tanh", std_dev=0.3, regularization=regularization)
    adapter = LayerAdapter(layer, info)
    _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)


def test_regularized_subsampling_gradients():
    info = OutputInfo((2, 4, 4))
    regularization = Regularization(l1_penalty=0.05, l2_penalty=0.1)
    layer = Subsampling(info, 2, 2, act="tanh", std_dev=0.3, regularization=regularization)
    adapter = LayerAdapter(layer, info)
    _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)


def test_regularized_compressed_gradients():
    info = OutputInfo((8,))
    regularization = Regularization(l1_penalty=0.05, l2_penalty=0.1)
    layer = Compressed(
        info, 3, 4, act="tanh", compression="dct", std_dev=0.3, regularization=regularization
    )
    adapter = LayerAdapter(layer, info)
    _bind_random(adapter, samples=2)
    _check_parameters(adapter, 1e-4)
