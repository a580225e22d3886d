import numpy as np

from layerchain import finite_differences
from layerchain.config import build_net, load_preset
from layerchain.net import Net


def _bind(net, samples, seed=2):
    rng = np.random.default_rng(seed)
    X = rng.uniform(-1.0, 1.0, size=(samples, net.infos[0].outputs()))
    Y = rng.uniform(-1.0, 1.0, size=(samples, net.infos[-1].outputs()))
    net.training_set(X, Y)
    return X, Y


def _assert_close(analytic, numeric):
    tolerance = max(1e-2, 1e-5 * float(np.linalg.norm(numeric)))
    assert np.max(np.abs(analytic - numeric)) < tolerance


def test_lenet_small_gradients():
    net = build_net(load_preset("lenet-small"), seed=0)
    X, Y = _bind(net, samples=2)
    _assert_close(net.gradient(), finite_differences.parameter_gradient(net))
    _assert_close(net.input_gradient(), finite_differences.input_gradient(X, Y, net))


def test_mixed_chain_gradients():
    net = (
        Net(seed=4)
        .set_regularization(l2_penalty=1e-3)
        .input_layer(2, 6, 6)
        .convolutional_layer(3, 3, 3, act="tanh", std_dev=0.5)
        .max_pooling_layer(2, 2)
        .dropout_layer(0.2)
        .compressed_layer(5, 4, act="logistic", compression="dct", std_dev=0.5)
        .output_layer(2, act="tanh_scaled", std_dev=0.5)
    )
    X, Y = _bind(net, samples=3)
    _assert_close(net.gradient(), finite_differences.parameter_gradient(net))
    _assert_close(net.input_gradient(), finite_differences.input_gradient(X, Y, net))


def test_mini_batch_gradients_select_samples():
    net = build_net(load_preset("mlp"), seed=1)
    _bind(net, samples=6)
    indices = [4, 1]
    _assert_close(net.gradient(indices), finite_differences.parameter_gradient(net, indices))
    full = net.gradient()
    parts = net.gradient([0, 1, 2]) + net.gradient([3, 4, 5])
    assert np.allclose(full, parts)


def test_softmax_cross_entropy_gradients():
    net = build_net(load_preset("compressed-softmax"), seed=0)
    rng = np.random.default_rng(5)
    X = rng.uniform(-1.0, 1.0, size=(4, 16))
    Y = np.eye(3)[rng.integers(0, 3, size=4)]
    net.training_set(X, Y)
    assert np.allclose(net.predict(X).sum(axis=1), 1.0)
    _assert_close(net.gradient(), finite_differences.parameter_gradient(net))
