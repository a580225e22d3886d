import numpy as np
import pytest

from layerchain import finite_differences
from layerchain.adapters import LayerAdapter
from layerchain.core.types import OutputInfo
from layerchain.layers import FullyConnected
from layerchain.net import Net
from layerchain.plasticity import IntrinsicPlasticity


class _Cubic:
    """E(p) = sum(c * p^3) with a known gradient."""

    def __init__(self, parameters, coefficients):
        self.parameters = np.asarray(parameters, dtype=float)
        self.coefficients = np.asarray(coefficients, dtype=float)

    def dimension(self):
        return self.parameters.size

    def current_parameters(self):
        return self.parameters.copy()

    def set_parameters(self, parameters):
        self.parameters = np.asarray(parameters, dtype=float).copy()

    def error(self, indices=None):
        return float(np.sum(self.coefficients * self.parameters**3))


def test_centered_difference_on_cubic():
    opt = _Cubic([0.5, -2.0, 300.0], [1.0, 2.0, 1e-4])
    estimate = finite_differences.parameter_gradient(opt)
    expected = 3.0 * opt.coefficients * opt.parameters**2
    assert np.allclose(estimate, expected, rtol=1e-6)


def test_parameters_are_restored():
    info = OutputInfo((3,))
    adapter = LayerAdapter(FullyConnected(info, 2, std_dev=0.5), info)
    before = adapter.current_parameters()
    finite_differences.parameter_derivative(adapter, 4)
    assert np.array_equal(adapter.current_parameters(), before)


def test_out_of_range_index():
    opt = _Cubic([1.0, 2.0], [1.0, 1.0])
    with pytest.raises(IndexError):
        finite_differences.parameter_derivative(opt, 2)
    with pytest.raises(IndexError):
        finite_differences.parameter_derivative(opt, -1)


def test_input_gradient_restores_training_set():
    info = OutputInfo((3,))
    adapter = LayerAdapter(FullyConnected(info, 2, std_dev=0.5), info)
    X = np.array([[0.1, -0.4, 0.7], [0.3, 0.2, -0.9]])
    Y = np.array([[0.5, -0.5], [0.0, 1.0]])
    adapter.training_set(X, Y)
    estimate = finite_differences.input_gradient(X, Y, adapter)
    assert estimate.shape == X.shape
    assert np.array_equal(adapter.dataset.X, X)
    assert np.array_equal(adapter.dataset.Y, Y)


def test_input_gradient_rebinds_callers_dataset():
    net = Net(seed=0).input_layer(3).output_layer(2, std_dev=0.5)
    rng = np.random.default_rng(4)
    X = rng.uniform(-1.0, 1.0, size=(6, 3))
    Y = rng.uniform(-1.0, 1.0, size=(6, 2))
    net.training_set(X, Y)
    bound = net.dataset
    error = net.error()

    estimate = finite_differences.input_gradient(X[:1], Y[:1], net)

    assert estimate.shape == (1, 3)
    assert net.examples() == 6
    assert net.dataset is bound
    assert net.error() == pytest.approx(error)


def test_input_gradient_binds_inputs_when_nothing_was_bound():
    ip = IntrinsicPlasticity(2, 0.2, seed=0)
    X = np.array([[0.3, -0.1]])
    finite_differences.input_gradient(X, np.zeros((1, 2)), ip)
    assert ip.examples() == 1
