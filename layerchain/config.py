"""Build nets from mappings, JSON/YAML files and built-in presets."""

from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from .errors import ConfigurationError
from .net import Net

_PRESETS: Dict[str, Mapping[str, Any]] = {
    "mlp": {
        "input": [4],
        "error_function": "sse",
        "layers": [
            {"type": "fully_connected", "units": 8, "act": "tanh", "std_dev": 0.5},
            {"type": "output", "units": 2, "act": "linear", "std_dev": 0.5},
        ],
    },
    "lenet-small": {
        "input": [1, 6, 6],
        "error_function": "sse",
        "layers": [
            {"type": "convolutional", "feature_maps": 4, "kernel_rows": 3, "kernel_cols": 3,
             "act": "tanh", "std_dev": 0.5},
            {"type": "local_response_normalization", "k": 2.0, "n": 3, "alpha": 0.01,
             "beta": 0.75},
            {"type": "subsampling", "kernel_rows": 2, "kernel_cols": 2, "act": "tanh",
             "std_dev": 0.5},
            {"type": "fully_connected", "units": 10, "act": "tanh", "std_dev": 0.5},
            {"type": "extreme", "units": 10, "act": "tanh", "std_dev": 0.05},
            {"type": "output", "units": 3, "act": "linear", "std_dev": 0.5},
        ],
    },
    "compressed-softmax": {
        "input": [16],
        "error_function": "ce",
        "regularization": {"l2_penalty": 1e-3},
        "layers": [
            {"type": "compressed", "units": 6, "params": 4, "act": "tanh",
             "compression": "dct", "std_dev": 0.5},
            {"type": "compressed_output", "units": 3, "params": 3, "act": "softmax",
             "compression": "gaussian", "std_dev": 0.5},
        ],
    },
}

_BUILDERS = {
    "fully_connected": "fully_connected_layer",
    "extreme": "extreme_layer",
    "compressed": "compressed_layer",
    "convolutional": "convolutional_layer",
    "subsampling": "subsampling_layer",
    "max_pooling": "max_pooling_layer",
    "local_response_normalization": "local_response_normalization_layer",
    "dropout": "dropout_layer",
    "output": "output_layer",
    "compressed_output": "compressed_output_layer",
}


def presets() -> Dict[str, Mapping[str, Any]]:
    return {name: deepcopy(config) for name, config in _PRESETS.items()}


def load_preset(name: str) -> Dict[str, Any]:
    if name not in _PRESETS:
        available = ", ".join(sorted(_PRESETS))
        raise ConfigurationError(f"Unknown preset {name!r}. Available: {available}")
    return deepcopy(dict(_PRESETS[name]))


def load_config(path: str | Path) -> Mapping[str, Any]:
    """Read a net configuration from a ``.json``, ``.yaml`` or ``.yml`` file."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ConfigurationError(f"Unsupported config file type: {path.suffix}")
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config {path.name} must decode to a mapping")
    return data


def build_net(config: Mapping[str, Any], seed: int | None = None) -> Net:
    """Assemble a :class:`Net` from a configuration mapping."""

    if "input" not in config:
        raise ConfigurationError("Config requires an 'input' shape")
    net = Net(seed=seed)
    net.set_error_function(config.get("error_function", "sse"))
    regularization = config.get("regularization") or {}
    try:
        net.set_regularization(**regularization)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid regularization options: {regularization}") from exc
    net.use_dropout(bool(config.get("dropout", False)))
    net.input_layer(*[int(d) for d in config["input"]])
    for position, spec in enumerate(config.get("layers", [])):
        options = dict(spec)
        kind = options.pop("type", None)
        if kind not in _BUILDERS:
            available = ", ".join(sorted(_BUILDERS))
            raise ConfigurationError(
                f"Layer {position}: unknown type {kind!r}. Available: {available}"
            )
        try:
            getattr(net, _BUILDERS[kind])(**options)
        except TypeError as exc:
            raise ConfigurationError(f"Layer {position} ({kind}): {exc}") from exc
    return net.finalize()


__all__ = ["build_net", "load_config", "load_preset", "presets"]
