import json

import pytest
import yaml

from layerchain import config as net_config
from layerchain.errors import ConfigurationError
from layerchain.net import NetState


def test_presets_build():
    for name in net_config.presets():
        net = net_config.build_net(net_config.load_preset(name), seed=0)
        assert net.state is NetState.FINALIZED
        assert net.dimension() > 0


def test_lenet_small_shapes():
    net = net_config.build_net(net_config.load_preset("lenet-small"), seed=0)
    assert [info.dimensions for info in net.infos] == [
        (1, 6, 6),
        (4, 4, 4),
        (4, 4, 4),
        (4, 2, 2),
        (10,),
        (10,),
        (3,),
    ]
    assert net.dimension() == 40 + 32 + 170 + 33


def test_load_preset_returns_a_copy():
    config = net_config.load_preset("mlp")
    config["layers"].clear()
    assert net_config.load_preset("mlp")["layers"]


def test_json_and_yaml_configs(tmp_path):
    config = {
        "input": [2, 4, 4],
        "error_function": "mse",
        "regularization": {"l2_penalty": 0.01, "max_squared_weight_norm": 4.0},
        "layers": [
            {"type": "convolutional", "feature_maps": 2, "kernel_rows": 3, "kernel_cols": 3},
            {"type": "max_pooling", "kernel_rows": 2, "kernel_cols": 2},
            {"type": "dropout", "dropout_probability": 0.25},
            {"type": "output", "units": 3},
        ],
    }
    json_path = tmp_path / "net.json"
    json_path.write_text(json.dumps(config))
    yaml_path = tmp_path / "net.yaml"
    yaml_path.write_text(yaml.safe_dump(config))

    nets = [net_config.build_net(net_config.load_config(p), seed=3) for p in (json_path, yaml_path)]
    assert nets[0].dimension() == nets[1].dimension() == 2 * 19 + 3 * 3
    assert nets[0].error_function.name == "mse"
    assert nets[0].regularization.max_squared_weight_norm == 4.0
    assert (nets[0].current_parameters() == nets[1].current_parameters()).all()


def test_unsupported_config_file(tmp_path):
    path = tmp_path / "net.toml"
    path.write_text("")
    with pytest.raises(ConfigurationError):
        net_config.load_config(path)
    listing = tmp_path / "list.yaml"
    listing.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigurationError):
        net_config.load_config(listing)


def test_invalid_layer_specs():
    with pytest.raises(ConfigurationError):
        net_config.build_net({"input": [3], "layers": [{"type": "recurrent", "units": 2}]})
    with pytest.raises(ConfigurationError):
        net_config.build_net({"input": [3], "layers": [{"type": "output", "neurons": 2}]})
    with pytest.raises(ConfigurationError):
        net_config.build_net({"layers": []})
    with pytest.raises(ConfigurationError):
        net_config.load_preset("resnet")
