import json

import yaml

from layerchain.cli import main


def test_cli_preset_passes(capsys):
    assert main(["--preset", "mlp", "--samples", "3"]) == 0
    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["preset"] == "mlp"
    assert payload["ok"] is True
    assert payload["dimension"] == 8 * 5 + 2 * 9
    assert payload["max_abs_error"] <= 1e-4


def test_cli_reports_failure_with_impossible_tolerance(capsys):
    assert main(["--preset", "mlp", "--tolerance", "-1"]) == 1
    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["ok"] is False


def test_cli_lists_presets(capsys):
    assert main(["--list-presets"]) == 0
    names = capsys.readouterr().out.split()
    assert {"mlp", "lenet-small", "compressed-softmax"} <= set(names)


def test_cli_config_file(tmp_path, capsys):
    config = {
        "input": [1, 4, 4],
        "layers": [
            {"type": "subsampling", "kernel_rows": 2, "kernel_cols": 2, "std_dev": 0.5},
            {"type": "output", "units": 2, "std_dev": 0.5},
        ],
    }
    path = tmp_path / "tiny.yaml"
    path.write_text(yaml.safe_dump(config))
    assert main(["--config", str(path), "--seed", "3"]) == 0
    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["preset"] == "tiny"
    assert payload["dimension"] == 4 * 2 + 2 * 5
