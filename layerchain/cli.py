"""Compare analytic and finite-difference gradients of a configured net."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable

import numpy as np

from . import config as net_config
from .finite_differences import parameter_gradient

logger = logging.getLogger(__name__)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=sorted(net_config.presets()),
        default="mlp",
        help="Preset network to check",
    )
    parser.add_argument("--config", type=Path, help="JSON/YAML network config")
    parser.add_argument("--samples", type=int, default=2, help="Random training samples")
    parser.add_argument("--seed", type=int, default=0, help="Seed for weights and data")
    parser.add_argument("--epsilon", type=float, default=1e-5, help="Finite-difference step")
    parser.add_argument(
        "--tolerance", type=float, default=1e-4, help="Largest accepted absolute deviation"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(list(argv) if argv is not None else None)


def _random_targets(rng: np.random.Generator, samples: int, outputs: int, error: str) -> np.ndarray:
    if error == "ce":
        labels = rng.integers(0, outputs, size=samples)
        return np.eye(outputs)[labels]
    return rng.uniform(-1.0, 1.0, size=(samples, outputs))


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.list_presets:
        for name in sorted(net_config.presets()):
            print(name)
        return 0

    if args.config is not None:
        config = net_config.load_config(args.config)
        name = args.config.stem
    else:
        config = net_config.load_preset(args.preset)
        name = args.preset

    net = net_config.build_net(config, seed=args.seed)
    rng = np.random.default_rng(args.seed + 1)
    inputs = net.infos[0].outputs()
    outputs = net.infos[-1].outputs()
    X = rng.uniform(-1.0, 1.0, size=(args.samples, inputs))
    Y = _random_targets(rng, args.samples, outputs, net.error_function.name)
    net.training_set(X, Y)

    analytic = net.gradient()
    estimate = parameter_gradient(net, epsilon=args.epsilon)
    deviation = float(np.max(np.abs(analytic - estimate))) if analytic.size else 0.0
    ok = deviation <= args.tolerance
    logger.debug("Checked %d parameters, max deviation %.3g", net.dimension(), deviation)
    payload = {
        "preset": name,
        "dimension": net.dimension(),
        "error": net.error(),
        "max_abs_error": deviation,
        "ok": ok,
    }
    print(json.dumps(payload, sort_keys=True))
    return 0 if ok else 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
