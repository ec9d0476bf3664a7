"""
Command-line tool for RAMM deployment configs.

    ramm validate deployment_cfgs/example.toml
    ramm show deployment_cfgs/example.toml
    ramm build deployment_cfgs/example.toml --salt demo

``build`` creates and initializes the pool the config describes and prints its
canonical snapshot (pool id, slots, state root) as JSON.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from ..state.canonical import canonical_json_bytes
from ..state.snapshot import compute_state_root, state_to_dict
from .deploy_config import ConfigError, build_pool, format_config, load_deployment_config

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="ramm", description="RAMM deployment config tool")
    ap.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging verbosity (default: WARNING)",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="check a deployment config")
    p_validate.add_argument("config", help="path to a .toml or .yaml deployment config")

    p_show = sub.add_parser("show", help="print a deployment config in readable form")
    p_show.add_argument("config", help="path to a .toml or .yaml deployment config")

    p_build = sub.add_parser("build", help="build the configured pool and print its snapshot")
    p_build.add_argument("config", help="path to a .toml or .yaml deployment config")
    p_build.add_argument("--salt", default=None, help="pool id salt (random if omitted)")
    return ap


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_deployment_config(args.config)
    except ConfigError as exc:
        print(f"invalid deployment config: {exc}", file=sys.stderr)
        return 1

    if args.command == "validate":
        print("ok")
        return 0
    if args.command == "show":
        print(format_config(cfg))
        return 0

    state, _ = build_pool(cfg, salt=args.salt)
    snapshot = state_to_dict(state)
    snapshot["state_root"] = compute_state_root(state)
    print(canonical_json_bytes(snapshot).decode("utf-8"))
    logger.info("built pool %s", state.pool_id)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
