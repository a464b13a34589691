#!/usr/bin/env python3
"""
Command-line interface for the soak harness.
"""
import argparse
from pathlib import Path
from typing import Optional

from leakwatch.consts.FailurePolicy import FailurePolicy


def build_env_parser(description: Optional[str] = None) -> argparse.ArgumentParser:
    """
    Create an ArgumentParser with the common --env option.

    Args:
        description: Optional parser description shown in CLI help.

    Returns:
        argparse.ArgumentParser: parser preconfigured with the --env argument.
    """
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help=(
            "Environment name for configuration override (e.g., 'dev', 'prod'). "
            "Loads config_<env>.yaml in addition to the base config.yaml."
        ),
    )
    return parser


def build_soak_parser() -> argparse.ArgumentParser:
    ap = build_env_parser("Repeatedly run an image pipeline on one file and log process memory after every run")
    ap.add_argument("--config-dir", type=Path, default=None,
                    help="Directory holding config.yaml (default: bundled config_yaml)")
    ap.add_argument("--path", type=str, default=None,
                    help="Input image processed on every iteration (overrides config)")
    ap.add_argument("--delay", type=float, default=None,
                    help="Seconds to wait between iterations (overrides config)")
    ap.add_argument("--iterations", type=int, default=None,
                    help="Stop after this many iterations (default: run until interrupted)")
    ap.add_argument("--timeout", type=float, default=None,
                    help="Seconds to wait for one processor call before failing it")
    ap.add_argument("--policy", choices=[p.value for p in FailurePolicy], default=None,
                    help="What to do when a call fails: abort | retry | skip")
    ap.add_argument("--out-dir", type=str, default=None,
                    help="Write snapshots.jsonl and summary.json to this directory")
    ap.add_argument("--log-file", type=Path, default=None,
                    help="Also write detailed logs to this file")
    ap.add_argument("--fail-on-leak", action="store_true",
                    help="Exit with status 3 when memory growth exceeds the leak threshold")
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="Enable debug logging")
    return ap


def validate_soak_args(args: argparse.Namespace) -> None:
    """Raise ValueError on flag values that can never be valid"""
    if args.delay is not None and args.delay < 0:
        raise ValueError(f"--delay must be >= 0, got {args.delay}")
    if args.iterations is not None and args.iterations < 0:
        raise ValueError(f"--iterations must be >= 0, got {args.iterations}")
    if args.timeout is not None and args.timeout <= 0:
        raise ValueError(f"--timeout must be positive, got {args.timeout}")


def parse_soak_args(argv=None) -> argparse.Namespace:
    return build_soak_parser().parse_args(argv)
