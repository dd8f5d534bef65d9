"""vault-resource CLI entrypoint.

Subcommands: check, in, out (the three Concourse resource executables).

Reads the request JSON from stdin and writes the response JSON to stdout.
Logs go to stderr, which Concourse shows in the build output.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import IO, Optional

from vault_resource.concourse.models import (
    parse_check_request,
    parse_in_request,
    parse_out_request,
)
from vault_resource.concourse.steps import run_check, run_in, run_out
from vault_resource.errors.errors import VaultResourceError

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
ENV_LOG_LEVEL = "VAULT_RESOURCE_LOG_LEVEL"

logger = logging.getLogger("vault_resource.cli")


def build_parser() -> argparse.ArgumentParser:
    """
    Return the top-level CLI argument parser.
    """
    p = argparse.ArgumentParser(prog="vault-resource")
    p.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help=f"Logging level (default: ${ENV_LOG_LEVEL} or INFO)",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("check", help="Report secret versions produced since the last check")

    get = sub.add_parser("in", help="Read secrets into <destination>/vault.json")
    get.add_argument("destination", type=Path, help="Directory the secrets file is written to")

    put = sub.add_parser("out", help="Write secrets to Vault")
    put.add_argument("source_dir", type=Path, nargs="?", help="Build sources directory (unused)")
    return p


def configure_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None) -> None:
    """Send all resource logs to stderr; stdout is reserved for the response."""
    level_name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    root = logging.getLogger("vault_resource")
    root.handlers = []
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level_name)


def main(
    argv: list[str] | None = None,
    stdin: Optional[IO[str]] = None,
    stdout: Optional[IO[str]] = None,
) -> int:
    """CLI entrypoint wrapper compatible with setuptools scripts."""
    parser = build_parser()
    args = parser.parse_args(argv)
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if args.log_level is None and env_level and env_level.upper() not in LOG_LEVELS:
        parser.error(
            f"{ENV_LOG_LEVEL} must be one of {', '.join(LOG_LEVELS)} (got {env_level!r})"
        )
    configure_logging(args.log_level)

    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    payload = stdin.read()

    try:
        if args.command == "check":
            check_response = run_check(parse_check_request(payload))
            stdout.write(check_response.model_dump_json() + "\n")
        elif args.command == "in":
            response = run_in(parse_in_request(payload), args.destination)
            stdout.write(response.model_dump_json() + "\n")
        elif args.command == "out":
            response = run_out(parse_out_request(payload))
            stdout.write(response.model_dump_json() + "\n")
        else:  # pragma: no cover - argparse rejects unknown commands
            parser.error(f"unknown command {args.command}")
    except VaultResourceError as exc:
        logger.error(f"{args.command} step failed: {exc}")
        return 1
    except OSError as exc:
        logger.error(f"{args.command} step failed: {exc}")
        return 1

    return 0


def check() -> int:
    """/opt/resource/check"""
    return main(["check", *sys.argv[1:]])


def get() -> int:
    """/opt/resource/in"""
    return main(["in", *sys.argv[1:]])


def put() -> int:
    """/opt/resource/out"""
    return main(["out", *sys.argv[1:]])


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
