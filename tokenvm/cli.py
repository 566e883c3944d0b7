"""Command-line tool for producing genesis and monitoring files."""

import argparse
import json
import os
import sys
import time
from typing import List, Optional

from .chain import TokenVMError
from .genesis import CustomAllocation, Genesis, default_genesis
from .prometheus import (
    PANEL_LABELS,
    dashboard_panels,
    dashboard_url,
    endpoint_from_uri,
    write_prometheus_config,
)

FILE_MODE = 0o600
DEFAULT_GENESIS = "genesis.json"
DEFAULT_PROMETHEUS_FILE = "/tmp/prometheus.yaml"

ERR_INPUT_EMPTY = "input is empty"
ERR_INVALID_ARGS = "invalid args"
ERR_MISSING_SUBCOMMAND = "must specify a subcommand"
ERR_INDEX_OUT_OF_RANGE = "index out-of-range"
ERR_INSUFFICIENT_BALANCE = "insufficient balance"
ERR_INVALID_CHOICE = "invalid choice"
ERR_NOT_MULTIPLE = "must be a multiple"
ERR_INSUFFICIENT_SUPPLY = "insufficient supply"
ERR_MUST_FILL = "must fill"
ERR_DUPLICATE = "duplicate"
ERR_NO_KEYS = "no available keys"
ERR_NO_CHAINS = "no available chains"
ERR_TX_FAILED = "tx failed"


class CliError(Exception):
    """A command was used incorrectly or could not finish."""


def _read_allocations(path: str) -> List[CustomAllocation]:
    with open(path, encoding="utf-8") as handle:
        document = json.load(handle)
    if document is None:
        return []
    if not isinstance(document, list):
        raise ValueError("allocations must be a list")
    allocations = []
    for entry in document:
        if not isinstance(entry, dict):
            raise ValueError("allocation must be an object")
        lowered = {key.lower(): value for key, value in entry.items()}
        address_text = lowered.get("address", "")
        balance = lowered.get("balance", 0)
        if not isinstance(address_text, str):
            raise ValueError("allocation address must be a string")
        if isinstance(balance, bool) or not isinstance(balance, int) or balance < 0:
            raise ValueError("allocation balance must be a non-negative integer")
        allocations.append(CustomAllocation(address=address_text, balance=balance))
    return allocations


def _write_private(path: str, text: str) -> None:
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
    with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
        handle.write(text)


def generate_genesis(
    allocations_path: str,
    genesis_path: str = DEFAULT_GENESIS,
    min_unit_price: int = -1,
    max_block_units: int = -1,
    window_target_units: int = -1,
    window_target_blocks: int = -1,
) -> Genesis:
    """Write a default genesis with the given allocations; negative values keep defaults."""
    genesis = default_genesis()
    if min_unit_price >= 0:
        genesis.min_unit_price = min_unit_price
    if max_block_units >= 0:
        genesis.max_block_units = max_block_units
    if window_target_units >= 0:
        genesis.window_target_units = window_target_units
    if window_target_blocks >= 0:
        genesis.window_target_blocks = window_target_blocks
    genesis.custom_allocation = _read_allocations(allocations_path)
    _write_private(genesis_path, genesis.to_json())
    return genesis


def _genesis_generate(args) -> None:
    if len(args.paths) != 1:
        raise CliError(ERR_INVALID_ARGS)
    generate_genesis(
        args.paths[0],
        args.genesis_file,
        args.min_unit_price,
        args.max_block_units,
        args.window_target_units,
        args.window_target_blocks,
    )
    print(f"created genesis and saved to {args.genesis_file}")


def _prometheus_generate(args) -> None:
    if not args.uris:
        raise CliError(ERR_NO_CHAINS)
    endpoints = [endpoint_from_uri(uri) for uri in args.uris]
    write_prometheus_config(args.prometheus_file, endpoints)
    panels = dashboard_panels(args.chain_id)
    for label, panel in zip(PANEL_LABELS, panels):
        print(f"{label}: {panel}")
    print(f"pre-built dashboard: {dashboard_url(panels)}")
    print(
        f"prometheus cmd: /tmp/prometheus --config.file={args.prometheus_file} "
        f"--storage.tsdb.path={args.prometheus_data}"
    )


def _missing_subcommand(args) -> None:
    raise CliError(ERR_MISSING_SUBCOMMAND)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="token-cli", description="TokenVM CLI")
    parser.set_defaults(handler=_missing_subcommand)
    commands = parser.add_subparsers(dest="command")

    genesis = commands.add_parser("genesis")
    genesis.set_defaults(handler=_missing_subcommand)
    genesis_commands = genesis.add_subparsers(dest="genesis_command")
    generate = genesis_commands.add_parser(
        "generate", help="Creates a new genesis in the default location"
    )
    generate.add_argument("paths", nargs="*", metavar="allocations-file")
    generate.add_argument("--genesis-file", default=DEFAULT_GENESIS)
    generate.add_argument("--min-unit-price", type=int, default=-1)
    generate.add_argument("--max-block-units", type=int, default=-1)
    generate.add_argument("--window-target-units", type=int, default=-1)
    generate.add_argument("--window-target-blocks", type=int, default=-1)
    generate.set_defaults(handler=_genesis_generate)

    prometheus = commands.add_parser("prometheus")
    prometheus.set_defaults(handler=_missing_subcommand)
    prometheus_commands = prometheus.add_subparsers(dest="prometheus_command")
    prom_generate = prometheus_commands.add_parser("generate")
    prom_generate.add_argument("chain_id")
    prom_generate.add_argument("uris", nargs="*")
    prom_generate.add_argument("--prometheus-file", default=DEFAULT_PROMETHEUS_FILE)
    prom_generate.add_argument(
        "--prometheus-data", default=f"/tmp/prometheus-{int(time.time())}"
    )
    prom_generate.set_defaults(handler=_prometheus_generate)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the tool; return the process exit status."""
    args = _build_parser().parse_args(argv)
    try:
        args.handler(args)
    except (CliError, TokenVMError, OSError, ValueError) as error:
        print(f"token-cli exited with error: {error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())