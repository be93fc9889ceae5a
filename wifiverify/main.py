"""Command line entry point: read fixes, estimate, report."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from wifiverify.calculator import VerifyingCalculator
from wifiverify.config import (
    VerifierConfig,
    apply_overrides,
    load_config_file,
    parse_duration,
)
from wifiverify.fix import Fix
from wifiverify.report import print_report
from wifiverify.store import JsonLocationStore, LocationStore, MemoryLocationStore, StoreError

log = logging.getLogger("wifiverify")

EXIT_OK = 0
EXIT_NO_RESULT = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wifiverify",
        description="Estimate one trusted location from wifi access point fixes",
    )
    parser.add_argument("input", nargs="?", default="-", help="JSON file of fixes, '-' for stdin")
    parser.add_argument("--config", type=Path, default=None, help="TOML config file")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory for the verification store")
    parser.add_argument("--trust-window", type=str, default=None, help="e.g. 24h, 90m")
    parser.add_argument("--radius", type=float, default=None, help="Compatibility radius in meters")
    parser.add_argument("--no-store", action="store_true", help="Keep verification in memory only")
    parser.add_argument("--json", action="store_true", help="Print the result fix as JSON")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    return parser


def build_config(args: argparse.Namespace) -> VerifierConfig:
    config = VerifierConfig()

    # Load from config file
    config_path = args.config or (config.data_dir / "config.toml")
    apply_overrides(config, load_config_file(config_path))

    # Apply CLI overrides
    if args.data_dir is not None:
        config.data_dir = args.data_dir
    if args.trust_window is not None:
        config.trust_window = parse_duration(args.trust_window)
    if args.radius is not None:
        apply_overrides(config, {"max_radius": args.radius})
    return config


def read_fixes(source: str) -> list[Fix]:
    """Parse a JSON list of fixes, or an object with a "fixes" list."""
    raw = sys.stdin.read() if source == "-" else Path(source).read_text()
    data = json.loads(raw)
    if isinstance(data, dict):
        data = data.get("fixes", [])
    if not isinstance(data, list):
        raise ValueError("expected a list of fixes")
    try:
        return [Fix.from_dict(d) for d in data]
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed fix: {e}") from e


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = build_config(args)
        fixes = read_fixes(args.input)
    except (OSError, ValueError) as e:
        print(f"wifiverify: {e}", file=sys.stderr)
        return EXIT_USAGE

    store: LocationStore
    if args.no_store:
        store = MemoryLocationStore()
        annotated = fixes
    else:
        store = JsonLocationStore(config.store_path)
        try:
            annotated = store.annotate(fixes)
        except StoreError as e:
            log.warning("ignoring verification store: %s", e)
            annotated = fixes

    calculator = VerifyingCalculator(store, config)
    estimate = calculator.estimate(annotated)

    if args.json:
        payload = estimate.fix.to_dict() if estimate.fix is not None else None
        print(json.dumps(payload))
    else:
        print_report(estimate)
    return EXIT_OK if estimate.fix is not None else EXIT_NO_RESULT


if __name__ == "__main__":
    sys.exit(main())
