"""
`pairswap-scenario`: run a pool scenario file and print the outcome as JSON.

Exit codes: 0 every step behaved as expected, 1 some step did not,
2 the scenario or config could not be loaded.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog
import yaml

from ..config import LOG_LEVELS, ConfigError, load_config
from ..log import configure_logging
from .scenario import ScenarioError, run_scenario

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pairswap-scenario",
        description="Run a two-asset pool scenario against in-memory ledgers.",
    )
    p.add_argument("scenario", type=Path, help="Scenario file (YAML or JSON)")
    p.add_argument("--config", type=Path, default=None, help="Pool config YAML")
    p.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS, default=None, help="Override the configured log level")
    p.add_argument("--indent", type=int, default=2, help="JSON indent (0 for compact)")
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"pairswap-scenario: {exc}", file=sys.stderr)
        return 2
    level = args.log_level or config.log_level
    configure_logging(level, config.log_format)

    try:
        doc = yaml.safe_load(args.scenario.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.error("scenario_unreadable", path=str(args.scenario), error=str(exc))
        return 2

    try:
        result = run_scenario(doc, config)
    except ScenarioError as exc:
        logger.error("scenario_invalid", path=str(args.scenario), error=str(exc))
        return 2

    indent = args.indent if args.indent > 0 else None
    print(json.dumps(result.to_dict(), indent=indent, sort_keys=True))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
