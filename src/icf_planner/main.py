#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Script: main.py
Location: src/icf_planner/main.py

Description:
    Command line entry point for the ICF planner. Reads a JSON plan request,
    runs the planning pipeline and writes the JSON result.

Usage:
    python -m icf_planner.main plan.json --output result.json
    icf-planner plan.json --debug
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .errors import IcfPlannerError
from .models.plan_models import parse_plan_request
from .pipeline import plan_from_request
from .utils.logging_config import IcfPlannerLogger

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="ICF wall planner: chains, panel layout and bill of materials"
    )

    parser.add_argument(
        "request",
        help="Path to a JSON plan request ('-' reads stdin)"
    )
    parser.add_argument(
        "--output", "-o",
        help="Write the JSON result here instead of stdout"
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation (default: 2)"
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output"
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable per-segment trace output (implies --debug)"
    )
    parser.add_argument(
        "--log-dir",
        help="Directory for a timestamped log file"
    )

    return parser.parse_args(argv)


def _read_request(path: str):
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the planner; returns the process exit code."""
    args = parse_arguments(argv)
    log_file = IcfPlannerLogger.configure(
        debug_mode=args.debug, log_dir=args.log_dir, trace=args.trace
    )
    if log_file:
        logger.info("Logging to %s", log_file)

    try:
        payload = _read_request(args.request)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Could not read plan request %s: %s", args.request, e)
        return 2

    try:
        request = parse_plan_request(payload)
        result = plan_from_request(request)
    except IcfPlannerError as e:
        logger.error("%s", e.detail)
        return 1

    output = json.dumps(result.to_dict(), indent=args.indent)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(output)
            handle.write("\n")
        logger.info("Wrote plan to %s", args.output)
    else:
        sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
