# src/taskmaster/cli/main.py

"""
CLI entrypoint.

Initializes logging, runs one task expansion and prints the structured
result as JSON on stdout (logs go to stderr and the log file).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from ..config import get_settings
from ..logging_setup import setup_logging
from ..tasks.expand import expand_task

logger = logging.getLogger(__name__)


def _build_parser(default_file: str) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="taskmaster-expand",
        description="Break a task into subtasks with an LLM and save them to the task file.",
    )
    p.add_argument("--id", required=True, help="ID of the task to expand.")
    p.add_argument("-f", "--file", default=default_file, help=f"Task file (default: {default_file}).")
    p.add_argument("-n", "--num", default=None, help="Number of subtasks to generate.")
    p.add_argument("-r", "--research", action="store_true", help="Use the research provider.")
    p.add_argument("-p", "--prompt", default="", help="Additional context for the breakdown.")
    p.add_argument("--force", action="store_true", help="Replace existing subtasks.")
    p.add_argument(
        "--primary-overloaded",
        action="store_true",
        help="Treat the primary provider as overloaded and prefer fallbacks.",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    console_level = getattr(logging, settings.log_level, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    args = _build_parser(str(settings.tasks_path)).parse_args(argv)

    logger.debug("Starting %s...", settings.app_name)

    result = expand_task(
        {
            "file": args.file,
            "id": args.id,
            "num": args.num,
            "research": args.research,
            "prompt": args.prompt,
            "force": args.force,
            "primaryOverloaded": args.primary_overloaded,
        }
    )

    json.dump(result.to_dict(), sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
