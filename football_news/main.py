"""Application entrypoint for the football news collector.

This script orchestrates the high-level flow:
1) load environment and YAML configuration
2) run one collection pass (all sources or a single one)
3) print the JSON result, or serve the HTTP trigger with ``--serve``
"""

from __future__ import annotations

import argparse
import json
import sys

from dotenv import load_dotenv

from .models import SOURCE_KINDS
from .pipeline import run_collection
from .utils.config_loader import ConfigError, load_news_config
from .utils.logging import configure_logging, get_logger
from .utils.pipeline_config import PipelineConfig


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Football news collector: fetch, score, deduplicate and store articles under API quotas"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to sources configuration file (YAML); defaults to NEWS_CONFIG_PATH or config/sources.yaml",
    )
    parser.add_argument(
        "--type",
        default="auto",
        choices=["auto", *SOURCE_KINDS],
        help="Run every configured source (auto) or a single one",
    )
    parser.add_argument(
        "--force-search",
        action="store_true",
        help="Do not skip keywords already searched today (daily budget still applies)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (defaults to LOG_LEVEL or INFO)",
    )
    parser.add_argument("--serve", action="store_true", help="Serve the HTTP trigger instead of running once")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8000, help="Port for --serve")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)
    # One-shot runs print their JSON result on stdout
    configure_logging(level=args.log_level, stream=None if args.serve else sys.stderr)
    logger = get_logger("fn.main")

    settings = PipelineConfig()
    if args.config:
        settings.config_path = args.config

    if args.serve:
        import uvicorn

        from .api import create_app

        app = create_app(lambda run_type, force: run_collection(run_type, force, settings=settings))
        logger.info("Serving collection trigger on %s:%d", args.host, args.port)
        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    logger.info("Loading sources configuration from %s", settings.config_path)
    try:
        config = load_news_config(settings.config_path)
    except ConfigError as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1

    try:
        result = run_collection(args.type, args.force_search, settings=settings, config=config)
    except Exception as exc:  # noqa: BLE001 - top-level entrypoint guard
        logger.exception("Collection failed: %s", exc)
        result = {"success": False, "message": "Collection failed", "error": f"{exc.__class__.__name__}: {exc}"}

    json.dump(result, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0 if result.get("success") else 1


if __name__ == "__main__":
    raise SystemExit(main())
