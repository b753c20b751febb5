"""Glacier View Module Entry Point

This module serves as the command-line interface and main entry point for the
glacier view module.

Examples:
    python -m modules.glacier_view.main refresh --environment production
    python -m modules.glacier_view.main refresh --dry-run
    python -m modules.glacier_view.main status
"""

import argparse
import json
import sys
from typing import Optional

from src.config.config_loader import ConfigLoader
from src.exceptions import ERGIBaseException
from src.utils import get_logger, setup_logging
from .processor.glacier_view_builder import GlacierViewBuilder
from .processor.view_config import DEFAULT_VIEW_CONFIG_PATH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ERGI Glacier View - Rebuild the glacier attribute view"
    )
    parser.add_argument(
        "command",
        choices=["refresh", "status"],
        help="refresh rebuilds and publishes the view; status reports its state"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Build the view without publishing or exporting it"
    )
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment to run against (default: development)"
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory holding environment_config.json and field_mapping.json (default: config/)"
    )
    parser.add_argument(
        "--view-config",
        default=str(DEFAULT_VIEW_CONFIG_PATH),
        help="Path to the view configuration file"
    )
    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the glacier view module.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parsed_args = build_parser().parse_args(args)
    config_loader = ConfigLoader(parsed_args.config_dir)

    try:
        logging_config = config_loader.load_environment_config(parsed_args.environment)["logging"]
    except ERGIBaseException as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(
        environment=parsed_args.environment,
        log_level=logging_config.get("level", "INFO"),
        log_dir=logging_config.get("log_dir")
    )
    logger = get_logger(__name__)

    builder = GlacierViewBuilder(
        config_loader,
        environment=parsed_args.environment,
        view_config_path=parsed_args.view_config
    )

    if parsed_args.command == "status":
        status = builder.get_status()
        print(json.dumps(status.model_dump(mode="json"), indent=2))
        return 0 if status.health_check else 1

    result = builder.process(dry_run=parsed_args.dry_run)
    print(json.dumps(result.model_dump(mode="json"), indent=2, default=str))

    if not result.success:
        logger.error(f"Refresh failed: {'; '.join(result.errors)}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
