"""
MultiSpec command line entry point.

Loads a white-light and a UV capture, merges them into a composite and writes
the result:

    multispec-merge white.png uv.png composite.png --shift 12
"""

import argparse
import dataclasses
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from multispec.core.config import GlobalMergeConfig, load_global_config, set_current_global_config
from multispec.core.exceptions import MultiSpecError
from multispec.core.merge import MergeEngine
from multispec.core.xdg_paths import get_multispec_log_dir
from multispec.io.disk import load_image, save_image


def _parse_command_line_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="multispec-merge",
        description="Merge a white-light and a UV capture into one composite image"
    )

    parser.add_argument("white", type=Path, help="White-light capture (blue channel of the composite)")
    parser.add_argument("uv", type=Path, help="UV capture (green channel of the composite)")
    parser.add_argument("output", type=Path, help="Composite output file")

    parser.add_argument(
        "--shift",
        type=int,
        default=None,
        help="Signed row shift between the two sensors (default: from config)"
    )

    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker threads (default: from config)"
    )

    parser.add_argument(
        "--rows-per-task",
        type=int,
        default=None,
        help="Rows handed to each worker at a time (default: from config)"
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: ~/.config/multispec/global_config.yaml)"
    )

    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace the output file if it already exists"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def _setup_logging(debug: bool = False):
    """Setup unified logging: a timestamped log file plus console output."""
    log_level = logging.DEBUG if debug else logging.INFO

    log_file = get_multispec_log_dir() / f"multispec_unified_{time.strftime('%Y%m%d_%H%M%S')}.log"

    root_logger = logging.getLogger()

    # Clear any existing handlers to ensure clean state
    root_logger.handlers.clear()

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    root_logger.setLevel(log_level)

    logging.getLogger("multispec").setLevel(log_level)
    logger = logging.getLogger("multispec.main")
    logger.info(f"MultiSpec logging started - Level: {logging.getLevelName(log_level)}")
    logger.info(f"Log file: {log_file}")
    return logger


def _apply_overrides(config: GlobalMergeConfig, args) -> GlobalMergeConfig:
    """Command line flags take precedence over the config file."""
    merge_overrides = {}
    if args.workers is not None:
        merge_overrides["num_workers"] = args.workers
    if args.rows_per_task is not None:
        merge_overrides["rows_per_task"] = args.rows_per_task
    if merge_overrides:
        config = dataclasses.replace(config, merge=dataclasses.replace(config.merge, **merge_overrides))
    if args.overwrite:
        config = dataclasses.replace(config, io=dataclasses.replace(config.io, overwrite=True))
    return config


def _resolve_output_path(output: Path, config: GlobalMergeConfig) -> Path:
    return output if output.suffix else output.with_suffix(config.io.output_extension)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the multispec-merge command."""
    args = _parse_command_line_arguments(argv)
    logger = _setup_logging(args.debug)

    try:
        config = _apply_overrides(load_global_config(args.config), args)
        set_current_global_config(GlobalMergeConfig, config)
        shift = args.shift if args.shift is not None else config.default_shift

        white = load_image(args.white)
        uv = load_image(args.uv)
        composite = MergeEngine(config.merge).merge(white, uv, shift)
        output = save_image(composite, _resolve_output_path(args.output, config), overwrite=config.io.overwrite)
    except MultiSpecError as e:
        logger.error(f"Merge failed: {e}")
        return 1

    logger.info(f"Composite written to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
