"""Command line entry point of the corona numbers site generator.

usage: python src/main.py /path/to/corona.db /path/to/output/directory
"""

import argparse
import logging
import sys
from pathlib import Path

from utils import setup_logging
from database import DatabaseConfig, StorageError
from htmlgen import SiteConfig, SiteGenerator
from htmlgen.errors import GenerationError, TemplateError

VERSION = "0.1.0"
CONFIG_FILE = "generator.conf"

EXIT_OK = 0
EXIT_STORAGE = 1
EXIT_USAGE = 2
EXIT_TEMPLATE = 3
EXIT_OUTPUT = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate static HTML pages with Coronavirus graphs from a SQLite database"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("db_path", help="path to the SQLite database (corona.db)")
    parser.add_argument("output_directory", help="directory to create for the generated files")
    parser.add_argument(
        "--config",
        type=str,
        default=CONFIG_FILE,
        help=f"Path to configuration file (default: {CONFIG_FILE}, environment is used if missing)",
    )
    parser.add_argument(
        "--refresh-totals",
        action="store_true",
        help="Recalculate accumulated numbers even if the columns already exist",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write log to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def load_configs(args):
    if Path(args.config).exists():
        db_config = DatabaseConfig.from_config_file(args.config, sqlite_path=args.db_path)
        site_config = SiteConfig.from_config_file(args.output_directory, args.config)
    else:
        db_config = DatabaseConfig.from_env(sqlite_path=args.db_path)
        site_config = SiteConfig.from_env(args.output_directory)
    if args.refresh_totals:
        db_config.refresh_totals = True
    return db_config, site_config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    try:
        db_config, site_config = load_configs(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return EXIT_USAGE
    generator = SiteGenerator(db_config, site_config)
    try:
        generator.generate()
    except StorageError as e:
        code = EXIT_STORAGE
        error = e
    except TemplateError as e:
        code = EXIT_TEMPLATE
        error = e
    except GenerationError as e:
        code = EXIT_OUTPUT
        error = e
    else:
        print("Generation of HTML files was successful.")
        return EXIT_OK

    logging.getLogger(__name__).debug("Generation failed", exc_info=error)
    print(f"Generation of HTML files failed at {generator.current_step}: {error}")
    return code


if __name__ == "__main__":
    sys.exit(main())
