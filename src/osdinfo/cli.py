"""Command line entry point for osdinfo."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .collect import EnvironSource, JsonFileSource, VariableSource
from .errors import CompileFailedError, ConfigError
from .logging_config import setup_logging
from .model.config import RunConfig
from .runner import RunReport, run
from .store import MemoryRegistryStore, MemoryStructuredStore, display_value


logger = logging.getLogger("osdinfo.cli")

# Exit codes: 0 success, 2 configuration error, 3 schema compile failure, 10 internal
EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_COMPILE = 3
EXIT_INTERNAL = 10


def build_parser():
    p = argparse.ArgumentParser(
        prog="osdinfo",
        description="Record deployment task sequence information in the registry and WMI",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", help="JSON file with run configuration", metavar="FILE")
    src = p.add_mutually_exclusive_group()
    src.add_argument("--variables-file", help="JSON object of task sequence variables", metavar="FILE")
    src.add_argument("--from-environ", action="store_true", help="Read task sequence variables from the environment")
    p.add_argument("--no-registry", action="store_false", dest="registry", default=None, help="Do not write to the registry")
    p.add_argument("--registry-key-path", help="Registry key receiving the values")
    p.add_argument("--no-wmi", action="store_false", dest="wmi", default=None, help="Do not create the WMI class")
    p.add_argument("--namespace", help="WMI namespace for the class")
    p.add_argument("--class-name", help="WMI class name")
    p.add_argument("--class-description", help="Description qualifier for the WMI class")
    p.add_argument("--prefix", dest="variable_prefix", help="Prefix identifying custom variables (must end with _, - or .)")
    p.add_argument("--source-tz", dest="source_time_zone_id", help="Time zone the raw values are in (default: system local)")
    p.add_argument("--destination-tz", dest="destination_time_zone_id", help="Time zone shown to technicians")
    p.add_argument("--final-tz", dest="final_time_zone_id", help="Time zone values are stored in")
    p.add_argument("--culture", help="Culture used to read dates (en-US, en-GB, de-DE, invariant)")
    p.add_argument("--invariant-dates", action="store_true", default=None, help="Only accept invariant date formats")
    p.add_argument("--log-dir", type=Path, help="Directory for the log file and generated MOF")
    p.add_argument("--continue-on-error", action="store_true", default=None, help="Keep going after a failed phase")
    p.add_argument("--dry-run", action="store_true", help="Use in-memory stores and print the collected values")
    p.add_argument("--print-mof", action="store_true", help="Print the generated MOF to stdout")
    p.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return p


_CONFIG_FIELDS = (
    "registry", "registry_key_path", "wmi", "namespace", "class_name",
    "class_description", "variable_prefix", "source_time_zone_id",
    "destination_time_zone_id", "final_time_zone_id", "culture",
    "invariant_dates", "log_dir", "continue_on_error",
)


def config_from_args(args: argparse.Namespace) -> RunConfig:
    overrides = {
        name: getattr(args, name)
        for name in _CONFIG_FIELDS
        if getattr(args, name, None) is not None
    }
    if args.config:
        return RunConfig.load(args.config, **overrides)
    return RunConfig.build(**overrides)


def source_from_args(args: argparse.Namespace) -> VariableSource | None:
    if args.variables_file:
        return JsonFileSource(args.variables_file)
    if args.from_environ:
        return EnvironSource()
    return None


def _print_dry_run(report: RunReport) -> None:
    values = {e.name: {"type": e.kind.value, "value": display_value(e.value)} for e in report.entries}
    print(json.dumps(values, indent=2))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ConfigError as e:
        setup_logging(args.log_level)
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIG

    setup_logging(args.log_level, config.log_dir)
    logger.info("osdinfo %s starting", __version__)

    stores = {}
    if args.dry_run:
        structured = MemoryStructuredStore()
        stores = {
            "registry_store": MemoryRegistryStore(),
            "structured_store": structured,
            "compiler": structured,
        }

    try:
        source = source_from_args(args)
        report = run(config, source, **stores)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return EXIT_CONFIG
    except CompileFailedError as e:
        logger.error("%s", e)
        return EXIT_COMPILE
    except Exception:
        logger.exception("Unexpected failure")
        return EXIT_INTERNAL

    if args.print_mof and report.mof_text:
        sys.stdout.write(report.mof_text)
    if args.dry_run:
        _print_dry_run(report)
    if not report.ok:
        logger.warning("Finished with %d error(s)", len(report.errors))
    else:
        logger.info("Finished")
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
