#!/usr/bin/env python3

import argparse
import logging
import sys

from .config import DEFAULT_MODES, Settings
from .lifecycle import ArtifactManager
from .mysql_api import MySQLBlobApi
from .runner import RoundTripCheck


def set_logging_config(tags, log_level_str=None):
    """Configure logging to output only to stderr."""
    handlers = [logging.StreamHandler(sys.stderr)]

    log_levels = {
        'critical': logging.CRITICAL,
        'error': logging.ERROR,
        'warning': logging.WARNING,
        'info': logging.INFO,
        'debug': logging.DEBUG,
    }

    log_level = log_levels.get(log_level_str)
    if log_level is None:
        logging.warning(f'Unknown log level {log_level_str}, setting info')
        log_level = logging.INFO

    logging.basicConfig(
        level=log_level,
        format=f'[{tags} %(asctime)s %(levelname)8s] %(message)s',
        handlers=handlers,
    )


def run_check(args, config: Settings) -> int:
    blob_check = config.blob_check
    if args.size is not None:
        blob_check.required_size = args.size
    if args.mode:
        blob_check.modes = args.mode
    if args.read_size is not None:
        blob_check.stream_read_size = args.read_size
    blob_check.validate()

    api = MySQLBlobApi(mysql_settings=config.mysql)
    artifacts = ArtifactManager.from_settings(blob_check)
    try:
        report = RoundTripCheck(api, blob_check, artifacts).run()
    finally:
        if not args.keep_artifact:
            artifacts.close()

    if report.skipped:
        logging.warning(f'Round-trip check skipped: {report.skip_reason}')
        return 0

    for mode, outcome in report.results.items():
        verdict = 'OK' if outcome else 'FAIL'
        print(f'{mode.value:<16} {verdict:<5} {outcome.describe()}')

    if args.keep_artifact:
        logging.info(f'Payload kept at {report.artifact.path}')

    return 0 if report.passed else 1


def main():
    parser = argparse.ArgumentParser(
        description="Stream a large BLOB into MySQL and verify it through every retrieval mode",
    )
    parser.add_argument("--config", help="config file path", default='config.yaml', type=str)
    parser.add_argument("--size", help="payload size in bytes", type=int, default=None)
    parser.add_argument(
        "--mode", help="retrieval mode to verify (repeatable, default: all)",
        action="append", choices=DEFAULT_MODES, default=None,
    )
    parser.add_argument(
        "--read-size", type=int, default=None,
        help="units read per call when rebuilding the value from a stream",
    )
    parser.add_argument(
        "--keep-artifact", action="store_true", default=False,
        help="don't delete the payload file on exit",
    )
    args = parser.parse_args()

    config = Settings()
    config.load(args.config)

    set_logging_config('blobcheck', log_level_str=config.log_level)
    sys.exit(run_check(args, config))


if __name__ == '__main__':
    main()
