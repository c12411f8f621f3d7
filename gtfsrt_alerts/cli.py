"""Command-line interface for the gtfsrt_alerts producer."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import pprint
import signal
import threading
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, parse_app_config, parse_refresh_interval
from .renderers import build_alerts_text
from .scheduler import AlertRefreshScheduler
from .server import AlertsHttpServer
from .store import FeedStore
from .writer import FeedFileWriter

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        description="Republish a transit agency's alerts as a GTFS-realtime feed."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration XML file.",
    )
    parser.add_argument(
        "--source-url",
        default=None,
        help="URL of the agency's JSON alerts API. Overrides config.",
    )
    parser.add_argument(
        "--refresh-interval",
        type=parse_refresh_interval,
        default=None,
        help="Seconds between alert downloads. Overrides config.",
    )

    # Publish targets
    parser.add_argument(
        "--alerts-path",
        metavar="PATH",
        help="Periodically write the alerts feed to PATH.",
    )
    parser.add_argument(
        "--alerts-url",
        metavar="URL",
        help="Serve the alerts feed over HTTP at URL, e.g. http://localhost:8080/alerts.",
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (e.g. DEBUG, INFO, WARNING). Overrides config.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Optional path to a log file. Overrides config.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single refresh, print the alerts and exit.",
    )

    return parser


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that only get through at DEBUG.
NOISY_LOGGERS = ("uvicorn", "uvicorn.error", "urllib3")


def configure_logging(level_name: str, log_file: Optional[str] = None) -> None:
    """Send log records to stderr and, optionally, to ``log_file``.

    Existing root handlers are replaced. Unless ``level_name`` is DEBUG, the
    HTTP server and connection-pool loggers are held at WARNING so the
    refresh log stays readable.
    """
    log_level = getattr(logging, level_name.upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Unsupported log level: {level_name}")

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(log_level)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    quiet_level = logging.NOTSET if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    logger.debug(
        "Logging at %s to %s",
        level_name.upper(),
        log_file or "console only",
    )


def load_config(args: argparse.Namespace) -> AppConfig:
    """Read the config file, if any, and apply command-line overrides."""
    config = parse_app_config(args.config) if args.config else AppConfig()

    if args.source_url:
        config.source_url = args.source_url
    if args.refresh_interval is not None:
        config.refresh_interval = args.refresh_interval
    if args.alerts_path:
        config.file.path = args.alerts_path
    if args.alerts_url:
        config.http.url = args.alerts_url
    if args.log_level:
        config.logging.level = args.log_level
    if args.log_file:
        config.logging.file = args.log_file

    return config


def build_scheduler(config: AppConfig, store: FeedStore) -> AlertRefreshScheduler:
    return AlertRefreshScheduler(
        store,
        source_url=config.source_url,
        refresh_interval=config.refresh_interval,
        request_timeout=config.request_timeout,
        digest_algorithm=config.digest_algorithm,
    )


def wait_for_shutdown() -> None:
    """Block until SIGINT or SIGTERM is received."""
    stop = threading.Event()

    def _handle(signum, _frame):
        logger.info("Received signal %s; shutting down", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)
    stop.wait()


def run_once(config: AppConfig) -> str:
    """Refresh a single time, write the file target if any, and return a text listing."""
    store = FeedStore()
    snapshot = build_scheduler(config, store).refresh()
    if config.file.path:
        FeedFileWriter(store, config.file.path, config.file.interval).write()
    return build_alerts_text(snapshot)


def run_service(config: AppConfig) -> None:
    """Start the refresh schedule and publish targets until shut down."""
    store = FeedStore()
    services = [build_scheduler(config, store)]
    if config.file.path:
        services.append(FeedFileWriter(store, config.file.path, config.file.interval))
    if config.http.url:
        services.append(AlertsHttpServer(store, config.http.url))

    started = []
    try:
        for service in services:
            service.start()
            started.append(service)
        wait_for_shutdown()
    finally:
        for service in reversed(started):
            service.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args)
        configure_logging(config.logging.level, config.logging.file)
    except ValueError as exc:
        parser.error(str(exc))
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Failed to load configuration.")
        return 1

    if not args.once and not (config.file.path or config.http.url):
        parser.error("Nothing to publish: set --alerts-path and/or --alerts-url.")

    logger.info("Active Configuration:\n%s", pprint.pformat(dataclasses.asdict(config)))

    try:
        if args.once:
            print(run_once(config))
        else:
            run_service(config)
    except (ValueError, RuntimeError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    except Exception:  # noqa: BLE001
        logger.exception("Unexpected error during execution.")
        return 1

    return 0
