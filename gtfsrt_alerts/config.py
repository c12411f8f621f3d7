"""Configuration loading for the alerts producer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from .alerts import DEFAULT_DIGEST
from .scheduler import DEFAULT_REFRESH_INTERVAL
from .source import DEFAULT_SOURCE_URL
from .writer import DEFAULT_WRITE_INTERVAL

logger = logging.getLogger(__name__)


@dataclass
class FilePublishConfig:
    path: Optional[str] = None
    interval: float = DEFAULT_WRITE_INTERVAL


@dataclass
class HttpPublishConfig:
    url: Optional[str] = None


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class AppConfig:
    source_url: str = DEFAULT_SOURCE_URL
    refresh_interval: int = DEFAULT_REFRESH_INTERVAL
    request_timeout: float = 10.0
    digest_algorithm: str = DEFAULT_DIGEST
    file: FilePublishConfig = field(default_factory=FilePublishConfig)
    http: HttpPublishConfig = field(default_factory=HttpPublishConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _config_relative(config_path: Path, value: str) -> str:
    """Resolve ``value`` against the directory holding the config file."""
    target = Path(value.strip()).expanduser()
    if not target.is_absolute():
        target = config_path.parent / target
    return str(target.resolve())


def parse_refresh_interval(value: str) -> int:
    """Parse a refresh interval in whole seconds, rejecting non-positive values."""
    try:
        interval = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Refresh interval must be an integer: {value!r}")
    if interval <= 0:
        raise ValueError("Refresh interval must be positive.")
    return interval


def parse_app_config(path: str) -> AppConfig:
    """Parse the main application configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    try:
        tree = ET.parse(config_path)
    except ET.ParseError as exc:
        raise ValueError(f"Invalid config XML {path}: {exc}") from exc
    root = tree.getroot()

    config = AppConfig()

    source_url = root.findtext("source-url")
    if source_url and source_url.strip():
        config.source_url = source_url.strip()

    interval = root.findtext("refresh-interval")
    if interval is not None:
        config.refresh_interval = parse_refresh_interval(interval.strip())

    timeout = root.findtext("request-timeout")
    if timeout:
        config.request_timeout = float(timeout)

    digest = root.findtext("digest-algorithm")
    if digest and digest.strip():
        config.digest_algorithm = digest.strip()

    # Publish targets
    publish_node = root.find("publish")
    if publish_node is not None:
        file_node = publish_node.find("file")
        if file_node is not None:
            file_path = file_node.attrib.get("path")
            if not file_path:
                raise ValueError("File publish target must have a 'path' attribute.")
            config.file.path = _config_relative(config_path, file_path)
            if file_node.attrib.get("interval"):
                config.file.interval = float(file_node.attrib["interval"])

        http_node = publish_node.find("http")
        if http_node is not None:
            url = http_node.attrib.get("url")
            if not url:
                raise ValueError("HTTP publish target must have a 'url' attribute.")
            config.http.url = url

    # Logging
    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            config.logging.file = _config_relative(config_path, log_file)

    return config
