import logging

import pytest

from gtfsrt_alerts import cli, scheduler
from gtfsrt_alerts.config import AppConfig, LoggingConfig

from conftest import ROUTE_10_RECORD


@pytest.fixture
def restore_root_handlers():
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)
    try:
        yield
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_defaults_to_console_only(restore_root_handlers):
    cli.configure_logging("INFO")

    handlers = logging.getLogger().handlers
    assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
    assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)


def test_configure_logging_with_log_file_creates_file_handler(restore_root_handlers, tmp_path):
    log_path = tmp_path / "logs" / "alerts.log"
    cli.configure_logging("INFO", str(log_path))

    assert log_path.exists()
    assert any(isinstance(handler, logging.FileHandler) for handler in logging.getLogger().handlers)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("CHATTY")


def test_main_once_prints_alerts(monkeypatch, capsys, tmp_path):
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    monkeypatch.setattr(
        scheduler, "download_alerts", lambda url, timeout=None: [ROUTE_10_RECORD]
    )
    feed_path = tmp_path / "alerts.pb"

    exit_code = cli.main(["--once", "--alerts-path", str(feed_path)])

    assert exit_code == 0
    assert "[10] Route 10" in capsys.readouterr().out
    assert feed_path.exists()


def test_main_once_returns_error_when_refresh_fails(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)

    def failing_download(url, timeout=None):
        raise RuntimeError("network down")

    monkeypatch.setattr(scheduler, "download_alerts", failing_download)

    assert cli.main(["--once"]) == 1


def test_main_requires_a_publish_target(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)

    with pytest.raises(SystemExit):
        cli.main([])


def test_main_cli_overrides_config(monkeypatch):
    captured = {}
    monkeypatch.setattr(
        cli,
        "configure_logging",
        lambda level, log_file=None: captured.update(level=level, log_file=log_file),
    )
    monkeypatch.setattr(
        cli,
        "parse_app_config",
        lambda path: AppConfig(
            source_url="https://config.example.com",
            refresh_interval=60,
            logging=LoggingConfig(level="INFO", file="config.log"),
        ),
    )
    monkeypatch.setattr(cli, "run_service", lambda config: captured.update(config=config))

    exit_code = cli.main(
        [
            "--config",
            "config.xml",
            "--source-url",
            "https://cli.example.com",
            "--refresh-interval",
            "10",
            "--alerts-url",
            "http://localhost:8080/alerts",
            "--log-level",
            "DEBUG",
            "--log-file",
            "cli.log",
        ]
    )

    assert exit_code == 0
    config = captured["config"]
    assert config.source_url == "https://cli.example.com"
    assert config.refresh_interval == 10
    assert config.http.url == "http://localhost:8080/alerts"
    assert captured["level"] == "DEBUG"
    assert captured["log_file"] == "cli.log"


def test_main_rejects_non_positive_refresh_interval():
    with pytest.raises(SystemExit):
        cli.main(["--once", "--refresh-interval", "0"])


def test_main_missing_config_file_returns_error(tmp_path):
    assert cli.main(["--once", "--config", str(tmp_path / "missing.xml")]) == 1


def test_run_service_starts_and_stops_services(monkeypatch):
    events = []

    class FakeService:
        def __init__(self, name, *args, **kwargs):
            self.name = name

        def start(self):
            events.append(("start", self.name))

        def stop(self):
            events.append(("stop", self.name))

    monkeypatch.setattr(cli, "build_scheduler", lambda config, store: FakeService("scheduler"))
    monkeypatch.setattr(cli, "FeedFileWriter", lambda *args: FakeService("writer"))
    monkeypatch.setattr(cli, "AlertsHttpServer", lambda *args: FakeService("http"))
    monkeypatch.setattr(cli, "wait_for_shutdown", lambda: events.append(("wait", None)))

    config = AppConfig()
    config.file.path = "alerts.pb"
    config.http.url = "http://localhost:8080/alerts"

    cli.run_service(config)

    assert events == [
        ("start", "scheduler"),
        ("start", "writer"),
        ("start", "http"),
        ("wait", None),
        ("stop", "http"),
        ("stop", "writer"),
        ("stop", "scheduler"),
    ]


def test_run_service_stops_started_services_when_start_fails(monkeypatch):
    events = []

    class FakeScheduler:
        def start(self):
            events.append("scheduler started")

        def stop(self):
            events.append("scheduler stopped")

    class BrokenServer:
        def __init__(self, *args):
            pass

        def start(self):
            raise OSError("address in use")

    monkeypatch.setattr(cli, "build_scheduler", lambda config, store: FakeScheduler())
    monkeypatch.setattr(cli, "AlertsHttpServer", BrokenServer)

    config = AppConfig()
    config.http.url = "http://localhost:8080/alerts"

    with pytest.raises(OSError):
        cli.run_service(config)

    assert events == ["scheduler started", "scheduler stopped"]


def test_main_reports_malformed_config_without_traceback(tmp_path, capsys):
    config_file = tmp_path / "config.xml"
    config_file.write_text("<config><source-url>x</config>", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_file), "--once"])

    assert excinfo.value.code == 2
    assert "Invalid config XML" in capsys.readouterr().err


def test_main_returns_error_on_unexpected_config_failure(monkeypatch):
    def broken_load(args):
        raise KeyError("boom")

    monkeypatch.setattr(cli, "load_config", broken_load)

    assert cli.main(["--once"]) == 1


def test_main_returns_error_when_http_server_cannot_start(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    monkeypatch.setattr(scheduler, "download_alerts", lambda url, timeout=None: [])

    class UnbindableServer:
        def __init__(self, store, url):
            pass

        def start(self):
            raise RuntimeError("Alerts HTTP server failed to start on localhost:8080")

        def stop(self):
            pass

    monkeypatch.setattr(cli, "AlertsHttpServer", UnbindableServer)
    monkeypatch.setattr(cli, "wait_for_shutdown", lambda: pytest.fail("should not wait"))

    assert cli.main(["--alerts-url", "http://localhost:8080/alerts"]) == 1


@pytest.mark.parametrize(
    "level, expected", [("INFO", logging.WARNING), ("DEBUG", logging.NOTSET)]
)
def test_configure_logging_quiets_server_loggers(restore_root_handlers, level, expected):
    previous = {name: logging.getLogger(name).level for name in cli.NOISY_LOGGERS}
    try:
        cli.configure_logging(level)

        for name in cli.NOISY_LOGGERS:
            assert logging.getLogger(name).level == expected
    finally:
        for name, value in previous.items():
            logging.getLogger(name).setLevel(value)
