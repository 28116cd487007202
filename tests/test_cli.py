from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from f007th.cli import configure_logging, parse_config
from f007th.config import SendConfig, Verbosity
from f007th.targets import InfluxTarget, ServerType


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("F007TH_"):
            monkeypatch.delenv(key)


def _exit_code(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        parse_config(argv)
    return int(exc_info.value.code or 0)


class TestParseConfig:
    def test_full_option_set(self) -> None:
        config = parse_config(
            ["-g", "17", "-s", "http://influx:8086/write?db=w", "-t", "influxdb", "-A", "-l", "out.log", "-v", "-T"]
        )
        assert config.gpio == 17
        assert config.server_type is ServerType.INFLUXDB
        assert isinstance(config.target, InfluxTarget)
        assert config.send_all
        assert config.log_file == "out.log"
        assert config.verbosity == Verbosity.INFO | Verbosity.PRINT_STATISTICS

    def test_positional_url(self) -> None:
        config = parse_config(["http://example.com/sensors"])
        assert config.url == "http://example.com/sensors"
        assert config.server_type is ServerType.REST

    def test_more_verbose_alias(self) -> None:
        config = parse_config(["--more_verbose", "http://example.com"])
        assert config.verbosity == Verbosity.MORE_VERBOSE

    def test_environment_fills_options_not_given(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("F007TH_URL", "http://influx:8086/write?db=w")
        monkeypatch.setenv("F007TH_SERVER_TYPE", "InfluxDB")
        monkeypatch.setenv("F007TH_REQUEST_TIMEOUT", "5")
        monkeypatch.setenv("F007TH_GPIO", "17")
        monkeypatch.setenv("F007TH_SEND_ALL", "1")
        monkeypatch.setenv("F007TH_LOG_FILE", "env.log")

        config = parse_config(["-v"])

        assert config.url == "http://influx:8086/write?db=w"
        assert isinstance(config.target, InfluxTarget)
        assert config.request_timeout == 5.0
        assert config.gpio == 17
        assert config.send_all
        assert config.log_file == "env.log"

    def test_command_line_beats_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("F007TH_SERVER_TYPE", "InfluxDB")
        monkeypatch.setenv("F007TH_REQUEST_TIMEOUT", "5")
        monkeypatch.setenv("F007TH_MQTT_PORT", "1884")

        config = parse_config(["-t", "rest", "--timeout", "1.5", "--mqtt-port", "0", "http://a.example.com/"])

        assert config.server_type is ServerType.REST
        assert config.request_timeout == 1.5
        assert config.mqtt_port == 0

    def test_malformed_environment_is_a_usage_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("F007TH_REQUEST_TIMEOUT", "soon")
        assert _exit_code(["http://example.com"]) == 1
        assert 'Invalid value "soon" for F007TH_REQUEST_TIMEOUT' in capsys.readouterr().err

    def test_environment_gpio_out_of_range_is_a_usage_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("F007TH_GPIO", "99")
        assert _exit_code(["http://example.com"]) == 1

    @pytest.mark.parametrize(
        "argv",
        [
            [],
            ["-g", "0", "http://example.com"],
            ["-g", "54", "http://example.com"],
            ["-g", "abc", "http://example.com"],
            ["-t", "graphite", "http://example.com"],
            ["-v"],
            ["ftp://example.com"],
            ["http://a.example.com", "http://b.example.com"],
            ["--unknown", "http://example.com"],
        ],
    )
    def test_usage_errors_exit_with_status_1(self, argv: list[str], capsys: pytest.CaptureFixture[str]) -> None:
        assert _exit_code(argv) == 1
        assert "usage: f007th-send" in capsys.readouterr().err


def test_configure_logging_writes_log_file(tmp_path: Path) -> None:
    log_path = tmp_path / "send.log"
    config = SendConfig(url="http://example.com", log_file=str(log_path), verbosity=Verbosity.INFO)

    with configure_logging(config) as logger:
        logging.getLogger("f007th.dispatcher").error("Failed to connect to server http://example.com")
        assert logger.level == logging.INFO

    assert "Failed to connect to server" in log_path.read_text(encoding="utf-8")
    assert all(not isinstance(h, logging.FileHandler) for h in logger.handlers)
