from __future__ import annotations

import pytest

from f007th.config import SendConfig, Verbosity
from f007th.exceptions import F007thConfigError
from f007th.targets import InfluxTarget, RestTarget, ServerType, make_target


class TestTargets:
    def test_rest_variant(self) -> None:
        target = make_target("http://example.com/api", "rest")
        assert isinstance(target, RestTarget)
        assert target.method == "PUT"
        assert target.expected_status == 200
        assert target.headers["Connection"] == "close"

    def test_influx_variant(self) -> None:
        target = make_target("https://influx.local:8086/write?db=x", "INFLUXDB")
        assert isinstance(target, InfluxTarget)
        assert target.method == "POST"
        assert target.expected_status == 204
        assert target.skip_auto_headers == {"Content-Type", "Accept"}

    @pytest.mark.parametrize("url", [None, "", "   ", "ftp://example.com", "example.com/api"])
    def test_bad_url_rejected(self, url: str | None) -> None:
        with pytest.raises(F007thConfigError):
            make_target(url)

    def test_unknown_server_type(self) -> None:
        with pytest.raises(F007thConfigError, match="Unknown server type"):
            ServerType.parse("graphite")

    def test_server_type_case_insensitive(self) -> None:
        assert ServerType.parse("influxdb") is ServerType.INFLUXDB
        assert ServerType.parse(" Rest ") is ServerType.REST


class TestSendConfig:
    def test_defaults(self) -> None:
        config = SendConfig(url="http://example.com")
        assert config.gpio == 27
        assert config.log_file == "f007th-send.log"
        assert config.request_timeout is None
        assert config.topic == "f007th/gpio27"
        assert isinstance(config.target, RestTarget)

    def test_more_verbose_excludes_statistics(self) -> None:
        assert not Verbosity.MORE_VERBOSE & Verbosity.PRINT_STATISTICS
        assert Verbosity.MORE_VERBOSE & Verbosity.TRACE_WIRE

    def test_from_env_with_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("F007TH_URL", "http://env.example.com/write")
        monkeypatch.setenv("F007TH_SERVER_TYPE", "influxdb")
        monkeypatch.setenv("F007TH_GPIO", "17")
        monkeypatch.setenv("F007TH_REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("F007TH_SEND_ALL", "yes")

        config = SendConfig.from_env(gpio=22)

        assert config.url == "http://env.example.com/write"
        assert config.server_type is ServerType.INFLUXDB
        assert config.gpio == 22
        assert config.request_timeout == 2.5
        assert config.send_all is True
        assert isinstance(config.target, InfluxTarget)

    @pytest.mark.parametrize(
        ("key", "value"),
        [("F007TH_GPIO", "seventeen"), ("F007TH_MQTT_PORT", "18.83"), ("F007TH_REQUEST_TIMEOUT", "")],
    )
    def test_from_env_malformed_number(self, monkeypatch: pytest.MonkeyPatch, key: str, value: str) -> None:
        monkeypatch.setenv(key, value)
        with pytest.raises(F007thConfigError, match=key):
            SendConfig.from_env()
