"""Command line entry point: receive F007TH readings and forward them over HTTP."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import Iterator, Sequence
from typing import NoReturn

from f007th import __version__
from f007th._constants import DEFAULT_GPIO, DEFAULT_LOG_FILE, MAX_GPIO, MIN_GPIO
from f007th._mqtt import MqttMessageSource
from f007th._redact import redact_url
from f007th.config import SendConfig, Verbosity
from f007th.exceptions import F007thConfigError
from f007th.pipeline import Forwarder
from f007th.targets import ServerType
from f007th.tracker import SensorsData

_logger = logging.getLogger(__name__)

_DESCRIPTION = (
    "Receive data from Ambient Weather F007TH sensors and send it to a remote server "
    "via a REST API or the InfluxDB write API."
)


class _ArgumentParser(argparse.ArgumentParser):
    """Prints the error and the full help, then exits with status 1."""

    def error(self, message: str) -> NoReturn:
        sys.stderr.write(f"ERROR: {message}\n")
        self.print_help(sys.stderr)
        self.exit(1)


def _gpio(value: str) -> int:
    try:
        pin = int(value, 10)
    except ValueError:
        pin = 0
    if not MIN_GPIO <= pin <= MAX_GPIO:
        raise argparse.ArgumentTypeError(f'Invalid GPIO pin number "{value}"')
    return pin


def _server_type(value: str) -> ServerType:
    try:
        return ServerType.parse(value)
    except F007thConfigError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="f007th-send", description=_DESCRIPTION)
    parser.add_argument(
        "--gpio",
        "-g",
        type=_gpio,
        help=f"GPIO pin number of the receiver (default {DEFAULT_GPIO})",
    )
    parser.add_argument("--send-to", "-s", dest="url", metavar="URL", help="Server URL")
    parser.add_argument(
        "--server-type",
        "-t",
        type=_server_type,
        help="Server type: REST (default) or InfluxDB",
    )
    parser.add_argument(
        "--all",
        "-A",
        dest="send_all",
        action="store_true",
        default=None,
        help="Send all data. Only changed and valid data is sent by default.",
    )
    parser.add_argument(
        "--log-file",
        "-l",
        help=f"Path to the log file (default {DEFAULT_LOG_FILE})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument(
        "--more-verbose",
        "--more_verbose",
        "-V",
        dest="more_verbose",
        action="store_true",
        help="More verbose output: payloads, HTTP wire trace, undecoded data, details",
    )
    parser.add_argument("--statistics", "-T", action="store_true", help="Print statistics every second")
    parser.add_argument(
        "--timeout",
        type=float,
        help="Total timeout in seconds for one HTTP request (default: wait forever)",
    )
    parser.add_argument("--mqtt-host", help="MQTT broker the decoder publishes to (default localhost)")
    parser.add_argument("--mqtt-port", type=int, help="MQTT broker port (default 1883)")
    parser.add_argument("--mqtt-topic", help="Topic of decoded messages (default f007th/gpio<GPIO>)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("positional_url", nargs="?", metavar="URL", help="Server URL")
    return parser


def config_from_args(args: argparse.Namespace) -> SendConfig:
    """Build and validate the configuration; raises ``F007thConfigError``."""
    verbosity = Verbosity.NONE
    if args.verbose:
        verbosity |= Verbosity.INFO
    if args.more_verbose:
        verbosity |= Verbosity.MORE_VERBOSE
    if args.statistics:
        verbosity |= Verbosity.PRINT_STATISTICS

    # Options left out on the command line fall back to F007TH_* variables.
    given = {
        "url": args.positional_url or args.url,
        "server_type": args.server_type,
        "gpio": args.gpio,
        "send_all": args.send_all,
        "log_file": args.log_file or None,
        "request_timeout": args.timeout,
        "mqtt_host": args.mqtt_host or None,
        "mqtt_port": args.mqtt_port,
        "mqtt_topic": args.mqtt_topic or None,
    }
    overrides = {name: value for name, value in given.items() if value is not None}

    config = SendConfig.from_env(verbosity=verbosity, **overrides)
    if not MIN_GPIO <= config.gpio <= MAX_GPIO:
        raise F007thConfigError(f'Invalid GPIO pin number "{config.gpio}"')
    config.target  # noqa: B018 - validates the URL and server type
    return config


def parse_config(argv: Sequence[str]) -> SendConfig:
    """Parse *argv*; print help and exit with status 1 on any usage error."""
    parser = build_parser()
    if not argv:
        parser.print_help(sys.stderr)
        parser.exit(1)
    args = parser.parse_args(argv)
    try:
        return config_from_args(args)
    except F007thConfigError as exc:
        parser.error(str(exc))


def _log_level(verbosity: Verbosity) -> int:
    if verbosity & (Verbosity.ECHO_DETAILS | Verbosity.TRACE_WIRE):
        return logging.DEBUG
    if verbosity & (Verbosity.INFO | Verbosity.PRINT_STATISTICS):
        return logging.INFO
    return logging.WARNING


@contextlib.contextmanager
def configure_logging(config: SendConfig) -> Iterator[logging.Logger]:
    """Attach stderr and log-file handlers to the package logger for the block."""
    logger = logging.getLogger("f007th")
    previous_level = logger.level
    logger.setLevel(_log_level(config.verbosity))

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    log_file = logging.FileHandler(config.log_file, mode="w", encoding="utf-8")
    log_file.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(stream)
    logger.addHandler(log_file)
    try:
        yield logger
    finally:
        for handler in (stream, log_file):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(previous_level)


async def run(config: SendConfig) -> None:
    """Run the forwarder until SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()
    source = MqttMessageSource(
        config.mqtt_host,
        config.mqtt_port,
        config.topic,
        keepalive=config.mqtt_keepalive,
    )
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, source.stop)

    _logger.info("Forwarding %s to %s (%s)", config.topic, redact_url(config.target.url), config.server_type)
    source.start(loop)
    try:
        await Forwarder(config, source, SensorsData()).run()
    finally:
        source.stop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


def main(argv: Sequence[str] | None = None) -> int:
    config = parse_config(sys.argv[1:] if argv is None else argv)
    with configure_logging(config):
        try:
            asyncio.run(run(config))
        except OSError as exc:
            _logger.error("Cannot connect to MQTT broker %s:%d: %s", config.mqtt_host, config.mqtt_port, exc)
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
