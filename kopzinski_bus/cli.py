"""Command-line entry points.

    kopzinski-service   run the D-Bus service until interrupted
    kopzinski-client    run the client probe against a running service

Exit status is 0 on success (and for --help) and 1 on any bus failure.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from pydantic import ValidationError

from kopzinski_bus.client import KopzinskiClient
from kopzinski_bus.constants import BUS_ADDRESS_ENV, SERVICE_NAME
from kopzinski_bus.errors import KopzinskiBusError, ServiceNotFoundError
from kopzinski_bus.logging import (
    LOG_LEVELS,
    configure_logging,
    create_logger,
    set_current_logger,
)
from kopzinski_bus.probe import ClientProbe, ProbeReport
from kopzinski_bus.protocols import LoggerProtocol
from kopzinski_bus.service import run_service
from kopzinski_bus.settings import Settings, set_settings

EXIT_OK = 0
EXIT_FAILURE = 1

_PREREQUISITES = f"""\
Prerequisites:
   1. A reachable system bus (or a private dbus-daemon)
   2. Optionally: export {BUS_ADDRESS_ENV}="unix:path=/tmp/dbus-system-local/system_bus_socket"
   3. For the client: the service running (kopzinski-service)
"""

_SERVICE_NOT_FOUND_HINT = f"""\
Make sure the service is running:
   kopzinski-service

{SERVICE_NAME} must be registered on the same bus the client connects to."""


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--address",
        help=f"bus address (default: ${BUS_ADDRESS_ENV} or the system bus)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        type=str.upper,
        help="log level (default: INFO)",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="emit JSON log lines",
    )


def build_service_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kopzinski-service",
        description="Kopzinski D-Bus service: methods, a read-only property and signals.",
        epilog=_PREREQUISITES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_arguments(parser)
    return parser


def build_client_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kopzinski-client",
        description="Exercise every method, property and signal of the Kopzinski service.",
        epilog=_PREREQUISITES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_common_arguments(parser)
    parser.add_argument(
        "--observe",
        type=float,
        metavar="SECONDS",
        help="how long to listen for signals (default: 3)",
    )
    return parser


def _load_settings(parser: argparse.ArgumentParser, args: argparse.Namespace) -> Settings:
    """Build settings from the environment with command-line overrides."""
    overrides = {
        "dbus_system_bus_address": args.address,
        "log_level": args.log_level,
        "log_json": args.json_logs,
        "observation_window": getattr(args, "observe", None),
    }
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        parser.error(str(e))
    set_settings(settings)
    configure_logging(settings.log_level, json_output=settings.log_json, force=True)
    return settings


# =============================================================================
# SERVICE
# =============================================================================


def service_main(argv: Optional[List[str]] = None) -> int:
    parser = build_service_parser()
    args = parser.parse_args(argv)
    settings = _load_settings(parser, args)
    logger = create_logger("kopzinski-service")
    set_current_logger(logger)

    logger.info("service_starting", name=SERVICE_NAME)
    try:
        asyncio.run(run_service(settings, logger))
    except KeyboardInterrupt:
        logger.info("service_shutdown", reason="interrupted")
    except KopzinskiBusError as e:
        logger.error("service_failed", code=e.code, error=e.message)
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("service_unexpected_error", error=str(e))
        return EXIT_FAILURE
    return EXIT_OK


# =============================================================================
# CLIENT
# =============================================================================


async def run_client_probe(
    settings: Settings,
    logger: Optional[LoggerProtocol] = None,
) -> ProbeReport:
    """Connect, run the probe and disconnect."""
    async with KopzinskiClient.connect(settings.dbus_system_bus_address, logger) as client:
        probe = ClientProbe(
            client,
            signal_trigger_delay=settings.signal_trigger_delay,
            observation_window=settings.observation_window,
            logger=logger,
        )
        return await probe.run()


def client_main(argv: Optional[List[str]] = None) -> int:
    parser = build_client_parser()
    args = parser.parse_args(argv)
    settings = _load_settings(parser, args)
    try:
        settings.validate_probe_timing()
    except ValueError as e:
        parser.error(str(e))
    logger = create_logger("kopzinski-client")
    set_current_logger(logger)

    settings.log_bus_config(logger)
    try:
        report = asyncio.run(run_client_probe(settings, logger))
    except ServiceNotFoundError as e:
        logger.error("service_not_found", name=SERVICE_NAME, error=e.message)
        print(_SERVICE_NOT_FOUND_HINT, file=sys.stderr)
        return EXIT_FAILURE
    except KopzinskiBusError as e:
        logger.error("probe_failed", code=e.code, error=e.message)
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("probe_unexpected_error", error=str(e))
        return EXIT_FAILURE

    logger.info(
        "probe_succeeded",
        version=report.version,
        message_signals=report.signal_values("MessageChanged"),
        counter_signals=report.signal_values("CounterChanged"),
    )
    return EXIT_OK


def service_entry() -> None:
    sys.exit(service_main())


def client_entry() -> None:
    sys.exit(client_main())
