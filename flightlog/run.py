#!/usr/bin/env python3
"""
Entry point for the SAW flight logger.
"""

import argparse
import logging
import sys
import threading
import time

from prometheus_client import start_http_server

from flightlog import config
from flightlog.airlines import AirlineStore
from flightlog.airports import get_directory
from flightlog.flight_state import FlightStateMachine
from flightlog.notifier import WebhookNotifier
from flightlog.scheduler import FlightLogger
from flightlog.session_store import JsonFileSessionStore
from flightlog.teleport import TeleportConfig, TeleportDetector, TeleportPolicy
from flightlog.telemetry import ConsolePrompt, NoPrompt, ReplayTelemetrySource

logger = logging.getLogger(__name__)


def start_metrics_server(port: int):
    """Start Prometheus metrics server in background thread."""
    try:
        start_http_server(port)
        logger.info(f"Prometheus metrics server started on port {port}")
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Log simulator flights to a webhook")
    parser.add_argument("--replay", default=config.REPLAY_FILE, help="JSONL telemetry file to replay")
    parser.add_argument("--speed", type=float, default=config.REPLAY_SPEED, help="Replay speed multiplier")
    parser.add_argument("--callsign", default="", help="Pilot callsign (flight number without airline prefix)")
    parser.add_argument("--resume", action="store_true", help="Resume the last persisted flight")
    parser.add_argument("--airports", default=config.AIRPORTS_FILE, help="mwgg airports.json path")
    parser.add_argument("--airline", help="Airline to log under (from the airline store)")
    parser.add_argument(
        "--policy",
        choices=[p.value for p in TeleportPolicy],
        default=config.TELEPORT_POLICY,
        help="Teleport detection policy",
    )
    parser.add_argument("--max-seconds", type=float, help="Stop after this many seconds")
    return parser.parse_args(argv)


def build_logger(args: argparse.Namespace) -> FlightLogger:
    airports = get_directory(args.airports)

    airlines = AirlineStore()
    if args.airline:
        airlines.select(args.airline)

    machine = FlightStateMachine(
        airports=airports,
        detector=TeleportDetector(TeleportConfig(policy=TeleportPolicy(args.policy))),
        prompt=ConsolePrompt() if sys.stdin.isatty() else NoPrompt(),
        airline_icao=airlines.current_icao,
    )
    return FlightLogger(
        machine=machine,
        telemetry=ReplayTelemetrySource(args.replay, speed=args.speed),
        store=JsonFileSessionStore(),
        notifier=WebhookNotifier(webhook_resolver=airlines.current_webhook),
    )


def replay_drained(flight_logger: FlightLogger):
    """Stop condition: the replay is exhausted and the coarse tick has seen its last sample."""
    replay = flight_logger.telemetry
    drained_at = None

    def check() -> bool:
        nonlocal drained_at
        if not replay.finished:
            return False
        if drained_at is None:
            drained_at = time.monotonic()
        return time.monotonic() - drained_at > 2 * flight_logger.poll_interval

    return check


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger.info("=" * 50)
    logger.info("SAW Flight Logger - Starting")
    logger.info("=" * 50)

    if not args.replay:
        logger.error("No telemetry source: pass --replay or set REPLAY_FILE")
        return 2

    if config.METRICS_PORT:
        metrics_thread = threading.Thread(target=start_metrics_server, args=(config.METRICS_PORT,), daemon=True)
        metrics_thread.start()

    try:
        flight_logger = build_logger(args)
    except (OSError, KeyError) as e:
        logger.error(f"Failed to start flight logger: {e}")
        return 2

    if args.resume:
        if not flight_logger.resume_last_flight():
            flight_logger.start_logging(args.callsign)
    else:
        flight_logger.start_logging(args.callsign)

    try:
        flight_logger.run(max_seconds=args.max_seconds, until=replay_drained(flight_logger))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        flight_logger.stop()

    if flight_logger.last_outcome is not None:
        logger.info(f"Flight finished: {flight_logger.last_outcome.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
