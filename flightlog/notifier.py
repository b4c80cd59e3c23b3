"""
Webhook notifier for flight reports and termination notices.

Delivery is best effort: at most once, no retry. Failures are logged and
counted, never raised into the polling loop.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import requests

from contracts.validation import Airport, FlightReport, TerminationNotice
from flightlog.config import WEBHOOK_URL, WEBHOOK_TIMEOUT_SECONDS
from flightlog.metrics import NOTIFICATIONS_SENT

logger = logging.getLogger(__name__)

QUALITY_COLORS = {
    "SUPER BUTTER": 0x00FF00,
    "BUTTER": 0x00FF00,
    "ACCEPTABLE": 0xFFFF00,
    "HARD": 0xFF8000,
    "CRASH": 0xDC143C,
}
DEFAULT_COLOR = 0x0099FF
INTEGRITY_WARNING_COLOR = 0xFFA500
TERMINATION_COLOR = 0xFF0000


def format_time(moment: datetime, airport: Optional[Airport] = None) -> str:
    """Render a timestamp in the airport's local zone, or UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    zone = None
    if airport is not None and airport.tz:
        try:
            zone = ZoneInfo(airport.tz)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug(f"Unknown time zone {airport.tz} for {airport.icao}")

    if zone is None:
        return f"{moment.astimezone(timezone.utc):%d %b %Y, %H:%M} UTC"
    local = moment.astimezone(zone)
    return f"{local:%d %b %Y, %H:%M} {local.tzname() or 'LT'}"


def build_report_message(report: FlightReport) -> dict:
    """Discord embed for a completed flight."""
    color = QUALITY_COLORS.get(report.landing_quality, DEFAULT_COLOR)
    quality = f"**{report.landing_quality}**"
    if report.bounces > 0:
        quality += f"\n**Bounces**: {report.bounces}"

    tas = f"{report.true_airspeed_kt:.1f}" if report.true_airspeed_kt is not None else "N/A"
    gs = f"{report.ground_speed_kt:.1f}" if report.ground_speed_kt is not None else "N/A"
    g = f"{report.g_force:.2f}" if report.g_force is not None else "N/A"

    fields = [
        {
            "name": "Flight Information",
            "value": f"**Flight no.**: {report.pilot}\n**Pilot name**: {report.pilot_name or 'Unknown'}\n**Aircraft**: {report.aircraft}",
            "inline": False,
        },
        {
            "name": "Route",
            "value": f"**Departure**: {report.departure_icao}\n**Arrival**: {report.arrival_icao}",
            "inline": True,
        },
        {
            "name": "Duration",
            "value": f"**Flight Time**: {report.duration}",
            "inline": True,
        },
        {
            "name": "Flight Data",
            "value": f"**V/S**: {report.vertical_speed_fpm:.1f} fpm\n**G-Force**: {g}\n**TAS**: {tas} kts\n**GS**: {gs} kts",
            "inline": True,
        },
        {
            "name": "Landing Quality",
            "value": quality,
            "inline": True,
        },
        {
            "name": "Times",
            "value": (
                f"**Takeoff**: {format_time(report.takeoff_at, report.departure_airport)}\n"
                f"**Landing**: {format_time(report.landing_at, report.arrival_airport)}"
            ),
            "inline": False,
        },
    ]

    footer = "GeoFS Flight Logger"
    if report.teleport_warnings > 0:
        fields.append({
            "name": "Flight Integrity Alert",
            "value": f"**Teleportation detected**: {report.teleport_warnings} time(s)\n*Flight continued with noted violation*",
            "inline": False,
        })
        color = INTEGRITY_WARNING_COLOR
        footer += " | Integrity Warning"
    if report.path_continuity_broken:
        fields.append({
            "name": "Path Continuity",
            "value": "Map path was cleared during the flight",
            "inline": False,
        })

    return {
        "embeds": [{
            "title": "Flight Report - GeoFS",
            "color": color,
            "fields": fields,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "footer": {"text": footer},
        }]
    }


def build_termination_message(notice: TerminationNotice) -> dict:
    """Discord embed for a voided flight."""
    return {
        "embeds": [{
            "title": "Flight Terminated - GeoFS",
            "color": TERMINATION_COLOR,
            "fields": [
                {
                    "name": "Flight Information",
                    "value": f"**Flight no.**: {notice.pilot}\n**Pilot name**: {notice.pilot_name or 'Unknown'}\n**Aircraft**: {notice.aircraft}",
                    "inline": False,
                },
                {
                    "name": "Route",
                    "value": f"**Departure**: {notice.departure_icao}\n**Arrival**: {notice.arrival_icao}",
                    "inline": True,
                },
                {
                    "name": "Duration",
                    "value": f"**Flight Time**: {notice.duration}",
                    "inline": True,
                },
                {
                    "name": "Termination Reason",
                    "value": f"**{notice.reason}**\nFlight integrity compromised after {notice.teleport_warnings} warnings.",
                    "inline": False,
                },
            ],
            "timestamp": notice.terminated_at.isoformat(),
            "footer": {"text": "GeoFS Flight Logger | Flight Not Logged"},
        }]
    }


class WebhookNotifier:
    """Posts reports to a webhook chosen at send time."""

    def __init__(
        self,
        webhook_url: Optional[str] = WEBHOOK_URL,
        webhook_resolver: Optional[Callable[[], Optional[str]]] = None,
        timeout: float = WEBHOOK_TIMEOUT_SECONDS,
        http: Optional[requests.Session] = None,
    ):
        self.webhook_url = webhook_url
        self.webhook_resolver = webhook_resolver
        self.timeout = timeout
        self.http = http or requests.Session()

    def send(self, report: FlightReport) -> bool:
        """Send a flight report. Returns whether the webhook accepted it."""
        logger.info(
            f"Sending flight report: {report.pilot} {report.departure_icao}->{report.arrival_icao}, "
            f"V/S={report.vertical_speed_fpm:.1f}, Quality={report.landing_quality}"
        )
        return self._post("report", build_report_message(report))

    def send_termination(self, notice: TerminationNotice) -> bool:
        """Send the reduced termination notice."""
        logger.info(f"Sending termination notice for {notice.pilot}")
        return self._post("termination", build_termination_message(notice))

    def _resolve_url(self) -> Optional[str]:
        if self.webhook_resolver is not None:
            url = self.webhook_resolver()
            if url:
                return url
        return self.webhook_url or None

    def _post(self, kind: str, message: dict) -> bool:
        url = self._resolve_url()
        if not url:
            logger.warning(f"No webhook configured, {kind} not delivered")
            NOTIFICATIONS_SENT.labels(kind=kind, status="skipped").inc()
            return False

        try:
            response = self.http.post(url, json=message, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to send {kind}: {e}")
            NOTIFICATIONS_SENT.labels(kind=kind, status="failed").inc()
            return False

        logger.info(f"{kind.capitalize()} sent")
        NOTIFICATIONS_SENT.labels(kind=kind, status="sent").inc()
        return True
