"""
Prometheus metrics for the flight logger.
"""

from prometheus_client import Counter, Histogram

TICKS_PROCESSED = Counter(
    'flightlog_ticks_processed_total',
    'Coarse telemetry polls processed by the state machine'
)

TICKS_SKIPPED = Counter(
    'flightlog_ticks_skipped_total',
    'Coarse polls skipped',
    ['reason']  # no_sample, no_position
)

FLIGHTS_STARTED = Counter(
    'flightlog_flights_started_total',
    'Flights started',
    ['mode']  # departure, resume
)

FLIGHTS_COMPLETED = Counter(
    'flightlog_flights_completed_total',
    'Flights finished',
    ['outcome']  # LANDED, CRASHED, VOIDED
)

TELEPORT_EVENTS = Counter(
    'flightlog_teleport_events_total',
    'Teleport detector findings',
    ['verdict']  # verifying, benign, warning, terminated, path_collapse
)

NOTIFICATIONS_SENT = Counter(
    'flightlog_notifications_sent_total',
    'Webhook notifications attempted',
    ['kind', 'status']
)

VS_GLITCHES = Counter(
    'flightlog_vs_glitches_total',
    'Calibrated vertical speed readings rejected as glitches'
)

TOUCHDOWN_VS = Histogram(
    'flightlog_touchdown_vertical_speed_fpm',
    'Vertical speed at touchdown (absolute, fpm)',
    buckets=[50, 100, 200, 300, 500, 750, 1000, 1500, 2500, 5000]
)
