"""
Runtime configuration for the flight logger.

All values come from environment variables, read once at import.
"""

import os

# Notification
WEBHOOK_URL = os.getenv("WEBHOOK_URL", "")
WEBHOOK_TIMEOUT_SECONDS = float(os.getenv("WEBHOOK_TIMEOUT_SECONDS", "10"))

# Data files
AIRPORTS_FILE = os.getenv("AIRPORTS_FILE", "airports.json")
SESSION_FILE = os.getenv("SESSION_FILE", ".flightlog/session.json")
AIRLINES_FILE = os.getenv("AIRLINES_FILE", ".flightlog/airlines.json")

# Airport lookup
AIRPORT_RADIUS_KM = float(os.getenv("AIRPORT_RADIUS_KM", "30.0"))

# Polling
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))
VS_SAMPLE_INTERVAL_MS = int(os.getenv("VS_SAMPLE_INTERVAL_MS", "25"))

# Flight phases
DEPARTURE_AGL_FT = float(os.getenv("DEPARTURE_AGL_FT", "50"))
LANDING_DEBOUNCE_SECONDS = float(os.getenv("LANDING_DEBOUNCE_SECONDS", "1.0"))
BOUNCE_TRACKING_AGL_FT = float(os.getenv("BOUNCE_TRACKING_AGL_FT", "500"))
PATH_SAMPLE_INTERVAL_SECONDS = float(os.getenv("PATH_SAMPLE_INTERVAL_SECONDS", "5.0"))
PERSIST_EVERY_N_SAMPLES = int(os.getenv("PERSIST_EVERY_N_SAMPLES", "10"))

# Teleport detection
TELEPORT_POLICY = os.getenv("TELEPORT_POLICY", "combined")
TELEPORT_GRACE_SECONDS = float(os.getenv("TELEPORT_GRACE_SECONDS", "5"))
PATH_CHECK_DELAY_SECONDS = float(os.getenv("PATH_CHECK_DELAY_SECONDS", "15"))
TELEPORT_JUMP_THRESHOLD_M = float(os.getenv("TELEPORT_JUMP_THRESHOLD_M", "2000"))
TELEPORT_VERIFY_SECONDS = float(os.getenv("TELEPORT_VERIFY_SECONDS", "10"))
TELEPORT_MAX_SPEED_MPS = float(os.getenv("TELEPORT_MAX_SPEED_MPS", "600"))
TELEPORT_MAX_CLIMB_FPS = float(os.getenv("TELEPORT_MAX_CLIMB_FPS", "200"))

# Replay
REPLAY_FILE = os.getenv("REPLAY_FILE")
REPLAY_SPEED = float(os.getenv("REPLAY_SPEED", "1.0"))

# Observability
METRICS_PORT = int(os.getenv("METRICS_PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
