"""
SAW flight logger engine.

Infers takeoff, landing and crash from polled simulator telemetry, detects
teleportation and reports completed flights to a webhook.
"""
