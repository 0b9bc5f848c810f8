"""
Telemetry summary for a finished deployment.
Readings are written to RTDB by the bots; on completion we reduce them to the fixed-shape
metrics map stored on the Firestore deployment.
"""
from botsync.services.telemetry.aggregate import TelemetryAggregator, TelemetrySummary, round_half_away

__all__ = ["TelemetryAggregator", "TelemetrySummary", "round_half_away"]
