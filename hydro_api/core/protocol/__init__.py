from .parser import TelemetryParser, parse_telemetry_line

__all__ = ["TelemetryParser", "parse_telemetry_line"]
