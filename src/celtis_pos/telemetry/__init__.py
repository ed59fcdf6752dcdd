from .events import OUTCOMES, TELEMETRY_CATEGORIES, RegisterEvent, build_event
from .logger import TelemetryLogger

__all__ = ["OUTCOMES", "TELEMETRY_CATEGORIES", "RegisterEvent", "TelemetryLogger", "build_event"]
