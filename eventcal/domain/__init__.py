"""Today/upcoming classification and the homepage summary."""

from .classifier import DayClassification, classify, filter_not_ended
from .records import EventRecord, load_event_records, to_definitions
from .whats_on import WhatsOnSummary, build_whats_on

__all__ = [
    "DayClassification",
    "EventRecord",
    "WhatsOnSummary",
    "build_whats_on",
    "classify",
    "filter_not_ended",
    "load_event_records",
    "to_definitions",
]
