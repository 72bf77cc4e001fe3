from .models import TimelineData, TimelineElement, TimelineScene
from .parser import build_timeline, consistency_score, parse_timeline
from .view import timeline_summary, usage_percentage

__all__ = [
    "TimelineData",
    "TimelineElement",
    "TimelineScene",
    "build_timeline",
    "consistency_score",
    "parse_timeline",
    "timeline_summary",
    "usage_percentage",
]
