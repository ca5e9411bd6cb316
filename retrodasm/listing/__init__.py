from .commands import ListingPlan, Segment, SegmentMode, load_command_file, parse_command
from .formatter import ListingWriter, format_xref_report

__all__ = [
    "ListingPlan",
    "ListingWriter",
    "Segment",
    "SegmentMode",
    "format_xref_report",
    "load_command_file",
    "parse_command",
]
