"""Utility modules."""
from kcheck.utils.json_utils import json_dump, load_json_text
from kcheck.utils.time_utils import parse_iso_timestamp, utc_now

__all__ = [
    "json_dump",
    "load_json_text",
    "parse_iso_timestamp",
    "utc_now",
]
