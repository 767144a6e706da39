"""
Utility modules for the causal event graph.
"""

from .datetime_utils import utc_now, parse_datetime
from .json_utils import EventGraphJSONEncoder, dump_json, dumps_json

__all__ = ["utc_now", "parse_datetime", "EventGraphJSONEncoder", "dump_json", "dumps_json"]
