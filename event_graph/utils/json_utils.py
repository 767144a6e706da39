"""
JSON utilities for handling numpy and other special types.

Signal payloads are opaque and frequently carry numpy scalars or arrays
produced by upstream analytics; snapshots must still encode cleanly.
"""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any

import numpy as np


class EventGraphJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types, datetimes and dataclasses."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.bool_):
            return bool(obj)

        if isinstance(obj, datetime):
            return obj.isoformat()

        if hasattr(obj, "to_dict"):
            return obj.to_dict()
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)

        if isinstance(obj, (set, frozenset)):
            return sorted(obj)

        return super().default(obj)


def dump_json(obj: Any, fp, **kwargs) -> None:
    """Wrapper for json.dump that uses EventGraphJSONEncoder by default."""
    kwargs.setdefault('cls', EventGraphJSONEncoder)
    kwargs.setdefault('indent', 2)
    kwargs.setdefault('ensure_ascii', False)
    json.dump(obj, fp, **kwargs)


def dumps_json(obj: Any, **kwargs) -> str:
    """Wrapper for json.dumps that uses EventGraphJSONEncoder by default."""
    kwargs.setdefault('cls', EventGraphJSONEncoder)
    kwargs.setdefault('indent', 2)
    kwargs.setdefault('ensure_ascii', False)
    return json.dumps(obj, **kwargs)
