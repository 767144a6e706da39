"""
Data Models for the Causal Event Graph

Defines the core data structures shared by the graph store and the two
valuation engines:
- Event: A predicted future occurrence with probability and impact
- ImpactEstimate / EventImpact: Directional impact per channel
- Signal / Evidence: Inputs to a Bayesian probability update
- ProbabilityUpdate: Immutable audit entry appended to an event's history
- CausalEdge: Directed causal relationship between two events
- EventGraph: Serializable snapshot of a company's graph

Records that carry history or identity are frozen: a changed event is a new
Event value (see dataclasses.replace), which keeps snapshots handed out by the
graph store safe from in-place mutation.
"""

import json
import logging
import math
import numbers
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, List, Literal, Optional, Tuple

from event_graph.utils.datetime_utils import parse_datetime, utc_now
from event_graph.utils.json_utils import dumps_json

logger = logging.getLogger(__name__)


# Type definitions
EventType = Literal["macro", "industry", "company"]
ImpactDirection = Literal["bullish", "bearish", "neutral"]
SignalType = Literal["market_data", "social", "financial", "news", "macro"]
CausalEdgeType = Literal["causes", "influences", "correlates"]

EVENT_TYPES = ("macro", "industry", "company")
IMPACT_DIRECTIONS = ("bullish", "bearish", "neutral")
SIGNAL_TYPES = ("market_data", "social", "financial", "news", "macro")
CAUSAL_EDGE_TYPES = ("causes", "influences", "correlates")

# Impact channels in their canonical order
IMPACT_CHANNELS = ("revenue", "margin", "market_cap", "stock_price")

# Accepted spellings from camelCase producers
_CHANNEL_ALIASES = {
    "marketCap": "market_cap",
    "stockPrice": "stock_price",
}


def require_number(name: str, value) -> None:
    """Reject non-numeric, NaN and infinite values (booleans included)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise ValueError(f"{name} must be a valid number, got {value!r}")


def _check_unit_interval(name: str, value: float) -> None:
    require_number(name, value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")


def _check_percent(name: str, value: float) -> None:
    require_number(name, value)
    if not 0.0 <= value <= 100.0:
        raise ValueError(f"{name} must be between 0 and 100, got {value}")


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _get(data: dict, key: str, default: Any = None) -> Any:
    """Read a field by its snake_case key or, failing that, its camelCase spelling."""
    if key in data:
        return data[key]
    return data.get(_camel_case(key), default)


def _require(data: dict, key: str) -> Any:
    """Like _get, but a field missing under both spellings raises KeyError."""
    if key in data:
        return data[key]
    camel = _camel_case(key)
    if camel in data:
        return data[camel]
    raise KeyError(key)


@dataclass(frozen=True)
class TimingWindow:
    """
    Expected timing of an event.

    start <= expected_date <= end is expected but not enforced here; the
    producer of the event is responsible for it.
    """
    start: datetime
    end: datetime
    expected_date: datetime

    def to_dict(self) -> dict:
        return {
            "start": _isoformat(self.start),
            "end": _isoformat(self.end),
            "expected_date": _isoformat(self.expected_date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimingWindow":
        return cls(
            start=parse_datetime(data.get("start")),
            end=parse_datetime(data.get("end")),
            expected_date=parse_datetime(_get(data, "expected_date")),
        )


@dataclass(frozen=True)
class ImpactEstimate:
    """
    Directional impact of an event on one channel.

    magnitude is an unsigned scale; the sign comes from direction. Ranges are
    checked by the expected-value engine at calculation time so that malformed
    upstream estimates surface as validation errors there.
    """
    direction: ImpactDirection
    magnitude: float
    confidence: float  # 0-100

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "magnitude": self.magnitude,
            "confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ImpactEstimate":
        return cls(
            direction=data.get("direction", "neutral"),
            magnitude=data.get("magnitude", 0.0),
            confidence=data.get("confidence", 0.0),
        )


@dataclass(frozen=True)
class EventImpact:
    """Impact estimates for the four channels; absent channels are None."""
    revenue: Optional[ImpactEstimate] = None
    margin: Optional[ImpactEstimate] = None
    market_cap: Optional[ImpactEstimate] = None
    stock_price: Optional[ImpactEstimate] = None

    def channels(self) -> Iterator[Tuple[str, ImpactEstimate]]:
        """Yield (channel, estimate) for every present channel, in canonical order."""
        for channel in IMPACT_CHANNELS:
            estimate = getattr(self, channel)
            if estimate is not None:
                yield channel, estimate

    def to_dict(self) -> dict:
        return {channel: estimate.to_dict() for channel, estimate in self.channels()}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EventImpact":
        kwargs = {}
        for key, value in (data or {}).items():
            channel = _CHANNEL_ALIASES.get(key, key)
            if channel not in IMPACT_CHANNELS:
                logger.warning(f"Ignoring unknown impact channel: {key}")
                continue
            if value is not None:
                kwargs[channel] = ImpactEstimate.from_dict(value)
        return cls(**kwargs)


@dataclass(frozen=True)
class Source:
    """Provenance record for an event."""
    type: SignalType
    timestamp: datetime
    reliability: float  # 0.0-1.0
    url: Optional[str] = None

    def __post_init__(self):
        _check_unit_interval("reliability", self.reliability)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "url": self.url,
            "timestamp": _isoformat(self.timestamp),
            "reliability": self.reliability,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Source":
        return cls(
            type=data["type"],
            url=data.get("url"),
            timestamp=parse_datetime(data.get("timestamp")),
            reliability=data.get("reliability", 0.0),
        )


@dataclass(frozen=True)
class Signal:
    """
    A piece of incoming information that may move an event's probability.

    data is an opaque payload owned by the producer.
    """
    type: SignalType
    source: str
    timestamp: datetime
    reliability: float  # 0.0-1.0
    data: Any = None

    def __post_init__(self):
        _check_unit_interval("reliability", self.reliability)

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "source": self.source,
            "timestamp": _isoformat(self.timestamp),
            "data": self.data,
            "reliability": self.reliability,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Signal":
        return cls(
            type=data["type"],
            source=data.get("source", ""),
            timestamp=parse_datetime(data.get("timestamp")),
            data=data.get("data"),
            reliability=data.get("reliability", 0.0),
        )


@dataclass(frozen=True)
class Evidence:
    """Assessment of a signal against an event hypothesis."""
    supports: bool      # True if the signal supports the event
    strength: float     # 0.0-1.0
    likelihood: float   # P(E|H), 0.0-1.0

    def __post_init__(self):
        _check_unit_interval("strength", self.strength)
        _check_unit_interval("likelihood", self.likelihood)

    def to_dict(self) -> dict:
        return {
            "supports": self.supports,
            "strength": self.strength,
            "likelihood": self.likelihood,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Evidence":
        return cls(
            supports=bool(data.get("supports", True)),
            strength=data.get("strength", 0.0),
            likelihood=data.get("likelihood", 0.0),
        )


@dataclass(frozen=True)
class ProbabilityUpdate:
    """
    One Bayesian update applied to an event.

    Entries are immutable and only ever appended to Event.update_history.
    """
    timestamp: datetime
    prior: float       # 0-100
    posterior: float   # 0-100
    signal: Signal
    evidence: Evidence

    def __post_init__(self):
        _check_percent("prior", self.prior)
        _check_percent("posterior", self.posterior)

    def to_dict(self) -> dict:
        return {
            "timestamp": _isoformat(self.timestamp),
            "prior": self.prior,
            "posterior": self.posterior,
            "signal": self.signal.to_dict(),
            "evidence": self.evidence.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProbabilityUpdate":
        return cls(
            timestamp=parse_datetime(data.get("timestamp")),
            prior=data["prior"],
            posterior=data["posterior"],
            signal=Signal.from_dict(data["signal"]),
            evidence=Evidence.from_dict(data["evidence"]),
        )


@dataclass(frozen=True)
class Event:
    """
    A predicted occurrence tracked in a company's causal graph.

    expected_value is a cached, derived field (sum of per-channel expected
    values); recompute it with expected_value.update_event_expected_value
    whenever probability or impact change.
    """
    id: str
    type: EventType
    title: str
    probability: float   # 0-100
    confidence: float    # 0-100
    timing_window: TimingWindow
    description: str = ""
    prior_probability: Optional[float] = None  # defaults to probability
    impact: EventImpact = field(default_factory=EventImpact)
    expected_value: float = 0.0
    sources: Tuple[Source, ...] = ()
    drivers: Tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    update_history: Tuple[ProbabilityUpdate, ...] = ()

    def __post_init__(self):
        """Validate fields after initialization."""
        if not self.id:
            raise ValueError("event id must be a non-empty string")

        if self.type not in EVENT_TYPES:
            raise ValueError(f"type must be one of {EVENT_TYPES}, got {self.type}")

        if self.prior_probability is None:
            object.__setattr__(self, "prior_probability", self.probability)

        _check_percent("probability", self.probability)
        _check_percent("prior_probability", self.prior_probability)
        _check_percent("confidence", self.confidence)

        # Normalize sequences so history cannot be appended to in place
        for name in ("sources", "drivers", "update_history"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))

    @property
    def latest_update(self) -> Optional[ProbabilityUpdate]:
        """Most recent probability update, if any."""
        return self.update_history[-1] if self.update_history else None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "probability": self.probability,
            "prior_probability": self.prior_probability,
            "timing_window": self.timing_window.to_dict(),
            "impact": self.impact.to_dict(),
            "expected_value": self.expected_value,
            "confidence": self.confidence,
            "sources": [source.to_dict() for source in self.sources],
            "drivers": list(self.drivers),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
            "update_history": [entry.to_dict() for entry in self.update_history],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        """Create from dictionary."""
        created_at = parse_datetime(_get(data, "created_at")) or utc_now()
        updated_at = parse_datetime(_get(data, "updated_at")) or created_at

        return cls(
            id=data["id"],
            type=data["type"],
            title=data.get("title", ""),
            description=data.get("description", ""),
            probability=data["probability"],
            prior_probability=_get(data, "prior_probability"),
            timing_window=TimingWindow.from_dict(_get(data, "timing_window", {})),
            impact=EventImpact.from_dict(data.get("impact")),
            expected_value=_get(data, "expected_value", 0.0),
            confidence=data.get("confidence", 0.0),
            sources=tuple(Source.from_dict(s) for s in data.get("sources", [])),
            drivers=tuple(data.get("drivers", [])),
            created_at=created_at,
            updated_at=updated_at,
            update_history=tuple(
                ProbabilityUpdate.from_dict(u) for u in _get(data, "update_history", [])
            ),
        )


@dataclass(frozen=True)
class CausalEdge:
    """
    Directed causal relationship: from_id -> to_id.

    A self-loop (from_id == to_id) is representable as a record; the graph
    store refuses it and repair_event_graph removes it.
    """
    from_id: str
    to_id: str
    strength: float  # 0.0-1.0
    type: CausalEdgeType = "causes"

    def __post_init__(self):
        """Validate fields."""
        _check_unit_interval("strength", self.strength)

        if self.type not in CAUSAL_EDGE_TYPES:
            raise ValueError(f"type must be one of {CAUSAL_EDGE_TYPES}, got {self.type}")

    @property
    def key(self) -> Tuple[str, str]:
        return (self.from_id, self.to_id)

    def to_dict(self) -> dict:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "strength": self.strength,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CausalEdge":
        return cls(
            from_id=data["from"],
            to_id=data["to"],
            strength=data.get("strength", 0.0),
            type=data.get("type", "causes"),
        )


@dataclass
class EventGraph:
    """
    Serializable snapshot of a company's causal event graph.

    Produced by EventGraphManager.to_event_graph(); a manager rebuilt from it
    has the same nodes, edges and acyclicity status.
    """
    company_id: str
    nodes: List[Event] = field(default_factory=list)
    edges: List[CausalEdge] = field(default_factory=list)
    last_updated: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "company_id": self.company_id,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "last_updated": _isoformat(self.last_updated),
            "metadata": {
                "node_count": len(self.nodes),
                "edge_count": len(self.edges),
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventGraph":
        """Create from dictionary."""
        return cls(
            company_id=_require(data, "company_id"),
            nodes=[Event.from_dict(n) for n in data.get("nodes", [])],
            edges=[CausalEdge.from_dict(e) for e in data.get("edges", [])],
            last_updated=parse_datetime(_get(data, "last_updated")) or utc_now(),
        )

    def to_json(self, **kwargs) -> str:
        """Serialize the snapshot to JSON text."""
        return dumps_json(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, text: str) -> "EventGraph":
        """Parse a snapshot produced by to_json()."""
        return cls.from_dict(json.loads(text))

    def get_node(self, event_id: str) -> Optional[Event]:
        for node in self.nodes:
            if node.id == event_id:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]
