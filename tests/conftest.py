"""
Pytest Configuration and Fixtures
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from event_graph.graph.manager import EventGraphManager
from event_graph.models import (
    CausalEdge,
    Event,
    EventImpact,
    Evidence,
    ImpactEstimate,
    Signal,
    TimingWindow,
)


@pytest.fixture
def timing_window():
    """Provide a Q1 timing window."""
    return TimingWindow(
        start=datetime(2025, 1, 15),
        end=datetime(2025, 2, 15),
        expected_date=datetime(2025, 1, 30),
    )


@pytest.fixture
def make_event(timing_window):
    """Provide a factory for events with sensible defaults."""
    def _make_event(event_id, probability=50.0, impact=None, event_type="company", **kwargs):
        return Event(
            id=event_id,
            type=event_type,
            title=kwargs.pop("title", f"Event {event_id}"),
            probability=probability,
            confidence=kwargs.pop("confidence", 70.0),
            timing_window=kwargs.pop("timing_window", timing_window),
            impact=impact or EventImpact(),
            **kwargs,
        )
    return _make_event


@pytest.fixture
def make_edge():
    """Provide a factory for causal edges."""
    def _make_edge(from_id, to_id, strength=0.5, edge_type="causes"):
        return CausalEdge(from_id=from_id, to_id=to_id, strength=strength, type=edge_type)
    return _make_edge


@pytest.fixture
def analyst_signal():
    """Provide a reliable analyst-report signal."""
    return Signal(
        type="financial",
        source="Goldman Sachs Research",
        timestamp=datetime(2025, 1, 10, 9, 30),
        data={"rating": "Buy", "target_price": 185},
        reliability=0.85,
    )


@pytest.fixture
def social_signal():
    """Provide a noisy social-sentiment signal."""
    return Signal(
        type="social",
        source="Twitter/Reddit Aggregate",
        timestamp=datetime(2025, 1, 11, 16, 0),
        data={"sentiment_score": 0.75, "volume": "high"},
        reliability=0.60,
    )


@pytest.fixture
def moderate_support():
    """Provide moderately supportive evidence."""
    return Evidence(supports=True, strength=0.6, likelihood=0.70)


@pytest.fixture
def contradiction():
    """Provide contradicting evidence."""
    return Evidence(supports=False, strength=0.7, likelihood=0.20)


@pytest.fixture
def earnings_event(make_event):
    """Provide an earnings-beat event with a bullish stock price impact."""
    return make_event(
        "earnings-beat-q4",
        probability=65.0,
        title="Q4 Earnings Beat",
        impact=EventImpact(
            stock_price=ImpactEstimate(direction="bullish", magnitude=8.5, confidence=75.0),
        ),
        drivers=("Strong Q3 performance", "Positive guidance"),
    )


@pytest.fixture
def chain_graph(make_event, make_edge):
    """Provide a manager holding the chain A -> B -> C."""
    manager = EventGraphManager("ACME")
    for event_id in ("A", "B", "C"):
        manager.add_node(make_event(event_id))
    manager.add_edge(make_edge("A", "B"))
    manager.add_edge(make_edge("B", "C"))
    return manager
