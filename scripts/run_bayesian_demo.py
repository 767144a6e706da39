#!/usr/bin/env python3
"""
Bayesian update demo.

Applies a sequence of signals to two sample events and prints each
probability move, its confidence interval and the refreshed expected value.
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from event_graph.config import get_settings
from event_graph.expected_value import format_expected_value_for_display
from event_graph.logging_utils import setup_logger
from event_graph.models import Event, EventImpact, Evidence, ImpactEstimate, Signal, TimingWindow
from event_graph.updater import EventUpdater


def create_sample_events():
    """Create the earnings and Fed events used by the demo."""
    earnings = Event(
        id="earnings-beat-q4-2024",
        type="company",
        title="Q4 2024 Earnings Beat",
        description="Company will beat Q4 2024 earnings estimates by >5%",
        probability=65.0,
        confidence=75.0,
        timing_window=TimingWindow(
            start=datetime(2024, 1, 15),
            end=datetime(2024, 2, 15),
            expected_date=datetime(2024, 1, 30),
        ),
        impact=EventImpact(
            stock_price=ImpactEstimate(direction="bullish", magnitude=8.5, confidence=75.0),
        ),
        drivers=("Strong Q3 performance", "Positive guidance", "Market tailwinds"),
    )

    fed_cut = Event(
        id="fed-rate-cut-march-2024",
        type="macro",
        title="Fed Rate Cut March 2024",
        description="Federal Reserve will cut interest rates by 25bps in March",
        probability=40.0,
        confidence=60.0,
        timing_window=TimingWindow(
            start=datetime(2024, 3, 15),
            end=datetime(2024, 3, 25),
            expected_date=datetime(2024, 3, 20),
        ),
        impact=EventImpact(
            market_cap=ImpactEstimate(direction="bullish", magnitude=12_000_000_000, confidence=60.0),
        ),
        drivers=("Inflation cooling", "Economic slowdown signals"),
    )

    return earnings, fed_cut


def create_sample_signals():
    """Create (description, signal, evidence) triples per event."""
    now = datetime(2024, 1, 10, 9, 30)

    analyst = Signal(type="financial", source="Goldman Sachs Research", timestamp=now,
                     data={"rating": "Buy", "target_price": 185}, reliability=0.85)
    preannouncement = Signal(type="financial", source="Company IR", timestamp=now,
                             data={"guidance": "above_consensus"}, reliability=0.95)
    social = Signal(type="social", source="Twitter/Reddit Aggregate", timestamp=now,
                    data={"sentiment_score": 0.75, "volume": "high"}, reliability=0.60)
    fed_speech = Signal(type="macro", source="Fed Chair Speech", timestamp=now,
                        data={"tone": "dovish"}, reliability=0.90)

    strong = Evidence(supports=True, strength=0.8, likelihood=0.85)
    moderate = Evidence(supports=True, strength=0.6, likelihood=0.70)
    weak = Evidence(supports=True, strength=0.3, likelihood=0.55)
    contradiction = Evidence(supports=False, strength=0.7, likelihood=0.20)

    earnings_updates = [
        ("Analyst upgrade to Buy", analyst, moderate),
        ("Company preannounces strong results", preannouncement, strong),
        ("Bearish social chatter", social, contradiction),
    ]
    fed_updates = [
        ("Dovish Fed speech", fed_speech, strong),
        ("Mixed social sentiment", social, weak),
    ]
    return earnings_updates, fed_updates


def run_updates(updater, event, updates, impact_type):
    """Apply updates in order and print each step."""
    print(f"\n   Event: {event.title}")
    print(f"   Initial probability: {event.probability:.1f}%")

    for i, (description, signal, evidence) in enumerate(updates, 1):
        event, result = updater.apply_signal(event, signal, evidence)
        interval = result.confidence_interval

        print(f"\n   Update {i}: {description} ({signal.source})")
        print(f"     Prior:      {result.prior:.1f}%")
        print(f"     Posterior:  {result.posterior:.1f}%")
        print(f"     Change:     {result.change:+.1f} points")
        print(f"     Interval:   [{interval.lower:.1f}%, {interval.upper:.1f}%]")
        print(f"     EV:         {format_expected_value_for_display(event.expected_value, impact_type)}")

    print(f"\n   Final probability: {event.probability:.1f}% after {len(event.update_history)} updates")
    return event


def main():
    """Run the Bayesian update demo."""
    settings = get_settings()
    setup_logger(level=settings.log_level)

    print("=" * 60)
    print("BAYESIAN UPDATE DEMO")
    print("=" * 60)

    updater = EventUpdater(settings)
    earnings, fed_cut = create_sample_events()
    earnings_updates, fed_updates = create_sample_signals()

    print("\n1. Earnings beat:")
    run_updates(updater, earnings, earnings_updates, "stock_price")

    print("\n2. Fed rate cut:")
    run_updates(updater, fed_cut, fed_updates, "market_cap")

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
