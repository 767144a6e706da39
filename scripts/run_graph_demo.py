#!/usr/bin/env python3
"""
Causal event graph demo.

Builds a small company graph, shows cycle rejection and path queries,
values the events as a portfolio and repairs a cyclic snapshot. Pass
--dump to print the final snapshot as JSON.
"""

import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from event_graph.config import get_settings
from event_graph.expected_value import calculate_portfolio_expected_value, update_event_expected_value
from event_graph.graph import create_event_graph, repair_event_graph
from event_graph.logging_utils import setup_logger
from event_graph.models import CausalEdge, Event, EventGraph, EventImpact, ImpactEstimate, TimingWindow
from event_graph.utils import dump_json


def make_event(event_id, event_type, title, probability, impact):
    """Create a demo event with its expected value filled in."""
    event = Event(
        id=event_id,
        type=event_type,
        title=title,
        probability=probability,
        confidence=70.0,
        timing_window=TimingWindow(
            start=datetime(2025, 1, 1),
            end=datetime(2025, 6, 30),
            expected_date=datetime(2025, 3, 31),
        ),
        impact=impact,
    )
    return update_event_expected_value(event)


def create_sample_events():
    """Create a macro -> industry -> company chain of events."""
    return [
        make_event("fed-cut", "macro", "Fed cuts rates 25bps", 40.0, EventImpact(
            market_cap=ImpactEstimate("bullish", 5_000_000_000, 60.0),
        )),
        make_event("chip-demand", "industry", "Semiconductor demand rebounds", 55.0, EventImpact(
            revenue=ImpactEstimate("bullish", 800_000_000, 65.0),
        )),
        make_event("earnings-beat", "company", "Q1 earnings beat", 65.0, EventImpact(
            stock_price=ImpactEstimate("bullish", 8.5, 75.0),
            margin=ImpactEstimate("bullish", 1.2, 50.0),
        )),
        make_event("supply-shock", "industry", "Foundry supply disruption", 20.0, EventImpact(
            revenue=ImpactEstimate("bearish", 300_000_000, 55.0),
        )),
    ]


def main():
    """Run the causal graph demo."""
    settings = get_settings()
    setup_logger(level=settings.log_level)

    print("=" * 60)
    print("CAUSAL EVENT GRAPH DEMO")
    print("=" * 60)

    print("\n1. Building graph...")
    manager = create_event_graph("ACME")
    for event in create_sample_events():
        manager.add_node(event)

    edges = [
        CausalEdge("fed-cut", "chip-demand", 0.6, "influences"),
        CausalEdge("chip-demand", "earnings-beat", 0.8, "causes"),
        CausalEdge("supply-shock", "earnings-beat", 0.5, "influences"),
    ]
    for edge in edges:
        manager.add_edge(edge)

    stats = manager.get_stats()
    print(f"   Nodes: {stats.node_count}")
    print(f"   Edges: {stats.edge_count}")
    print(f"   Is DAG: {stats.is_acyclic}")

    print("\n2. Attempting to close a cycle (earnings-beat -> fed-cut)...")
    accepted = manager.add_edge(CausalEdge("earnings-beat", "fed-cut", 0.3, "correlates"))
    print(f"   Accepted: {accepted}")
    print(f"   Is DAG: {manager.is_acyclic()}")

    print("\n3. Path queries:")
    print(f"   fed-cut reaches earnings-beat: {manager.has_path('fed-cut', 'earnings-beat')}")
    print(f"   Shortest path: {manager.get_shortest_path('fed-cut', 'earnings-beat')}")
    print(f"   earnings-beat reaches fed-cut: {manager.has_path('earnings-beat', 'fed-cut')}")
    print(f"   Topological order: {manager.topological_order()}")

    print("\n4. Portfolio expected value:")
    portfolio = calculate_portfolio_expected_value(manager.get_nodes())
    for item in portfolio.event_breakdown:
        print(f"   {item.event_title}: {item.expected_value:,.2f} ({item.contribution:.1f}%)")
    print(f"   Total: {portfolio.total_expected_value:,.2f}")

    print("\n5. Repairing a cyclic snapshot...")
    snapshot = manager.to_event_graph()
    cyclic = EventGraph(
        company_id=snapshot.company_id,
        nodes=snapshot.nodes,
        edges=snapshot.edges + [CausalEdge("earnings-beat", "fed-cut", 0.3, "correlates")],
    )
    repaired, summary = repair_event_graph(cyclic)
    print(f"   Cycles detected: {summary['cycles_detected']}")
    print(f"   Edges removed: {summary['edges_removed']}")
    for edge in summary["removed_edges"]:
        print(f"     {edge['source']} -> {edge['target']}: {edge['strength']:.4f}")
    print(f"   Final is DAG: {summary['is_dag']}")
    print(f"   Final edges: {len(repaired.edges)}")

    if "--dump" in sys.argv[1:]:
        print("\n6. Snapshot:")
        dump_json(snapshot.to_dict(), sys.stdout)
        print()

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print("=" * 60)


if __name__ == "__main__":
    main()
