"""
Graph store and snapshot validation.

- EventGraphManager: mutable causal DAG of one company's events
- Snapshot validation: acyclicity checks and cycle repair for EventGraph
  snapshots received from outside the manager
"""

from .manager import EventGraphManager, GraphStats, create_event_graph
from .validation import (
    build_digraph,
    find_cycles,
    find_dangling_edges,
    repair_event_graph,
    validate_event_graph_acyclicity,
)

__all__ = [
    'EventGraphManager',
    'GraphStats',
    'create_event_graph',
    'build_digraph',
    'find_cycles',
    'find_dangling_edges',
    'repair_event_graph',
    'validate_event_graph_acyclicity',
]
