"""
Snapshot Validation Module

Checks EventGraph snapshots received from outside the manager (persisted
state, other services) before they are trusted, and repairs cyclic snapshots
by removing the weakest edge in each cycle.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Tuple

import networkx as nx

from event_graph.models import CausalEdge, EventGraph

logger = logging.getLogger(__name__)


def build_digraph(graph: EventGraph) -> nx.DiGraph:
    """
    Build the raw directed graph of a snapshot.

    Nothing is filtered: dangling edge endpoints become bare nodes and
    duplicate edges collapse to the first one seen.

    Args:
        graph: Snapshot to convert

    Returns:
        NetworkX directed graph with "event" node and "edge" edge attributes
    """
    digraph = nx.DiGraph()

    for event in graph.nodes:
        digraph.add_node(event.id, event=event)

    for edge in graph.edges:
        if not digraph.has_edge(edge.from_id, edge.to_id):
            digraph.add_edge(edge.from_id, edge.to_id, edge=edge)

    return digraph


def validate_event_graph_acyclicity(graph: EventGraph) -> bool:
    """Check whether a snapshot, as stored, is a directed acyclic graph."""
    return nx.is_directed_acyclic_graph(build_digraph(graph))


def find_cycles(graph: EventGraph) -> List[List[str]]:
    """
    Find all simple cycles in a snapshot.

    Returns:
        List of cycles, where each cycle is a list of event ids
    """
    return [list(cycle) for cycle in nx.simple_cycles(build_digraph(graph))]


def find_dangling_edges(graph: EventGraph) -> List[CausalEdge]:
    """Edges whose endpoints are not both nodes of the snapshot."""
    node_ids = set(graph.node_ids())
    return [
        edge for edge in graph.edges
        if edge.from_id not in node_ids or edge.to_id not in node_ids
    ]


def remove_weakest_edge_in_cycle(
    digraph: nx.DiGraph,
    cycle: List[str]
) -> Tuple[str, str, float]:
    """
    Remove the lowest-strength edge of a cycle.

    Args:
        digraph: Graph to modify in place
        cycle: Event ids forming the cycle

    Returns:
        Tuple of (source, target, strength) of the removed edge
    """
    cycle_edges = []
    for i in range(len(cycle)):
        source = cycle[i]
        target = cycle[(i + 1) % len(cycle)]
        strength = digraph[source][target]["edge"].strength
        cycle_edges.append((source, target, strength))

    source, target, strength = min(cycle_edges, key=lambda x: x[2])
    digraph.remove_edge(source, target)

    logger.info(f"Removed edge {source} -> {target} (strength={strength:.4f}) from cycle")

    return source, target, strength


def repair_event_graph(
    graph: EventGraph,
    max_iterations: int = 1000
) -> Tuple[EventGraph, Dict]:
    """
    Turn a snapshot into a valid DAG snapshot.

    Drops dangling edges, then iteratively finds a cycle and removes its
    lowest-strength edge until no cycles remain. Nodes are never removed.

    Args:
        graph: Snapshot to repair (left unmodified)
        max_iterations: Maximum number of cycle removals

    Returns:
        Tuple of (repaired_snapshot, summary_stats)
    """
    logger.info(
        f"Starting DAG validation on snapshot of {graph.company_id} with "
        f"{len(graph.nodes)} nodes, {len(graph.edges)} edges"
    )

    dangling = find_dangling_edges(graph)
    dangling_keys = {edge.key for edge in dangling}
    for edge in dangling:
        logger.warning(f"Dropping dangling edge {edge.from_id} -> {edge.to_id}")

    digraph = build_digraph(replace(
        graph,
        edges=[edge for edge in graph.edges if edge.key not in dangling_keys],
    ))

    was_already_dag = nx.is_directed_acyclic_graph(digraph)
    cycles_detected = 0
    iterations = 0
    removed_edges = []

    while not nx.is_directed_acyclic_graph(digraph) and iterations < max_iterations:
        iterations += 1

        try:
            cycle = [source for source, _ in nx.find_cycle(digraph)]
        except nx.NetworkXNoCycle:
            break

        cycles_detected += 1
        logger.debug(f"Iteration {iterations}: found cycle with {len(cycle)} nodes")

        source, target, strength = remove_weakest_edge_in_cycle(digraph, cycle)
        removed_edges.append({
            "source": source,
            "target": target,
            "strength": strength,
        })

    is_dag = nx.is_directed_acyclic_graph(digraph)
    if not is_dag:
        logger.warning(f"Snapshot still contains cycles after {max_iterations} iterations")

    removed_keys = {(item["source"], item["target"]) for item in removed_edges}
    kept_edges = []
    seen = set()
    for edge in graph.edges:
        if edge.key in dangling_keys or edge.key in removed_keys or edge.key in seen:
            continue
        seen.add(edge.key)
        kept_edges.append(edge)
    repaired = replace(graph, nodes=list(graph.nodes), edges=kept_edges)

    summary = {
        "company_id": graph.company_id,
        "was_already_dag": was_already_dag and not dangling,
        "dangling_edges_removed": len(dangling),
        "cycles_detected": cycles_detected,
        "edges_removed": len(removed_edges),
        "iterations": iterations,
        "is_dag": is_dag,
        "final_edges": len(kept_edges),
        "removed_edges": removed_edges,
    }

    logger.info(
        f"DAG validation complete: removed {len(removed_edges)} cycle edges and "
        f"{len(dangling)} dangling edges in {iterations} iterations"
    )

    return repaired, summary
