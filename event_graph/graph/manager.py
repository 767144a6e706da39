"""
Event Graph Manager

Owns the authoritative nodes (events) and edges (causal relationships) of one
company's causal graph and keeps it a directed acyclic graph at every
observable state.

Structural rejections (duplicate node or edge, missing endpoint, edge that
would close a cycle) are reported through boolean return values, never
exceptions; callers treat them as ordinary control flow.

Adjacency is held in a networkx.DiGraph: node attribute "event" stores the
Event, edge attribute "edge" stores the CausalEdge. Successor iteration
follows insertion order, which fixes tie-breaking in shortest-path queries.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

import networkx as nx

from event_graph.models import CausalEdge, Event, EventGraph
from event_graph.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GraphStats:
    """Counts and status of a graph at one point in time."""
    node_count: int
    edge_count: int
    is_acyclic: bool
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "node_count": self.node_count,
            "edge_count": self.edge_count,
            "is_acyclic": self.is_acyclic,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


class EventGraphManager:
    """
    Mutable causal graph for a single company.

    Every mutation (add/remove node, add/remove edge, update event) and every
    query runs under one re-entrant lock, so a multi-threaded host gets a
    single-writer discipline without extra wrapping.

    Cycle safety on insert is a single reachability query: an edge u -> v
    closes a cycle iff v already reaches u. This is equivalent to inserting the
    edge, re-validating the whole graph and rolling back, without ever exposing
    the provisional state.
    """

    def __init__(self, company_id: str, initial_graph: Optional[EventGraph] = None):
        """
        Initialize the manager.

        Args:
            company_id: Company whose graph this is
            initial_graph: Optional snapshot to rebuild from. Edges that are
                duplicated, dangling or would close a cycle are dropped with a
                warning.
        """
        self.company_id = company_id
        self.last_updated = utc_now()

        self._graph = nx.DiGraph()
        self._lock = threading.RLock()

        if initial_graph is not None:
            self._load_from_graph(initial_graph)

    def _load_from_graph(self, graph: EventGraph) -> None:
        """Rebuild state from a snapshot through the regular mutation API."""
        if graph.company_id != self.company_id:
            logger.warning(
                f"Loading snapshot of company {graph.company_id} into manager for {self.company_id}"
            )

        for event in graph.nodes:
            if not self.add_node(event):
                logger.warning(f"Skipped duplicate node in snapshot: {event.id}")

        for edge in graph.edges:
            if not self.add_edge(edge):
                logger.warning(f"Skipped invalid edge in snapshot: {edge.from_id} -> {edge.to_id}")

        self.last_updated = graph.last_updated
        logger.info(
            f"Loaded graph for {self.company_id}: "
            f"{self._graph.number_of_nodes()} nodes, {self._graph.number_of_edges()} edges"
        )

    def _touch(self) -> None:
        self.last_updated = utc_now()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_node(self, event: Event) -> bool:
        """
        Register an event.

        Returns:
            False (and changes nothing) if an event with the same id exists
        """
        with self._lock:
            if self._graph.has_node(event.id):
                logger.debug(f"Rejected node {event.id}: already exists")
                return False

            self._graph.add_node(event.id, event=event)
            self._touch()
            logger.debug(f"Added node {event.id}")
            return True

    def remove_node(self, event_id: str) -> bool:
        """
        Remove an event and every edge touching it.

        Returns:
            False if the event is not registered
        """
        with self._lock:
            if not self._graph.has_node(event_id):
                return False

            incident = self._graph.in_degree(event_id) + self._graph.out_degree(event_id)
            self._graph.remove_node(event_id)
            self._touch()
            logger.debug(f"Removed node {event_id} and {incident} incident edges")
            return True

    def update_event(self, event: Event) -> bool:
        """
        Replace a registered event with a newer version of itself.

        The new update_history must extend the stored one: entries already
        recorded can be neither altered nor dropped.

        Returns:
            False if the event is unknown or its history was rewritten
        """
        with self._lock:
            if not self._graph.has_node(event.id):
                logger.debug(f"Rejected update of {event.id}: unknown event")
                return False

            stored: Event = self._graph.nodes[event.id]["event"]
            recorded = len(stored.update_history)
            if event.update_history[:recorded] != stored.update_history:
                logger.warning(f"Rejected update of {event.id}: update history is append-only")
                return False

            self._graph.nodes[event.id]["event"] = event
            self._touch()
            logger.debug(
                f"Updated node {event.id}: probability {stored.probability:.2f} -> {event.probability:.2f}, "
                f"{len(event.update_history) - recorded} new history entries"
            )
            return True

    def add_edge(self, edge: CausalEdge) -> bool:
        """
        Add a causal edge if it keeps the graph a DAG.

        Returns:
            False (and changes nothing) if an endpoint is missing, the edge
            already exists, or the edge would create a cycle
        """
        source, target = edge.from_id, edge.to_id

        with self._lock:
            if not self._graph.has_node(source) or not self._graph.has_node(target):
                logger.debug(f"Rejected edge {source} -> {target}: missing endpoint")
                return False

            if self._graph.has_edge(source, target):
                logger.debug(f"Rejected edge {source} -> {target}: already exists")
                return False

            if source == target or nx.has_path(self._graph, target, source):
                logger.debug(f"Rejected edge {source} -> {target}: would create a cycle")
                return False

            self._graph.add_edge(source, target, edge=edge)
            self._touch()
            logger.debug(f"Added edge {source} -> {target} ({edge.type}, strength={edge.strength:.2f})")
            return True

    def remove_edge(self, from_id: str, to_id: str) -> bool:
        """
        Remove a causal edge.

        Returns:
            False if the edge does not exist
        """
        with self._lock:
            if not self._graph.has_edge(from_id, to_id):
                return False

            self._graph.remove_edge(from_id, to_id)
            self._touch()
            logger.debug(f"Removed edge {from_id} -> {to_id}")
            return True

    # ------------------------------------------------------------------
    # Structural queries
    # ------------------------------------------------------------------

    def is_acyclic(self) -> bool:
        """
        Check the whole graph for cycles.

        Depth-first search from every unvisited node with an explicit stack;
        an edge into a node that is still on the current DFS path is a back
        edge and proves a cycle.
        """
        with self._lock:
            visited = set()

            for root in self._graph.nodes:
                if root in visited:
                    continue

                visited.add(root)
                on_path = {root}
                stack = [(root, iter(self._graph.successors(root)))]

                while stack:
                    node, neighbors = stack[-1]
                    for neighbor in neighbors:
                        if neighbor in on_path:
                            return False
                        if neighbor not in visited:
                            visited.add(neighbor)
                            on_path.add(neighbor)
                            stack.append((neighbor, iter(self._graph.successors(neighbor))))
                            break
                    else:
                        stack.pop()
                        on_path.discard(node)

            return True

    def has_path(self, from_id: str, to_id: str) -> bool:
        """
        Check whether a directed path of at least one edge exists.

        has_path(x, x) asks whether x lies on a cycle, so it is always False
        for a graph maintained by this class.
        """
        with self._lock:
            if not self._graph.has_node(from_id) or not self._graph.has_node(to_id):
                return False

            if from_id == to_id:
                return any(
                    nx.has_path(self._graph, neighbor, to_id)
                    for neighbor in self._graph.successors(from_id)
                )

            return nx.has_path(self._graph, from_id, to_id)

    def get_shortest_path(self, from_id: str, to_id: str) -> Optional[List[str]]:
        """
        Find the path with the fewest edges (breadth-first search).

        Ties are broken by edge insertion order. A known node reaches itself
        through the empty path, returned as [from_id].

        Returns:
            List of event ids from from_id to to_id, or None if either id is
            unknown or to_id is unreachable
        """
        with self._lock:
            if not self._graph.has_node(from_id) or not self._graph.has_node(to_id):
                return None

            parents: Dict[str, Optional[str]] = {from_id: None}
            queue = deque([from_id])

            while queue:
                node = queue.popleft()

                if node == to_id:
                    path = []
                    while node is not None:
                        path.append(node)
                        node = parents[node]
                    return list(reversed(path))

                for neighbor in self._graph.successors(node):
                    if neighbor not in parents:
                        parents[neighbor] = node
                        queue.append(neighbor)

            return None

    def topological_order(self) -> List[str]:
        """Event ids ordered so that every edge points forward."""
        with self._lock:
            return list(nx.topological_sort(self._graph))

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def get_nodes(self) -> List[Event]:
        """Get all events."""
        with self._lock:
            return [data["event"] for _, data in self._graph.nodes(data=True)]

    def get_edges(self) -> List[CausalEdge]:
        """Get all causal edges."""
        with self._lock:
            return [data["edge"] for _, _, data in self._graph.edges(data=True)]

    def get_node(self, event_id: str) -> Optional[Event]:
        """Get an event by id, or None."""
        with self._lock:
            if not self._graph.has_node(event_id):
                return None
            return self._graph.nodes[event_id]["event"]

    def get_edges_from(self, event_id: str) -> List[CausalEdge]:
        """Get all edges leaving an event."""
        with self._lock:
            if not self._graph.has_node(event_id):
                return []
            return [data["edge"] for _, _, data in self._graph.out_edges(event_id, data=True)]

    def get_edges_to(self, event_id: str) -> List[CausalEdge]:
        """Get all edges entering an event."""
        with self._lock:
            if not self._graph.has_node(event_id):
                return []
            return [data["edge"] for _, _, data in self._graph.in_edges(event_id, data=True)]

    def get_stats(self) -> GraphStats:
        """Get graph statistics."""
        with self._lock:
            return GraphStats(
                node_count=self._graph.number_of_nodes(),
                edge_count=self._graph.number_of_edges(),
                is_acyclic=self.is_acyclic(),
                last_updated=self.last_updated,
            )

    def to_event_graph(self) -> EventGraph:
        """Snapshot the graph for serialization."""
        with self._lock:
            return EventGraph(
                company_id=self.company_id,
                nodes=self.get_nodes(),
                edges=self.get_edges(),
                last_updated=self.last_updated,
            )

    def __len__(self) -> int:
        with self._lock:
            return self._graph.number_of_nodes()

    def __contains__(self, event_id: str) -> bool:
        with self._lock:
            return self._graph.has_node(event_id)

    def __repr__(self) -> str:
        return (
            f"EventGraphManager(company_id={self.company_id!r}, "
            f"nodes={self._graph.number_of_nodes()}, edges={self._graph.number_of_edges()})"
        )


def create_event_graph(company_id: str, initial_graph: Optional[EventGraph] = None) -> EventGraphManager:
    """Create a new EventGraphManager."""
    return EventGraphManager(company_id, initial_graph)
