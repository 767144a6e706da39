"""
Causal Event Graph and Probabilistic Valuation Engine

Maintains a directed acyclic graph of predicted events for a company and
values those events:

- Graph store: causal edges between events, never allowed to form a cycle
- Bayesian update engine: posterior probabilities from new signals
- Expected-value engine: direction-signed, probability-weighted impact per
  channel, per event and per portfolio

Validation errors (malformed numbers, unknown enum values) raise ValueError;
structural rejections from the graph store are boolean return values.
"""

from .models import (
    Event,
    EventType,
    EventImpact,
    ImpactEstimate,
    ImpactDirection,
    TimingWindow,
    Source,
    Signal,
    SignalType,
    Evidence,
    ProbabilityUpdate,
    CausalEdge,
    CausalEdgeType,
    EventGraph,
    IMPACT_CHANNELS,
)
from .graph import (
    EventGraphManager,
    GraphStats,
    create_event_graph,
    repair_event_graph,
    validate_event_graph_acyclicity,
)
from .bayesian import (
    BayesianUpdateInput,
    BayesianUpdateResult,
    EventProbabilityUpdate,
    ConfidenceInterval,
    update_probability,
    update_event_probability,
    calculate_confidence_interval,
    validate_probability_update,
    handle_edge_cases,
)
from .expected_value import (
    ExpectedValueResult,
    MultiImpactExpectedValueResult,
    PortfolioExpectedValueResult,
    EventContribution,
    calculate_expected_value,
    calculate_multi_impact_expected_value,
    calculate_confidence_adjusted_expected_value,
    calculate_portfolio_expected_value,
    update_event_expected_value,
    validate_expected_value_inputs,
    format_expected_value_for_display,
)
from .config import EngineSettings, get_settings, load_settings
from .updater import EventUpdater

__version__ = "0.1.0"

__all__ = [
    # Models
    "Event",
    "EventType",
    "EventImpact",
    "ImpactEstimate",
    "ImpactDirection",
    "TimingWindow",
    "Source",
    "Signal",
    "SignalType",
    "Evidence",
    "ProbabilityUpdate",
    "CausalEdge",
    "CausalEdgeType",
    "EventGraph",
    "IMPACT_CHANNELS",
    # Graph store
    "EventGraphManager",
    "GraphStats",
    "create_event_graph",
    "repair_event_graph",
    "validate_event_graph_acyclicity",
    # Bayesian engine
    "BayesianUpdateInput",
    "BayesianUpdateResult",
    "EventProbabilityUpdate",
    "ConfidenceInterval",
    "update_probability",
    "update_event_probability",
    "calculate_confidence_interval",
    "validate_probability_update",
    "handle_edge_cases",
    # Expected-value engine
    "ExpectedValueResult",
    "MultiImpactExpectedValueResult",
    "PortfolioExpectedValueResult",
    "EventContribution",
    "calculate_expected_value",
    "calculate_multi_impact_expected_value",
    "calculate_confidence_adjusted_expected_value",
    "calculate_portfolio_expected_value",
    "update_event_expected_value",
    "validate_expected_value_inputs",
    "format_expected_value_for_display",
    # Configuration and orchestration
    "EngineSettings",
    "get_settings",
    "load_settings",
    "EventUpdater",
]
