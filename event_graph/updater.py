"""
Event Updater

Applies incoming signals to events: Bayesian probability update, history
append, expected-value refresh and submission to the graph store.
"""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from event_graph.bayesian import (
    ConfidenceInterval,
    EventProbabilityUpdate,
    calculate_confidence_interval,
    update_event_probability,
    validate_probability_update,
)
from event_graph.config import EngineSettings, get_settings
from event_graph.expected_value import update_event_expected_value
from event_graph.graph.manager import EventGraphManager
from event_graph.models import Event, Evidence, ProbabilityUpdate, Signal

logger = logging.getLogger(__name__)


class EventUpdater:
    """
    Stateful signal applier with configurable update limits.

    Updates that move a probability by more than
    settings.max_probability_change are logged as suspicious; with
    settings.strict_updates they are rejected with ValueError instead.
    """

    def __init__(self, settings: Optional[EngineSettings] = None):
        """
        Initialize updater.

        Args:
            settings: Engine settings (defaults to the loaded configuration)
        """
        self.settings = settings or get_settings()

    def apply_signal(
        self,
        event: Event,
        signal: Signal,
        evidence: Evidence
    ) -> Tuple[Event, EventProbabilityUpdate]:
        """
        Apply one signal to an event.

        The returned event has the posterior as its probability, the previous
        probability as prior_probability, the audit entry appended to its
        history and a recomputed expected value. The input event is unchanged.

        Returns:
            Tuple of (updated_event, update_result)
        """
        result = update_event_probability(event.probability, signal, evidence)

        if not validate_probability_update(
            result.prior, result.posterior, self.settings.max_probability_change
        ):
            message = (
                f"Probability of {event.id} moved {result.change:+.2f} points on a signal from "
                f"{signal.source}, above the {self.settings.max_probability_change:.1f} point limit"
            )
            if self.settings.strict_updates:
                raise ValueError(message)
            logger.warning(message)

        updated = replace(
            event,
            probability=result.posterior,
            prior_probability=result.prior,
            update_history=event.update_history + (result.update_entry,),
        )
        updated = update_event_expected_value(updated)

        logger.info(
            f"Event {event.id}: probability {result.prior:.2f} -> {result.posterior:.2f}, "
            f"expected value {event.expected_value:.4f} -> {updated.expected_value:.4f}"
        )

        return updated, result

    def apply_signal_to_graph(
        self,
        manager: EventGraphManager,
        event_id: str,
        signal: Signal,
        evidence: Evidence
    ) -> Optional[ProbabilityUpdate]:
        """
        Apply a signal to an event held by a graph store.

        Returns:
            The appended ProbabilityUpdate, or None if the event is unknown or
            the store rejected the new version
        """
        event = manager.get_node(event_id)
        if event is None:
            logger.warning(f"Cannot apply signal from {signal.source}: unknown event {event_id}")
            return None

        updated, result = self.apply_signal(event, signal, evidence)

        if not manager.update_event(updated):
            logger.warning(f"Graph store rejected update of event {event_id}")
            return None

        return result.update_entry

    def refresh_expected_values(self, manager: EventGraphManager) -> int:
        """
        Recompute the cached expected value of every event in a graph store.

        Returns:
            Number of events whose expected value changed
        """
        changed = 0

        for event in manager.get_nodes():
            refreshed = update_event_expected_value(event)
            if refreshed.expected_value != event.expected_value:
                manager.update_event(refreshed)
                changed += 1

        logger.info(f"Refreshed expected values for {manager.company_id}: {changed} changed")
        return changed

    def confidence_interval(
        self,
        event: Event,
        signal: Signal,
        evidence: Evidence
    ) -> ConfidenceInterval:
        """Confidence interval around an event's current probability."""
        return calculate_confidence_interval(event.probability, evidence, signal)
