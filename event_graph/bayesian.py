"""
Bayesian Update Engine

Recomputes event probabilities with Bayes' theorem:

    P(H|E) = P(E|H) * P(H) / P(E)

where P(H) is the prior (the event's current probability, in percent),
P(E|H) the likelihood of the evidence under the hypothesis, and P(E) the
marginal probability of the evidence.

Probabilities are carried in percent space (0-100); the core ratio is computed
in [0, 1] probability space and rescaled, in that order, so results match the
reference scenarios exactly.

Malformed inputs raise ValueError; nothing here clamps silently except the
final posterior.
"""

import logging
from dataclasses import dataclass
from typing import NamedTuple, Optional

from event_graph.models import Evidence, ProbabilityUpdate, Signal, require_number
from event_graph.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


# Marginal evidence derivation for signal-driven updates:
#   P(E) = BASE_EVIDENCE_RATE + strength * reliability * EVIDENCE_WEIGHT
BASE_EVIDENCE_RATE = 0.5
EVIDENCE_WEIGHT = 0.3
MIN_MARGINAL_EVIDENCE = 0.01

# Evidence below this is floored by handle_edge_cases
EVIDENCE_FLOOR = 0.001

# Widest half-width of a confidence interval, in percentage points
MAX_INTERVAL_HALF_WIDTH = 20.0

# Largest probability move accepted by validate_probability_update
DEFAULT_MAX_CHANGE = 50.0


class BayesianUpdateInput(NamedTuple):
    """Inputs to update_probability; unpacks positionally."""
    prior: float        # 0-100
    likelihood: float   # 0-1
    evidence: float     # (0, 1]


@dataclass(frozen=True)
class ConfidenceInterval:
    """Bounds around a probability estimate, in percent."""
    lower: float
    upper: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def contains(self, probability: float) -> bool:
        return self.lower <= probability <= self.upper

    def to_dict(self) -> dict:
        return {"lower": self.lower, "upper": self.upper}


@dataclass(frozen=True)
class BayesianUpdateResult:
    """Result of a single Bayesian update."""
    prior: float
    likelihood: float
    evidence: float
    posterior: float

    @property
    def change(self) -> float:
        """Posterior minus prior, in percentage points."""
        return self.posterior - self.prior

    def to_dict(self) -> dict:
        return {
            "prior": self.prior,
            "likelihood": self.likelihood,
            "evidence": self.evidence,
            "posterior": self.posterior,
        }


@dataclass(frozen=True)
class EventProbabilityUpdate(BayesianUpdateResult):
    """
    Bayesian update bound to an event signal.

    update_entry is the audit record to append to the event's history; the
    caller owns persisting it.
    """
    update_entry: ProbabilityUpdate
    confidence_interval: Optional[ConfidenceInterval] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["update_entry"] = self.update_entry.to_dict()
        data["confidence_interval"] = (
            self.confidence_interval.to_dict() if self.confidence_interval else None
        )
        return data


def update_probability(prior: float, likelihood: float, evidence: float) -> BayesianUpdateResult:
    """
    Apply Bayes' theorem to a prior probability.

    posterior = clamp(likelihood * (prior / 100) / evidence, 0, 1) * 100

    Degenerate cases fall out of the formula: a zero likelihood or a zero
    prior yields a zero posterior, and ratios above 1 are clamped to 100.

    Args:
        prior: Current probability, 0-100
        likelihood: P(E|H), 0-1
        evidence: P(E), in (0, 1]; zero is rejected

    Returns:
        BayesianUpdateResult with the posterior in percent

    Raises:
        ValueError: If any input is not a finite number or is out of range
    """
    require_number("Prior", prior)
    if not 0 <= prior <= 100:
        raise ValueError(f"Prior probability must be between 0 and 100, got {prior}")

    require_number("Likelihood", likelihood)
    if not 0 <= likelihood <= 1:
        raise ValueError(f"Likelihood must be between 0 and 1, got {likelihood}")

    require_number("Evidence", evidence)
    if not 0 < evidence <= 1:
        raise ValueError(
            f"Evidence probability must be between 0 (exclusive) and 1 (inclusive), got {evidence}"
        )

    prior_prob = prior / 100
    posterior_prob = (likelihood * prior_prob) / evidence
    posterior = max(0.0, min(1.0, posterior_prob)) * 100

    return BayesianUpdateResult(
        prior=prior,
        likelihood=likelihood,
        evidence=evidence,
        posterior=posterior,
    )


def marginal_evidence(evidence: Evidence, signal: Signal) -> float:
    """
    Derive P(E) for a signal-driven update.

    Stronger evidence from a more reliable signal is treated as a more
    common observation, which damps the update.
    """
    adjusted = BASE_EVIDENCE_RATE + evidence.strength * signal.reliability * EVIDENCE_WEIGHT
    return max(MIN_MARGINAL_EVIDENCE, min(1.0, adjusted))


def update_event_probability(
    current_probability: float,
    signal: Signal,
    evidence: Evidence
) -> EventProbabilityUpdate:
    """
    Update an event's probability from a new signal.

    Does not append to any history; persist result.update_entry yourself (or
    use EventUpdater, which does).

    Args:
        current_probability: The event's probability before the update, 0-100
        signal: Incoming signal
        evidence: Assessment of the signal against the event

    Returns:
        EventProbabilityUpdate with the audit entry and a confidence interval
    """
    result = update_probability(
        current_probability,
        evidence.likelihood,
        marginal_evidence(evidence, signal),
    )

    update_entry = ProbabilityUpdate(
        timestamp=utc_now(),
        prior=result.prior,
        posterior=result.posterior,
        signal=signal,
        evidence=evidence,
    )

    logger.debug(
        f"Bayesian update from {signal.source}: {result.prior:.2f} -> {result.posterior:.2f} "
        f"(likelihood={result.likelihood:.3f}, evidence={result.evidence:.3f})"
    )

    return EventProbabilityUpdate(
        prior=result.prior,
        likelihood=result.likelihood,
        evidence=result.evidence,
        posterior=result.posterior,
        update_entry=update_entry,
        confidence_interval=calculate_confidence_interval(result.posterior, evidence, signal),
    )


def calculate_confidence_interval(
    probability: float,
    evidence: Evidence,
    signal: Signal
) -> ConfidenceInterval:
    """
    Calculate a confidence interval around a probability estimate.

    Half-width = (1 - strength) * (1 - reliability) * 20 percentage points,
    clipped to [0, 100]. Strong evidence from a reliable signal collapses the
    interval onto the estimate.

    Args:
        probability: Current estimate, 0-100
        evidence: Evidence behind the estimate
        signal: Signal behind the estimate

    Returns:
        ConfidenceInterval with 0 <= lower <= probability <= upper <= 100
    """
    require_number("Probability", probability)
    if not 0 <= probability <= 100:
        raise ValueError(f"Probability must be between 0 and 100, got {probability}")

    uncertainty = (1 - evidence.strength) * (1 - signal.reliability) * MAX_INTERVAL_HALF_WIDTH

    return ConfidenceInterval(
        lower=max(0.0, probability - uncertainty),
        upper=min(100.0, probability + uncertainty),
    )


def validate_probability_update(
    prior: float,
    posterior: float,
    max_change: float = DEFAULT_MAX_CHANGE
) -> bool:
    """
    Check that an update does not move the probability too far.

    Advisory circuit breaker for data-quality problems, not an error path.

    Returns:
        True if |posterior - prior| <= max_change
    """
    return abs(posterior - prior) <= max_change


def handle_edge_cases(
    update_input: BayesianUpdateInput,
    evidence_floor: float = EVIDENCE_FLOOR
) -> BayesianUpdateInput:
    """
    Condition inputs before they reach update_probability.

    Floors near-zero evidence to avoid unstable ratios. Prior and likelihood
    pass through unchanged; degenerate values are only logged.

    Args:
        update_input: Raw inputs
        evidence_floor: Smallest evidence value let through

    Returns:
        Adjusted inputs
    """
    prior, likelihood, evidence = update_input

    if prior == 0:
        logger.warning("Prior probability is 0 - posterior will also be 0")

    if likelihood == 1.0:
        logger.warning("Likelihood is 1.0 - evidence is treated as a perfect predictor")

    if evidence < evidence_floor:
        logger.warning(
            f"Evidence probability {evidence} is below {evidence_floor}, flooring to avoid numerical instability"
        )
        evidence = evidence_floor

    return BayesianUpdateInput(prior, likelihood, evidence)
