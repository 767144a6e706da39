"""
Expected Value Engine

Turns an event's probability and directional impact estimates into a signed
expected value:

    EV = (probability / 100) * magnitude * sign(direction)

with sign = +1 for bullish, -1 for bearish and 0 for neutral. Per-channel
values are summed per event (revenue, margin, market_cap, stock_price) and
across a portfolio of events.

Magnitudes are unsigned; a negative magnitude is rejected rather than
combined with a bearish sign.
"""

import logging
import math
import numbers
from dataclasses import dataclass, field, replace
from typing import Dict, List

from event_graph.models import IMPACT_DIRECTIONS, Event, ImpactEstimate
from event_graph.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


DIRECTION_SIGN = {
    "bullish": 1,
    "bearish": -1,
    "neutral": 0,
}

# Display groups for format_expected_value_for_display
MONETARY_CHANNELS = {"revenue", "market_cap", "marketCap"}
PERCENT_CHANNELS = {"margin", "stock_price", "stockPrice"}


@dataclass(frozen=True)
class ExpectedValueResult:
    """Expected value of one impact estimate."""
    expected_value: float
    probability: float
    impact: ImpactEstimate
    impact_type: str = "single"

    def to_dict(self) -> dict:
        return {
            "expected_value": self.expected_value,
            "probability": self.probability,
            "impact": self.impact.to_dict(),
            "impact_type": self.impact_type,
        }


@dataclass
class MultiImpactExpectedValueResult:
    """Expected value of an event across its impact channels."""
    total_expected_value: float
    impact_breakdown: Dict[str, ExpectedValueResult] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "total_expected_value": self.total_expected_value,
            "impact_breakdown": {
                channel: result.to_dict() for channel, result in self.impact_breakdown.items()
            },
        }


@dataclass
class EventContribution:
    """One event's share of a portfolio expected value."""
    event_id: str
    event_title: str
    expected_value: float
    contribution: float  # percent of the portfolio total

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_title": self.event_title,
            "expected_value": self.expected_value,
            "contribution": self.contribution,
        }


@dataclass
class PortfolioExpectedValueResult:
    """Expected value summed over a set of events."""
    total_expected_value: float
    event_breakdown: List[EventContribution] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_expected_value": self.total_expected_value,
            "event_breakdown": [item.to_dict() for item in self.event_breakdown],
        }


def _is_finite_number(value) -> bool:
    return (
        not isinstance(value, bool)
        and isinstance(value, numbers.Real)
        and math.isfinite(value)
    )


def calculate_expected_value(
    probability: float,
    impact: ImpactEstimate,
    impact_type: str = "single"
) -> ExpectedValueResult:
    """
    Calculate the expected value of a single impact estimate.

    Args:
        probability: Event probability, 0-100
        impact: Impact estimate for one channel
        impact_type: Channel label carried into the result

    Returns:
        ExpectedValueResult

    Raises:
        ValueError: For a non-finite or out-of-range probability, magnitude or
            confidence, or an unknown direction
    """
    if not _is_finite_number(probability):
        raise ValueError(f"Probability must be a valid number, got {probability!r}")
    if not 0 <= probability <= 100:
        raise ValueError(f"Probability must be between 0 and 100, got {probability}")

    if impact is None:
        raise ValueError("Impact estimate is required")
    if not _is_finite_number(impact.magnitude):
        raise ValueError(f"Impact magnitude must be a valid number, got {impact.magnitude!r}")
    if impact.magnitude < 0:
        raise ValueError(
            f"Impact magnitude must be non-negative (direction carries the sign), got {impact.magnitude}"
        )
    if not _is_finite_number(impact.confidence) or not 0 <= impact.confidence <= 100:
        raise ValueError(f"Impact confidence must be between 0 and 100, got {impact.confidence!r}")
    if impact.direction not in DIRECTION_SIGN:
        raise ValueError(
            f"Invalid impact direction: {impact.direction!r} (expected one of {IMPACT_DIRECTIONS})"
        )

    expected_value = (probability / 100) * impact.magnitude * DIRECTION_SIGN[impact.direction]

    return ExpectedValueResult(
        expected_value=expected_value,
        probability=probability,
        impact=impact,
        impact_type=impact_type,
    )


def calculate_multi_impact_expected_value(event: Event) -> MultiImpactExpectedValueResult:
    """
    Calculate an event's expected value over every present impact channel.

    The total is the plain sum of the per-channel values; each breakdown entry
    is tagged with its channel name.
    """
    breakdown: Dict[str, ExpectedValueResult] = {}
    total = 0.0

    for channel, estimate in event.impact.channels():
        result = calculate_expected_value(event.probability, estimate, impact_type=channel)
        breakdown[channel] = result
        total += result.expected_value

    return MultiImpactExpectedValueResult(
        total_expected_value=total,
        impact_breakdown=breakdown,
    )


def calculate_confidence_adjusted_expected_value(
    probability: float,
    impact: ImpactEstimate,
    impact_type: str = "single"
) -> ExpectedValueResult:
    """
    Scale the expected value by the estimate's own confidence.

    Equal to the unadjusted value at confidence 100 and exactly zero at
    confidence 0; never larger in magnitude than the unadjusted value.
    """
    base = calculate_expected_value(probability, impact, impact_type)
    return replace(base, expected_value=base.expected_value * (impact.confidence / 100))


def calculate_portfolio_expected_value(events: List[Event]) -> PortfolioExpectedValueResult:
    """
    Calculate the combined expected value of several events.

    Contributions are each event's percentage of the total; when the total is
    exactly zero every contribution is 0.
    """
    breakdown: List[EventContribution] = []
    total = 0.0

    for event in events:
        result = calculate_multi_impact_expected_value(event)
        total += result.total_expected_value
        breakdown.append(EventContribution(
            event_id=event.id,
            event_title=event.title,
            expected_value=result.total_expected_value,
            contribution=0.0,
        ))

    if total != 0:
        for item in breakdown:
            item.contribution = (item.expected_value / total) * 100

    logger.debug(f"Portfolio expected value over {len(events)} events: {total:.4f}")

    return PortfolioExpectedValueResult(
        total_expected_value=total,
        event_breakdown=breakdown,
    )


def update_event_expected_value(event: Event) -> Event:
    """
    Return a copy of the event with expected_value recomputed.

    Call whenever probability or impact changes; expected_value is a cached
    derived field.
    """
    result = calculate_multi_impact_expected_value(event)
    return replace(event, expected_value=result.total_expected_value, updated_at=utc_now())


def validate_expected_value_inputs(probability: float, impact: ImpactEstimate) -> bool:
    """
    Check whether calculate_expected_value accepts these inputs.

    Returns:
        True if the inputs are valid
    """
    try:
        calculate_expected_value(probability, impact)
    except ValueError as e:
        logger.warning(f"Expected value input validation failed: {e}")
        return False
    return True


def format_expected_value_for_display(expected_value: float, impact_type: str) -> str:
    """
    Format an expected value for display.

    Monetary channels (revenue, market_cap) scale to K/M/B with a dollar sign;
    percentage channels (margin, stock_price) get two decimals and a % suffix;
    anything else gets two decimals.

    Examples:
        >>> format_expected_value_for_display(1500000000, "market_cap")
        '+$1.5B'
        >>> format_expected_value_for_display(-8.25, "stock_price")
        '-8.25%'
    """
    abs_value = abs(expected_value)
    sign = "+" if expected_value >= 0 else "-"

    if impact_type in MONETARY_CHANNELS:
        if abs_value >= 1e9:
            return f"{sign}${abs_value / 1e9:.1f}B"
        if abs_value >= 1e6:
            return f"{sign}${abs_value / 1e6:.1f}M"
        if abs_value >= 1e3:
            return f"{sign}${abs_value / 1e3:.1f}K"
        return f"{sign}${abs_value:.0f}"

    if impact_type in PERCENT_CHANNELS:
        return f"{sign}{abs_value:.2f}%"

    return f"{sign}{abs_value:.2f}"
