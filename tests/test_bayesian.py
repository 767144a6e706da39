"""
Tests for the Bayesian update engine
"""

import math
import random

import pytest

from event_graph.bayesian import (
    BayesianUpdateInput,
    ConfidenceInterval,
    EventProbabilityUpdate,
    calculate_confidence_interval,
    handle_edge_cases,
    marginal_evidence,
    update_event_probability,
    update_probability,
    validate_probability_update,
)
from event_graph.models import Evidence, ProbabilityUpdate, Signal


class TestUpdateProbability:
    """Tests for the core Bayes' theorem update."""

    def test_supporting_evidence_raises_probability(self):
        """prior 60, likelihood 0.8, evidence 0.5 -> posterior 96."""
        result = update_probability(60, 0.8, 0.5)

        assert result.posterior == pytest.approx(96.0)
        assert result.prior == 60
        assert result.likelihood == 0.8
        assert result.evidence == 0.5
        assert result.change == pytest.approx(36.0)

    def test_zero_evidence_rejected(self):
        with pytest.raises(ValueError, match="Evidence probability must be between 0"):
            update_probability(50, 0.5, 0)

    def test_evidence_of_one_allowed(self):
        result = update_probability(40, 0.5, 1.0)
        assert result.posterior == pytest.approx(20.0)

    @pytest.mark.parametrize("prior,likelihood,evidence,message", [
        (-1, 0.5, 0.5, "Prior probability must be between 0 and 100"),
        (100.1, 0.5, 0.5, "Prior probability must be between 0 and 100"),
        (50, -0.1, 0.5, "Likelihood must be between 0 and 1"),
        (50, 1.1, 0.5, "Likelihood must be between 0 and 1"),
        (50, 0.5, 1.5, "Evidence probability"),
        (50, 0.5, -0.2, "Evidence probability"),
        (float("nan"), 0.5, 0.5, "must be a valid number"),
        (50, float("inf"), 0.5, "must be a valid number"),
        (50, 0.5, "0.5", "must be a valid number"),
        (True, 0.5, 0.5, "must be a valid number"),
    ])
    def test_invalid_inputs(self, prior, likelihood, evidence, message):
        with pytest.raises(ValueError, match=message):
            update_probability(prior, likelihood, evidence)

    def test_zero_likelihood_gives_zero(self):
        assert update_probability(70, 0.0, 0.4).posterior == 0.0

    def test_zero_prior_stays_zero(self):
        assert update_probability(0, 0.9, 0.3).posterior == 0.0

    def test_certain_prior_with_matching_evidence(self):
        assert update_probability(100, 0.6, 0.6).posterior == pytest.approx(100.0)

    def test_ratio_above_one_is_clamped(self):
        """0.9 * 0.8 / 0.1 = 7.2 clamps to 100."""
        assert update_probability(80, 0.9, 0.1).posterior == 100.0

    @pytest.mark.parametrize("seed", range(5))
    def test_random_inputs_match_formula(self, seed):
        """Posterior always lands in [0, 100] and follows the closed form."""
        rng = random.Random(seed)

        for _ in range(200):
            prior = rng.uniform(0, 100)
            likelihood = rng.uniform(0, 1)
            evidence = rng.uniform(0.001, 1)

            result = update_probability(prior, likelihood, evidence)
            expected = max(0.0, min(1.0, likelihood * prior / 100 / evidence)) * 100

            assert 0.0 <= result.posterior <= 100.0
            assert math.isclose(result.posterior, expected, abs_tol=1e-4)


class TestEventProbabilityUpdate:
    """Tests for signal-driven updates."""

    def test_marginal_evidence(self, analyst_signal, moderate_support):
        """0.5 + 0.6 * 0.85 * 0.3 = 0.653."""
        assert marginal_evidence(moderate_support, analyst_signal) == pytest.approx(0.653)

    def test_marginal_evidence_bounds(self, analyst_signal):
        none = Evidence(supports=False, strength=0.0, likelihood=0.5)
        full = Evidence(supports=True, strength=1.0, likelihood=0.5)
        perfect = Signal(type="financial", source="filing", timestamp=analyst_signal.timestamp, reliability=1.0)

        assert marginal_evidence(none, analyst_signal) == pytest.approx(0.5)
        assert marginal_evidence(full, perfect) == pytest.approx(0.8)

    def test_update_builds_history_entry(self, analyst_signal, moderate_support):
        result = update_event_probability(65.0, analyst_signal, moderate_support)

        assert isinstance(result, EventProbabilityUpdate)
        assert result.posterior == pytest.approx(0.70 * 0.65 / 0.653 * 100)
        assert isinstance(result.update_entry, ProbabilityUpdate)
        assert result.update_entry.prior == 65.0
        assert result.update_entry.posterior == result.posterior
        assert result.update_entry.signal is analyst_signal
        assert result.update_entry.evidence is moderate_support

    def test_contradicting_evidence_lowers_probability(self, social_signal, contradiction):
        result = update_event_probability(65.0, social_signal, contradiction)
        assert result.posterior < 65.0

    def test_update_includes_interval_around_posterior(self, social_signal, contradiction):
        result = update_event_probability(40.0, social_signal, contradiction)

        assert isinstance(result.confidence_interval, ConfidenceInterval)
        assert result.confidence_interval.contains(result.posterior)

    def test_to_dict(self, analyst_signal, moderate_support):
        data = update_event_probability(50.0, analyst_signal, moderate_support).to_dict()

        assert set(data) == {"prior", "likelihood", "evidence", "posterior", "update_entry", "confidence_interval"}
        assert data["update_entry"]["signal"]["source"] == "Goldman Sachs Research"


class TestConfidenceInterval:
    """Tests for calculate_confidence_interval."""

    def test_half_width(self, social_signal, moderate_support):
        """(1 - 0.6) * (1 - 0.6) * 20 = 3.2 points either side."""
        interval = calculate_confidence_interval(50.0, moderate_support, social_signal)

        assert interval.lower == pytest.approx(46.8)
        assert interval.upper == pytest.approx(53.2)
        assert interval.width == pytest.approx(6.4)

    def test_certain_evidence_collapses_interval(self, analyst_signal):
        certain = Evidence(supports=True, strength=1.0, likelihood=0.9)
        interval = calculate_confidence_interval(42.0, certain, analyst_signal)

        assert interval.lower == interval.upper == 42.0

    def test_clipped_to_percent_range(self, social_signal):
        weak = Evidence(supports=True, strength=0.0, likelihood=0.5)
        unreliable = Signal(type="social", source="forum", timestamp=social_signal.timestamp, reliability=0.0)

        low = calculate_confidence_interval(5.0, weak, unreliable)
        high = calculate_confidence_interval(95.0, weak, unreliable)

        assert (low.lower, low.upper) == (0.0, 25.0)
        assert (high.lower, high.upper) == (75.0, 100.0)

    @pytest.mark.parametrize("seed", range(3))
    def test_always_contains_estimate(self, seed, analyst_signal):
        rng = random.Random(seed)

        for _ in range(100):
            probability = rng.uniform(0, 100)
            evidence = Evidence(supports=True, strength=rng.random(), likelihood=rng.random())
            signal = Signal(type="news", source="wire", timestamp=analyst_signal.timestamp, reliability=rng.random())

            interval = calculate_confidence_interval(probability, evidence, signal)

            assert 0.0 <= interval.lower <= probability <= interval.upper <= 100.0

    def test_stronger_evidence_narrows(self, social_signal):
        weak = Evidence(supports=True, strength=0.2, likelihood=0.5)
        strong = Evidence(supports=True, strength=0.8, likelihood=0.5)

        assert (
            calculate_confidence_interval(50.0, strong, social_signal).width
            < calculate_confidence_interval(50.0, weak, social_signal).width
        )

    def test_invalid_probability(self, social_signal, moderate_support):
        with pytest.raises(ValueError):
            calculate_confidence_interval(101.0, moderate_support, social_signal)


class TestValidationHelpers:
    """Tests for validate_probability_update and handle_edge_cases."""

    @pytest.mark.parametrize("prior,posterior,max_change,expected", [
        (50, 60, 50, True),
        (50, 100, 50, True),
        (10, 90, 50, False),
        (90, 10, 50, False),
        (50, 60, 5, False),
    ])
    def test_validate_probability_update(self, prior, posterior, max_change, expected):
        assert validate_probability_update(prior, posterior, max_change) is expected

    def test_default_max_change(self):
        assert validate_probability_update(20, 70) is True
        assert validate_probability_update(20, 70.5) is False

    def test_evidence_floored(self, caplog):
        adjusted = handle_edge_cases(BayesianUpdateInput(50, 0.5, 0.0001))

        assert adjusted == BayesianUpdateInput(50, 0.5, 0.001)
        assert "flooring" in caplog.text

    def test_custom_floor(self):
        adjusted = handle_edge_cases(BayesianUpdateInput(50, 0.5, 0.0), evidence_floor=0.05)
        assert adjusted.evidence == 0.05

    def test_degenerate_values_pass_through(self, caplog):
        update_input = BayesianUpdateInput(0, 1.0, 0.4)
        assert handle_edge_cases(update_input) == update_input
        assert "Prior probability is 0" in caplog.text
        assert "perfect predictor" in caplog.text

    def test_floored_input_feeds_update(self):
        result = update_probability(*handle_edge_cases(BayesianUpdateInput(0.05, 0.001, 0.0)))
        assert result.posterior == pytest.approx(0.05)
