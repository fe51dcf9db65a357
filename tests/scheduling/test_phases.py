"""
Tests for the phase model: sequence, default weights and weight resolution.
These tests have no Flask dependencies - they test pure functions.
"""
import math

import pytest

from bayplan.scheduling.models import Project
from bayplan.scheduling.phases import (
    DEFAULT_PHASE_WEIGHTS,
    EXECUTIVE_REVIEW,
    FABRICATION,
    IT_INTEGRATION,
    NTC_TESTING,
    PAINT,
    PHASE_SEQUENCE,
    PRE_PRODUCTION,
    PRODUCTION,
    QC,
    SHIPPED,
    PhaseWeight,
    canonical_phase,
    coerce_weight,
    phase_rank,
    resolve_weights,
    weight_map,
)


def as_dict(weights):
    return {w.phase: w.weight for w in weights}


# ==============================================================================
# PHASE SEQUENCE TESTS
# ==============================================================================

class TestPhaseSequence:
    """Tests for phase order and names."""

    def test_sequence_order(self):
        """Test the six weighted phases are in production order."""
        assert PHASE_SEQUENCE == (FABRICATION, PAINT, PRODUCTION, IT_INTEGRATION, NTC_TESTING, QC)

    def test_default_weights_sum_to_115(self):
        """Test the default table keeps its known 115 total."""
        assert sum(DEFAULT_PHASE_WEIGHTS.values()) == 115

    def test_phase_rank_is_lifecycle_order(self):
        """Test Pre-Production ranks first and Shipped last."""
        ranks = [phase_rank(p) for p in
                 (PRE_PRODUCTION, FABRICATION, PAINT, PRODUCTION, IT_INTEGRATION,
                  NTC_TESTING, QC, EXECUTIVE_REVIEW, SHIPPED)]
        assert ranks == sorted(ranks)
        assert len(set(ranks)) == 9

    def test_phase_rank_unknown_raises(self):
        """Test an unknown phase name is rejected."""
        with pytest.raises(ValueError):
            phase_rank('Welding')

    def test_canonical_phase_aliases(self):
        """Test field names and short labels map to canonical phases."""
        assert canonical_phase('fab') == FABRICATION
        assert canonical_phase('fabPercentage') == FABRICATION
        assert canonical_phase('it') == IT_INTEGRATION
        assert canonical_phase('NTC') == NTC_TESTING
        assert canonical_phase('qc_percentage') == QC
        assert canonical_phase('Production') == PRODUCTION
        assert canonical_phase('nonsense') is None


# ==============================================================================
# WEIGHT COERCION TESTS
# ==============================================================================

class TestCoerceWeight:
    """Tests for interpreting a single raw weight."""

    def test_none_uses_default(self):
        assert coerce_weight(None, 27.0) == 27.0

    def test_numeric_string_is_parsed(self):
        assert coerce_weight('27', 5.0) == 27.0

    def test_explicit_zero_is_kept(self):
        assert coerce_weight(0, 60.0) == 0.0

    @pytest.mark.parametrize('value', ['abc', float('nan'), float('inf'), -5, True, [1]])
    def test_malformed_values_use_default(self, value):
        """Test malformed weights fall back to the default."""
        assert coerce_weight(value, 7.0) == 7.0


# ==============================================================================
# RESOLVE WEIGHTS TESTS
# ==============================================================================

class TestResolveWeights:
    """Tests for resolve_weights normalization and fallbacks."""

    def test_defaults_are_normalized(self):
        """Test a project with no weights gets defaults scaled to 100."""
        weights = resolve_weights(Project(id=1))

        assert [w.phase for w in weights] == list(PHASE_SEQUENCE)
        assert sum(w.weight for w in weights) == pytest.approx(100.0)
        assert as_dict(weights)[PRODUCTION] == pytest.approx(60 * 100 / 115)

    def test_weights_summing_to_100_are_unchanged(self):
        """Test weights that already sum to 100 are kept exactly."""
        project = Project(id=1, fab_percentage=20, paint_percentage=10, production_percentage=50,
                          it_percentage=10, ntc_percentage=5, qc_percentage=5)
        weights = as_dict(resolve_weights(project))

        assert weights == {FABRICATION: 20.0, PAINT: 10.0, PRODUCTION: 50.0,
                           IT_INTEGRATION: 10.0, NTC_TESTING: 5.0, QC: 5.0}

    def test_explicit_zero_survives_normalization(self):
        """Test a phase explicitly weighted 0 stays at 0."""
        weights = as_dict(resolve_weights(Project(id=1, production_percentage=0)))

        assert weights[PRODUCTION] == 0.0
        assert sum(weights.values()) == pytest.approx(100.0)
        assert weights[FABRICATION] == pytest.approx(27 * 100 / 55)

    def test_all_zero_falls_back_to_defaults(self):
        """Test an all-zero weight set uses the default table."""
        zeros = {phase: 0 for phase in PHASE_SEQUENCE}
        assert as_dict(resolve_weights(zeros)) == as_dict(resolve_weights(Project(id=1)))

    def test_malformed_weight_replaced_by_default(self):
        """Test a malformed weight behaves like a missing one."""
        broken = Project(id=1, fab_percentage='not a number', paint_percentage=float('nan'))
        assert as_dict(resolve_weights(broken)) == as_dict(resolve_weights(Project(id=1)))

    def test_never_returns_nan(self):
        """Test no weight is ever NaN or negative."""
        project = Project(id=1, fab_percentage=-10, qc_percentage=float('inf'))
        for w in resolve_weights(project):
            assert math.isfinite(w.weight)
            assert w.weight >= 0

    def test_accepts_mapping_with_aliases(self):
        """Test a mapping keyed by short labels is understood."""
        weights = as_dict(resolve_weights({'fab': 40, 'paint': 10, 'production': 30,
                                           'it': 10, 'ntc': 5, 'qc': 5}))
        assert weights[FABRICATION] == 40.0
        assert weights[PRODUCTION] == 30.0

    def test_unknown_keys_are_ignored(self):
        """Test unknown phase keys do not change the result."""
        assert as_dict(resolve_weights({'welding': 50})) == as_dict(resolve_weights({}))

    def test_accepts_phase_weight_list(self):
        """Test an already resolved list is accepted."""
        given = [PhaseWeight(phase, 100 / 6) for phase in PHASE_SEQUENCE]
        assert as_dict(resolve_weights(given)) == pytest.approx(as_dict(given))

    def test_idempotent(self):
        """Test resolving resolved weights changes nothing."""
        once = resolve_weights(Project(id=1, fab_percentage=33, qc_percentage='12.5'))
        twice = resolve_weights(once)
        assert once == twice

    def test_weight_map_is_not_normalized(self):
        """Test weight_map returns raw values with defaults filled in."""
        weights = weight_map({PRODUCTION: 60, IT_INTEGRATION: 7, NTC_TESTING: 7, QC: 7})
        assert weights[FABRICATION] == 27.0
        assert sum(weights.values()) == 115.0
