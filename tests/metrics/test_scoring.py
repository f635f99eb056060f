"""Tests for 1RM estimation and level math."""

import pytest

from liftforge.metrics.scoring import estimated_1rm, level_from_total_xp


class TestEstimated1RM:
    """Tests for the Epley estimate."""

    def test_single_rep_is_its_own_max(self):
        assert estimated_1rm(140, 1) == 140.0

    def test_epley_formula(self):
        """100 kg x 5 reps = 100 * (1 + 5/30)."""
        assert estimated_1rm(100, 5) == pytest.approx(116.6667, rel=1e-4)

    def test_more_reps_estimate_higher(self):
        assert estimated_1rm(100, 10) > estimated_1rm(100, 5)

    @pytest.mark.parametrize(
        "weight,reps",
        [(None, 5), (100, None), (0, 5), (-20, 5), (100, 0), (100, -3)],
    )
    def test_missing_or_non_positive_inputs(self, weight, reps):
        assert estimated_1rm(weight, reps) == 0.0


class TestLevelFromTotalXp:
    """Tests for level = floor(sqrt(xp / 100)) + 1."""

    def test_zero_xp_is_level_one(self):
        snapshot = level_from_total_xp(0)

        assert snapshot.level == 1
        assert snapshot.xp_for_next_level == 100
        assert snapshot.xp_to_next_level == 100
        assert snapshot.progress_percent == 0.0

    @pytest.mark.parametrize(
        "total_xp,level",
        [(99, 1), (100, 2), (399, 2), (400, 3), (899, 3), (900, 4), (10_000, 11)],
    )
    def test_level_boundaries(self, total_xp, level):
        assert level_from_total_xp(total_xp).level == level

    def test_xp_to_next_level(self):
        snapshot = level_from_total_xp(150)

        assert snapshot.level == 2
        assert snapshot.xp_for_next_level == 400
        assert snapshot.xp_to_next_level == 250

    def test_progress_within_level(self):
        """150 XP is 50 of the 300 XP between levels 2 and 3."""
        assert level_from_total_xp(150).progress_percent == pytest.approx(16.7)

    def test_negative_xp_treated_as_zero(self):
        snapshot = level_from_total_xp(-50)

        assert snapshot.total_xp == 0
        assert snapshot.level == 1

    def test_to_dict(self):
        data = level_from_total_xp(60).to_dict()

        assert data["level"] == 1
        assert data["total_xp"] == 60
        assert data["xp_to_next_level"] == 40
