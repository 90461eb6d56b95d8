"""
Association Engine - Score Combination Tests

Run with: pytest tests/test_scoring.py -v
"""

import pytest

from association_engine.domain.models import DatasourceSetting
from association_engine.engine.scoring import (
    DATASOURCE_DIMENSION,
    DATATYPE_DIMENSION,
    build_association,
    combine_scores,
    ranked_contributions,
)


def settings(**weights):
    return {ds: DatasourceSetting(datasource_id=ds, weight=w) for ds, w in weights.items()}


class TestCombineScores:
    """Tests for the harmonic-sum combination."""
    
    def test_single_datasource_is_weighted_score(self):
        assert combine_scores({"ds1": 0.8}, settings(ds1=0.5)) == pytest.approx(0.4)
    
    def test_harmonic_sum(self):
        # 0.9 + 0.6 / 2 + 0.3 / 3
        weights = settings(ds1=1.0, ds2=1.0, ds3=1.0)
        score = combine_scores({"ds1": 0.3, "ds2": 0.9, "ds3": 0.6}, weights)
        assert score == pytest.approx(1.0)
    
    def test_harmonic_sum_below_one(self):
        weights = settings(ds1=1.0, ds2=1.0)
        assert combine_scores({"ds1": 0.4, "ds2": 0.2}, weights) == pytest.approx(0.5)
    
    def test_result_clamped(self):
        weights = settings(ds1=1.0, ds2=1.0, ds3=1.0)
        assert combine_scores({"ds1": 1.0, "ds2": 1.0, "ds3": 1.0}, weights) == 1.0
    
    def test_out_of_range_raw_scores_clamped(self):
        weights = settings(ds1=1.0)
        assert combine_scores({"ds1": 1.7}, weights) == 1.0
        # a negative score clamps to 0, which counts as no evidence
        assert combine_scores({"ds1": -0.2}, weights) is None
    
    def test_corroboration_increases_score(self):
        weights = settings(ds1=1.0, ds2=1.0)
        single = combine_scores({"ds1": 0.5}, weights)
        double = combine_scores({"ds1": 0.5, "ds2": 0.1}, weights)
        assert double > single
    
    def test_zero_contribution_holds_score(self):
        weights = settings(ds1=1.0, ds2=1.0)
        assert combine_scores({"ds1": 0.5, "ds2": 0.0}, weights) == combine_scores({"ds1": 0.5}, weights)
    
    def test_missing_required_excludes_pair(self):
        weights = settings(ds2=1.0)
        weights["ds1"] = DatasourceSetting(datasource_id="ds1", weight=1.0, required=True)
        assert combine_scores({"ds2": 0.9}, weights) is None
    
    def test_required_with_zero_weight_never_excludes(self):
        weights = settings(ds2=1.0)
        weights["ds1"] = DatasourceSetting(datasource_id="ds1", weight=0.0, required=True)
        assert combine_scores({"ds2": 0.9}, weights) == pytest.approx(0.9)
    
    def test_no_contributing_datasource_excludes_pair(self):
        assert combine_scores({"ds1": 0.9}, settings(ds1=0.0)) is None
        assert combine_scores({"unknown": 0.9}, settings(ds1=1.0)) is None
        assert combine_scores({}, settings(ds1=1.0)) is None
    
    def test_zero_score_excludes_pair(self):
        weights = settings(ds1=1.0, ds2=1.0)
        assert combine_scores({"ds1": 0.0}, weights) is None
        assert combine_scores({"ds1": 0.0, "ds2": 0.0}, weights) is None
    
    def test_required_with_zero_score_excludes_pair(self):
        weights = settings(ds2=1.0)
        weights["ds1"] = DatasourceSetting(datasource_id="ds1", weight=1.0, required=True)
        assert combine_scores({"ds1": 0.0, "ds2": 0.9}, weights) is None


class TestRankedContributions:
    """Tests for contribution ordering."""
    
    def test_zero_contributions_dropped(self):
        ranked = ranked_contributions({"ds1": 0.0, "ds2": 0.4}, settings(ds1=1.0, ds2=1.0))
        assert ranked == [("ds2", 0.4)]
    
    def test_ties_broken_by_datasource_id(self):
        ranked = ranked_contributions({"zeta": 0.5, "alpha": 0.5, "mid": 0.7}, settings(zeta=1, alpha=1, mid=1))
        assert [ds for ds, _ in ranked] == ["mid", "alpha", "zeta"]


class TestBuildAssociation:
    """Tests for association construction."""
    
    def test_facet_values_from_contributing_datasources(self):
        association = build_association(
            "ENSG1",
            "EFO1",
            {"ds1": 0.8, "ds2": 0.4, "ds3": 0.2},
            settings(ds1=1.0, ds2=1.0, ds3=0.0),
            {"ds1": "genetic_association", "ds2": "known_drug", "ds3": "literature"},
            {"therapeuticArea": ["oncology", "oncology"]},
        )
        
        assert association.values_for(DATASOURCE_DIMENSION) == ("ds1", "ds2")
        assert association.values_for(DATATYPE_DIMENSION) == ("genetic_association", "known_drug")
        assert association.values_for("therapeuticArea") == ("oncology",)
        # raw scores are kept for every datasource, contributing or not
        assert association.per_datasource == {"ds1": 0.8, "ds2": 0.4, "ds3": 0.2}
        assert association.aggregated_score == pytest.approx(1.0)
    
    def test_excluded_pair_builds_nothing(self):
        assert build_association("ENSG1", "EFO1", {}, settings(ds1=1.0), {}) is None
    
    def test_association_is_frozen(self):
        association = build_association("ENSG1", "EFO1", {"ds1": 0.5}, settings(ds1=1.0), {})
        with pytest.raises(Exception):
            association.aggregated_score = 0.9
