from __future__ import annotations

import numpy as np
import pytest

from beliefmeta.exceptions import InsufficientDataError, ModelFitError
from beliefmeta.models import AnalysisStatus, GroupSummary, HarmonizedRecord
from beliefmeta.synthesis.boundary import run_analysis
from beliefmeta.synthesis.descriptives import data_summary, missing_value_counts, summarize_groups
from beliefmeta.synthesis.meta_analysis import pool_records
from beliefmeta.synthesis.sensitivity import leave_one_out, subgroup_analysis, subgroup_key


def _records(make_harmonized):
    return [
        make_harmonized(f"s{i}", effect_size=r, sample_size=n)
        for i, (r, n) in enumerate(zip([0.1, 0.35, 0.22, 0.48], [80, 60, 120, 45]))
    ]


def test_leave_one_out_drops_each_row_once(make_harmonized) -> None:
    records = _records(make_harmonized)
    rows = leave_one_out(records)
    assert [row.excluded for row in rows] == ["s0", "s1", "s2", "s3"]
    assert all(row.k == 3 for row in rows)
    full = pool_records(records)
    dropping_smallest = rows[0]
    assert dropping_smallest.estimate > full.estimate


def test_leave_one_out_matches_pooling_the_rest(make_harmonized) -> None:
    records = _records(make_harmonized)
    rows = leave_one_out(records)
    expected = pool_records(records[1:])
    assert rows[0].estimate == pytest.approx(expected.estimate)
    assert rows[0].tau_squared == pytest.approx(expected.heterogeneity.tau_squared)


def test_leave_one_out_needs_three_rows(make_harmonized) -> None:
    with pytest.raises(InsufficientDataError):
        leave_one_out(_records(make_harmonized)[:2])


def test_subgroup_analysis_tags_each_stratum(make_harmonized) -> None:
    records = _records(make_harmonized) + [
        make_harmonized("c0", clinical_group="control", effect_size=0.1),
    ]
    results = subgroup_analysis(records, ["combined_clinical_group", "belief_type"])
    assert set(results) == {"control|negative_self", "sz|negative_self"}
    assert results["sz|negative_self"].status is AnalysisStatus.OK
    assert results["sz|negative_self"].n == 4
    assert results["control|negative_self"].status is AnalysisStatus.INSUFFICIENT_DATA
    assert results["control|negative_self"].n == 1


def test_subgroup_key() -> None:
    assert subgroup_key(("sz", "negative_self")) == "sz|negative_self"


class TestRunAnalysis:
    """Error boundary around a single analysis."""

    def test_ok_result_carries_value_and_size(self, make_harmonized) -> None:
        result = run_analysis("sz", pool_records, _records(make_harmonized), section="pooled")
        assert result.ok
        assert result.key == "sz"
        assert result.n == 4
        assert result.value.k == 4

    def test_fit_failures_are_tagged(self) -> None:
        def _boom():
            raise ModelFitError("did not converge")

        result = run_analysis("x", _boom)
        assert result.status is AnalysisStatus.FIT_FAILURE
        assert "did not converge" in result.message
        assert result.value is None

    def test_linear_algebra_errors_are_tagged(self) -> None:
        def _singular():
            return np.linalg.inv(np.zeros((2, 2)))

        assert run_analysis("x", _singular).status is AnalysisStatus.FIT_FAILURE

    def test_other_errors_propagate(self) -> None:
        def _bug():
            raise KeyError("oops")

        with pytest.raises(KeyError):
            run_analysis("x", _bug)


class TestDescriptives:
    """Group summaries and the data summary."""

    def test_summarize_groups(self, make_harmonized) -> None:
        records = _records(make_harmonized) + [
            make_harmonized("bad", effect_size=-1.0, effect_size_type="odds_ratio"),
            make_harmonized("c0", clinical_group="control", effect_size=0.1),
        ]
        summaries = summarize_groups(records, "combined_clinical_group")
        by_group = {tuple(s.group): s for s in summaries}
        sz = by_group[("sz",)]
        assert isinstance(sz, GroupSummary)
        assert sz.n == 5
        zs = [r.fishers_z for r in records[:4]]
        assert sz.mean_z == pytest.approx(np.mean(zs))
        assert sz.sd_z == pytest.approx(np.std(zs, ddof=1))
        assert by_group[("control",)].sd_z is None

    def test_data_summary(self, make_harmonized) -> None:
        records = _records(make_harmonized) + [
            make_harmonized("bad", effect_size=-1.0, effect_size_type="odds_ratio"),
        ]
        summary = data_summary(records)
        na_summary = summary.pop("na_summary")
        assert summary == {
            "total_rows": 5,
            "usable_rows": 4,
            "excluded_rows": 1,
            "studies": 4,
            "clinical_groups": {"sz": 4},
        }
        assert list(na_summary) == list(HarmonizedRecord.model_fields)
        assert na_summary["study_id"] == 0
        assert na_summary["effect_size"] == 0
        assert na_summary["fishers_z"] == 1
        assert na_summary["conversion_failure"] == 4

    def test_missing_value_counts_of_no_records(self) -> None:
        counts = missing_value_counts([])
        assert set(counts) == set(HarmonizedRecord.model_fields)
        assert set(counts.values()) == {0}
