from __future__ import annotations

import pytest

from beliefmeta.models import (
    AnalysisStatus,
    BiasDiagnostics,
    MetaRegressionResult,
    PipelineConfig,
    PooledEstimate,
    SignificanceTest,
    SynthesisConfig,
)
from beliefmeta.pipeline import analysis_ready, run_pipeline

EXPECTED_SECTIONS = {
    "pooled",
    "subgroups",
    "contrasts",
    "direct_comparisons",
    "belief_subgroup",
    "meta_regression",
    "publication_bias",
    "sensitivity",
    "descriptives",
}


@pytest.fixture
def output(sample_studies):
    return run_pipeline(sample_studies)


def test_every_section_is_present_and_tagged(output) -> None:
    bundle = output.bundle
    assert set(bundle.sections) == EXPECTED_SECTIONS
    statuses = {result.status for section in bundle.sections.values() for result in section.values()}
    assert statuses <= set(AnalysisStatus)


def test_harmonization_summary(output) -> None:
    summary = dict(output.bundle.data_summary)
    na_summary = summary.pop("na_summary")
    assert na_summary["fishers_z"] == 2
    assert na_summary["conversion_failure"] == 20
    assert summary == {
        "total_rows": 22,
        "usable_rows": 20,
        "excluded_rows": 2,
        "studies": 11,
        "clinical_groups": {"chr": 3, "control": 5, "fep": 1, "sz": 11},
    }
    assert output.harmonization.failure_counts() == {
        "unrecognized_effect_size_type": 1,
        "domain_error": 1,
    }
    validity = output.bundle.validity
    assert validity.total_rows == 22
    assert validity.missing_es == 2


def test_subsets(output) -> None:
    subsets = output.subsets
    assert len(subsets["full"]) == 22
    assert len(subsets["alternate_instrument"]) == 1
    assert len(subsets["symptoms"]) == 5
    assert len(subsets["trauma"]) == 5
    assert all(record.measure_type == "BCSS" for record in subsets["clinical"])


def test_pooled_estimates(output) -> None:
    pooled = output.bundle.sections["pooled"]
    full = pooled["full"]
    assert full.ok
    assert isinstance(full.value, PooledEstimate)
    assert full.value.k == 20
    assert full.value.df == 19

    sz = pooled["group:sz"]
    assert sz.ok and sz.value.k == 11
    assert pooled["group:control"].value.k == 5

    fep = pooled["group:fep"]
    assert fep.status is AnalysisStatus.INSUFFICIENT_DATA
    assert fep.n == 1
    assert fep.value is None


def test_contrasts(output) -> None:
    contrasts = output.bundle.sections["contrasts"]
    assert set(contrasts) == {"sz_vs_control", "chr_vs_control", "sz_vs_chr"}

    sz_vs_control = contrasts["sz_vs_control"]
    assert sz_vs_control.ok
    assert isinstance(sz_vs_control.value, MetaRegressionResult)
    assert sz_vs_control.value.k == 11
    assert sz_vs_control.value.coefficients[1].term == "control - sz"
    assert sz_vs_control.value.coefficients[1].estimate < 0.0

    assert contrasts["chr_vs_control"].value.k == 8


def test_direct_comparisons(output) -> None:
    direct = output.bundle.sections["direct_comparisons"]
    assert direct["sz_vs_control"].ok
    assert direct["sz_vs_control"].value.k == 5
    assert direct["sz_vs_control"].value.estimate > 0.0
    assert direct["chr_vs_control"].status is AnalysisStatus.INSUFFICIENT_DATA


def test_moderators(output) -> None:
    belief = output.bundle.get("belief_subgroup", "belief_category")
    assert belief.ok
    assert [c.term for c in belief.value.coefficients] == ["negative", "positive"]

    regression = output.bundle.sections["meta_regression"]
    assert set(regression) == {"mean_age", "percent_male", "year", "sample_size"}
    assert regression["mean_age"].ok
    assert regression["mean_age"].value.k == 17


def test_publication_bias_and_sensitivity(output) -> None:
    bias = output.bundle.sections["publication_bias"]
    assert set(bias) == {"chr", "control", "fep", "sz"}
    assert bias["fep"].status is AnalysisStatus.INSUFFICIENT_DATA
    if bias["sz"].ok:
        assert isinstance(bias["sz"].value, BiasDiagnostics)
        assert bias["sz"].value.k == 11

    sensitivity = output.bundle.sections["sensitivity"]
    assert sensitivity["sz"].ok
    assert len(sensitivity["sz"].value) == 11
    assert sensitivity["fep"].status is AnalysisStatus.INSUFFICIENT_DATA


def test_descriptives(output) -> None:
    descriptives = output.bundle.sections["descriptives"]
    assert all(result.ok for result in descriptives.values())
    check = {row.effect_size_type: row for row in descriptives["conversion_check"].value}
    assert check["odds_ratio"].r_range is None
    assert check["cohens_d"].n == 1
    symptoms = {tuple(s.group) for s in descriptives["symptoms"].value}
    assert symptoms == {("grandiose", "negative_self"), ("persecutory", "negative_self")}


def test_subgroups_are_keyed_by_subset(output) -> None:
    subgroups = output.bundle.sections["subgroups"]
    assert subgroups["clinical:sz|negative_self"].ok
    assert subgroups["clinical:sz|positive_self"].value.k == 4
    assert subgroups["trauma:physical_abuse|negative_self"].value.k == 3
    assert subgroups["alternate_instrument:sz|defectiveness"].status is AnalysisStatus.INSUFFICIENT_DATA


def test_z_test_configuration_flows_through(sample_studies) -> None:
    config = PipelineConfig(synthesis=SynthesisConfig(test=SignificanceTest.Z))
    bundle = run_pipeline(sample_studies, config).bundle
    assert bundle.get("pooled", "full").value.df is None
    assert bundle.get("contrasts", "sz_vs_control").value.moderator_test.df_den is None


def test_inputs_are_not_mutated(sample_studies) -> None:
    before = [record.model_copy() for record in sample_studies]
    run_pipeline(sample_studies)
    assert sample_studies == before


def test_analysis_ready_requires_group(output) -> None:
    ready = analysis_ready(output.records)
    assert len(ready) == 20
    assert all(record.combined_clinical_group is not None for record in ready)


def test_bundle_serializes(output) -> None:
    payload = output.bundle.to_dict()
    assert payload["sections"]["pooled"]["full"]["status"] == "ok"
    assert payload["sections"]["pooled"]["group:fep"]["status"] == "insufficient_data"
    assert payload["validity"]["total_rows"] == 22
