"""End-to-end pipeline: raw rows -> harmonized records -> results bundle.

Every stage takes the previous stage's output as an argument; nothing here
reads module-level state. Each analysis runs behind run_analysis, so the
bundle always comes back complete with ok / insufficient_data / fit_failure
markers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from beliefmeta.models import HarmonizedRecord, PipelineConfig, ResultsBundle, StudyRecord
from beliefmeta.normalization.harmonizer import HarmonizationResult, harmonize_records
from beliefmeta.normalization.validity import (
    conversion_check,
    flag_outliers,
    flag_small_se,
    validity_report,
)
from beliefmeta.partition.subsets import (
    ALTERNATE,
    CLINICAL,
    SYMPTOMS,
    TRAUMA,
    group_by,
    partition_records,
    poolable,
)
from beliefmeta.synthesis.boundary import run_analysis
from beliefmeta.synthesis.descriptives import data_summary, summarize_groups
from beliefmeta.synthesis.meta_analysis import pool_records
from beliefmeta.synthesis.meta_regression import (
    categorical_moderator,
    compare_groups,
    continuous_moderator,
    pool_direct_comparisons,
)
from beliefmeta.synthesis.publication_bias import run_bias_diagnostics
from beliefmeta.synthesis.sensitivity import leave_one_out, subgroup_analysis
from beliefmeta.utils.structured_log import log_conversion_failures, log_stage

_log = logging.getLogger(__name__)

SUBGROUP_FIELDS = {
    CLINICAL: ("combined_clinical_group", "belief_type"),
    SYMPTOMS: ("symptom_category", "belief_type"),
    TRAUMA: ("trauma_category", "belief_type"),
    ALTERNATE: ("combined_clinical_group", "belief_type"),
}


@dataclass
class PipelineOutput:
    harmonization: HarmonizationResult
    subsets: dict[str, list[HarmonizedRecord]]
    bundle: ResultsBundle

    @property
    def records(self) -> list[HarmonizedRecord]:
        return self.harmonization.records


def analysis_ready(records: Sequence[HarmonizedRecord]) -> list[HarmonizedRecord]:
    """Usable z, usable se and a clinical group: the base for contrasts and moderators."""
    return [record for record in poolable(records) if record.combined_clinical_group is not None]


def synthesize(
    records: Sequence[HarmonizedRecord],
    subsets: dict[str, list[HarmonizedRecord]],
    config: PipelineConfig,
) -> ResultsBundle:
    synthesis = config.synthesis
    bundle = ResultsBundle(
        data_summary=data_summary(records),
        validity=validity_report(records, config.quality.invalid_z_threshold),
    )
    clean = analysis_ready(records)
    by_group = {key[0]: group for key, group in group_by(clean, "combined_clinical_group").items()}

    log_stage("pooling", "start", subsets=len(subsets), groups=len(by_group))
    for name, subset in subsets.items():
        bundle.add("pooled", run_analysis(name, pool_records, subset, synthesis, section="pooled"))
    for group, rows in by_group.items():
        key = f"group:{group}"
        bundle.add("pooled", run_analysis(key, pool_records, rows, synthesis, section="pooled"))

    for name, fields in SUBGROUP_FIELDS.items():
        for label, result in subgroup_analysis(subsets.get(name, []), fields, synthesis).items():
            bundle.add("subgroups", result.model_copy(update={"key": f"{name}:{label}"}))

    log_stage("contrasts", "start", contrasts=len(config.subsets.contrasts))
    for pair in config.subsets.contrasts:
        if len(pair) != 2:
            _log.warning("Ignoring malformed contrast %s", pair)
            continue
        group_a, group_b = pair
        key = f"{group_a}_vs_{group_b}"
        bundle.add("contrasts", run_analysis(key, compare_groups, clean, group_a, group_b, synthesis, section="contrasts"))
        bundle.add(
            "direct_comparisons",
            run_analysis(key, pool_direct_comparisons, records, group_a, group_b, synthesis, section="direct_comparisons"),
        )

    log_stage("moderators", "start")
    for moderator, label in synthesis.categorical_moderators.items():
        bundle.add(
            "belief_subgroup",
            run_analysis(moderator, categorical_moderator, clean, moderator, label, synthesis, section="belief_subgroup"),
        )
    for moderator, label in synthesis.continuous_moderators.items():
        bundle.add(
            "meta_regression",
            run_analysis(moderator, continuous_moderator, clean, moderator, label, synthesis, section="meta_regression"),
        )

    log_stage("publication_bias", "start", contrasts=len(by_group))
    for group, result in run_bias_diagnostics(by_group, synthesis).items():
        bundle.add("publication_bias", result)

    for group, rows in by_group.items():
        bundle.add("sensitivity", run_analysis(group, leave_one_out, rows, synthesis, section="sensitivity"))

    descriptives = {
        "clinical_groups": (summarize_groups, subsets.get(CLINICAL, []), "combined_clinical_group", "belief_type"),
        "symptoms": (summarize_groups, subsets.get(SYMPTOMS, []), "symptom_category", "belief_type"),
        "trauma": (summarize_groups, subsets.get(TRAUMA, []), "trauma_category", "belief_type"),
        "conversion_check": (conversion_check, records),
        "outliers": (flag_outliers, records, config.quality.outlier_z_threshold),
        "extreme_effects": (flag_outliers, clean, config.quality.extreme_z_threshold),
        "small_se": (flag_small_se, clean, config.quality.small_se_threshold),
    }
    for key, (fn, *args) in descriptives.items():
        bundle.add("descriptives", run_analysis(key, fn, *args, section="descriptives"))

    failures = bundle.failures()
    log_stage("synthesis", "done", analyses=sum(len(s) for s in bundle.sections.values()), not_ok=len(failures))
    return bundle


def run_pipeline(
    records: Sequence[StudyRecord],
    config: Optional[PipelineConfig] = None,
) -> PipelineOutput:
    config = config or PipelineConfig()
    log_stage("harmonize", "start", rows=len(records))
    harmonization = harmonize_records(records, config.subsets)
    log_conversion_failures(harmonization.failure_counts())
    log_stage("harmonize", "done", usable=len(harmonization.poolable), issues=len(harmonization.issues))

    subsets = partition_records(harmonization.records, config.subsets)
    _log.info(
        "Subsets: %s",
        ", ".join(f"{name}={len(rows)}" for name, rows in subsets.items()),
    )
    bundle = synthesize(harmonization.records, subsets, config)
    return PipelineOutput(harmonization=harmonization, subsets=subsets, bundle=bundle)
