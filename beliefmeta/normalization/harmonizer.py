"""Turn raw study rows into harmonized records on the Fisher's z scale."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional

from beliefmeta.models import ConversionFailure, EffectSizeType, HarmonizedRecord, StudyRecord
from beliefmeta.models.config import SubsetConfig
from beliefmeta.normalization.categories import (
    clean_belief_type,
    combined_clinical_group,
    measure_belief,
    symptom_category,
    trauma_category,
)
from beliefmeta.normalization.effect_size import convert_effect_size, fishers_z, fishers_z_se

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionIssue:
    """A row whose effect size could not be placed on the z scale."""

    row: int
    study_id: str
    effect_size_type: Optional[str]
    reason: ConversionFailure


@dataclass
class HarmonizationResult:
    records: list[HarmonizedRecord]
    issues: list[ConversionIssue] = field(default_factory=list)

    @property
    def poolable(self) -> list[HarmonizedRecord]:
        return [record for record in self.records if record.is_poolable]

    def failure_counts(self) -> dict[str, int]:
        return dict(Counter(issue.reason.value for issue in self.issues))


def harmonize_record(
    record: StudyRecord,
    subsets: Optional[SubsetConfig] = None,
) -> HarmonizedRecord:
    subsets = subsets or SubsetConfig()
    kind = EffectSizeType.parse(record.effect_size_type)
    r, failure = convert_effect_size(record.effect_size, kind, record.sample_size)
    z = fishers_z(r)
    if r is not None and z is None:
        failure = ConversionFailure.BOUNDARY_R
    se = fishers_z_se(record.sample_size)
    if z is not None and se is None:
        failure = ConversionFailure.MISSING_SAMPLE_SIZE

    belief = clean_belief_type(record.measure_type, record.belief_type, subsets.primary_instrument)
    data = record.model_dump()
    data.update(
        belief_type=belief,
        combined_clinical_group=combined_clinical_group(
            record.clinical_group, record.combined_clinical_group
        ),
        effect_size_kind=kind,
        correlation_r=r,
        fishers_z=z,
        fishers_z_se=se,
        weight=(1.0 / se**2) if se is not None else None,
        symptom_category=symptom_category(record.symptom_subtype),
        trauma_category=trauma_category(record.trauma_subtype),
        measure_belief=measure_belief(record.measure_type, belief),
        conversion_failure=failure,
    )
    return HarmonizedRecord.model_validate(data)


def harmonize_records(
    records: Sequence[StudyRecord],
    subsets: Optional[SubsetConfig] = None,
) -> HarmonizationResult:
    """Harmonize every row; failed conversions are recorded, never raised."""
    harmonized: list[HarmonizedRecord] = []
    issues: list[ConversionIssue] = []
    for index, record in enumerate(records):
        result = harmonize_record(record, subsets)
        harmonized.append(result)
        if result.conversion_failure is not None:
            issues.append(
                ConversionIssue(
                    row=index,
                    study_id=record.study_id,
                    effect_size_type=record.effect_size_type,
                    reason=result.conversion_failure,
                )
            )
            _log.debug(
                "Row %d (study %s): no Fisher's z (%s)",
                index,
                record.study_id,
                result.conversion_failure.value,
            )

    if issues:
        _log.info(
            "Harmonized %d rows; %d without a usable effect size: %s",
            len(harmonized),
            len(issues),
            dict(Counter(issue.reason.value for issue in issues)),
        )
    return HarmonizationResult(records=harmonized, issues=issues)
