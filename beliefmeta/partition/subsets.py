"""Named, possibly overlapping subsets of the harmonized record set.

Every function here is a filter: it returns a new list and never touches the
records it was given. Membership in one subset says nothing about another.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Optional

from beliefmeta.models import HarmonizedRecord
from beliefmeta.models.config import SubsetConfig

CLINICAL = "clinical"
SYMPTOMS = "symptoms"
TRAUMA = "trauma"
ALTERNATE = "alternate_instrument"
FULL = "full"


def poolable(records: Iterable[HarmonizedRecord]) -> list[HarmonizedRecord]:
    return [record for record in records if record.is_poolable]


def clinical_subset(
    records: Sequence[HarmonizedRecord],
    config: Optional[SubsetConfig] = None,
) -> list[HarmonizedRecord]:
    config = config or SubsetConfig()
    beliefs = set(config.primary_belief_types)
    return [
        record
        for record in records
        if record.measure_type == config.primary_instrument
        and record.belief_type in beliefs
        and record.combined_clinical_group is not None
    ]


def symptom_subset(
    records: Sequence[HarmonizedRecord],
    config: Optional[SubsetConfig] = None,
) -> list[HarmonizedRecord]:
    config = config or SubsetConfig()
    return [
        record
        for record in records
        if record.measure_type == config.primary_instrument and record.symptom_category is not None
    ]


def trauma_subset(
    records: Sequence[HarmonizedRecord],
    config: Optional[SubsetConfig] = None,
) -> list[HarmonizedRecord]:
    config = config or SubsetConfig()
    return [
        record
        for record in records
        if record.measure_type == config.primary_instrument and record.trauma_category is not None
    ]


def alternate_instrument_subset(
    records: Sequence[HarmonizedRecord],
    config: Optional[SubsetConfig] = None,
) -> list[HarmonizedRecord]:
    config = config or SubsetConfig()
    instruments = set(config.alternate_instruments)
    return [record for record in records if record.measure_type in instruments]


def partition_records(
    records: Sequence[HarmonizedRecord],
    config: Optional[SubsetConfig] = None,
) -> dict[str, list[HarmonizedRecord]]:
    """All named analysis subsets, including the full harmonized set."""
    config = config or SubsetConfig()
    return {
        FULL: list(records),
        CLINICAL: clinical_subset(records, config),
        SYMPTOMS: symptom_subset(records, config),
        TRAUMA: trauma_subset(records, config),
        ALTERNATE: alternate_instrument_subset(records, config),
    }


def group_by(
    records: Iterable[HarmonizedRecord],
    *fields: str,
) -> dict[tuple[Any, ...], list[HarmonizedRecord]]:
    """Group by one or more attributes, dropping rows missing any key; keys are sorted."""
    groups: dict[tuple[Any, ...], list[HarmonizedRecord]] = {}
    for record in records:
        key = tuple(getattr(record, name) for name in fields)
        if any(part is None for part in key):
            continue
        groups.setdefault(key, []).append(record)
    return {key: groups[key] for key in sorted(groups, key=lambda k: tuple(str(p) for p in k))}


def contrast_subset(
    records: Sequence[HarmonizedRecord],
    group_a: str,
    group_b: str,
) -> list[HarmonizedRecord]:
    """Rows of both groups, restricted to measure_belief contexts where both appear."""
    contexts: dict[str, set[str]] = {}
    for record in records:
        if record.combined_clinical_group in (group_a, group_b) and record.measure_belief:
            contexts.setdefault(record.measure_belief, set()).add(record.combined_clinical_group)
    shared = {context for context, groups in contexts.items() if groups == {group_a, group_b}}
    return [
        record
        for record in records
        if record.combined_clinical_group in (group_a, group_b) and record.measure_belief in shared
    ]


def paired_group_rows(
    records: Sequence[HarmonizedRecord],
    group_a: str,
    group_b: str,
) -> list[tuple[HarmonizedRecord, HarmonizedRecord]]:
    """Same-study, same-context row pairs carrying means and SDs for both groups."""
    by_key: dict[tuple[str, str, str], HarmonizedRecord] = {}
    for record in records:
        if record.combined_clinical_group not in (group_a, group_b):
            continue
        if record.mean_score is None or record.sd is None or not record.sample_size:
            continue
        key = (record.study_id, record.measure_belief or "", record.combined_clinical_group)
        by_key.setdefault(key, record)

    pairs: list[tuple[HarmonizedRecord, HarmonizedRecord]] = []
    for (study_id, context, group), record in by_key.items():
        if group != group_a:
            continue
        partner = by_key.get((study_id, context, group_b))
        if partner is not None:
            pairs.append((record, partner))
    return pairs
