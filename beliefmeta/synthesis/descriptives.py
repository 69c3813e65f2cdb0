"""Descriptive summaries of Fisher's z by grouping variables."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from beliefmeta.models import GroupSummary, HarmonizedRecord
from beliefmeta.partition.subsets import group_by


def summarize_groups(
    records: Sequence[HarmonizedRecord],
    *fields: str,
) -> list[GroupSummary]:
    """n, mean, SD (n - 1), min and max of z per group; missing z values are skipped."""
    summaries: list[GroupSummary] = []
    for key, group in group_by(records, *fields).items():
        zs = np.array([record.fishers_z for record in group if record.fishers_z is not None], dtype=float)
        summaries.append(
            GroupSummary(
                group=[str(part) for part in key],
                n=len(group),
                mean_z=float(zs.mean()) if zs.size else None,
                sd_z=float(zs.std(ddof=1)) if zs.size > 1 else None,
                min_z=float(zs.min()) if zs.size else None,
                max_z=float(zs.max()) if zs.size else None,
            )
        )
    return summaries


def missing_value_counts(records: Sequence[HarmonizedRecord]) -> dict[str, int]:
    """Number of missing values in each record field, in field order."""
    return {
        name: sum(1 for record in records if getattr(record, name) is None)
        for name in HarmonizedRecord.model_fields
    }


def data_summary(records: Sequence[HarmonizedRecord]) -> dict:
    """Counts reported alongside the results bundle."""
    usable = [record for record in records if record.is_poolable]
    groups: dict[str, int] = {}
    for record in usable:
        if record.combined_clinical_group is not None:
            groups[record.combined_clinical_group] = groups.get(record.combined_clinical_group, 0) + 1
    return {
        "total_rows": len(records),
        "usable_rows": len(usable),
        "excluded_rows": len(records) - len(usable),
        "studies": len({record.study_id for record in usable}),
        "clinical_groups": dict(sorted(groups.items())),
        "na_summary": missing_value_counts(records),
    }
