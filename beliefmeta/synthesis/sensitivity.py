"""Sensitivity analysis: leave-one-out and subgroup pooled effects.

Uses the same REML random-effects model as meta_analysis.pool_effects.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Optional

from beliefmeta.exceptions import InsufficientDataError
from beliefmeta.models import AnalysisResult, HarmonizedRecord, LeaveOneOutRow, SynthesisConfig
from beliefmeta.partition.subsets import group_by
from beliefmeta.synthesis.boundary import run_analysis
from beliefmeta.synthesis.meta_analysis import pool_records

_log = logging.getLogger(__name__)


def leave_one_out(
    records: Sequence[HarmonizedRecord],
    config: Optional[SynthesisConfig] = None,
) -> list[LeaveOneOutRow]:
    """Drop each effect size in turn and re-pool the rest.

    Requires at least 3 usable rows (otherwise dropping one leaves a single
    study, which cannot be pooled).
    """
    config = config or SynthesisConfig()
    usable = [record for record in records if record.is_poolable]
    if len(usable) < config.min_leave_one_out_studies:
        raise InsufficientDataError(
            f"leave-one-out needs {config.min_leave_one_out_studies} studies (got {len(usable)})",
            n=len(usable),
            required=config.min_leave_one_out_studies,
        )

    rows: list[LeaveOneOutRow] = []
    for i, excluded in enumerate(usable):
        remaining = usable[:i] + usable[i + 1 :]
        pooled = pool_records(remaining, config)
        rows.append(
            LeaveOneOutRow(
                excluded=excluded.study_id,
                k=pooled.k,
                estimate=pooled.estimate,
                ci_lower=pooled.ci_lower,
                ci_upper=pooled.ci_upper,
                i_squared=pooled.heterogeneity.i_squared,
                tau_squared=pooled.heterogeneity.tau_squared,
            )
        )
    return rows


def subgroup_key(key: tuple) -> str:
    return "|".join(str(part) for part in key)


def subgroup_analysis(
    records: Sequence[HarmonizedRecord],
    fields: Sequence[str],
    config: Optional[SynthesisConfig] = None,
    section: str = "subgroups",
) -> dict[str, AnalysisResult]:
    """Separate pooled estimate for every combination of the given fields.

    Args:
        records: Harmonized rows of one analysis subset.
        fields: Record attributes to stratify by (e.g. ["combined_clinical_group", "belief_type"]).
        config: Synthesis settings shared by every subgroup fit.
        section: Label used in the audit log.

    Returns:
        Dict mapping "level_a|level_b" to the tagged pooled result.
    """
    results: dict[str, AnalysisResult] = {}
    for key, group in group_by(records, *fields).items():
        label = subgroup_key(key)
        results[label] = run_analysis(label, pool_records, group, config, section=section)
    return results
