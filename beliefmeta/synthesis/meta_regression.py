"""Mixed-effects meta-regression for categorical and continuous moderators.

All models share the REML machinery in meta_analysis: tau^2 is re-estimated
with the moderator in the design, then coefficients get Knapp-Hartung
standard errors (or plain z when configured).
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from typing import Optional

import numpy as np
from scipy import stats

from beliefmeta.exceptions import InsufficientDataError, ModelFitError
from beliefmeta.models import (
    EffectSizeType,
    HarmonizedRecord,
    MetaRegressionResult,
    ModeratorCoefficient,
    ModeratorKind,
    ModeratorTest,
    PooledEstimate,
    SynthesisConfig,
)
from beliefmeta.normalization.effect_size import (
    convert_to_r,
    fishers_z,
    fishers_z_se,
    standardized_mean_difference,
)
from beliefmeta.partition.subsets import contrast_subset, paired_group_rows
from beliefmeta.synthesis.meta_analysis import RandomEffectsFit, fit_random_effects, pool_effects

_log = logging.getLogger(__name__)


def _omnibus_test(fit: RandomEffectsFit, indices: Sequence[int]) -> ModeratorTest:
    """Wald-type test that the selected coefficients are all zero (QM, or F under KH)."""
    idx = list(indices)
    beta = fit.params[idx]
    cov = fit.cov[np.ix_(idx, idx)]
    try:
        qm = float(beta @ np.linalg.solve(cov, beta))
    except np.linalg.LinAlgError as exc:
        raise ModelFitError(f"singular moderator covariance: {exc}") from exc
    m = len(idx)
    if fit.df is not None:
        statistic = qm / m
        return ModeratorTest(
            statistic=statistic,
            df_num=m,
            df_den=fit.df,
            p_value=float(stats.f.sf(statistic, m, fit.df)),
        )
    return ModeratorTest(statistic=qm, df_num=m, p_value=float(stats.chi2.sf(qm, m)))


def _coefficients(
    fit: RandomEffectsFit,
    names: Sequence[str],
    counts: Optional[Sequence[int]] = None,
) -> list[ModeratorCoefficient]:
    coefficients: list[ModeratorCoefficient] = []
    for index, name in enumerate(names):
        std_error, statistic, p_value, half_width = fit.coefficient_stats(index)
        estimate = float(fit.params[index])
        coefficients.append(
            ModeratorCoefficient(
                term=name,
                estimate=estimate,
                std_error=std_error,
                statistic=statistic,
                p_value=p_value,
                ci_lower=estimate - half_width,
                ci_upper=estimate + half_width,
                k=counts[index] if counts is not None else None,
            )
        )
    return coefficients


def fit_meta_regression(
    effects: Sequence[float],
    standard_errors: Sequence[float],
    X: np.ndarray,
    names: Sequence[str],
    moderator: str,
    label: str,
    kind: ModeratorKind,
    tested: Sequence[int],
    counts: Optional[Sequence[int]] = None,
    config: Optional[SynthesisConfig] = None,
) -> MetaRegressionResult:
    se = np.asarray(standard_errors, dtype=float)
    fit = fit_random_effects(effects, se**2, X, config)
    return MetaRegressionResult(
        moderator=moderator,
        label=label,
        kind=kind,
        k=fit.k,
        coefficients=_coefficients(fit, names, counts),
        tau_squared=fit.tau_squared,
        residual_heterogeneity=fit.heterogeneity,
        moderator_test=_omnibus_test(fit, tested),
    )


def categorical_moderator(
    records: Sequence[HarmonizedRecord],
    moderator: str,
    label: Optional[str] = None,
    config: Optional[SynthesisConfig] = None,
) -> MetaRegressionResult:
    """Cell-means model (one coefficient per level, no intercept).

    Levels backed by a single effect size cannot be estimated and are
    reported in `insufficient_levels` instead of entering the fit.
    """
    usable = [
        record
        for record in records
        if record.is_poolable and getattr(record, moderator) is not None
    ]
    counts = Counter(str(getattr(record, moderator)) for record in usable)
    insufficient = sorted(level for level, count in counts.items() if count < 2)
    levels = sorted(level for level, count in counts.items() if count >= 2)
    if insufficient:
        _log.info("%s: levels with one study left out: %s", moderator, insufficient)

    kept = [record for record in usable if str(getattr(record, moderator)) in levels]
    if not levels or len(kept) - len(levels) < 1:
        raise InsufficientDataError(
            f"{moderator}: no estimable levels (levels={len(levels)}, k={len(kept)})",
            n=len(kept),
            required=len(levels) + 1,
        )

    X = np.array(
        [[1.0 if str(getattr(record, moderator)) == level else 0.0 for level in levels] for record in kept]
    )
    result = fit_meta_regression(
        effects=[record.fishers_z for record in kept],
        standard_errors=[record.fishers_z_se for record in kept],
        X=X,
        names=levels,
        moderator=moderator,
        label=label or moderator,
        kind=ModeratorKind.CATEGORICAL,
        tested=range(len(levels)),
        counts=[counts[level] for level in levels],
        config=config,
    )
    return result.model_copy(update={"insufficient_levels": insufficient})


def continuous_moderator(
    records: Sequence[HarmonizedRecord],
    moderator: str,
    label: Optional[str] = None,
    config: Optional[SynthesisConfig] = None,
) -> MetaRegressionResult:
    """Intercept + slope meta-regression on a numeric study attribute."""
    config = config or SynthesisConfig()
    usable = [
        record
        for record in records
        if record.is_poolable and getattr(record, moderator) is not None
    ]
    if len(usable) < config.min_regression_rows:
        raise InsufficientDataError(
            f"{moderator}: {len(usable)} usable rows, {config.min_regression_rows} required",
            n=len(usable),
            required=config.min_regression_rows,
        )

    values = np.array([float(getattr(record, moderator)) for record in usable])
    if np.ptp(values) == 0.0:
        raise ModelFitError(f"{moderator} is constant across usable rows")

    X = np.column_stack([np.ones(len(values)), values])
    return fit_meta_regression(
        effects=[record.fishers_z for record in usable],
        standard_errors=[record.fishers_z_se for record in usable],
        X=X,
        names=["intercept", moderator],
        moderator=moderator,
        label=label or moderator,
        kind=ModeratorKind.CONTINUOUS,
        tested=[1],
        config=config,
    )


def compare_groups(
    records: Sequence[HarmonizedRecord],
    group_a: str,
    group_b: str,
    config: Optional[SynthesisConfig] = None,
) -> MetaRegressionResult:
    """Difference in pooled z between two clinical groups measured in shared contexts.

    The intercept is group_a's pooled z; the indicator coefficient is
    group_b minus group_a.
    """
    paired = [record for record in contrast_subset(records, group_a, group_b) if record.is_poolable]
    counts = Counter(record.combined_clinical_group for record in paired)
    if counts[group_a] < 1 or counts[group_b] < 1 or len(paired) < 3:
        raise InsufficientDataError(
            f"{group_a} vs {group_b}: {counts[group_a]} + {counts[group_b]} paired rows",
            n=len(paired),
            required=3,
        )

    indicator = np.array([1.0 if record.combined_clinical_group == group_b else 0.0 for record in paired])
    X = np.column_stack([np.ones(len(paired)), indicator])
    return fit_meta_regression(
        effects=[record.fishers_z for record in paired],
        standard_errors=[record.fishers_z_se for record in paired],
        X=X,
        names=[group_a, f"{group_b} - {group_a}"],
        moderator="combined_clinical_group",
        label=f"{group_b} vs {group_a}",
        kind=ModeratorKind.CATEGORICAL,
        tested=[1],
        counts=[counts[group_a], counts[group_b]],
        config=config,
    )


def pool_direct_comparisons(
    records: Sequence[HarmonizedRecord],
    group_a: str,
    group_b: str,
    config: Optional[SynthesisConfig] = None,
) -> PooledEstimate:
    """Pool within-study group differences computed from reported means and SDs.

    Each same-study, same-context pair yields Hedges' g (group_a minus
    group_b), converted to r with the Cohen's d rule and to z with the
    combined sample size.
    """
    effects: list[float] = []
    ses: list[float] = []
    labels: list[str] = []
    for case, control in paired_group_rows(records, group_a, group_b):
        g, _ = standardized_mean_difference(
            case.mean_score,
            case.sd,
            case.sample_size,
            control.mean_score,
            control.sd,
            control.sample_size,
        )
        z = fishers_z(convert_to_r(g, EffectSizeType.COHENS_D, None))
        se = fishers_z_se(case.sample_size + control.sample_size)
        if z is None or se is None:
            continue
        effects.append(z)
        ses.append(se)
        labels.append(f"{case.study_id}:{case.measure_belief}")
    return pool_effects(effects, ses, labels=labels, config=config)
