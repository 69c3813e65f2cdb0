"""Funnel-asymmetry regression and trim-and-fill adjustment."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Optional

import numpy as np
import statsmodels.api as sm
from scipy import stats

from beliefmeta.exceptions import InsufficientDataError, ModelFitError
from beliefmeta.models import (
    AnalysisResult,
    BiasDiagnostics,
    EggerTest,
    HarmonizedRecord,
    SynthesisConfig,
    TrimFillResult,
)
from beliefmeta.synthesis.boundary import run_analysis
from beliefmeta.synthesis.meta_analysis import fit_random_effects, pool_effects

_log = logging.getLogger(__name__)


def _require(k: int, minimum: int, what: str) -> None:
    if k < minimum:
        raise InsufficientDataError(f"{what} needs at least {minimum} studies (got {k})", n=k, required=minimum)


def egger_test(
    effects: Sequence[float],
    standard_errors: Sequence[float],
    min_studies: int = 3,
) -> EggerTest:
    """Egger's regression: standardized effect on precision; the intercept measures asymmetry."""
    y = np.asarray(effects, dtype=float)
    se = np.asarray(standard_errors, dtype=float)
    _require(len(y), max(min_studies, 3), "Egger's test")
    precision = 1.0 / se
    if np.ptp(precision) == 0.0:
        raise ModelFitError("Egger's test is undefined when all standard errors are equal")

    fit = sm.OLS(y / se, sm.add_constant(precision, has_constant="add")).fit()
    params = np.asarray(fit.params)
    bse = np.asarray(fit.bse)
    tvalues = np.asarray(fit.tvalues)
    pvalues = np.asarray(fit.pvalues)
    if not np.isfinite(bse[0]):
        raise ModelFitError("Egger's intercept has no finite standard error")
    return EggerTest(
        intercept=float(params[0]),
        intercept_se=float(bse[0]),
        statistic=float(tvalues[0]),
        p_value=float(pvalues[0]),
        slope=float(params[1]),
        df=int(fit.df_resid),
    )


def _estimate_side(y: np.ndarray, v: np.ndarray, config: SynthesisConfig) -> str:
    """Side on which studies are presumed missing, from the sign of the z ~ se slope."""
    if np.ptp(v) == 0.0:
        return "left"
    X = np.column_stack([np.ones(len(y)), np.sqrt(v)])
    slope = float(fit_random_effects(y, v, X, config).params[1])
    return "right" if slope < 0.0 else "left"


def trim_and_fill(
    effects: Sequence[float],
    standard_errors: Sequence[float],
    labels: Optional[Sequence[str]] = None,
    side: Optional[str] = None,
    config: Optional[SynthesisConfig] = None,
) -> TrimFillResult:
    """Duval & Tweedie trim-and-fill with the L0 estimator.

    Effects are flipped when studies are missing on the right so the
    iteration always trims the largest values and mirrors them about the
    trimmed pooled estimate.
    """
    config = config or SynthesisConfig()
    y_obs = np.asarray(effects, dtype=float)
    se_obs = np.asarray(standard_errors, dtype=float)
    k = len(y_obs)
    _require(k, max(config.min_bias_studies, 3), "Trim-and-fill")
    v_obs = se_obs**2

    side = side or _estimate_side(y_obs, v_obs, config)
    sign = -1.0 if side == "right" else 1.0
    order = np.argsort(sign * y_obs, kind="stable")
    y = sign * y_obs[order]
    v = v_obs[order]

    k0 = 0
    beta = 0.0
    for iteration in range(1, config.trim_fill_max_iter + 1):
        trimmed = k - k0
        beta = float(fit_random_effects(y[:trimmed], v[:trimmed], None, config).params[0])
        centered = y - beta
        ranks = stats.rankdata(np.abs(centered), method="ordinal")
        sr = float(np.sum(ranks[centered > 0.0]))
        estimate = (4.0 * sr - k * (k + 1)) / (2.0 * k - 1.0)
        new_k0 = min(max(0, int(round(estimate))), k - 2)
        if new_k0 == k0:
            break
        k0 = new_k0
    else:
        raise ModelFitError(f"trim-and-fill did not converge within {config.trim_fill_max_iter} iterations")

    _log.debug("trim-and-fill: side=%s k0=%d after %d iterations", side, k0, iteration)

    filled_y = sign * (2.0 * beta - y[k - k0 :]) if k0 > 0 else np.array([])
    filled_se = np.sqrt(v[k - k0 :]) if k0 > 0 else np.array([])

    names = list(labels) if labels is not None else [f"study_{i + 1}" for i in range(k)]
    adjusted = pool_effects(
        effects=list(y_obs) + list(filled_y),
        standard_errors=list(se_obs) + list(filled_se),
        labels=names + [f"filled_{i + 1}" for i in range(k0)],
        config=config,
    )
    return TrimFillResult(
        k0=k0,
        side=side,
        filled_z=[float(value) for value in filled_y],
        filled_se=[float(value) for value in filled_se],
        adjusted=adjusted,
    )


def bias_diagnostics(
    records: Sequence[HarmonizedRecord],
    contrast: str,
    config: Optional[SynthesisConfig] = None,
) -> BiasDiagnostics:
    config = config or SynthesisConfig()
    usable = [record for record in records if record.is_poolable]
    _require(len(usable), max(config.min_bias_studies, 3), f"Bias diagnostics for {contrast}")
    effects = [record.fishers_z for record in usable]
    ses = [record.fishers_z_se for record in usable]
    return BiasDiagnostics(
        contrast=contrast,
        k=len(usable),
        egger=egger_test(effects, ses, config.min_bias_studies),
        trim_fill=trim_and_fill(
            effects,
            ses,
            labels=[record.study_id for record in usable],
            config=config,
        ),
    )


def run_bias_diagnostics(
    records_by_contrast: Mapping[str, Sequence[HarmonizedRecord]],
    config: Optional[SynthesisConfig] = None,
) -> dict[str, AnalysisResult]:
    """Diagnostics per contrast; one contrast failing never stops the others."""
    return {
        contrast: run_analysis(
            contrast,
            bias_diagnostics,
            records,
            contrast,
            config,
            section="publication_bias",
        )
        for contrast, records in records_by_contrast.items()
    }
