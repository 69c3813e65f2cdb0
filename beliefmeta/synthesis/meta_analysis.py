"""Random-effects pooling with REML tau^2 and the Knapp-Hartung adjustment.

tau^2 is estimated by Fisher scoring on the restricted likelihood, starting
from the Hedges (method-of-moments) value and truncating at zero. Given tau^2,
coefficients come from a statsmodels WLS fit with weights 1/(v_i + tau^2).
The default WLS covariance scales by sum(w e^2)/(k - p), which is exactly the
Knapp-Hartung estimator, so the t(k - p) reference falls out of the fit.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import numpy as np
import statsmodels.api as sm
from scipy import stats

from beliefmeta.exceptions import InsufficientDataError, ModelFitError
from beliefmeta.models import (
    HarmonizedRecord,
    HeterogeneityStats,
    PooledEstimate,
    SignificanceTest,
    StudyWeight,
    SynthesisConfig,
)

_log = logging.getLogger(__name__)

_MIN_VARIANCE = 1e-12
_MAX_HALVINGS = 60


@dataclass(frozen=True)
class RandomEffectsFit:
    """Raw output of one REML fit; shared by pooling and meta-regression."""

    params: np.ndarray
    cov: np.ndarray
    tau_squared: float
    k: int
    p: int
    df: Optional[int]
    crit: float
    test: SignificanceTest
    heterogeneity: HeterogeneityStats
    weights: np.ndarray

    def coefficient_stats(self, index: int) -> tuple[float, float, float, float]:
        """(se, statistic, p-value, half-width) for one coefficient."""
        variance = max(float(self.cov[index, index]), _MIN_VARIANCE)
        std_error = math.sqrt(variance)
        statistic = float(self.params[index]) / std_error
        if self.df is not None:
            p_value = float(2.0 * stats.t.sf(abs(statistic), self.df))
        else:
            p_value = float(2.0 * stats.norm.sf(abs(statistic)))
        return std_error, statistic, p_value, self.crit * std_error


def _design(k: int, X: Optional[np.ndarray]) -> np.ndarray:
    if X is None:
        return np.ones((k, 1))
    design = np.asarray(X, dtype=float)
    if design.ndim == 1:
        design = design[:, None]
    return design


def _projection(X: np.ndarray, w: np.ndarray) -> np.ndarray:
    """P = W - W X (X'WX)^-1 X'W."""
    W = np.diag(w)
    xtwx_inv = np.linalg.inv(X.T @ W @ X)
    return W - W @ X @ xtwx_inv @ X.T @ W


def _check_inputs(y: np.ndarray, v: np.ndarray) -> None:
    if y.shape != v.shape:
        raise ValueError("effects and variances must be the same length")
    if not np.all(np.isfinite(y)):
        raise ValueError("effects must be finite")
    if not np.all(np.isfinite(v)) or np.any(v <= 0.0):
        raise ValueError("sampling variances must be finite and positive")


def estimate_tau_squared_reml(
    effects: Sequence[float],
    variances: Sequence[float],
    X: Optional[np.ndarray] = None,
    max_iter: int = 100,
    tolerance: float = 1e-5,
) -> float:
    y = np.asarray(effects, dtype=float)
    v = np.asarray(variances, dtype=float)
    _check_inputs(y, v)
    design = _design(len(y), X)
    k, p = design.shape
    if k - p < 1:
        raise InsufficientDataError(
            f"REML needs more observations than coefficients (k={k}, p={p})", n=k, required=p + 1
        )

    try:
        hat = design @ np.linalg.pinv(design.T @ design) @ design.T
        residuals = y - hat @ y
        tau2 = max(0.0, float(residuals @ residuals - np.trace((np.eye(k) - hat) * v)) / (k - p))

        for iteration in range(1, max_iter + 1):
            P = _projection(design, 1.0 / (v + tau2))
            Py = P @ y
            information = float(np.sum(P * P.T))
            adj = (float(Py @ Py) - float(np.trace(P))) / information
            if not math.isfinite(adj):
                raise ModelFitError("REML scoring step is not finite")
            halvings = 0
            while tau2 + adj < 0.0 and halvings < _MAX_HALVINGS:
                adj /= 2.0
                halvings += 1
            if tau2 + adj < 0.0:
                adj = -tau2
            tau2 += adj
            if abs(adj) < tolerance:
                _log.debug("REML converged after %d iterations (tau2=%.6f)", iteration, tau2)
                return float(tau2)
    except np.linalg.LinAlgError as exc:
        raise ModelFitError(f"REML failed: {exc}") from exc

    raise ModelFitError(f"REML did not converge within {max_iter} iterations")


def _heterogeneity(
    y: np.ndarray,
    v: np.ndarray,
    design: np.ndarray,
    tau2: float,
) -> HeterogeneityStats:
    k, p = design.shape
    fixed = sm.WLS(y, design, weights=1.0 / v).fit()
    q = float(fixed.ssr)
    df = k - p
    q_p_value = float(stats.chi2.sf(q, df)) if df > 0 else 1.0
    # Typical within-study variance (Higgins & Thompson, generalized to moderators).
    typical = df / float(np.trace(_projection(design, 1.0 / v)))
    i_squared = 100.0 * tau2 / (typical + tau2)
    return HeterogeneityStats(
        q=q,
        q_df=df,
        q_p_value=q_p_value,
        i_squared=float(max(0.0, min(100.0, i_squared))),
        h_squared=float((typical + tau2) / typical),
        tau_squared=tau2,
    )


def fit_random_effects(
    effects: Sequence[float],
    variances: Sequence[float],
    X: Optional[np.ndarray] = None,
    config: Optional[SynthesisConfig] = None,
) -> RandomEffectsFit:
    config = config or SynthesisConfig()
    y = np.asarray(effects, dtype=float)
    v = np.asarray(variances, dtype=float)
    design = _design(len(y), X)
    tau2 = estimate_tau_squared_reml(
        y, v, design, max_iter=config.tau2_max_iter, tolerance=config.tau2_tolerance
    )
    k, p = design.shape
    weights = 1.0 / (v + tau2)
    try:
        model = sm.WLS(y, design, weights=weights).fit()
        heterogeneity = _heterogeneity(y, v, design, tau2)
    except np.linalg.LinAlgError as exc:
        raise ModelFitError(f"weighted least squares failed: {exc}") from exc

    alpha = 1.0 - config.confidence_level
    if config.test == SignificanceTest.KNAPP_HARTUNG:
        cov = np.asarray(model.cov_params(), dtype=float)
        df: Optional[int] = k - p
        crit = float(stats.t.ppf(1.0 - alpha / 2.0, df))
    else:
        cov = np.asarray(model.normalized_cov_params, dtype=float)
        df = None
        crit = float(stats.norm.ppf(1.0 - alpha / 2.0))

    if not np.all(np.isfinite(cov)):
        raise ModelFitError("degenerate covariance matrix")

    return RandomEffectsFit(
        params=np.asarray(model.params, dtype=float),
        cov=cov,
        tau_squared=tau2,
        k=k,
        p=p,
        df=df,
        crit=crit,
        test=config.test,
        heterogeneity=heterogeneity,
        weights=weights,
    )


def pool_effects(
    effects: Sequence[float],
    standard_errors: Sequence[float],
    labels: Optional[Sequence[str]] = None,
    config: Optional[SynthesisConfig] = None,
) -> PooledEstimate:
    """Pool Fisher's z values under a REML random-effects model."""
    config = config or SynthesisConfig()
    if len(effects) != len(standard_errors):
        raise ValueError("effects and standard_errors must be the same length")
    if len(effects) < config.min_studies:
        raise InsufficientDataError(
            f"at least {config.min_studies} studies are required for pooling (got {len(effects)})",
            n=len(effects),
            required=config.min_studies,
        )

    y = np.asarray(effects, dtype=float)
    se = np.asarray(standard_errors, dtype=float)
    v = se**2
    fit = fit_random_effects(y, v, None, config)

    estimate = float(fit.params[0])
    std_error, statistic, p_value, half_width = fit.coefficient_stats(0)
    pi_half_width = fit.crit * math.sqrt(std_error**2 + fit.tau_squared)

    names = list(labels) if labels is not None else [f"study_{i + 1}" for i in range(len(y))]
    fe_weights = 1.0 / v
    fe_total = float(np.sum(fe_weights))
    re_total = float(np.sum(fit.weights))
    weights = [
        StudyWeight(
            label=str(name),
            fishers_z=float(z),
            fishers_z_se=float(s),
            weight=float(fw),
            weight_percent=float(100.0 * fw / fe_total),
            re_weight_percent=float(100.0 * w / re_total),
        )
        for name, z, s, fw, w in zip(names, y, se, fe_weights, fit.weights)
    ]

    ci_lower = estimate - half_width
    ci_upper = estimate + half_width
    return PooledEstimate(
        k=fit.k,
        estimate=estimate,
        std_error=std_error,
        ci_lower=ci_lower,
        ci_upper=ci_upper,
        pi_lower=estimate - pi_half_width,
        pi_upper=estimate + pi_half_width,
        statistic=statistic,
        p_value=p_value,
        df=fit.df,
        test=fit.test,
        method=config.method,
        heterogeneity=fit.heterogeneity,
        weights=weights,
        r=math.tanh(estimate),
        r_ci_lower=math.tanh(ci_lower),
        r_ci_upper=math.tanh(ci_upper),
    )


def pool_records(
    records: Sequence[HarmonizedRecord],
    config: Optional[SynthesisConfig] = None,
) -> PooledEstimate:
    """Pool the usable rows of a subset; rows without a Fisher's z carry no weight."""
    usable = [record for record in records if record.is_poolable]
    if len(usable) < len(records):
        _log.debug("Excluded %d rows without a usable z from pooling", len(records) - len(usable))
    return pool_effects(
        effects=[record.fishers_z for record in usable],
        standard_errors=[record.fishers_z_se for record in usable],
        labels=[record.study_id for record in usable],
        config=config,
    )
