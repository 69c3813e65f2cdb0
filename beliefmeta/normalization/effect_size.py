"""Deterministic effect-size conversions onto the correlation / Fisher's z scale."""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Optional

from statsmodels.stats.meta_analysis import effectsize_smd

from beliefmeta.models.enums import ConversionFailure, EffectSizeType

Converter = Callable[[float, Optional[int]], Optional[float]]

_SQRT3_PI = math.sqrt(3.0) * math.pi


def _sign(value: float) -> float:
    if value > 0.0:
        return 1.0
    if value < 0.0:
        return -1.0
    return 0.0


def _passthrough(es: float, n: Optional[int]) -> Optional[float]:
    return es


def _from_odds_ratio(es: float, n: Optional[int]) -> Optional[float]:
    # Chinn (2000): log OR scaled by the logistic standard deviation.
    if es <= 0.0:
        return None
    return math.log(es) / _SQRT3_PI


def _from_cohens_d(es: float, n: Optional[int]) -> Optional[float]:
    return es / math.sqrt(es**2 + 4.0)


def _from_eta_squared(es: float, n: Optional[int]) -> Optional[float]:
    if es < 0.0:
        return None
    return math.sqrt(es)


def _from_r_squared(es: float, n: Optional[int]) -> Optional[float]:
    return _sign(es) * math.sqrt(abs(es))


def _from_chi_squared(es: float, n: Optional[int]) -> Optional[float]:
    if n is None or n <= 0:
        return None
    ratio = es / n
    if ratio < 0.0:
        return None
    return _sign(es) * math.sqrt(ratio)


def _from_f_statistic(es: float, n: Optional[int]) -> Optional[float]:
    # Single numerator df assumed, as in the published analysis.
    if n is None:
        return None
    denominator = es + n - 2
    if denominator <= 0.0:
        return None
    ratio = es / denominator
    if ratio < 0.0:
        return None
    return math.sqrt(ratio)


def _from_t_statistic(es: float, n: Optional[int]) -> Optional[float]:
    if n is None:
        return None
    radicand = es**2 + n - 2
    if radicand <= 0.0:
        return None
    return es / math.sqrt(radicand)


CONVERTERS: dict[EffectSizeType, Converter] = {
    EffectSizeType.PEARSONS_R: _passthrough,
    EffectSizeType.SPEARMANS_R: _passthrough,
    EffectSizeType.SPEARMAN_R: _passthrough,
    EffectSizeType.PARTIAL_CORRELATION: _passthrough,
    EffectSizeType.ODDS_RATIO: _from_odds_ratio,
    EffectSizeType.COHENS_D: _from_cohens_d,
    EffectSizeType.ETA_SQUARED: _from_eta_squared,
    EffectSizeType.PARTIAL_ETA_SQUARED: _from_eta_squared,
    EffectSizeType.R_SQUARED: _from_r_squared,
    EffectSizeType.CHI_SQUARED: _from_chi_squared,
    EffectSizeType.BETA_COEFFICIENT: _passthrough,
    EffectSizeType.BETA_INDIRECT_EFFECT: _passthrough,
    EffectSizeType.BETA_TOTAL_EFFECT: _passthrough,
    EffectSizeType.F_STATISTIC: _from_f_statistic,
    EffectSizeType.F_SQUARED: _from_f_statistic,
    EffectSizeType.T_TEST: _from_t_statistic,
}


def convert_effect_size(
    effect_size: Optional[float],
    effect_size_type: Optional[str | EffectSizeType],
    sample_size: Optional[int],
) -> tuple[Optional[float], Optional[ConversionFailure]]:
    """Convert a reported effect size to r, returning (r, failure reason)."""
    if effect_size is None or (isinstance(effect_size, float) and math.isnan(effect_size)):
        return None, ConversionFailure.MISSING_EFFECT_SIZE
    kind = (
        effect_size_type
        if isinstance(effect_size_type, EffectSizeType)
        else EffectSizeType.parse(effect_size_type)
    )
    if kind is None:
        return None, ConversionFailure.MISSING_EFFECT_SIZE_TYPE
    converter = CONVERTERS.get(kind)
    if converter is None:
        return None, ConversionFailure.UNRECOGNIZED_EFFECT_SIZE_TYPE
    r = converter(float(effect_size), sample_size)
    if r is None or not math.isfinite(r):
        return None, ConversionFailure.DOMAIN_ERROR
    return r, None


def convert_to_r(
    effect_size: Optional[float],
    effect_size_type: Optional[str | EffectSizeType],
    sample_size: Optional[int],
) -> Optional[float]:
    r, _ = convert_effect_size(effect_size, effect_size_type, sample_size)
    return r


def fishers_z(r: Optional[float]) -> Optional[float]:
    """atanh(r); None when r is missing or on the |r| >= 1 boundary."""
    if r is None or not math.isfinite(r) or abs(r) >= 1.0:
        return None
    return math.atanh(r)


def fishers_z_se(sample_size: Optional[int]) -> Optional[float]:
    if sample_size is None or sample_size <= 0:
        return None
    return 1.0 / math.sqrt(max(sample_size - 3, 1))


def z_to_r(z: float) -> float:
    return math.tanh(z)


def r_to_odds_ratio(r: float) -> float:
    return math.exp(r * _SQRT3_PI)


def standardized_mean_difference(
    mean_case: float,
    sd_case: float,
    n_case: int,
    mean_control: float,
    sd_control: float,
    n_control: int,
) -> tuple[float, float]:
    """Bias-corrected SMD (Hedges' g) and its variance for a direct group comparison."""
    effect, variance = effectsize_smd(
        mean_case,
        sd_case,
        n_case,
        mean_control,
        sd_control,
        n_control,
    )
    return float(effect), float(variance)
