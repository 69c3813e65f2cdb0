"""Enum definitions for typed stage boundaries."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class EffectSizeType(str, Enum):
    """Closed vocabulary of reported effect-size metrics.

    Every tag maps to exactly one conversion rule. Tags outside the vocabulary
    parse to UNRECOGNIZED, which converts to a missing value.
    """

    PEARSONS_R = "pearsons_r"
    SPEARMANS_R = "spearmans_r"
    SPEARMAN_R = "spearman_r"
    PARTIAL_CORRELATION = "partial_correlation_coefficient"
    ODDS_RATIO = "odds_ratio"
    COHENS_D = "cohens_d"
    ETA_SQUARED = "eta_squared"
    PARTIAL_ETA_SQUARED = "partial_eta_squared"
    R_SQUARED = "r_squared"
    CHI_SQUARED = "chi_squared"
    BETA_COEFFICIENT = "beta_coefficient"
    BETA_INDIRECT_EFFECT = "beta_indirect_effect"
    BETA_TOTAL_EFFECT = "beta_total_effect"
    F_STATISTIC = "f_statistic"
    F_SQUARED = "f_squared"
    T_TEST = "t_test"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, tag: Optional[str]) -> Optional["EffectSizeType"]:
        """Map a raw tag to a member; None for a missing tag."""
        if tag is None:
            return None
        cleaned = str(tag).strip().lower().replace(" ", "_").replace("-", "_")
        if not cleaned or cleaned in {"nan", "na"}:
            return None
        try:
            member = cls(cleaned)
        except ValueError:
            return cls.UNRECOGNIZED
        return member


class ConversionFailure(str, Enum):
    MISSING_EFFECT_SIZE = "missing_effect_size"
    MISSING_EFFECT_SIZE_TYPE = "missing_effect_size_type"
    UNRECOGNIZED_EFFECT_SIZE_TYPE = "unrecognized_effect_size_type"
    DOMAIN_ERROR = "domain_error"  # e.g. log of a non-positive odds ratio
    BOUNDARY_R = "boundary_r"  # |r| >= 1, Fisher's z undefined
    MISSING_SAMPLE_SIZE = "missing_sample_size"


class SymptomCategory(str, Enum):
    GRANDIOSE = "grandiose"
    PERSECUTORY = "persecutory"
    VOICE_HEARING = "voice_hearing"
    NEGATIVE_SYMPTOMS = "negative_symptoms"


class TraumaCategory(str, Enum):
    PHYSICAL_ABUSE = "physical_abuse"
    EMOTIONAL_ABUSE = "emotional_abuse"
    SEXUAL_ABUSE = "sexual_abuse"
    PHYSICAL_NEGLECT = "physical_neglect"
    EMOTIONAL_NEGLECT = "emotional_neglect"


class AnalysisStatus(str, Enum):
    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"
    FIT_FAILURE = "fit_failure"


class SignificanceTest(str, Enum):
    KNAPP_HARTUNG = "knha"
    Z = "z"


class ModeratorKind(str, Enum):
    CATEGORICAL = "categorical"
    CONTINUOUS = "continuous"
