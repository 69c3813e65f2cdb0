"""Study-level record models: raw input rows and their harmonized form."""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from beliefmeta.models.enums import ConversionFailure, EffectSizeType

_TEXT_FIELDS = (
    "author",
    "measure_type",
    "belief_type",
    "belief_category",
    "effect_size_type",
    "symptom_subtype",
    "trauma_subtype",
)


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and (not value.strip() or value.strip().upper() == "NA"):
        return None
    return value


class StudyRecord(BaseModel):
    """One reported effect size; a study may contribute several rows."""

    model_config = ConfigDict(frozen=True)

    study_id: str
    author: Optional[str] = None
    year: Optional[int] = None
    measure_type: Optional[str] = None
    belief_type: Optional[str] = None
    belief_category: Optional[str] = None
    clinical_group: Optional[str] = None
    combined_clinical_group: Optional[str] = None
    sample_size: Optional[int] = None
    effect_size: Optional[float] = None
    effect_size_type: Optional[str] = None
    mean_score: Optional[float] = None
    sd: Optional[float] = None
    symptom_subtype: Optional[str] = None
    trauma_subtype: Optional[str] = None
    mean_age: Optional[float] = None
    percent_male: Optional[float] = None

    @field_validator("study_id", mode="before")
    @classmethod
    def _study_id_text(cls, value: Any) -> str:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value).strip()

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("clinical_group", "combined_clinical_group", mode="before")
    @classmethod
    def _lower_group(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return str(value).strip().lower() if value is not None else None

    @field_validator("sample_size", "year", mode="before")
    @classmethod
    def _integral(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None:
            return None
        return int(round(float(value)))

    @field_validator(
        "effect_size", "mean_score", "sd", "mean_age", "percent_male", mode="before"
    )
    @classmethod
    def _numeric(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None:
            return None
        number = float(value)
        return None if math.isnan(number) else number


class HarmonizedRecord(StudyRecord):
    """A StudyRecord on the common correlation / Fisher's z scale.

    `fishers_z` is None whenever the conversion failed; such rows stay in the
    harmonized set but never enter a pooled computation.
    """

    effect_size_kind: Optional[EffectSizeType] = None
    correlation_r: Optional[float] = None
    fishers_z: Optional[float] = None
    fishers_z_se: Optional[float] = None
    weight: Optional[float] = None
    symptom_category: Optional[str] = None
    trauma_category: Optional[str] = None
    measure_belief: Optional[str] = None
    conversion_failure: Optional[ConversionFailure] = None

    @property
    def is_poolable(self) -> bool:
        return (
            self.fishers_z is not None
            and self.fishers_z_se is not None
            and math.isfinite(self.fishers_z)
            and self.fishers_z_se > 0.0
        )
