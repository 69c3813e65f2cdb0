"""Configuration models loaded from YAML."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from beliefmeta.models.enums import SignificanceTest


class SubsetConfig(BaseModel):
    primary_instrument: str = "BCSS"
    alternate_instruments: List[str] = Field(default_factory=lambda: ["YSQ", "YSQ_SF"])
    primary_belief_types: List[str] = Field(
        default_factory=lambda: [
            "negative_self",
            "negative_other",
            "positive_self",
            "positive_other",
        ]
    )
    contrasts: List[List[str]] = Field(
        default_factory=lambda: [["sz", "control"], ["chr", "control"], ["sz", "chr"]],
        description="Pairs of combined clinical groups compared within the same measure_belief context.",
    )


class SynthesisConfig(BaseModel):
    method: str = "REML"
    test: SignificanceTest = SignificanceTest.KNAPP_HARTUNG
    confidence_level: float = Field(gt=0.0, lt=1.0, default=0.95)
    min_studies: int = Field(ge=2, default=2)
    min_regression_rows: int = Field(ge=2, default=10)
    min_bias_studies: int = Field(ge=3, default=3)
    min_leave_one_out_studies: int = Field(ge=3, default=3)
    tau2_max_iter: int = Field(ge=1, default=100)
    tau2_tolerance: float = Field(gt=0.0, default=1e-5)
    trim_fill_max_iter: int = Field(ge=1, default=100)
    categorical_moderators: Dict[str, str] = Field(
        default_factory=lambda: {"belief_category": "Belief Category"}
    )
    continuous_moderators: Dict[str, str] = Field(
        default_factory=lambda: {
            "mean_age": "Mean Age",
            "percent_male": "Percent Male",
            "year": "Publication Year",
            "sample_size": "Sample Size",
        }
    )


class QualityConfig(BaseModel):
    invalid_z_threshold: float = 4.0
    outlier_z_threshold: float = 2.0
    extreme_z_threshold: float = 3.0
    small_se_threshold: float = 0.01


class PipelineConfig(BaseModel):
    subsets: SubsetConfig = Field(default_factory=SubsetConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
