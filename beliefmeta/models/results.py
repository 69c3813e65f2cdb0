"""Typed outputs of the synthesis stage."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from beliefmeta.models.enums import AnalysisStatus, ModeratorKind, SignificanceTest


class HeterogeneityStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    q: float
    q_df: int
    q_p_value: float
    i_squared: float
    h_squared: float
    tau_squared: float


class StudyWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    fishers_z: float
    fishers_z_se: float
    weight: float
    weight_percent: float
    re_weight_percent: float


class PooledEstimate(BaseModel):
    """Random-effects pooled estimate on the Fisher's z scale."""

    model_config = ConfigDict(frozen=True)

    k: int
    estimate: float
    std_error: float
    ci_lower: float
    ci_upper: float
    pi_lower: float
    pi_upper: float
    statistic: float
    p_value: float
    df: Optional[int] = None
    test: SignificanceTest = SignificanceTest.KNAPP_HARTUNG
    method: str = "REML"
    heterogeneity: HeterogeneityStats
    weights: List[StudyWeight] = Field(default_factory=list)
    r: float
    r_ci_lower: float
    r_ci_upper: float


class ModeratorCoefficient(BaseModel):
    model_config = ConfigDict(frozen=True)

    term: str
    estimate: float
    std_error: float
    statistic: float
    p_value: float
    ci_lower: float
    ci_upper: float
    k: Optional[int] = None


class ModeratorTest(BaseModel):
    model_config = ConfigDict(frozen=True)

    statistic: float
    df_num: int
    df_den: Optional[int] = None
    p_value: float


class MetaRegressionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    moderator: str
    label: str
    kind: ModeratorKind
    k: int
    coefficients: List[ModeratorCoefficient]
    tau_squared: float
    residual_heterogeneity: HeterogeneityStats
    moderator_test: ModeratorTest
    insufficient_levels: List[str] = Field(default_factory=list)


class EggerTest(BaseModel):
    model_config = ConfigDict(frozen=True)

    intercept: float
    intercept_se: float
    statistic: float
    p_value: float
    slope: float
    df: int


class TrimFillResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    k0: int
    side: str
    filled_z: List[float] = Field(default_factory=list)
    filled_se: List[float] = Field(default_factory=list)
    adjusted: PooledEstimate


class BiasDiagnostics(BaseModel):
    model_config = ConfigDict(frozen=True)

    contrast: str
    k: int
    egger: EggerTest
    trim_fill: TrimFillResult


class LeaveOneOutRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    excluded: str
    k: int
    estimate: float
    ci_lower: float
    ci_upper: float
    i_squared: float
    tau_squared: float


class GroupSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    group: List[str]
    n: int
    mean_z: Optional[float] = None
    sd_z: Optional[float] = None
    min_z: Optional[float] = None
    max_z: Optional[float] = None


class ConversionCheckRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    effect_size_type: str
    n: int
    original_range: Optional[List[float]] = None
    r_range: Optional[List[float]] = None
    z_range: Optional[List[float]] = None
    mean_r: Optional[float] = None
    mean_z: Optional[float] = None


class FlaggedRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    study_id: str
    author: Optional[str] = None
    effect_size_type: Optional[str] = None
    effect_size: Optional[float] = None
    correlation_r: Optional[float] = None
    fishers_z: Optional[float] = None
    fishers_z_se: Optional[float] = None
    reason: str


class ValidityReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_rows: int
    missing_es: int
    invalid_z: int
    missing_se: int
    conversion_failures: Dict[str, int] = Field(default_factory=dict)


class AnalysisResult(BaseModel):
    """Tagged outcome of one analysis: a value, or an inspectable reason it has none."""

    model_config = ConfigDict(frozen=True)

    key: str
    status: AnalysisStatus
    value: Optional[Any] = None
    message: str = ""
    n: int = 0

    @property
    def ok(self) -> bool:
        return self.status == AnalysisStatus.OK


class ResultsBundle(BaseModel):
    """Everything the reporting collaborators consume, keyed by section then analysis."""

    sections: Dict[str, Dict[str, AnalysisResult]] = Field(default_factory=dict)
    data_summary: Dict[str, Any] = Field(default_factory=dict)
    validity: Optional[ValidityReport] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def add(self, section: str, result: AnalysisResult) -> None:
        self.sections.setdefault(section, {})[result.key] = result

    def get(self, section: str, key: str) -> Optional[AnalysisResult]:
        return self.sections.get(section, {}).get(key)

    def failures(self) -> List[AnalysisResult]:
        return [
            result
            for section in self.sections.values()
            for result in section.values()
            if not result.ok
        ]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
