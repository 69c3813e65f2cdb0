"""Model exports for stage boundaries."""

from beliefmeta.models.config import (
    PipelineConfig,
    QualityConfig,
    SubsetConfig,
    SynthesisConfig,
)
from beliefmeta.models.enums import (
    AnalysisStatus,
    ConversionFailure,
    EffectSizeType,
    ModeratorKind,
    SignificanceTest,
    SymptomCategory,
    TraumaCategory,
)
from beliefmeta.models.records import HarmonizedRecord, StudyRecord
from beliefmeta.models.results import (
    AnalysisResult,
    BiasDiagnostics,
    ConversionCheckRow,
    EggerTest,
    FlaggedRecord,
    GroupSummary,
    HeterogeneityStats,
    LeaveOneOutRow,
    MetaRegressionResult,
    ModeratorCoefficient,
    ModeratorTest,
    PooledEstimate,
    ResultsBundle,
    StudyWeight,
    TrimFillResult,
    ValidityReport,
)

__all__ = [
    "AnalysisResult",
    "AnalysisStatus",
    "BiasDiagnostics",
    "ConversionCheckRow",
    "ConversionFailure",
    "EffectSizeType",
    "EggerTest",
    "FlaggedRecord",
    "GroupSummary",
    "HarmonizedRecord",
    "HeterogeneityStats",
    "LeaveOneOutRow",
    "MetaRegressionResult",
    "ModeratorCoefficient",
    "ModeratorKind",
    "ModeratorTest",
    "PipelineConfig",
    "PooledEstimate",
    "QualityConfig",
    "ResultsBundle",
    "SignificanceTest",
    "StudyRecord",
    "StudyWeight",
    "SubsetConfig",
    "SymptomCategory",
    "SynthesisConfig",
    "TraumaCategory",
    "TrimFillResult",
    "ValidityReport",
]
