"""Effect-size normalization and category harmonization."""

from beliefmeta.normalization.categories import (
    clean_belief_type,
    combined_clinical_group,
    measure_belief,
    symptom_category,
    trauma_category,
)
from beliefmeta.normalization.effect_size import (
    convert_effect_size,
    convert_to_r,
    fishers_z,
    fishers_z_se,
    r_to_odds_ratio,
    standardized_mean_difference,
    z_to_r,
)
from beliefmeta.normalization.harmonizer import (
    ConversionIssue,
    HarmonizationResult,
    harmonize_record,
    harmonize_records,
)
from beliefmeta.normalization.validity import (
    conversion_check,
    flag_outliers,
    flag_small_se,
    validity_report,
)

__all__ = [
    "ConversionIssue",
    "HarmonizationResult",
    "clean_belief_type",
    "combined_clinical_group",
    "conversion_check",
    "convert_effect_size",
    "convert_to_r",
    "fishers_z",
    "fishers_z_se",
    "flag_outliers",
    "flag_small_se",
    "harmonize_record",
    "harmonize_records",
    "measure_belief",
    "r_to_odds_ratio",
    "standardized_mean_difference",
    "symptom_category",
    "trauma_category",
    "validity_report",
    "z_to_r",
]
