"""Random-effects synthesis, moderators and publication-bias diagnostics."""

from beliefmeta.synthesis.boundary import run_analysis
from beliefmeta.synthesis.descriptives import data_summary, missing_value_counts, summarize_groups
from beliefmeta.synthesis.meta_analysis import (
    RandomEffectsFit,
    estimate_tau_squared_reml,
    fit_random_effects,
    pool_effects,
    pool_records,
)
from beliefmeta.synthesis.meta_regression import (
    categorical_moderator,
    compare_groups,
    continuous_moderator,
    fit_meta_regression,
    pool_direct_comparisons,
)
from beliefmeta.synthesis.publication_bias import (
    bias_diagnostics,
    egger_test,
    run_bias_diagnostics,
    trim_and_fill,
)
from beliefmeta.synthesis.sensitivity import leave_one_out, subgroup_analysis

__all__ = [
    "RandomEffectsFit",
    "bias_diagnostics",
    "categorical_moderator",
    "compare_groups",
    "continuous_moderator",
    "data_summary",
    "egger_test",
    "estimate_tau_squared_reml",
    "fit_meta_regression",
    "fit_random_effects",
    "leave_one_out",
    "missing_value_counts",
    "pool_direct_comparisons",
    "pool_effects",
    "pool_records",
    "run_analysis",
    "run_bias_diagnostics",
    "subgroup_analysis",
    "summarize_groups",
    "trim_and_fill",
]
