"""Analysis-specific views over the harmonized record set."""

from beliefmeta.partition.subsets import (
    alternate_instrument_subset,
    clinical_subset,
    contrast_subset,
    group_by,
    paired_group_rows,
    partition_records,
    poolable,
    symptom_subset,
    trauma_subset,
)

__all__ = [
    "alternate_instrument_subset",
    "clinical_subset",
    "contrast_subset",
    "group_by",
    "paired_group_rows",
    "partition_records",
    "poolable",
    "symptom_subset",
    "trauma_subset",
]
