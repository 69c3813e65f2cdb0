"""Harmonized-data and results export."""

from beliefmeta.export.writers import (
    harmonized_frame,
    write_harmonized_csv,
    write_results_json,
    write_subsets,
)

__all__ = ["harmonized_frame", "write_harmonized_csv", "write_results_json", "write_subsets"]
