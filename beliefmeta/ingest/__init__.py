"""Tabular input for the pipeline."""

from beliefmeta.ingest.csv_import import (
    REQUIRED_COLUMNS,
    load_study_records,
    records_from_frame,
    validate_schema,
)

__all__ = ["REQUIRED_COLUMNS", "load_study_records", "records_from_frame", "validate_schema"]
