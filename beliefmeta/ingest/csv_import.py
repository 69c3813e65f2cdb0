"""Effect-size extraction sheet importer.

Parses the delimited extraction sheet into typed StudyRecords. Missing or
wholly non-numeric required columns are the one fatal condition; individual
unparseable cells degrade to missing values.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pandas as pd

from beliefmeta.exceptions import SchemaViolationError
from beliefmeta.models import StudyRecord

_log = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "study_id",
    "measure_type",
    "clinical_group",
    "sample_size",
    "effect_size",
    "effect_size_type",
)
REQUIRED_NUMERIC = ("sample_size", "effect_size")
OPTIONAL_NUMERIC = ("year", "mean_score", "sd", "mean_age", "percent_male")


def validate_schema(frame: pd.DataFrame) -> pd.DataFrame:
    """Check required columns and coerce numeric ones; returns a new frame.

    Raises:
        SchemaViolationError: naming every missing column, or every required
            numeric column that holds no numeric value at all.
    """
    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise SchemaViolationError(
            f"Input is missing required column(s): {', '.join(missing)}. "
            f"Found columns: {list(frame.columns)}",
            columns=missing,
        )

    coerced = frame.copy()
    for column in REQUIRED_NUMERIC + OPTIONAL_NUMERIC:
        if column in coerced.columns:
            coerced[column] = pd.to_numeric(coerced[column], errors="coerce")

    if len(coerced):
        malformed = [column for column in REQUIRED_NUMERIC if coerced[column].notna().sum() == 0]
        if malformed:
            raise SchemaViolationError(
                f"Required numeric column(s) contain no numeric values: {', '.join(malformed)}",
                columns=malformed,
            )
    return coerced


def records_from_frame(frame: pd.DataFrame) -> List[StudyRecord]:
    coerced = validate_schema(frame)
    known = set(StudyRecord.model_fields)
    columns = [column for column in coerced.columns if column in known]
    records: List[StudyRecord] = []
    for i, row in enumerate(coerced[columns].to_dict(orient="records"), start=2):  # row 1 is header
        cleaned = {key: (None if pd.isna(value) else value) for key, value in row.items()}
        if cleaned.get("study_id") is None:
            cleaned["study_id"] = f"row_{i}"
            _log.debug("Row %d has no study_id; using %s", i, cleaned["study_id"])
        records.append(StudyRecord.model_validate(cleaned))
    return records


def load_study_records(csv_path: str) -> List[StudyRecord]:
    """Read a UTF-8 CSV with a header row into StudyRecords.

    Raises:
        FileNotFoundError: If csv_path does not exist.
        SchemaViolationError: If required columns are absent or malformed.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Effect-size sheet not found: {csv_path}")

    frame = pd.read_csv(path, encoding="utf-8-sig", dtype=str)
    records = records_from_frame(frame)
    _log.info("Loaded %d effect-size rows from %s", len(records), path.name)
    return records
