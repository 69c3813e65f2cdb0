"""Write harmonized tables and the results bundle for reporting collaborators."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import pandas as pd

from beliefmeta.models import HarmonizedRecord, ResultsBundle

_log = logging.getLogger(__name__)

SUBSET_FILENAMES = {
    "full": "cleaned_meta_analysis.csv",
    "clinical": "clinical_groups.csv",
    "symptoms": "symptoms.csv",
    "trauma": "trauma.csv",
    "alternate_instrument": "alternate_instrument.csv",
}

_DERIVED_COLUMNS = [
    "correlation_r",
    "fishers_z",
    "fishers_z_se",
    "weight",
    "symptom_category",
    "trauma_category",
    "combined_clinical_group",
    "measure_belief",
    "conversion_failure",
]


def harmonized_frame(records: Sequence[HarmonizedRecord]) -> pd.DataFrame:
    """Input columns first, derived columns appended."""
    rows = [record.model_dump(mode="json", exclude={"effect_size_kind"}) for record in records]
    frame = pd.DataFrame(rows)
    if frame.empty:
        return pd.DataFrame(columns=list(HarmonizedRecord.model_fields))
    leading = [column for column in frame.columns if column not in _DERIVED_COLUMNS]
    return frame[leading + [column for column in _DERIVED_COLUMNS if column in frame.columns]]


def write_harmonized_csv(records: Sequence[HarmonizedRecord], output_path: str) -> str:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    harmonized_frame(records).to_csv(path, index=False, encoding="utf-8")
    return str(path)


def write_subsets(
    subsets: Mapping[str, Sequence[HarmonizedRecord]],
    output_dir: str,
) -> dict[str, str]:
    written: dict[str, str] = {}
    for name, records in subsets.items():
        filename = SUBSET_FILENAMES.get(name, f"{name}.csv")
        written[name] = write_harmonized_csv(records, str(Path(output_dir) / filename))
        _log.debug("Wrote %d rows to %s", len(records), filename)
    return written


def write_results_json(bundle: ResultsBundle, output_path: str) -> str:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(bundle.to_dict(), indent=2, allow_nan=True), encoding="utf-8")
    return str(path)
