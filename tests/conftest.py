"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

from typing import Any, Callable, List

import pytest

from beliefmeta.models import HarmonizedRecord, StudyRecord
from beliefmeta.normalization import harmonize_record
from beliefmeta.utils.structured_log import reset_run_logging


def _study(study_id: str = "S1", **overrides: Any) -> StudyRecord:
    data: dict[str, Any] = {
        "study_id": study_id,
        "measure_type": "BCSS",
        "belief_type": "negative_self",
        "belief_category": "negative",
        "clinical_group": "sz",
        "sample_size": 53,
        "effect_size": 0.3,
        "effect_size_type": "pearsons_r",
    }
    data.update(overrides)
    return StudyRecord.model_validate(data)


@pytest.fixture(autouse=True)
def _reset_audit_log():
    yield
    reset_run_logging()


@pytest.fixture
def make_study() -> Callable[..., StudyRecord]:
    """Factory for StudyRecords with sensible BCSS defaults."""
    return _study


@pytest.fixture
def make_harmonized() -> Callable[..., HarmonizedRecord]:
    """Factory for already-harmonized records."""

    def _make(study_id: str = "S1", **overrides: Any) -> HarmonizedRecord:
        return harmonize_record(_study(study_id, **overrides))

    return _make


@pytest.fixture
def sample_studies() -> List[StudyRecord]:
    """A small extraction sheet: SZ, CHR and control rows on two BCSS sub-scales.

    SZ and control rows share study ids and contexts so contrasts and direct
    comparisons have pairs to work with.
    """
    rows: List[StudyRecord] = []
    sz_negative = [0.42, 0.35, 0.51, 0.28, 0.46]
    control_negative = [0.12, 0.20, 0.05, 0.15, 0.18]
    sizes = [60, 85, 42, 120, 75]
    for i, (sz_r, control_r, n) in enumerate(zip(sz_negative, control_negative, sizes), start=1):
        rows.append(
            _study(
                f"S{i}",
                author=f"Author{i}",
                year=2008 + i,
                sample_size=n,
                effect_size=sz_r,
                mean_score=9.0 + i * 0.4,
                sd=4.0,
                mean_age=24.0 + i * 2.5,
                percent_male=50.0 + i * 4.0,
                symptom_subtype="Persecutory delusions" if i % 2 else "Grandiose ideas",
                trauma_subtype="Physical_Abuse_Severe" if i <= 3 else "emotional neglect",
            )
        )
        rows.append(
            _study(
                f"S{i}",
                author=f"Author{i}",
                year=2008 + i,
                clinical_group="Healthy Controls",
                sample_size=n + 10,
                effect_size=control_r,
                mean_score=6.5 + i * 0.2,
                sd=3.5,
                mean_age=26.0 + i * 1.5,
                percent_male=45.0 + i * 2.0,
            )
        )

    for i, (r, n) in enumerate(zip([0.30, 0.22, 0.38], [48, 66, 90]), start=6):
        rows.append(
            _study(
                f"S{i}",
                year=2012 + i,
                clinical_group="UHR",
                sample_size=n,
                effect_size=r,
                mean_age=20.0 + i,
                percent_male=55.0 + i,
            )
        )

    for i, (r, n) in enumerate(zip([-0.25, -0.18, -0.30, -0.12], [60, 85, 42, 120]), start=1):
        rows.append(
            _study(
                f"S{i}",
                year=2008 + i,
                belief_type="Positive Self",
                belief_category="positive",
                sample_size=n,
                effect_size=r,
                mean_age=24.0 + i * 2.5,
                percent_male=50.0 + i * 4.0,
            )
        )

    rows.extend(
        [
            _study("S10", effect_size=0.8, effect_size_type="Cohen's d", sample_size=40),
            _study("S11", effect_size=0.0, effect_size_type="odds_ratio", sample_size=80),
            _study("S12", effect_size=0.65, effect_size_type="cohens_d", sample_size=70, year=2020),
            _study("S13", effect_size=0.2, effect_size_type="pearsons_r", sample_size=30, clinical_group="FEP"),
            _study(
                "S14",
                measure_type="YSQ",
                belief_type="defectiveness",
                belief_category="negative",
                effect_size=0.33,
                sample_size=150,
            ),
        ]
    )
    return rows
