"""Data-quality checks over the harmonized record set."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import numpy as np

from beliefmeta.models import ConversionCheckRow, FlaggedRecord, HarmonizedRecord, ValidityReport


def validity_report(
    records: Sequence[HarmonizedRecord],
    invalid_z_threshold: float = 4.0,
) -> ValidityReport:
    failures = Counter(
        record.conversion_failure.value
        for record in records
        if record.conversion_failure is not None
    )
    return ValidityReport(
        total_rows=len(records),
        missing_es=sum(1 for record in records if record.correlation_r is None),
        invalid_z=sum(
            1
            for record in records
            if record.fishers_z is not None and abs(record.fishers_z) > invalid_z_threshold
        ),
        missing_se=sum(1 for record in records if record.fishers_z_se is None),
        conversion_failures=dict(failures),
    )


def _value_range(values: list[float]) -> list[float] | None:
    if not values:
        return None
    return [round(float(min(values)), 3), round(float(max(values)), 3)]


def _mean(values: list[float]) -> float | None:
    return float(np.mean(values)) if values else None


def conversion_check(records: Sequence[HarmonizedRecord]) -> list[ConversionCheckRow]:
    """Raw, r and z ranges per reported effect-size type."""
    by_type: dict[str, list[HarmonizedRecord]] = {}
    for record in records:
        by_type.setdefault(record.effect_size_type or "NA", []).append(record)

    rows: list[ConversionCheckRow] = []
    for es_type, group in sorted(by_type.items()):
        raw = [rec.effect_size for rec in group if rec.effect_size is not None]
        rs = [rec.correlation_r for rec in group if rec.correlation_r is not None]
        zs = [rec.fishers_z for rec in group if rec.fishers_z is not None]
        rows.append(
            ConversionCheckRow(
                effect_size_type=es_type,
                n=len(group),
                original_range=_value_range(raw),
                r_range=_value_range(rs),
                z_range=_value_range(zs),
                mean_r=_mean(rs),
                mean_z=_mean(zs),
            )
        )
    return rows


def _flag(record: HarmonizedRecord, reason: str) -> FlaggedRecord:
    return FlaggedRecord(
        study_id=record.study_id,
        author=record.author,
        effect_size_type=record.effect_size_type,
        effect_size=record.effect_size,
        correlation_r=record.correlation_r,
        fishers_z=record.fishers_z,
        fishers_z_se=record.fishers_z_se,
        reason=reason,
    )


def flag_outliers(
    records: Sequence[HarmonizedRecord],
    threshold: float = 2.0,
) -> list[FlaggedRecord]:
    return [
        _flag(record, f"|z| > {threshold:g}")
        for record in records
        if record.fishers_z is not None and abs(record.fishers_z) > threshold
    ]


def flag_small_se(
    records: Sequence[HarmonizedRecord],
    threshold: float = 0.01,
) -> list[FlaggedRecord]:
    return [
        _flag(record, f"se < {threshold:g}")
        for record in records
        if record.fishers_z_se is not None and record.fishers_z_se < threshold
    ]
