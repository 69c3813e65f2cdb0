from __future__ import annotations

import pytest

from beliefmeta.normalization.categories import (
    clean_belief_type,
    combined_clinical_group,
    measure_belief,
    symptom_category,
    trauma_category,
)


@pytest.mark.parametrize(
    ("subtype", "expected"),
    [
        ("Physical_Abuse_Severe", "physical_abuse"),
        ("physical abuse", "physical_abuse"),
        ("Emotional-Abuse (CTQ)", "emotional_abuse"),
        ("sexual abuse", "sexual_abuse"),
        ("Physical Neglect", "physical_neglect"),
        ("emotional/neglect", "emotional_neglect"),
        ("unspecified", None),
        (None, None),
    ],
)
def test_trauma_category(subtype, expected) -> None:
    assert trauma_category(subtype) == expected


@pytest.mark.parametrize(
    ("subtype", "expected"),
    [
        ("Grandiose delusions", "grandiose"),
        ("Persecutory ideation", "persecutory"),
        ("paranoia", "persecutory"),
        ("Auditory verbal hallucinations", "voice_hearing"),
        ("Voices", "voice_hearing"),
        ("Negative symptoms (SANS)", "negative_symptoms"),
        ("depression", None),
        ("", None),
    ],
)
def test_symptom_category(subtype, expected) -> None:
    assert symptom_category(subtype) == expected


def test_belief_cleanup_applies_to_primary_instrument_only() -> None:
    assert clean_belief_type("BCSS", "Negative Self") == "negative_self"
    assert clean_belief_type("BCSS", "negative others") == "negative_other"
    assert clean_belief_type("BCSS", "Positive-Other") == "positive_other"
    assert clean_belief_type("BCSS", "total") == "total"
    assert clean_belief_type("YSQ", "Negative Self") == "Negative Self"
    assert clean_belief_type("BCSS", None) is None


def test_belief_cleanup_honours_configured_instrument() -> None:
    assert clean_belief_type("BCSS_R", "negative self", primary_instrument="BCSS_R") == "negative_self"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("SZ", "sz"),
        ("Schizophrenia", "sz"),
        ("UHR", "chr"),
        ("CHR-P", "chr"),
        ("first episode psychosis", "fep"),
        ("Healthy Controls", "control"),
        ("bipolar", "bipolar"),
        (None, None),
    ],
)
def test_combined_clinical_group_aliases(raw, expected) -> None:
    assert combined_clinical_group(raw) == expected


def test_explicit_combined_group_wins() -> None:
    assert combined_clinical_group("UHR", "Clinical") == "clinical"


def test_measure_belief_keeps_missing_parts_visible() -> None:
    assert measure_belief("BCSS", "negative_self") == "BCSS_negative_self"
    assert measure_belief("YSQ", None) == "YSQ_NA"
    assert measure_belief(None, None) == "NA_NA"
