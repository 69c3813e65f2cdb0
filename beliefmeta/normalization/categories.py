"""Keyword tables that collapse free-text subtypes onto fixed categories.

Matching is case-insensitive substring search; the first row of a table that
matches wins, so more specific keywords must come first. Text that matches
nothing maps to None and is left out of the category-specific subsets.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from beliefmeta.models.enums import SymptomCategory, TraumaCategory

KeywordTable = Sequence[tuple[tuple[str, ...], str]]

SYMPTOM_KEYWORDS: KeywordTable = (
    (("grandiose",), SymptomCategory.GRANDIOSE.value),
    (("persecut", "paranoi"), SymptomCategory.PERSECUTORY.value),
    (("voice", "auditory", "hallucin"), SymptomCategory.VOICE_HEARING.value),
    (("negative",), SymptomCategory.NEGATIVE_SYMPTOMS.value),
)

TRAUMA_KEYWORDS: KeywordTable = (
    (("physical_abuse",), TraumaCategory.PHYSICAL_ABUSE.value),
    (("emotional_abuse",), TraumaCategory.EMOTIONAL_ABUSE.value),
    (("sexual_abuse",), TraumaCategory.SEXUAL_ABUSE.value),
    (("physical_neglect",), TraumaCategory.PHYSICAL_NEGLECT.value),
    (("emotional_neglect",), TraumaCategory.EMOTIONAL_NEGLECT.value),
)

# BCSS sub-scales were coded inconsistently across extractors.
PRIMARY_BELIEF_KEYWORDS: KeywordTable = (
    (("negative_self", "negative__self"), "negative_self"),
    (("negative_other", "negative_others"), "negative_other"),
    (("positive_self",), "positive_self"),
    (("positive_other", "positive_others"), "positive_other"),
)

CLINICAL_GROUP_ALIASES: dict[str, str] = {
    "sz": "sz",
    "scz": "sz",
    "schizophrenia": "sz",
    "schizophrenia_spectrum": "sz",
    "ssd": "sz",
    "psychosis": "sz",
    "chr": "chr",
    "chr_p": "chr",
    "uhr": "chr",
    "arms": "chr",
    "clinical_high_risk": "chr",
    "ultra_high_risk": "chr",
    "at_risk_mental_state": "chr",
    "fep": "fep",
    "first_episode": "fep",
    "first_episode_psychosis": "fep",
    "control": "control",
    "controls": "control",
    "hc": "control",
    "healthy_control": "control",
    "healthy_controls": "control",
    "nonclinical": "control",
}

_SEPARATORS = re.compile(r"[\s\-/]+")


def _normalize_text(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    cleaned = _SEPARATORS.sub("_", str(text).strip().lower())
    return cleaned or None


def match_keywords(text: Optional[str], table: KeywordTable) -> Optional[str]:
    normalized = _normalize_text(text)
    if normalized is None:
        return None
    for keywords, category in table:
        if any(keyword in normalized for keyword in keywords):
            return category
    return None


def symptom_category(symptom_subtype: Optional[str]) -> Optional[str]:
    return match_keywords(symptom_subtype, SYMPTOM_KEYWORDS)


def trauma_category(trauma_subtype: Optional[str]) -> Optional[str]:
    return match_keywords(trauma_subtype, TRAUMA_KEYWORDS)


def clean_belief_type(
    measure_type: Optional[str],
    belief_type: Optional[str],
    primary_instrument: str = "BCSS",
) -> Optional[str]:
    """Canonicalize sub-scale labels for the primary instrument only."""
    if measure_type != primary_instrument or belief_type is None:
        return belief_type
    return match_keywords(belief_type, PRIMARY_BELIEF_KEYWORDS) or belief_type


def combined_clinical_group(
    clinical_group: Optional[str],
    provided: Optional[str] = None,
) -> Optional[str]:
    """Canonical group label; an explicit combined label from the input wins."""
    if provided:
        return provided.strip().lower()
    normalized = _normalize_text(clinical_group)
    if normalized is None:
        return None
    return CLINICAL_GROUP_ALIASES.get(normalized, normalized)


def measure_belief(measure_type: Optional[str], belief_type: Optional[str]) -> str:
    return f"{measure_type if measure_type is not None else 'NA'}_{belief_type if belief_type is not None else 'NA'}"
