import pytest

from clinic_backend.services.nlp_rules import SeverityRules, SeverityTier
from clinic_backend.services.severity import assess_severity, parse_blood_pressure


def test_severe_pain_compound():
    assert assess_severity("Patient reports severe chest pain and shortness of breath on exertion.") == 7


def test_low_tier_lowers_baseline():
    assert assess_severity("Routine follow-up, patient stable, blood pressure normal, no new complaints.") == 4
    assert assess_severity("Mild cough.") == 4


def test_critical_words_and_crisis_reading():
    # critical -> 8, 190/120 -> 9; nothing in the shipped rules floors at 10
    assert assess_severity("BP 190/120, patient appears critical and unresponsive.") == 9


def test_baseline_without_vocabulary():
    assert assess_severity("The weather was nice today.") == 5
    assert assess_severity("") == 5


def test_low_pass_runs_after_critical_and_caps_it():
    # critical, high, then low as min() on the same running value
    assert assess_severity("Patient in critical condition, now stable.") == 4
    assert assess_severity("Severe headache, mild nausea.") == 4


def test_compounds_apply_after_lexicon_passes():
    assert assess_severity("Severe pain, now mild.") == 7


@pytest.mark.parametrize("text, expected", [
    ("High fever overnight.", 6),
    ("High blood pressure noted.", 6),
    ("Fever noted.", 5),
])
def test_contextual_compounds(text, expected):
    assert assess_severity(text) == expected


@pytest.mark.parametrize("text, expected", [
    ("BP 185/90", 9),
    ("BP 120/115", 9),
    ("BP 170/95", 7),
    ("BP 150/105", 7),
    ("BP 150/95", 5),
    ("BP 150/90 then 200/100", 9),
])
def test_blood_pressure_bands(text, expected):
    assert assess_severity(text) == expected


def test_parse_blood_pressure():
    assert parse_blood_pressure("BP 190/120 and later 130/85") == [(190, 120), (130, 85)]
    assert parse_blood_pressure("dose 12/8") == []
    assert parse_blood_pressure("") == []


def test_whole_words_only():
    # "abnormal" must not hit the "normal" ceiling
    assert assess_severity("Abnormal ECG findings.") == 5


def test_clamped_to_range():
    rules = SeverityRules(
        baseline=5,
        tiers=(
            SeverityTier(name="top", words=("boom",), floor=10),
            SeverityTier(name="bottom", words=("calm",), ceiling=1),
        ),
    )
    assert assess_severity("boom", rules) == 10
    assert assess_severity("calm", rules) == 1
    assert isinstance(assess_severity("boom", rules), int)
