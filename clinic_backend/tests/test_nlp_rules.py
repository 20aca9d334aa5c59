import pytest
from pydantic import ValidationError

from clinic_backend.schemas.analysis import EntityCategory
from clinic_backend.services import nlp_rules
from clinic_backend.services.note_analysis import analyze


def test_bundled_rules_load(rules):
    assert [t.name for t in rules.severity.tiers] == ["critical", "high", "low"]
    assert rules.severity.baseline == 5
    assert all(r.min_matches == 1 for r in rules.diagnoses)
    assert {g.category for g in rules.entities.groups} == set(EntityCategory)
    assert rules.key_phrases.max_phrases == 3


def test_rules_are_frozen(rules):
    with pytest.raises(ValidationError):
        rules.severity.baseline = 3
    assert isinstance(rules.diagnoses, tuple)
    assert isinstance(rules.severity.tiers[0].words, tuple)


def test_loaded_once_per_path(rules):
    assert nlp_rules.get_rules() is rules


@pytest.mark.parametrize("old, new", [
    # tier with both bounds
    ("    - name: low\n      ceiling: 4", "    - name: low\n      floor: 3\n      ceiling: 4"),
    # indicator that does not compile
    ("'coronary'", "'coronary('"),
    ("category: lifestyle", "category: hobby"),
    # word listed in two tiers
    ("        - severe\n        - urgent", "        - severe\n        - stable\n        - urgent"),
    ("baseline: 5", "baseline: 11"),
])
def test_invalid_rules_rejected(rules_file, old, new):
    path = rules_file(old, new)
    with pytest.raises(nlp_rules.RulesConfigError):
        nlp_rules.load_rules(str(path))


def test_unanchored_wildcard_indicator_rejected(rules_file):
    path = rules_file("'^(?=.*cough)(?=.*(?:fever|phlegm|sputum))'", "'cough.+(?:fever|phlegm|sputum)'")
    with pytest.raises(nlp_rules.RulesConfigError) as exc:
        nlp_rules.load_rules(str(path))
    assert "anchor" in str(exc.value)


def test_wildcard_indicators_are_anchored(rules):
    for rule in rules.diagnoses:
        for p in rule.indicators:
            if ".*" in p or ".+" in p:
                assert p.startswith("^(?="), (rule.label, p)


def test_missing_or_unparsable_file(tmp_path):
    with pytest.raises(nlp_rules.RulesConfigError):
        nlp_rules.load_rules(str(tmp_path / "missing.yaml"))
    broken = tmp_path / "broken.yaml"
    broken.write_text("entities: [unclosed", encoding="utf-8")
    with pytest.raises(nlp_rules.RulesConfigError):
        nlp_rules.load_rules(str(broken))


def test_duplicate_diagnosis_labels_rejected(rules_file):
    path = rules_file("label: Anxiety", "label: Depression")
    with pytest.raises(nlp_rules.RulesConfigError) as exc:
        nlp_rules.load_rules(str(path))
    assert "unique" in str(exc.value)


def test_env_override_selects_rules_file(rules_file, monkeypatch):
    path = rules_file("label: Anxiety", "label: Worry")
    monkeypatch.setenv(nlp_rules.RULES_PATH_ENV, str(path))
    catalog = nlp_rules.rule_catalog()
    assert catalog.diagnoses[-1] == "Worry"
    assert analyze("Anxious before exams.").suggested_diagnoses == ("Worry",)


def test_catalog_order(rules):
    catalog = nlp_rules.rule_catalog(rules)
    assert catalog.diagnoses[:3] == ("Hypertension", "Migraine", "Diabetes")
    assert catalog.severity_tiers == ("critical", "high", "low")
    assert catalog.categories[0] == EntityCategory.SYMPTOM


def test_word_regex_is_literal_and_whole_word():
    assert nlp_rules.word_regex("life-threatening").search("Life-threatening bleed")
    assert nlp_rules.word_regex("a.b").search("axb") is None
    assert nlp_rules.word_regex("normal").search("abnormal ECG") is None
    assert nlp_rules.word_regex("normal").search("ECG NORMAL")


def test_term_regex_wraps_alternation():
    rx = nlp_rules.term_regex("blood pressure|bp")
    assert rx.search("BP 120/80").group(0) == "BP"
    assert rx.search("bpm 80") is None
