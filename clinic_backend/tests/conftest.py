import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the project root is on sys.path so `import clinic_backend` works when
# running pytest from the repository root.
ROOT_DIR = Path(__file__).resolve().parents[2]  # repository root
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from clinic_backend.app import app
from clinic_backend.services import nlp_rules


@pytest.fixture(autouse=True)
def bundled_rules(monkeypatch):
    # Tests always run against the shipped rule file
    monkeypatch.delenv(nlp_rules.RULES_PATH_ENV, raising=False)
    yield


@pytest.fixture
def rules():
    return nlp_rules.get_rules()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def lenient_client():
    # Return 500 responses instead of re-raising server errors in the test
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def rules_file(tmp_path):
    """Write a rules file built from the bundled one with a text substitution applied."""
    def _write(old: str = "", new: str = "") -> Path:
        text = nlp_rules.DEFAULT_RULES_PATH.read_text(encoding="utf-8")
        if old:
            assert old in text
            text = text.replace(old, new, 1)
        path = tmp_path / "nlp_rules.yaml"
        path.write_text(text, encoding="utf-8")
        return path
    return _write
