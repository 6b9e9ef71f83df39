import pytest

from digital_library.library import Library
from utils.ui_helpers import OUTPUT_MODE_ENV

@pytest.fixture(autouse=True)
def plain_output(monkeypatch):
    # --output sets an env var; keep tests from leaking it into each other
    monkeypatch.delenv(OUTPUT_MODE_ENV, raising=False)

@pytest.fixture
def lib():
    return Library(capacity=100)

@pytest.fixture
def data_file(tmp_path):
    # Fresh data file per test
    return str(tmp_path / "library.txt")
