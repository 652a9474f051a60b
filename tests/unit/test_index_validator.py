from pathlib import Path

import pytest

from memo.services.index_layout import init_index
from memo.services.index_validator import IndexValidator
from tests.fixtures.fake_agent import write_index


@pytest.fixture
def index_dir(tmp_path: Path) -> Path:
    return tmp_path / ".memo" / "index"


def test_missing_documents_reported_first(index_dir: Path):
    index_dir.mkdir(parents=True)
    error = IndexValidator(index_dir).validate()
    assert error is not None
    assert error.rule_id == "STRUCT-001"
    assert error.file == "arch.json"
    assert error.message == "required file missing"
    assert str(error) == "STRUCT-001 (arch.json): required file missing"


def test_freshly_initialized_index_is_valid(tmp_path: Path):
    init_index(tmp_path / ".memo")
    assert IndexValidator(tmp_path / ".memo" / "index").validate() is None


def test_missing_file_wins_over_parse_error(index_dir: Path):
    write_index(index_dir, arch="{broken")
    (index_dir / "issues.json").unlink()
    error = IndexValidator(index_dir).validate()
    assert error.rule_id == "STRUCT-001"
    assert error.file == "issues.json"


def test_parse_error(index_dir: Path):
    write_index(index_dir, stories="{broken")
    error = IndexValidator(index_dir).validate()
    assert error.rule_id == "JSON-PARSE"
    assert error.file == "stories.json"
    assert "invalid JSON" in error.message


def test_schema_required_property(index_dir: Path):
    write_index(index_dir, interface={"external": []})
    error = IndexValidator(index_dir).validate()
    assert error.rule_id == "JSON-required"
    assert error.file == "interface.json"
    assert "internal" in error.message


def test_schema_type_error_points_at_location(index_dir: Path):
    issues = {
        "issues": [
            {
                "tags": ["bug"],
                "title": "t",
                "description": "d",
                "locations": [{"file": "a.py", "keyword": "foo", "line": "12"}],
            }
        ]
    }
    write_index(index_dir, issues=issues)
    error = IndexValidator(index_dir).validate()
    assert error.rule_id == "JSON-type"
    assert error.file == "issues.json"
    assert error.message.startswith("$.issues[0].locations[0].line:")


def test_only_first_violation_is_returned(index_dir: Path):
    write_index(index_dir, arch={"modules": "x"}, issues={"issues": 3})
    error = IndexValidator(index_dir).validate()
    assert error.file == "arch.json"


def test_documents_order():
    assert IndexValidator(Path(".")).documents == (
        "arch.json",
        "interface.json",
        "stories.json",
        "issues.json",
    )
