import json
from pathlib import Path

import pytest

from memo.mcp_server.query import (
    PathSegment,
    QueryError,
    get_value,
    list_keys,
    parse_path,
)
from tests.fixtures.fake_agent import write_index

ARCH = {
    "modules": [
        {"name": "core", "description": "Core [stuff]", "interfaces": "run()"},
        {"name": "cli", "description": "Entry", "interfaces": "main()"},
    ],
    "relationships": {"diagram": "core -> cli", "notes": ""},
    "weird]key": 1,
    "back\\slash": 2,
}


@pytest.fixture
def index_dir(tmp_path: Path) -> Path:
    d = tmp_path / "index"
    write_index(d, arch=ARCH)
    return d


def test_parse_simple_path():
    file, segments = parse_path("[arch][modules][0][name]")
    assert file == "arch"
    assert segments == [
        PathSegment(key="modules"),
        PathSegment(index=0),
        PathSegment(key="name"),
    ]


def test_parse_escapes():
    _, segments = parse_path(r"[arch][weird\]key][back\\slash][a\[b]")
    assert [s.key for s in segments] == ["weird]key", "back\\slash", "a[b"]


def test_digit_only_segments_are_indices():
    _, segments = parse_path("[issues][issues][007][x1]")
    assert segments[1] == PathSegment(index=7)
    assert segments[2] == PathSegment(key="x1")


@pytest.mark.parametrize(
    "path,message",
    [
        ("", "empty path"),
        ("arch", "unexpected character 'a' at position 0"),
        ("[arch]x", "unexpected character 'x' at position 6"),
        ("[arch]\\[x]", "unexpected character '\\' at position 6"),
        ("[arch][a\\n]", "invalid escape sequence at position 9"),
        ("[arch][[x]]", "unexpected '[' at position 7"),
        ("[arch]]", "unexpected ']' at position 6"),
        ("[arch][]", "empty segment at position 7"),
        ("[arch][x\\", "trailing escape character"),
        ("[arch][x", "unclosed bracket"),
        ("[0][x]", "first segment must be file name, not index"),
        ("[nope]", "invalid file: nope (allowed: arch, interface, stories, issues)"),
        ("[arch][" + "k" * 101 + "]", "key too long"),
        ("[arch][a\tb]", "control character in key at position 1"),
        ("[arch][a\x7fb]", "control character in key at position 1"),
    ],
)
def test_parse_errors(path, message):
    with pytest.raises(QueryError) as exc:
        parse_path(path)
    assert message in str(exc.value)


def test_key_of_max_length_is_accepted():
    _, segments = parse_path("[arch][" + "k" * 100 + "]")
    assert segments[0].key == "k" * 100


def test_list_keys(index_dir: Path):
    assert list_keys(index_dir, "[arch]") == {
        "type": "dict",
        "keys": ["modules", "relationships", "weird]key", "back\\slash"],
    }
    assert list_keys(index_dir, "[arch][modules]") == {"type": "list", "length": 2}
    with pytest.raises(QueryError, match="not a dict or list"):
        list_keys(index_dir, "[arch][modules][0][name]")


def test_get_value(index_dir: Path):
    assert get_value(index_dir, "[arch][modules][1][name]") == {"value": '"cli"'}
    assert get_value(index_dir, r"[arch][weird\]key]") == {"value": "1"}
    whole = json.loads(get_value(index_dir, "[arch][relationships]")["value"])
    assert whole == {"diagram": "core -> cli", "notes": ""}


@pytest.mark.parametrize(
    "path,message",
    [
        ("[arch][modules][5]", "segment 1: index 5 out of bounds (length 2)"),
        ("[arch][missing]", "segment 0: key 'missing' not found"),
        ("[arch][modules][name]", "segment 1: expected object, got array"),
        ("[arch][relationships][0]", "segment 1: expected array, got object"),
    ],
)
def test_traversal_errors(index_dir: Path, path, message):
    with pytest.raises(QueryError) as exc:
        get_value(index_dir, path)
    assert message in str(exc.value)


def test_unreadable_document(tmp_path: Path):
    d = tmp_path / "index"
    write_index(d, stories="{oops")
    with pytest.raises(QueryError, match="failed to parse"):
        get_value(d, "[stories]")
    (d / "issues.json").unlink()
    with pytest.raises(QueryError, match="failed to read"):
        list_keys(d, "[issues]")
