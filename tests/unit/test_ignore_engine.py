from pathlib import Path

from memo.utils.ignore_engine import (
    IgnoreMatcher,
    load_gitignore_patterns,
    merge_gitignore,
)


def test_substring_basename_and_extension_patterns(tmp_path: Path):
    m = IgnoreMatcher(tmp_path, [".git", "node_modules", "*.log", "build"])
    assert m.is_ignored(tmp_path / ".git" / "HEAD")
    assert m.is_ignored(tmp_path / "web" / "node_modules" / "x.js")
    assert m.is_ignored(tmp_path / "logs" / "app.log")
    assert m.is_ignored(tmp_path / "build", is_dir=True)
    assert not m.is_ignored(tmp_path / "src" / "main.py")


def test_git_substring_also_hides_github(tmp_path: Path):
    m = IgnoreMatcher(tmp_path, [".git"])
    assert m.is_ignored(tmp_path / ".github" / "workflows" / "ci.yml")


def test_relative_paths_and_root(tmp_path: Path):
    m = IgnoreMatcher(tmp_path, ["secret"])
    assert m.relative(tmp_path / "a" / "b.py") == "a/b.py"
    assert m.relative("a/b.py") == "a/b.py"
    assert m.match(tmp_path) is None
    info = m.match("x/secret.txt")
    assert info is not None and info.pattern == "secret"


def test_exclude_globs_use_gitwildmatch(tmp_path: Path):
    m = IgnoreMatcher(tmp_path, [], globs=["docs/**/*.png", "tmp/"])
    assert m.is_ignored(tmp_path / "docs" / "img" / "a.png")
    assert not m.is_ignored(tmp_path / "docs" / "a.md")
    assert m.is_ignored(tmp_path / "tmp", is_dir=True)
    info = m.match(tmp_path / "docs" / "x.png")
    assert info is not None and info.source == "glob"


def test_iter_files_prunes_ignored_directories(tmp_path: Path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.py").write_text("")
    (tmp_path / "src" / "debug.log").write_text("")
    (tmp_path / "node_modules" / "dep").mkdir(parents=True)
    (tmp_path / "node_modules" / "dep" / "i.js").write_text("")
    (tmp_path / "top.txt").write_text("")

    m = IgnoreMatcher(tmp_path, ["node_modules", "*.log"])
    files = [m.relative(p) for p in m.iter_files()]
    assert files == ["top.txt", "src/a.py"]

    dirs = [m.relative(p) for p in m.iter_dirs()]
    assert dirs == [".", "src"]


def test_iter_dirs_from_ignored_start_yields_nothing(tmp_path: Path):
    (tmp_path / "node_modules" / "x").mkdir(parents=True)
    m = IgnoreMatcher(tmp_path, ["node_modules"])
    assert list(m.iter_dirs(tmp_path / "node_modules")) == []


def test_gitignore_loading_and_merge(tmp_path: Path):
    (tmp_path / ".gitignore").write_text(
        "# comment\n\n/dist/\n!keep.txt\n.venv\n*.pyc\n.venv\n"
    )
    assert load_gitignore_patterns(tmp_path) == ["dist", ".venv", "*.pyc"]
    merged = merge_gitignore([".git", "*.pyc"], tmp_path)
    assert merged == [".git", "*.pyc", "dist", ".venv"]


def test_missing_gitignore(tmp_path: Path):
    assert load_gitignore_patterns(tmp_path) == []
    assert merge_gitignore(["a"], tmp_path) == ["a"]
