import pytest

from memo.services.batch_splitter import split_into_batches


def _flatten(batches):
    return [p for b in batches for p in b]


def test_everything_fits_in_one_batch_unchanged():
    paths = ["b.py", "a/x.py", "c/d/e.py"]
    assert split_into_batches(paths, 3) == [paths]


def test_empty_input():
    assert split_into_batches([], 10) == [[]]


def test_groups_by_top_level_directory():
    paths = [f"api/{i}.py" for i in range(3)] + [f"core/{i}.py" for i in range(2)]
    batches = split_into_batches(paths, 3)
    assert batches == [
        ["api/0.py", "api/1.py", "api/2.py"],
        ["core/0.py", "core/1.py"],
    ]


def test_oversized_group_is_split_recursively_with_prefix_restored():
    paths = [f"src/a/{i}.py" for i in range(3)] + [f"src/b/{i}.py" for i in range(2)]
    batches = split_into_batches(paths, 3)
    assert batches == [
        ["src/a/0.py", "src/a/1.py", "src/a/2.py"],
        ["src/b/0.py", "src/b/1.py"],
    ]


def test_flat_directory_is_chunked_to_threshold():
    paths = [f"flat/f{i:03d}.txt" for i in range(250)]
    batches = split_into_batches(paths, 100)
    assert [len(b) for b in batches] == [100, 100, 50]
    assert sorted(_flatten(batches)) == sorted(paths)


def test_root_level_files_come_first():
    paths = ["z.py", "a.py", "pkg/1.py", "pkg/2.py"]
    batches = split_into_batches(paths, 2)
    assert batches[0] == ["a.py", "z.py"]
    assert batches[1] == ["pkg/1.py", "pkg/2.py"]


@pytest.mark.parametrize("threshold", [1, 2, 7, 50])
def test_every_path_lands_in_exactly_one_batch(threshold):
    paths = [f"d{i % 5}/s{i % 3}/f{i}.py" for i in range(60)] + [f"top{i}.md" for i in range(4)]
    batches = split_into_batches(paths, threshold)
    flat = _flatten(batches)
    assert sorted(flat) == sorted(paths)
    assert all(len(b) <= threshold for b in batches)


@pytest.mark.parametrize("threshold", [0, -1])
def test_non_positive_threshold_rejected(threshold):
    with pytest.raises(ValueError):
        split_into_batches(["a"], threshold)
