"""Directory-aware batch splitting for agent turns.

Keeps files of one module together in one agent turn while bounding the size
of each turn. Paths are root-relative POSIX strings ("pkg/sub/file.py").
"""

from __future__ import annotations

from collections.abc import Sequence

SEPARATOR = "/"


def split_into_batches(paths: Sequence[str], threshold: int) -> list[list[str]]:
    """Partition paths into batches of at most ``threshold`` entries.

    If everything fits, one batch is returned unchanged. Otherwise paths are
    grouped by their top-level component; a group that fits becomes one
    batch, an oversized group has its component stripped, is split
    recursively and gets the prefix restored on every sub-batch.

    Degenerate leaf: plain files that cannot be split further by directory
    (e.g. 250 files directly inside one folder with threshold 100) are cut
    into consecutive chunks of ``threshold`` in sorted order. Every batch
    therefore respects the threshold.

    Every input path appears in exactly one output batch; duplicates in the
    input are preserved as-is.

    Args:
        paths: Root-relative paths using "/" separators
        threshold: Maximum batch size, must be positive

    Returns:
        List of batches, each a list of paths
    """
    if threshold <= 0:
        raise ValueError(f"threshold must be positive, got {threshold}")
    if len(paths) <= threshold:
        return [list(paths)]

    groups: dict[str, list[str]] = {}
    leaves: list[str] = []
    for path in paths:
        head, sep, _rest = path.partition(SEPARATOR)
        if sep:
            groups.setdefault(head, []).append(path)
        else:
            leaves.append(path)

    batches: list[list[str]] = []
    if leaves:
        batches.extend(_chunk(sorted(leaves), threshold))

    for head in sorted(groups):
        members = groups[head]
        if len(members) <= threshold:
            batches.append(members)
            continue
        prefix = head + SEPARATOR
        stripped = [p[len(prefix):] for p in members]
        for sub in split_into_batches(stripped, threshold):
            batches.append([prefix + p for p in sub])

    return batches


def _chunk(items: list[str], size: int) -> list[list[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]
