"""Prompts that drive the agent to create and repair the memo index.

The agent edits the JSON documents under ``.memo/index`` itself; memo only
tells it what changed and, on failure, what the validator rejected.
"""

from collections.abc import Sequence

from memo.core.types.changes import PendingChange


# Shared context, sent with every turn
def get_context_prompt(index_dir: str) -> str:
    """Describe the index and its documents.

    Args:
        index_dir: Index directory relative to the working directory

    Returns:
        Context section of every prompt
    """
    return f"""You maintain a machine-readable knowledge index of this repository in `{index_dir}/`.

The index consists of exactly four JSON documents. Keep every document valid JSON and keep the exact structure below:

- `{index_dir}/arch.json`: {{"modules": [{{"name", "description", "interfaces"}}], "relationships": {{"diagram", "notes"}}}}
  Modules of the codebase and how they depend on each other. `diagram` is a textual (e.g. mermaid) diagram.
- `{index_dir}/interface.json`: {{"external": [...], "internal": [...]}} where every item is {{"type", "name", "params", "description"}}
  Public entry points (CLI commands, HTTP routes, exported APIs) go to `external`; important module-internal interfaces go to `internal`.
- `{index_dir}/stories.json`: {{"stories": [{{"title", "tags": [string], "lines": [string]}}]}}
  End-to-end flows through the code, one line per step.
- `{index_dir}/issues.json`: {{"issues": [{{"tags": [string], "title", "description", "locations": [{{"file", "keyword", "line": integer}}]}}]}}
  Bugs, risks and TODOs worth tracking, with precise locations.

All string fields are required, may be empty, and must be strings. Do not add files outside `{index_dir}/`."""


def get_analyse_prompt() -> str:
    return """Read the changed files listed below (and whatever surrounding code you need to understand them), then update the index documents so they describe the current state of the code.

Rules:
- Update entries affected by the change, add new ones, and remove entries that refer to deleted code.
- Files marked D were deleted: remove or rewrite anything that depends on them.
- Do not rewrite unrelated parts of the index.
- When you are done, every document must still match the structure above."""


def get_batch_header(batch_number: int, total_batches: int) -> str:
    """Header for multi-batch cycles; empty when there is a single batch."""
    if total_batches <= 1:
        return ""
    return (
        f"## Batch {batch_number} of {total_batches}\n\n"
        f"This is batch {batch_number} of {total_batches}. Previous batches have "
        "already been processed. Focus on the files in this batch."
    )


def format_changed_files(changes: Sequence[PendingChange]) -> str:
    """One ``<marker> <path>`` line per change (A added, M modified, D deleted)."""
    lines = [f"{c.kind.marker} {c.path}" for c in changes]
    return "Changed files (relative to working directory; A=added, M=modified, D=deleted):\n" + "\n".join(lines)


def build_initial_prompt(
    index_dir: str,
    changes: Sequence[PendingChange],
    batch_number: int = 1,
    total_batches: int = 1,
) -> str:
    sections = [get_context_prompt(index_dir), get_analyse_prompt()]
    header = get_batch_header(batch_number, total_batches)
    if header:
        sections.append(header)
    sections.append(format_changed_files(changes))
    return "\n\n".join(sections)


def build_feedback_prompt(
    index_dir: str,
    rule_id: str,
    file: str,
    message: str,
    attempt: int,
    max_attempts: int,
) -> str:
    """Repair prompt naming the rule, file and message that failed."""
    return f"""{get_context_prompt(index_dir)}

The index failed validation (attempt {attempt}/{max_attempts}).

Validation error:
- rule: {rule_id}
- file: {index_dir}/{file}
- message: {message}

Fix the reported problem in place, check the other documents for the same mistake, and make sure every document is valid JSON matching the structure above before replying."""
