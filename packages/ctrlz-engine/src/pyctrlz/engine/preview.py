import difflib
from dataclasses import dataclass
from typing import List

from .diff_engine import EditScript

_PREVIEW_WIDTH = 100


@dataclass(frozen=True)
class ScriptStats:
    kept: int
    removed: int
    added: int
    operations: int


def summarize_script(operations: EditScript) -> ScriptStats:
    kept = removed = added = 0
    for op in operations:
        if op.kind == "keep":
            kept += op.length or 0
        elif op.kind == "remove":
            removed += op.length or 0
        elif op.kind == "add":
            added += len(op.content or "")
    return ScriptStats(kept=kept, removed=removed, added=added, operations=len(operations))


def generate_unified_diff(old_content: str, new_content: str, filename: str = "file", context_lines: int = 3) -> str:
    header = f"--- a/{filename}\n+++ b/{filename}"
    if old_content == new_content:
        return f"{header}\n@@ No changes @@"

    lines = list(
        difflib.unified_diff(
            old_content.splitlines(),
            new_content.splitlines(),
            fromfile=f"a/{filename}",
            tofile=f"b/{filename}",
            n=context_lines,
            lineterm="",
        )
    )
    if not lines:
        # 仅行尾差异 (例如末尾换行) 时 splitlines 视图相同
        return f"{header}\n@@ Whitespace-only changes @@"
    return "\n".join(lines)


def _preview(lines: List[str]) -> str:
    preview = " ".join(lines[:2])[:_PREVIEW_WIDTH]
    if len(lines) > 2 or len(preview) >= _PREVIEW_WIDTH:
        preview += "..."
    return preview


def generate_diff_summary(old_content: str, new_content: str, max_changes: int = 3) -> str:
    old_lines = old_content.split("\n")
    new_lines = new_content.split("\n")
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)

    changes: List[str] = []
    added_lines = 0
    removed_lines = 0

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        if tag in ("delete", "replace"):
            removed = old_lines[i1:i2]
            removed_lines += len(removed)
            if " ".join(removed[:2]).strip():
                changes.append(f"-{_preview(removed)}")
        if tag in ("insert", "replace"):
            added = new_lines[j1:j2]
            added_lines += len(added)
            if " ".join(added[:2]).strip():
                changes.append(f"+{_preview(added)}")

    if not changes:
        return "No changes"

    parts = []
    if added_lines:
        parts.append(f"+{added_lines}")
    if removed_lines:
        parts.append(f"-{removed_lines}")
    summary = f"{' '.join(parts)} lines"

    body = "\n".join(changes[:max_changes])
    if len(changes) > max_changes:
        body += "\n..."
    return f"{summary}\n{body}"
