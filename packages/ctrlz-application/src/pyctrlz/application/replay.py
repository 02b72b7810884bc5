"""编辑会话重放。

从 YAML 脚本驱动一棵版本树，用于复现、演示和检查分支式撤销历史::

    document: notes.txt
    initial: "ABC"
    steps:
      - commit: "ABX"
      - commit: {content: "ABXY", cursor: {line: 0, character: 4}, label: h2}
      - undo
      - redo: {choose: 1}
      - goto: h2
      - latest
      - reset
"""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pyctrlz.engine.hasher import hash_content
from pyctrlz.engine.version_tree import VersionTree
from pyctrlz.interfaces.exceptions import ScriptError
from pyctrlz.interfaces.models import CursorPosition
from pyctrlz.interfaces.result import Advanced, Branch

from .registry import TreeRegistry

logger = logging.getLogger(__name__)

ACTIONS = ("commit", "undo", "redo", "goto", "latest", "reset")

# 自动注册的标签
ROOT_LABEL = "root"
INITIAL_LABEL = "initial"


@dataclass
class ReplayStep:
    action: str
    content: Optional[str] = None
    cursor: Optional[CursorPosition] = None
    label: Optional[str] = None
    target: Optional[str] = None
    choose: Optional[int] = None


@dataclass
class ReplayScript:
    document: str
    initial: str = ""
    steps: List[ReplayStep] = field(default_factory=list)


@dataclass
class StepRecord:
    index: int
    action: str
    head_before: str
    head_after: str
    success: bool
    msg_id: str
    msg_kwargs: Dict[str, Any] = field(default_factory=dict)

    @property
    def moved(self) -> bool:
        return self.head_before != self.head_after


# --- 脚本解析 ---


def _parse_cursor(raw: Any, index: int) -> Optional[CursorPosition]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        line, character = raw.get("line"), raw.get("character")
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        line, character = raw
    else:
        raise ScriptError(f"第 {index} 步: cursor 必须是 {{line, character}} 或 [line, character]")
    if not isinstance(line, int) or not isinstance(character, int):
        raise ScriptError(f"第 {index} 步: cursor 的 line/character 必须是整数")
    return CursorPosition(line=line, character=character)


def _parse_commit(value: Any, index: int) -> ReplayStep:
    if isinstance(value, str):
        return ReplayStep(action="commit", content=value)
    if not isinstance(value, dict):
        raise ScriptError(f"第 {index} 步: commit 需要字符串内容或映射")

    content = value.get("content")
    if not isinstance(content, str):
        raise ScriptError(f"第 {index} 步: commit 缺少字符串 'content'")
    label = value.get("label")
    if label is not None and not isinstance(label, str):
        raise ScriptError(f"第 {index} 步: label 必须是字符串")
    return ReplayStep(
        action="commit",
        content=content,
        cursor=_parse_cursor(value.get("cursor"), index),
        label=label,
    )


def _parse_step(raw: Any, index: int) -> ReplayStep:
    if isinstance(raw, str):
        action, value = raw, None
    elif isinstance(raw, dict) and len(raw) == 1:
        action, value = next(iter(raw.items()))
    else:
        raise ScriptError(f"第 {index} 步格式无效: {raw!r}")

    if action not in ACTIONS:
        raise ScriptError(f"第 {index} 步: 未知动作 '{action}'，可用动作: {', '.join(ACTIONS)}")

    if action == "commit":
        return _parse_commit(value, index)

    if action == "goto":
        if not isinstance(value, str) or not value:
            raise ScriptError(f"第 {index} 步: goto 需要标签或哈希前缀")
        return ReplayStep(action="goto", target=value)

    if action == "redo":
        choose = value.get("choose") if isinstance(value, dict) else value
        if choose is not None and (not isinstance(choose, int) or isinstance(choose, bool)):
            raise ScriptError(f"第 {index} 步: redo 的 choose 必须是整数")
        return ReplayStep(action="redo", choose=choose)

    if value is not None:
        raise ScriptError(f"第 {index} 步: '{action}' 不接受参数")
    return ReplayStep(action=action)


def parse_script(data: Any, default_document: str = "untitled") -> ReplayScript:
    if not isinstance(data, dict):
        raise ScriptError("重放脚本的顶层必须是映射")

    document = data.get("document", default_document)
    initial = data.get("initial", "")
    raw_steps = data.get("steps") or []

    if not isinstance(document, str) or not document:
        raise ScriptError("'document' 必须是非空字符串")
    if not isinstance(initial, str):
        raise ScriptError("'initial' 必须是字符串")
    if not isinstance(raw_steps, list):
        raise ScriptError("'steps' 必须是列表")

    steps = [_parse_step(raw, index) for index, raw in enumerate(raw_steps, start=1)]
    return ReplayScript(document=document, initial=initial, steps=steps)


def load_script(path: Path, default_document: str = "untitled") -> ReplayScript:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ScriptError(f"无法解析重放脚本 {path}: {e}") from e
    except OSError as e:
        raise ScriptError(f"无法读取重放脚本 {path}: {e}") from e
    return parse_script(data, default_document=default_document)


# --- 会话执行 ---


class ReplaySession:
    def __init__(self, registry: TreeRegistry, script: ReplayScript, short_hash_length: int = 7):
        self.registry = registry
        self.script = script
        self.short_hash_length = short_hash_length
        self.labels: Dict[str, str] = {}
        self.tree: VersionTree = registry.reset(script.document, script.initial)
        self._register_builtin_labels()

    def _short(self, node_id: str) -> str:
        return node_id[: self.short_hash_length]

    def _register_builtin_labels(self):
        self.labels[ROOT_LABEL] = self.tree.root_hash
        if self.tree.initial_snapshot_hash:
            self.labels[INITIAL_LABEL] = self.tree.initial_snapshot_hash

    def resolve(self, target: str) -> List[str]:
        """将标签或哈希前缀解析为候选节点 id 列表。"""
        if target in self.labels and self.labels[target] in self.tree:
            return [self.labels[target]]
        return [node_id for node_id in self.tree.get_all_nodes() if node_id.startswith(target)]

    def run(self) -> List[StepRecord]:
        records: List[StepRecord] = []
        logger.info(f"▶️  开始重放 '{self.script.document}': {len(self.script.steps)} 个步骤")

        for index, step in enumerate(self.script.steps, start=1):
            head_before = self.tree.head
            handler = getattr(self, f"_do_{step.action}")
            success, msg_id, kwargs = handler(step)
            records.append(
                StepRecord(
                    index=index,
                    action=step.action,
                    head_before=head_before,
                    head_after=self.tree.head,
                    success=success,
                    msg_id=msg_id,
                    msg_kwargs=kwargs,
                )
            )
            self.registry.check_pressure(self.script.document)

        logger.info(f"⏹️  重放结束: 共 {len(self.tree)} 个节点，head 位于 {self._short(self.tree.head)}")
        return records

    def _do_commit(self, step: ReplayStep) -> Tuple[bool, str, Dict[str, Any]]:
        content = step.content or ""
        existed = hash_content(content) in self.tree
        node_id = self.tree.commit(content, cursor_position=step.cursor)
        if step.label:
            self.labels[step.label] = node_id
        msg_id = "replay.commit.deduplicated" if existed else "replay.commit.created"
        return True, msg_id, {"short_hash": self._short(node_id)}

    def _do_undo(self, step: ReplayStep) -> Tuple[bool, str, Dict[str, Any]]:
        result = self.tree.undo()
        if result is not None:
            return True, "replay.undo.success", {"short_hash": self._short(result)}
        if self.tree.head == self.tree.root_hash:
            return True, "replay.undo.atRoot", {}
        return True, "replay.undo.atInitialSnapshot", {"short_hash": self._short(self.tree.head)}

    def _do_redo(self, step: ReplayStep) -> Tuple[bool, str, Dict[str, Any]]:
        result = self.tree.redo()
        if isinstance(result, Advanced):
            return True, "replay.redo.advanced", {"short_hash": self._short(result.node_id)}
        if not isinstance(result, Branch):
            return True, "replay.redo.atEnd", {}

        branches = ", ".join(self._short(child) for child in result.children)
        if step.choose is None:
            return True, "replay.redo.branch", {"count": len(result.children), "branches": branches}
        if not 0 <= step.choose < len(result.children):
            return False, "replay.redo.invalidChoice", {"choose": step.choose, "count": len(result.children)}

        chosen = result.children[step.choose]
        self.tree.set_head(chosen)
        return True, "replay.redo.chosen", {"short_hash": self._short(chosen), "choose": step.choose}

    def _do_goto(self, step: ReplayStep) -> Tuple[bool, str, Dict[str, Any]]:
        target = step.target or ""
        matches = self.resolve(target)
        if not matches:
            return False, "replay.goto.notFound", {"target": target}
        if len(matches) > 1:
            return False, "replay.goto.notUnique", {"target": target, "count": len(matches)}

        self.tree.set_head(matches[0])
        return True, "replay.goto.success", {"short_hash": self._short(matches[0])}

    def _do_latest(self, step: ReplayStep) -> Tuple[bool, str, Dict[str, Any]]:
        result = self.tree.goto_latest_non_empty()
        if result is None:
            return True, "replay.latest.noAction", {}
        return True, "replay.latest.success", {"short_hash": self._short(result)}

    def _do_reset(self, step: ReplayStep) -> Tuple[bool, str, Dict[str, Any]]:
        content = self.tree.get_content()
        discarded = len(self.tree)
        self.tree = self.registry.reset(self.script.document, content)
        self.labels = {}
        self._register_builtin_labels()
        return True, "replay.reset.success", {"count": discarded}

    def to_dict(self, records: Optional[List[StepRecord]] = None) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "document": self.script.document,
            "head": self.tree.head,
            "root": self.tree.root_hash,
            "initial_snapshot": self.tree.initial_snapshot_hash,
            "labels": dict(self.labels),
            "nodes": [node.to_dict() for node in self.tree.get_all_nodes().values()],
        }
        if records is not None:
            data["steps"] = [asdict(record) for record in records]
        return data
