"""字符级差异引擎。

为版本树计算两个文档状态之间的编辑脚本，并将其按顺序重放。

算法是贪心的双游标扫描：相同字符延长 keep 区段；遇到不匹配时向前寻找
最近的重新同步点，对跳过的旧文本发出 remove、对跳过的新文本发出 add。
它不保证最小编辑距离，但对交互式输入产生的小范围局部修改足够快，且结果
接近最优。最坏情况 (两段文本没有任何公共字符) 下前瞻是二次的。
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Tuple

from pyctrlz.interfaces.exceptions import DiffFormatError

OperationKind = Literal["keep", "remove", "add"]

_KINDS = ("keep", "remove", "add")


@dataclass(frozen=True)
class DiffOperation:
    """编辑脚本中的一条操作。

    Attributes:
        kind: keep / remove / add。
        position: keep 与 remove 为旧文本中的位置；add 为新文本中的位置，
            仅用于追溯，重放时不依赖它。
        length: keep 与 remove 覆盖的字符数。
        content: add 插入的字面文本。
    """

    kind: OperationKind
    position: int
    length: Optional[int] = None
    content: Optional[str] = None

    @classmethod
    def keep(cls, position: int, length: int) -> DiffOperation:
        return cls(kind="keep", position=position, length=length)

    @classmethod
    def remove(cls, position: int, length: int) -> DiffOperation:
        return cls(kind="remove", position=position, length=length)

    @classmethod
    def add(cls, position: int, content: str) -> DiffOperation:
        return cls(kind="add", position=position, content=content)

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == "add":
            return {"type": self.kind, "position": self.position, "content": self.content}
        return {"type": self.kind, "position": self.position, "length": self.length}


EditScript = List[DiffOperation]


def _find_resync_point(before: str, after: str, i: int, j: int) -> Optional[Tuple[int, int]]:
    """在不匹配点 (i, j) 之后寻找最近的一对相同字符。

    分别从旧文本侧和新文本侧扫描，取跳过字符总数更少的一对；
    平局时取旧文本侧的结果。找不到时返回 None。
    """
    best: Optional[Tuple[int, int]] = None
    best_cost = 0

    for ti in range(i, len(before)):
        tj = after.find(before[ti], j)
        if tj != -1:
            best = (ti, tj)
            best_cost = (ti - i) + (tj - j)
            break

    for tj in range(j, len(after)):
        if best is not None and tj - j >= best_cost:
            break
        ti = before.find(after[tj], i)
        if ti != -1:
            cost = (ti - i) + (tj - j)
            if best is None or cost < best_cost:
                best = (ti, tj)
                best_cost = cost
            break

    return best


def generate_diff(before: str, after: str) -> EditScript:
    operations: EditScript = []
    i = 0
    j = 0
    n = len(before)
    m = len(after)

    while i < n or j < m:
        if i < n and j < m and before[i] == after[j]:
            start = i
            while i < n and j < m and before[i] == after[j]:
                i += 1
                j += 1
            operations.append(DiffOperation.keep(start, i - start))
            continue

        if i >= n:
            operations.append(DiffOperation.add(j, after[j:]))
            j = m
            continue

        if j >= m:
            operations.append(DiffOperation.remove(i, n - i))
            i = n
            continue

        resync = _find_resync_point(before, after, i, j)
        next_i, next_j = resync if resync is not None else (n, m)

        if next_i > i:
            operations.append(DiffOperation.remove(i, next_i - i))
        if next_j > j:
            operations.append(DiffOperation.add(j, after[j:next_j]))

        i = next_i
        j = next_j

    return operations


def apply_diff(before: str, operations: EditScript) -> str:
    parts: List[str] = []

    for op in operations:
        if op.kind == "keep":
            end = op.position + (op.length or 0)
            if end > len(before):
                raise DiffFormatError(
                    f"keep 操作越界: [{op.position}, {end}) 超出基准文本长度 {len(before)}"
                )
            parts.append(before[op.position : end])
        elif op.kind == "add":
            parts.append(op.content or "")
        elif op.kind == "remove":
            continue
        else:
            raise DiffFormatError(f"未知的操作类型: {op.kind!r}")

    return "".join(parts)


def serialize_diff(operations: EditScript) -> str:
    return json.dumps([op.to_dict() for op in operations], ensure_ascii=False, separators=(",", ":"))


def _require_int(item: Dict[str, Any], key: str, index: int) -> int:
    value = item.get(key)
    # bool 是 int 的子类，需要单独排除
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise DiffFormatError(f"第 {index} 条操作的 '{key}' 必须是非负整数，实际为 {value!r}")
    return value


def _operation_from_dict(item: Any, index: int) -> DiffOperation:
    if not isinstance(item, dict):
        raise DiffFormatError(f"第 {index} 条操作不是对象: {item!r}")

    kind = item.get("type")
    if kind not in _KINDS:
        raise DiffFormatError(f"第 {index} 条操作的类型无效: {kind!r}")

    position = _require_int(item, "position", index)
    if kind == "add":
        content = item.get("content")
        if not isinstance(content, str):
            raise DiffFormatError(f"第 {index} 条 add 操作缺少字符串 'content'")
        return DiffOperation.add(position, content)

    length = _require_int(item, "length", index)
    if kind == "keep":
        return DiffOperation.keep(position, length)
    return DiffOperation.remove(position, length)


def deserialize_diff(diff_str: str) -> EditScript:
    try:
        raw = json.loads(diff_str)
    except (json.JSONDecodeError, TypeError) as e:
        raise DiffFormatError(f"无法解析编辑脚本: {e}") from e

    if not isinstance(raw, list):
        raise DiffFormatError(f"编辑脚本必须是列表，实际为 {type(raw).__name__}")

    return [_operation_from_dict(item, index) for index, item in enumerate(raw)]
