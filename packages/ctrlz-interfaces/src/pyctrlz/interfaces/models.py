from __future__ import annotations

import dataclasses
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclasses.dataclass(frozen=True)
class CursorPosition:
    line: int
    character: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclasses.dataclass
class TreeNode:
    # 核心标识符: 文档文本的 SHA-256，相同文本无论经由何种路径到达都折叠为同一节点
    content_hash: str
    # 前驱状态，仅合成空根节点为 None
    parent: Optional[str]
    timestamp: datetime

    # 按首次到达顺序排列的子节点 id
    children: List[str] = dataclasses.field(default_factory=list)

    # 从父节点内容到本节点内容的序列化编辑脚本，根节点为 None
    diff: Optional[str] = None

    # 提交时编辑器光标位置，核心只负责存取
    cursor_position: Optional[CursorPosition] = None

    @property
    def short_hash(self) -> str:
        return self.content_hash[:7]

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def copy(self) -> TreeNode:
        return dataclasses.replace(self, children=list(self.children))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.content_hash,
            "parent": self.parent,
            "children": list(self.children),
            "diff": self.diff,
            "timestamp": self.timestamp.isoformat(),
            "cursor_position": self.cursor_position.to_dict() if self.cursor_position else None,
        }
