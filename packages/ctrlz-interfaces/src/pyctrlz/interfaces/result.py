from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True)
class Advanced:
    """redo 只有唯一子节点，head 已自动前进。"""

    node_id: str


@dataclass(frozen=True)
class Branch:
    """历史在此分叉，head 未移动，由调用方选择后通过 set_head 跳转。"""

    children: Tuple[str, ...]


@dataclass(frozen=True)
class NoHistory:
    pass


RedoResult = Union[Advanced, Branch, NoHistory]
