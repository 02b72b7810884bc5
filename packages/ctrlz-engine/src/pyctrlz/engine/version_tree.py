import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set

from pyctrlz.interfaces.exceptions import TreeCorruptionError
from pyctrlz.interfaces.models import CursorPosition, TreeNode
from pyctrlz.interfaces.result import Advanced, Branch, NoHistory, RedoResult
from pyctrlz.interfaces.types import Clock, NodeId, NodePath

from .diff_engine import apply_diff, deserialize_diff, generate_diff, serialize_diff
from .hasher import hash_content

logger = logging.getLogger(__name__)

_EMPTY_ROOT_CONTENT = ""
_TIMESTAMP_STEP = timedelta(microseconds=1)


class VersionTree:
    """一篇文档的分支式撤销历史。

    每个不同的文档状态是一个以内容哈希寻址的节点，节点只保存相对父节点的
    编辑脚本，任意状态都可以从合成空根节点开始重放得到。

    单线程使用：所有操作同步执行，不做任何加锁。宿主若处于并发环境，
    必须保证同一棵树上的调用是串行的。
    """

    def __init__(self, initial_content: str = "", clock: Optional[Clock] = None):
        self._clock: Clock = clock or datetime.now
        self._nodes: Dict[NodeId, TreeNode] = {}
        self._last_timestamp: Optional[datetime] = None

        self.root_hash: NodeId = hash_content(_EMPTY_ROOT_CONTENT)
        self.initial_snapshot_hash: Optional[NodeId] = None

        self._nodes[self.root_hash] = TreeNode(
            content_hash=self.root_hash,
            parent=None,
            timestamp=self._next_timestamp(),
        )
        self._head: NodeId = self.root_hash

        if initial_content != _EMPTY_ROOT_CONTENT:
            self.initial_snapshot_hash = self.commit(initial_content)
            logger.debug(f"📸 初始快照已记录: {self.initial_snapshot_hash[:7]}")

    # --- 内部工具 ---

    def _next_timestamp(self) -> datetime:
        # 时钟回拨或精度不足时，保证同一棵树内时间戳严格递增
        ts = self._clock()
        if self._last_timestamp is not None and ts <= self._last_timestamp:
            ts = self._last_timestamp + _TIMESTAMP_STEP
        self._last_timestamp = ts
        return ts

    def get_path_to_root(self, node_id: NodeId) -> NodePath:
        """返回从目标节点到根节点的 id 序列 (目标在前，根在后)。"""
        path: NodePath = []
        seen: Set[NodeId] = set()
        current: Optional[NodeId] = node_id

        while current is not None:
            if current in seen:
                raise TreeCorruptionError(f"检测到环: 节点 {current[:7]} 在父链中重复出现")
            node = self._nodes.get(current)
            if node is None:
                origin = path[-1][:7] if path else "?"
                raise TreeCorruptionError(f"节点 {origin} 记录的父节点 {current[:7]} 不在存储中")
            seen.add(current)
            path.append(current)
            current = node.parent

        if path[-1] != self.root_hash:
            raise TreeCorruptionError(f"节点 {path[-1][:7]} 没有父节点，但不是合成根节点")
        return path

    def _reconstruct_content(self, node_id: NodeId) -> str:
        path = self.get_path_to_root(node_id)
        content = _EMPTY_ROOT_CONTENT

        # path[-1] 是根节点，从它的子节点开始向目标方向重放
        for i in range(len(path) - 2, -1, -1):
            node = self._nodes[path[i]]
            if node.diff is None:
                raise TreeCorruptionError(f"非根节点 {node.short_hash} 缺少编辑脚本")
            content = apply_diff(content, deserialize_diff(node.diff))
        return content

    # --- 写操作 ---

    def commit(self, content: str, cursor_position: Optional[CursorPosition] = None) -> NodeId:
        new_hash = hash_content(content)

        if new_hash in self._nodes:
            logger.debug(f"♻️  内容已存在于历史中，head 移动至 {new_hash[:7]}")
            self._head = new_hash
            return new_hash

        current_content = self._reconstruct_content(self._head)
        operations = generate_diff(current_content, content)

        node = TreeNode(
            content_hash=new_hash,
            parent=self._head,
            timestamp=self._next_timestamp(),
            diff=serialize_diff(operations),
            cursor_position=cursor_position,
        )
        self._nodes[self._head].children.append(new_hash)
        self._nodes[new_hash] = node
        logger.debug(f"📝 新节点 {new_hash[:7]} (父节点 {self._head[:7]}, {len(operations)} 条操作)")

        self._head = new_hash
        return new_hash

    # --- 导航 ---

    @property
    def head(self) -> NodeId:
        return self._head

    def undo(self) -> Optional[NodeId]:
        current = self._nodes[self._head]
        if current.is_root:
            return None

        # 不允许撤销到初始快照之下：合成空根只用于重放，不是可见的文档状态
        if current.parent == self.root_hash and current.content_hash == self.initial_snapshot_hash:
            logger.debug("🛑 已到达初始快照，拒绝继续撤销")
            return None

        self._head = current.parent
        return self._head

    def redo(self) -> RedoResult:
        children = self._nodes[self._head].children
        if len(children) == 1:
            self._head = children[0]
            return Advanced(self._head)
        if not children:
            return NoHistory()
        logger.debug(f"🔀 节点 {self._head[:7]} 有 {len(children)} 个分支，等待调用方选择")
        return Branch(tuple(children))

    def set_head(self, node_id: NodeId) -> bool:
        if node_id not in self._nodes:
            return False
        self._head = node_id
        return True

    def find_latest_non_empty_state(self) -> Optional[NodeId]:
        if self.get_content(self._head).strip():
            return self._head

        latest_hash: Optional[NodeId] = None
        latest_timestamp: Optional[datetime] = None

        # 线性扫描并逐个重放，仅用于低频的恢复操作
        for node_id, node in self._nodes.items():
            if node_id == self.root_hash:
                continue
            if not self.get_content(node_id).strip():
                continue
            if latest_timestamp is None or node.timestamp > latest_timestamp:
                latest_hash = node_id
                latest_timestamp = node.timestamp

        return latest_hash

    def goto_latest_non_empty(self) -> Optional[NodeId]:
        latest = self.find_latest_non_empty_state()
        if latest is not None and latest != self._head:
            self._head = latest
            return self._head
        return None

    # --- 查询 ---

    def get_content(self, node_id: Optional[NodeId] = None) -> str:
        target = node_id or self._head
        if target not in self._nodes:
            return _EMPTY_ROOT_CONTENT
        return self._reconstruct_content(target)

    def get_cursor_position(self, node_id: Optional[NodeId] = None) -> Optional[CursorPosition]:
        target = node_id or self._head
        node = self._nodes.get(target)
        if node is None:
            return None
        return node.cursor_position

    def get_node(self, node_id: NodeId) -> Optional[TreeNode]:
        node = self._nodes.get(node_id)
        return node.copy() if node else None

    def get_all_nodes(self) -> Dict[NodeId, TreeNode]:
        # 返回快照副本，调用方遍历时不受后续修改影响
        return {node_id: node.copy() for node_id, node in self._nodes.items()}

    def get_descendants(self, node_id: NodeId) -> Set[NodeId]:
        descendants: Set[NodeId] = set()
        if node_id not in self._nodes:
            return descendants

        stack: List[NodeId] = list(self._nodes[node_id].children)
        while stack:
            current = stack.pop()
            if current in descendants:
                continue
            descendants.add(current)
            stack.extend(self._nodes[current].children)
        return descendants

    def verify_integrity(self) -> int:
        """重放每个节点并校验其内容哈希，返回校验通过的节点数。"""
        for node_id in self._nodes:
            actual = hash_content(self._reconstruct_content(node_id))
            if actual != node_id:
                raise TreeCorruptionError(f"节点 {node_id[:7]} 重放结果的哈希为 {actual[:7]}，与其 id 不符")
        logger.debug(f"✅ 完整性校验通过: {len(self._nodes)} 个节点")
        return len(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes
