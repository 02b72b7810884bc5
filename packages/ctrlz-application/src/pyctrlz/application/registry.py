import logging
from typing import Dict, List, Optional

from pyctrlz.engine.version_tree import VersionTree
from pyctrlz.interfaces.types import Clock

logger = logging.getLogger(__name__)


class TreeRegistry:
    """按文档键 (例如 URI 字符串) 持有版本树，每篇文档一棵。

    树只增不减，唯一的内存回收手段是 reset：丢弃旧树，以当前内容重新开始。
    """

    def __init__(self, clock: Optional[Clock] = None, node_warning_threshold: Optional[int] = None):
        self._clock = clock
        self.node_warning_threshold = node_warning_threshold
        self._trees: Dict[str, VersionTree] = {}

    def get(self, key: str) -> Optional[VersionTree]:
        return self._trees.get(key)

    def get_or_create(self, key: str, content: str = "") -> VersionTree:
        tree = self._trees.get(key)
        if tree is None:
            tree = VersionTree(content, clock=self._clock)
            self._trees[key] = tree
            logger.info(f"🌱 已为文档 '{key}' 创建历史树 (根节点 {tree.root_hash[:7]})")
        return tree

    def reset(self, key: str, content: str) -> VersionTree:
        old_tree = self._trees.pop(key, None)
        if old_tree is not None:
            logger.info(f"🧹 文档 '{key}' 的历史已重置，丢弃 {len(old_tree)} 个节点")
        return self.get_or_create(key, content)

    def discard(self, key: str) -> bool:
        if self._trees.pop(key, None) is None:
            return False
        logger.debug(f"文档 '{key}' 的历史树已释放")
        return True

    def check_pressure(self, key: str) -> bool:
        tree = self._trees.get(key)
        if tree is None or not self.node_warning_threshold:
            return False
        if len(tree) > self.node_warning_threshold:
            logger.warning(
                f"⚠️  文档 '{key}' 的历史树已有 {len(tree)} 个节点 "
                f"(阈值 {self.node_warning_threshold})，建议执行 reset 释放内存"
            )
            return True
        return False

    def keys(self) -> List[str]:
        return list(self._trees.keys())

    def __len__(self) -> int:
        return len(self._trees)

    def __contains__(self, key: object) -> bool:
        return key in self._trees
