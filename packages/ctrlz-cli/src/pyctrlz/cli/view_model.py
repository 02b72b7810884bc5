from typing import Dict, List, Optional, Set

from pyctrlz.engine.diff_engine import deserialize_diff
from pyctrlz.engine.preview import summarize_script
from pyctrlz.engine.version_tree import VersionTree
from pyctrlz.interfaces.models import TreeNode

_PREVIEW_CHARS = 40


class TreeViewModel:
    def __init__(
        self,
        tree: VersionTree,
        labels: Optional[Dict[str, str]] = None,
        short_hash_length: int = 7,
    ):
        self.tree = tree
        self.short_hash_length = short_hash_length

        # --- 核心状态 (快照，渲染期间不受树的后续修改影响) ---
        self.nodes: Dict[str, TreeNode] = tree.get_all_nodes()
        self.head: str = tree.head
        self.labels_by_node: Dict[str, List[str]] = {}
        for label, node_id in (labels or {}).items():
            self.labels_by_node.setdefault(node_id, []).append(label)

        # 祖先、后代与 head 自身构成可达集合
        self.reachable_set: Set[str] = set(tree.get_path_to_root(self.head))
        self.reachable_set |= tree.get_descendants(self.head)

    @property
    def root_hash(self) -> str:
        return self.tree.root_hash

    def short(self, node_id: str) -> str:
        return node_id[: self.short_hash_length]

    def is_reachable(self, node_id: str) -> bool:
        return node_id in self.reachable_set

    def get_children(self, node_id: str) -> List[str]:
        return list(self.nodes[node_id].children)

    def get_preview(self, node_id: str) -> str:
        content = self.tree.get_content(node_id)
        if not content:
            return "<empty>"
        preview = next((line.strip() for line in content.splitlines() if line.strip()), "")
        if not preview:
            return "<whitespace>"
        if len(preview) > _PREVIEW_CHARS:
            preview = preview[: _PREVIEW_CHARS - 3] + "..."
        return preview

    def get_change_stat(self, node_id: str) -> str:
        node = self.nodes[node_id]
        if node.diff is None:
            return ""
        stats = summarize_script(deserialize_diff(node.diff))
        return f"+{stats.added} -{stats.removed}"

    def get_markers(self, node_id: str) -> List[str]:
        markers = []
        if node_id == self.head:
            markers.append("HEAD")
        if node_id == self.tree.root_hash:
            markers.append("ROOT")
        if node_id == self.tree.initial_snapshot_hash:
            markers.append("INITIAL")
        markers.extend(self.labels_by_node.get(node_id, []))
        return markers
