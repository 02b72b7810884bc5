from datetime import datetime, timedelta
from typing import Dict, Optional, Sequence

from pyctrlz.engine.version_tree import VersionTree

# 固定的起始时间，保证测试中的时间戳可预测
EPOCH = datetime(2024, 1, 1, 12, 0, 0)


class FakeClock:
    """可控的时钟，每次调用前进固定步长。"""

    def __init__(self, start: datetime = EPOCH, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step
        self.calls = 0

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        self.calls += 1
        return current

    def freeze(self):
        self.step = timedelta(0)


def build_linear_tree(contents: Sequence[str], clock: Optional[FakeClock] = None) -> VersionTree:
    """以第一个元素作为初始内容，依次提交其余内容。"""
    tree = VersionTree(contents[0] if contents else "", clock=clock or FakeClock())
    for content in contents[1:]:
        tree.commit(content)
    return tree


def build_scenario_tree(clock: Optional[FakeClock] = None) -> Dict[str, object]:
    """
    构造一个带分叉的历史:
      root -> ABC -> ABX -> ABXY
                        \\-> ABXZ
    返回树以及各节点 id。
    """
    tree = VersionTree("ABC", clock=clock or FakeClock())
    initial = tree.initial_snapshot_hash
    h1 = tree.commit("ABX")
    h2 = tree.commit("ABXY")
    tree.set_head(h1)
    h3 = tree.commit("ABXZ")
    return {"tree": tree, "initial": initial, "h1": h1, "h2": h2, "h3": h3}
