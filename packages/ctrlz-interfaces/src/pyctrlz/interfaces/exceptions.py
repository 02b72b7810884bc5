class CtrlZError(Exception):
    pass


class TreeCorruptionError(CtrlZError):
    """树的结构不变式被破坏 (父节点缺失、环、孤儿节点)。只能丢弃整棵树并重建。"""

    pass


class DiffFormatError(CtrlZError):
    pass


class ScriptError(CtrlZError):
    pass
