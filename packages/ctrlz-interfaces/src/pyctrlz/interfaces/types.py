from datetime import datetime
from typing import Callable, List

# 节点标识：文档文本的内容哈希 (hex)
NodeId = str

# 从目标节点到根节点的 id 序列
NodePath = List[NodeId]

# 注入的时钟: () -> datetime
Clock = Callable[[], datetime]
