import os
from pathlib import Path

# 全局配置中心

# 默认的工作区根目录 (读取 .ctrlz/config.yml 的位置)，可以通过环境变量覆盖
# 在实际运行时，通常由 CLI 参数指定
DEFAULT_WORK_DIR: Path = Path(os.getenv("CTRLZ_WORK_DIR", "."))

# 日志级别
# 使用项目特定的环境变量 CTRLZ_LOG_LEVEL，无效值由 setup_logging 回退到 INFO
LOG_LEVEL: str = os.getenv("CTRLZ_LOG_LEVEL", "INFO")
