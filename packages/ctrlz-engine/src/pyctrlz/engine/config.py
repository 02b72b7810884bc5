import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Tuple

import yaml
from pyctrlz.common.messaging import bus

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".ctrlz"
CONFIG_FILE_NAME = "config.yml"

# 默认配置，同时充当类型约束: 用户值的类型必须与默认值一致
DEFAULTS: Dict[str, Any] = {
    "preview": {
        "context_lines": 3,
        "max_summary_changes": 3,
    },
    "display": {
        "short_hash_length": 7,
    },
    "session": {
        # 单棵树节点数超过该阈值时提示使用 reset 释放内存
        "node_warning_threshold": 5000,
        "default_document": "untitled",
    },
}

_MISSING = object()


def _iter_leaves(data: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _iter_leaves(value, f"{dotted}.")
        else:
            yield dotted, value


def _lookup(data: Dict[str, Any], key: str) -> Any:
    current: Any = data
    for part in key.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _same_type(value: Any, default: Any) -> bool:
    # bool 是 int 的子类，需要单独排除
    if isinstance(default, bool) or isinstance(value, bool):
        return type(value) is type(default)
    return isinstance(value, type(default))


class ConfigManager:
    """读取 `<work_dir>/.ctrlz/config.yml`，并以 DEFAULTS 作为回退层。"""

    def __init__(self, work_dir: Path):
        self.config_path = work_dir.resolve() / CONFIG_DIR_NAME / CONFIG_FILE_NAME
        self.user_config: Dict[str, Any] = self._load_config()
        self.rejected_keys = self._validate()

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}

        try:
            config_data = yaml.safe_load(self.config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            bus.error("engine.config.error.parseFailed", path=self.config_path, error=str(e))
            return {}
        except OSError as e:
            bus.error("engine.config.error.readFailed", error=str(e))
            return {}

        if config_data is None:
            return {}
        if not isinstance(config_data, dict):
            bus.warning("engine.config.warning.invalidFormat", path=self.config_path)
            return {}
        return config_data

    def _validate(self) -> Dict[str, Any]:
        rejected: Dict[str, Any] = {}
        for key, default in _iter_leaves(DEFAULTS):
            value = _lookup(self.user_config, key)
            if value is _MISSING or value is None or _same_type(value, default):
                continue
            bus.warning(
                "engine.config.warning.typeMismatch",
                key=key,
                value=repr(value),
                expected=type(default).__name__,
            )
            rejected[key] = value
        return rejected

    def get(self, key: str, fallback: Any = None) -> Any:
        if key not in self.rejected_keys:
            user_val = _lookup(self.user_config, key)
            if user_val is not _MISSING and user_val is not None:
                return user_val

        default_val = _lookup(DEFAULTS, key)
        if default_val is not _MISSING and default_val is not None:
            return default_val
        return fallback

    def set(self, key: str, value: Any):
        *parents, leaf = key.split(".")
        d = self.user_config
        for i, k in enumerate(parents):
            if not isinstance(d.get(k), dict):
                if k in d:
                    # 父级是标量时无法挂载子键，整体替换为映射
                    bus.warning(
                        "engine.config.warning.replacedScalar",
                        key=".".join(parents[: i + 1]),
                        value=repr(d[k]),
                    )
                d[k] = {}
            d = d[k]
        d[leaf] = value
        self.rejected_keys.pop(key, None)
        logger.debug(f"配置已更新: {key} = {value}")

    def save(self):
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(self.user_config, f, default_flow_style=False, allow_unicode=True)
            bus.success("engine.config.success.saved", path=self.config_path)
        except OSError as e:
            bus.error("engine.config.error.saveFailed", error=str(e))
            raise
