import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

# 'locales' 目录作为 pyctrlz.common 的包数据随包分发
LOCALES_DIR = Path(__file__).resolve().parent.parent / "locales"
DEFAULT_LOCALE = "zh"

# 未注入渲染器时 (例如作为库被嵌入)，消息降级写入日志
_FALLBACK_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class MessageStore:
    """按 locale 加载 `<locales_dir>/<locale>/*.json` 中的消息模板。"""

    def __init__(self, locale: str = DEFAULT_LOCALE, locales_dir: Optional[Path] = None):
        self.locale = locale
        self.locales_dir = locales_dir or LOCALES_DIR
        self._messages: Dict[str, str] = {}
        self._load_messages()

    def _load_messages(self):
        locale_path = self.locales_dir / self.locale
        if not locale_path.is_dir():
            logger.error(f"Locale directory for '{self.locale}' not found at {locale_path}")
            return

        # 排序保证多个文件定义同一 id 时结果确定
        for message_file in sorted(locale_path.glob("*.json")):
            try:
                data = json.loads(message_file.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError) as e:
                logger.error(f"Failed to load or parse message file {message_file}: {e}")
                continue
            if not isinstance(data, dict):
                logger.error(f"Message file {message_file} must contain a JSON object, skipped.")
                continue
            self._messages.update(data)

        logger.debug(f"Loaded {len(self._messages)} messages for locale '{self.locale}'.")

    def get(self, msg_id: str, default: str = "") -> str:
        return self._messages.get(msg_id, default or f"<{msg_id}>")

    def __contains__(self, msg_id: object) -> bool:
        return msg_id in self._messages

    def __len__(self) -> int:
        return len(self._messages)


class Renderer(Protocol):
    def success(self, message: str) -> None: ...
    def info(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...
    def data(self, data_string: str) -> None: ...


class MessageBus:
    """语义化消息总线：业务代码只发送消息 id，由渲染器决定如何呈现。"""

    def __init__(self, store: MessageStore):
        self._store = store
        self._renderer: Optional[Renderer] = None

    @property
    def store(self) -> MessageStore:
        return self._store

    def set_renderer(self, renderer: Optional[Renderer]):
        self._renderer = renderer

    def get(self, msg_id: str, **kwargs: Any) -> str:
        template = self._store.get(msg_id)
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError) as e:
            logger.warning(f"Formatting error for '{msg_id}': {e!r}")
            return template

    def _render(self, level: str, msg_id: str, **kwargs: Any) -> None:
        message = self.get(msg_id, **kwargs)
        if self._renderer is None:
            logger.log(_FALLBACK_LOG_LEVELS[level], message)
            return
        getattr(self._renderer, level)(message)

    def success(self, msg_id: str, **kwargs: Any) -> None:
        self._render("success", msg_id, **kwargs)

    def info(self, msg_id: str, **kwargs: Any) -> None:
        self._render("info", msg_id, **kwargs)

    def warning(self, msg_id: str, **kwargs: Any) -> None:
        self._render("warning", msg_id, **kwargs)

    def error(self, msg_id: str, **kwargs: Any) -> None:
        self._render("error", msg_id, **kwargs)

    def data(self, data_string: str) -> None:
        if self._renderer is None:
            logger.warning("MessageBus renderer not configured. Dropping data output.")
            return
        self._renderer.data(data_string)


bus = MessageBus(store=MessageStore())
