import logging

import typer
from pyctrlz.common.messaging import bus

from .commands import diff, replay
from .rendering import TyperRenderer

# --- Global Setup ---
# 在应用入口处向公共消息总线注入 CLI 渲染器，只需执行一次。
bus.set_renderer(TyperRenderer())

# Initialize logger, but handler configuration is determined by commands at runtime.
logging.getLogger(__name__)


# --- App Definition ---
app = typer.Typer(
    add_completion=False,
    name="ctrlz",
    help="CtrlZ: 以内容哈希寻址的分支式撤销/重做历史树。",
)

# --- Command Registration ---
diff.register(app)
replay.register(app)


# --- Entry Point ---
if __name__ == "__main__":
    app()
