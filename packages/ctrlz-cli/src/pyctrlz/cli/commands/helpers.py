import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Generator, Tuple

import typer
from pyctrlz.application.factory import create_registry
from pyctrlz.application.replay import ReplaySession, load_script
from pyctrlz.common.messaging import bus
from pyctrlz.engine.config import ConfigManager
from pyctrlz.interfaces.exceptions import CtrlZError, ScriptError

from ..logger_config import setup_logging

logger = logging.getLogger(__name__)

VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="输出 DEBUG 级别的日志。")]


@contextmanager
def session_context(
    ctx: typer.Context, script_path: Path, work_dir: Path, verbose: bool = False
) -> Generator[Tuple[ReplaySession, ConfigManager], None, None]:
    setup_logging(verbose)
    config = ConfigManager(work_dir)
    try:
        script = load_script(script_path, default_document=config.get("session.default_document", "untitled"))
    except ScriptError as e:
        logger.debug("重放脚本无效", exc_info=True)
        bus.error("replay.error.invalidScript", path=script_path, error=str(e))
        ctx.exit(1)

    registry = create_registry(work_dir)
    try:
        short_len = config.get("display.short_hash_length", 7)
        yield ReplaySession(registry, script, short_hash_length=short_len), config
    except CtrlZError as e:
        # 结构性损坏无法通过重试恢复，只能丢弃历史重建
        logger.error(f"历史树操作失败 (文档: {script.document})", exc_info=True)
        bus.error("common.error.corrupted", error=str(e))
        ctx.exit(1)
    finally:
        registry.discard(script.document)


def find_target_node(ctx: typer.Context, session: ReplaySession, target: str) -> str:
    matches = session.resolve(target)
    if not matches:
        bus.error("show.error.notFound", target=target)
        ctx.exit(1)
    if len(matches) > 1:
        bus.error("show.error.notUnique", target=target, count=len(matches))
        ctx.exit(1)
    return matches[0]
