import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pyctrlz.common.messaging import bus
from pyctrlz.engine.config import ConfigManager
from pyctrlz.engine.diff_engine import generate_diff
from pyctrlz.engine.hasher import hash_content
from pyctrlz.engine.preview import generate_diff_summary, generate_unified_diff, summarize_script

from ..config import DEFAULT_WORK_DIR
from ..logger_config import setup_logging
from .helpers import VerboseOption

logger = logging.getLogger(__name__)


def _read_text(ctx: typer.Context, path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"读取文件失败: {path}", exc_info=True)
        bus.error("diff.error.readFailed", path=path, error=str(e))
        ctx.exit(1)


def register(app: typer.Typer):
    @app.command()
    def diff(
        ctx: typer.Context,
        old_file: Annotated[Path, typer.Argument(help="旧版本文件。", exists=True, dir_okay=False)],
        new_file: Annotated[Path, typer.Argument(help="新版本文件。", exists=True, dir_okay=False)],
        unified: Annotated[bool, typer.Option("--unified", "-u", help="输出 unified 格式的行级预览。")] = False,
        json_output: Annotated[bool, typer.Option("--json", help="以 JSON 格式将编辑脚本输出到 stdout。")] = False,
        context_lines: Annotated[
            Optional[int], typer.Option("--context", "-c", help="unified 预览的上下文行数。", min=0)
        ] = None,
        work_dir: Annotated[
            Path,
            typer.Option(
                "--work-dir", "-w", help="读取配置的根目录。", file_okay=False, dir_okay=True, resolve_path=True
            ),
        ] = DEFAULT_WORK_DIR,
        verbose: VerboseOption = False,
    ):
        """
        计算两个文件之间的字符级编辑脚本。
        """
        setup_logging(verbose)
        config = ConfigManager(work_dir)

        old_content = _read_text(ctx, old_file)
        new_content = _read_text(ctx, new_file)
        operations = generate_diff(old_content, new_content)

        if json_output:
            payload = {
                "old_hash": hash_content(old_content),
                "new_hash": hash_content(new_content),
                "operations": [op.to_dict() for op in operations],
            }
            bus.data(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        if old_content == new_content:
            bus.success("diff.info.identical")
            return

        stats = summarize_script(operations)
        bus.info(
            "diff.info.stats",
            operations=stats.operations,
            kept=stats.kept,
            removed=stats.removed,
            added=stats.added,
        )

        if unified:
            if context_lines is None:
                context_lines = config.get("preview.context_lines", 3)
            bus.data(
                generate_unified_diff(
                    old_content, new_content, filename=new_file.name, context_lines=context_lines
                )
            )
        else:
            bus.data(
                generate_diff_summary(
                    old_content, new_content, max_changes=config.get("preview.max_summary_changes", 3)
                )
            )
