import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from pyctrlz.application.replay import StepRecord
from pyctrlz.common.messaging import bus
from pyctrlz.engine.preview import generate_diff_summary
from rich.console import Console

from ..config import DEFAULT_WORK_DIR
from ..rendering import render_tree
from ..view_model import TreeViewModel
from .helpers import VerboseOption, find_target_node, session_context

logger = logging.getLogger(__name__)

ScriptArgument = Annotated[
    Path, typer.Argument(help="YAML 格式的重放脚本。", exists=True, dir_okay=False, resolve_path=True)
]
WorkDirOption = Annotated[
    Path,
    typer.Option("--work-dir", "-w", help="读取配置的根目录。", file_okay=False, dir_okay=True, resolve_path=True),
]


def _report_step(record: StepRecord):
    message = bus.get(record.msg_id, **record.msg_kwargs)
    kwargs = {"index": record.index, "action": record.action, "message": message}
    if not record.success:
        bus.error("replay.ui.step", **kwargs)
    elif record.moved:
        bus.success("replay.ui.step", **kwargs)
    else:
        bus.info("replay.ui.step", **kwargs)


def register(app: typer.Typer):
    @app.command()
    def replay(
        ctx: typer.Context,
        script: ScriptArgument,
        work_dir: WorkDirOption = DEFAULT_WORK_DIR,
        json_output: Annotated[bool, typer.Option("--json", help="以 JSON 格式将最终的历史树输出到 stdout。")] = False,
        no_tree: Annotated[bool, typer.Option("--no-tree", help="不渲染最终的历史树。")] = False,
        verify: Annotated[bool, typer.Option("--verify", help="重放后校验每个节点的重建内容。")] = False,
        verbose: VerboseOption = False,
    ):
        """
        重放一次编辑会话，并展示产生的分支历史树。
        """
        with session_context(ctx, script, work_dir, verbose) as (session, config):
            records = session.run()
            failed = any(not record.success for record in records)
            short_len = config.get("display.short_hash_length", 7)

            if not json_output:
                for record in records:
                    _report_step(record)

            if verify:
                count = session.tree.verify_integrity()
                bus.success("replay.verify.success", count=count)

            if json_output:
                bus.data(json.dumps(session.to_dict(records), indent=2, ensure_ascii=False))
                if failed:
                    ctx.exit(1)
                return

            bus.info(
                "replay.info.summary",
                count=len(session.tree),
                short_hash=session.tree.head[:short_len],
                length=len(session.tree.get_content()),
            )
            if not no_tree:
                view_model = TreeViewModel(
                    session.tree,
                    labels=session.labels,
                    short_hash_length=short_len,
                )
                Console().print(render_tree(view_model))

            if failed:
                ctx.exit(1)

    @app.command()
    def show(
        ctx: typer.Context,
        script: ScriptArgument,
        target: Annotated[str, typer.Argument(help="目标节点的标签或哈希前缀。")],
        work_dir: WorkDirOption = DEFAULT_WORK_DIR,
        json_output: Annotated[bool, typer.Option("--json", help="以 JSON 格式将结果输出到 stdout。")] = False,
        verbose: VerboseOption = False,
    ):
        """
        重放会话后，显示指定节点重建出的文档内容。
        """
        with session_context(ctx, script, work_dir, verbose) as (session, config):
            session.run()
            tree = session.tree
            node_id = find_target_node(ctx, session, target)
            node = tree.get_node(node_id)
            content = tree.get_content(node_id)

            if json_output:
                payload = node.to_dict()
                payload["content"] = content
                bus.data(json.dumps(payload, indent=2, ensure_ascii=False))
                return

            short_len = config.get("display.short_hash_length", 7)
            cursor = node.cursor_position
            bus.data(
                bus.get(
                    "show.ui.header",
                    ts=node.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                    short_hash=node_id[:short_len],
                    parent=node.parent[:short_len] if node.parent else "-",
                    children=len(node.children),
                    cursor=f"{cursor.line}:{cursor.character}" if cursor else "-",
                )
            )
            if node.parent is not None:
                bus.data(
                    generate_diff_summary(
                        tree.get_content(node.parent),
                        content,
                        max_changes=config.get("preview.max_summary_changes", 3),
                    )
                )

            console = Console()
            console.rule(f"[bold]{node_id[:short_len]}[/bold]", style="blue")
            # 原样输出，禁用 rich 的标记与高亮
            console.print(content, markup=False, highlight=False, end="")
            if content and not content.endswith("\n"):
                console.print()
