from typing import List, Tuple

import typer
from rich.markup import escape
from rich.tree import Tree

from .view_model import TreeViewModel


class TyperRenderer:
    def success(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.GREEN, err=True)

    def info(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.BLUE, err=True)

    def warning(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.YELLOW, err=True)

    def error(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.RED, err=True)

    def data(self, data_string: str) -> None:
        typer.echo(data_string, err=False)  # Explicitly to stdout


def _node_label(view_model: TreeViewModel, node_id: str) -> str:
    parts = [f"[bold]{view_model.short(node_id)}[/bold]"]

    stat = view_model.get_change_stat(node_id)
    if stat:
        parts.append(f"[cyan]{stat}[/cyan]")

    markers = view_model.get_markers(node_id)
    if markers:
        parts.append(f"[yellow]\\[{escape(', '.join(markers))}][/yellow]")

    parts.append(escape(view_model.get_preview(node_id)))
    label = "  ".join(parts)

    if node_id == view_model.head:
        return f"[reverse]{label}[/reverse]"
    if not view_model.is_reachable(node_id):
        return f"[dim]{label}[/dim]"
    return label


def render_tree(view_model: TreeViewModel) -> Tree:
    root_id = view_model.root_hash
    rich_root = Tree(_node_label(view_model, root_id), guide_style="bright_black")

    # 迭代遍历，长链历史不会触发递归深度限制
    stack: List[Tuple[str, Tree]] = [(root_id, rich_root)]
    while stack:
        node_id, branch = stack.pop()
        for child_id in view_model.get_children(node_id):
            child_branch = branch.add(_node_label(view_model, child_id))
            stack.append((child_id, child_branch))

    return rich_root
