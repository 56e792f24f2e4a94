"""Output formatters for hotswap deployment results."""

import io
import json

from rich.console import Console
from rich.markup import escape
from rich.text import Text
from rich.tree import Tree

from stackswap.models import ICON, HotswapDeploymentResult, HotswapMode


def _escape_md_cell(value: str) -> str:
    """Escape characters that break markdown table cells."""
    return value.replace("|", "\\|").replace("\n", " ")


def _full_deployment_line(result: HotswapDeploymentResult) -> str:
    if result.mode == HotswapMode.FULL_DEPLOYMENT:
        return "Hotswap disabled, ran a full deployment"
    if result.full_deployment_ran:
        return "Fell back to a full deployment"
    return "No full deployment was needed"


def format_json(result: HotswapDeploymentResult) -> str:
    """Format a deployment result as JSON."""
    return json.dumps(
        {
            "summary": {
                "mode": result.mode.value,
                "hotswapped": len(result.hotswapped),
                "failed": len(result.failed),
                "non_hotswappable": len(result.non_hotswappable_changes),
                "full_deployment_ran": result.full_deployment_ran,
            },
            "hotswapped": [
                {
                    "logical_id": o.logical_id,
                    "resource_type": o.resource_type,
                    "resource_names": o.resource_names,
                }
                for o in result.hotswapped
            ],
            "failed": [
                {
                    "logical_id": o.logical_id,
                    "resource_type": o.resource_type,
                    "resource_names": o.resource_names,
                    "error": o.error,
                }
                for o in result.failed
            ],
            "non_hotswappable": [
                {
                    "logical_id": c.logical_id,
                    "resource_type": c.resource_type,
                    "rejected_changes": c.rejected_changes,
                    "reason": c.display_reason,
                }
                for c in result.non_hotswappable_changes
            ],
        },
        indent=2,
    )


def format_markdown(result: HotswapDeploymentResult) -> str:
    """Format a deployment result as Markdown."""
    lines = [f"## Hotswap Report — {result.mode.value}", ""]

    if result.outcomes:
        lines.append("| Resource | Type | Result |")
        lines.append("|----------|------|--------|")
        for o in result.outcomes:
            status = "hotswapped" if o.succeeded else f"failed: {_escape_md_cell(o.error)}"
            lines.append(
                f"| {_escape_md_cell(o.logical_id)} | {_escape_md_cell(o.resource_type)} | {status} |"
            )
        lines.append("")

    if result.non_hotswappable_changes:
        lines.append("### Non-hotswappable changes")
        lines.append("")
        lines.append("| Resource | Type | Reason |")
        lines.append("|----------|------|--------|")
        for c in result.non_hotswappable_changes:
            lines.append(
                f"| {_escape_md_cell(c.logical_id)} | {_escape_md_cell(c.resource_type)} "
                f"| {_escape_md_cell(c.display_reason)} |"
            )
        lines.append("")

    lines.append(_full_deployment_line(result))
    return "\n".join(lines)


def format_table(result: HotswapDeploymentResult) -> str:
    """Format a deployment result as a Rich tree view, returned as a string."""
    console = Console(record=True, width=120, file=io.StringIO())
    tree = Tree(f"[bold]Hotswap Report[/bold] ({result.mode.value})")

    if result.outcomes:
        applied = tree.add("[bold]Hotswapped[/bold]")
        for o in result.outcomes:
            names = escape(", ".join(o.resource_names))
            if o.succeeded:
                applied.add(Text.from_markup(f"{ICON} [green]{names}[/green]"))
            else:
                applied.add(
                    Text.from_markup(f"[bold red]{names}[/bold red] — failed: {escape(o.error)}")
                )

    if result.non_hotswappable_changes:
        rejected = tree.add("[bold]Non-hotswappable changes[/bold]")
        for c in result.non_hotswappable_changes:
            rejected.add(
                Text.from_markup(
                    f"[yellow]{escape(c.logical_id)}[/yellow] ({escape(c.resource_type)})"
                    f" — {escape(c.display_reason)}"
                )
            )

    tree.add(_full_deployment_line(result))
    console.print(tree)
    return console.export_text()
