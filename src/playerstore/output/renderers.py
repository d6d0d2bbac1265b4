"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from playerstore.output.console import create_console, get_output, style_for_severity

if TYPE_CHECKING:
    from rich.console import Console

    from playerstore.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
        if verbose:
            _render_meta(console, result)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_id(item) for item in items if _extract_id(item))

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_id(item: Any) -> str:
    if isinstance(item, dict):
        for key in ("auction_id", "clan_id", "claim_id", "item_id", "username"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="ps.ok")
    op = Text(f"  {result.op}", style="ps.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="ps.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="ps.id")
    elif key in ("username", "name"):
        v = Text(str(value), style="ps.name")
    else:
        v = Text(str(value))
    console.print(k, v, sep="", end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _span_style(duration_ms: float) -> str:
    if duration_ms > 1000:
        return "bold red"
    return "yellow" if duration_ms > 100 else "dim"


def _render_telemetry_tree(console: Console, span_data: dict[str, Any], indent: int = 4) -> None:
    duration = span_data.get("duration_ms", 0.0)
    style = _span_style(duration)
    parts = [f"{' ' * indent}[{style}]{duration:>8.2f}ms[/{style}]  {span_data.get('name', '?')}"]
    if statements := span_data.get("statements"):
        parts.append(f"[ps.id]{statements} sql[/ps.id]")
    if annotations := span_data.get("annotations"):
        parts.append("(" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")")
    console.print("  ".join(parts))
    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _table(columns: list[str], rows: list[dict[str, Any]]) -> Table:
    """Build a plain Rich Table from dict rows, one column per key."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for col in columns:
        style = "ps.id" if col.endswith("_id") else None
        table.add_column(col.replace("_", " ").title(), style=style, no_wrap=col.endswith("_id"))
    for row in rows:
        table.add_row(*(str(row.get(col, "")) for col in columns))
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="ps.error")
    op = Text(f"  {result.op}", style="ps.op")
    console.print(label, op, Text(": "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Operation renderers ───────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    issues = result.data.get("issues", [])
    if not issues:
        _status_line(console, result)
        console.print("  no issues found")
        return

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Item", style="ps.id", justify="right")
    table.add_column("Message")
    if verbose:
        table.add_column("Fix", style="dim")
    for issue in issues:
        severity = str(issue.get("severity", ""))
        row: list[Any] = [
            Text(severity, style=style_for_severity(severity)),
            str(issue.get("category", "")),
            str(issue.get("item_id", "")),
            str(issue.get("message", "")),
        ]
        if verbose:
            row.append(str(issue.get("fix_action") or ""))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(issues))} issues")


def _render_fix(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "fixes", result.data.get("count", 0))
    _field(console, "registered", result.data.get("registered", 0))
    if result.data.get("backup_path"):
        _field(console, "backup_path", result.data["backup_path"])
    if verbose:
        for fix in result.data.get("fixes", []):
            console.print(f"  - {fix}")


def _render_player(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    lines = [
        f"group: {d.get('group_id')}",
        f"combat: {d.get('combat_level')}  total: {d.get('total_level')}",
        f"location: {d.get('location')}",
        f"inventory: {d.get('inventory')}  equipment: {d.get('equipment')}  bank: {d.get('bank')}",
        f"friends: {d.get('friends')}  quests: {d.get('quests')}",
    ]
    skills = d.get("skills") or {}
    if skills:
        lines.append("")
        lines.append("  ".join(f"{name} {level}" for name, level in skills.items()))
    title = f"{d.get('player_id', '?')}: {d.get('username', '?')}"
    console.print(Panel("\n".join(lines), title=title, border_style="dim", expand=False))


def _render_auctions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    columns = ["auction_id", "catalog_id", "amount_left", "price", "seller_username"]
    if verbose:
        columns += ["amount", "time"]
    console.print(_table(columns, items))
    console.print(f"\n{result.data.get('count', len(items))} listings")


def _render_claims(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    console.print(_table(["claim_id", "catalog_id", "amount", "explanation"], items))
    console.print(f"\n{result.data.get('count', len(items))} claims")


def _render_clans(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    clans = result.data.get("items", [])
    console.print(_table(["clan_id", "name", "tag", "leader", "clan_points"], clans))
    for clan in clans:
        members = clan.get("members")
        if members:
            console.print(f"\n[ps.name]{clan.get('name')}[/ps.name] ({len(members)} members)")
            for m in members:
                console.print(f"  {m.get('username')}  rank={m.get('rank')}")
    console.print(f"\n{result.data.get('count', len(clans))} clans")


def _render_linked(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    linked = result.data.get("items", [])
    console.print(f"Accounts last seen from [ps.id]{result.data.get('ip')}[/ps.id]")
    console.print(_table(["username", "group_id"], linked))
    console.print(f"\n{result.data.get('count', len(linked))} accounts")


_OP_RENDERERS = {
    "check": _render_check,
    "fix": _render_fix,
    "show_player": _render_player,
    "list_auctions": _render_auctions,
    "collectible_items": _render_claims,
    "list_clans": _render_clans,
    "linked_players": _render_linked,
}
