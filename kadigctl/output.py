"""Output formatting for the kadig CLI."""

import json
from typing import Any

import click
import yaml

Columns = list[tuple[str, str, int]]


def format_value(value: Any) -> str:
    """Render a single cell or field value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) if value else "(none)"
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def format_table(data: list[dict], columns: Columns) -> str:
    """Format data as a table.

    Args:
        data: List of dictionaries to format
        columns: List of (key, header, width) tuples
    """
    if not data:
        return "No data found."

    header = "  ".join(h.ljust(w) for _, h, w in columns)
    separator = "-" * len(header)

    rows = []
    for item in data:
        row_parts = []
        for key, _, width in columns:
            value = format_value(item.get(key))
            if len(value) > width:
                value = value[: width - 3] + "..."
            row_parts.append(value.ljust(width))
        rows.append("  ".join(row_parts).rstrip())

    return "\n".join([header, separator] + rows)


def format_output(data: Any, fmt: str, columns: Columns | None = None) -> str:
    """Format data according to specified format.

    Args:
        data: Data to format (dict or list)
        fmt: Output format ('table', 'json', 'yaml')
        columns: For table format, list of (key, header, width) tuples
    """
    if fmt == "json":
        return json.dumps(data, indent=2, default=str, ensure_ascii=False)
    if fmt == "yaml":
        return yaml.dump(data, default_flow_style=False, allow_unicode=True)
    if isinstance(data, list) and columns:
        return format_table(data, columns)
    if isinstance(data, dict):
        if not data:
            return ""
        width = max(len(str(k)) for k in data)
        return "\n".join(
            f"{str(key).ljust(width)}  {format_value(value) or '(none)'}"
            for key, value in data.items()
        )
    return str(data)


def output(data: Any, fmt: str, columns: Columns | None = None) -> None:
    """Output formatted data to stdout."""
    click.echo(format_output(data, fmt, columns))


def success(message: str) -> None:
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def warning(message: str) -> None:
    click.echo(click.style(f"Warning: {message}", fg="yellow"), err=True)


def info(message: str) -> None:
    click.echo(message)
