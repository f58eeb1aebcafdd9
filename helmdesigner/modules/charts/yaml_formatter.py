"""Minimal YAML emitter for values.yaml.

Mappings keep insertion order, ``None`` entries are dropped, and a string is
double-quoted only when it contains a colon or is empty. That quoting rule is a heuristic,
not full YAML escaping: callers keep multi-line or quote-bearing text out of
formatted documents (secret material is base64-encoded first).
"""

from typing import Any, Mapping

INDENT = "  "


def format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value == "":
        return '""'
    if isinstance(value, str) and ":" in value:
        return f'"{value}"'
    return str(value)


def _is_block(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


def _format_sequence(items, indent: int) -> str:
    spaces = INDENT * indent
    result = ""
    for item in items:
        if _is_block(item):
            result += f"{spaces}-\n{format_yaml(item, indent + 1)}"
        else:
            result += f"{spaces}- {format_scalar(item)}\n"
    return result


def _format_mapping(mapping: Mapping, indent: int) -> str:
    spaces = INDENT * indent
    result = ""
    for key, value in mapping.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            result += f"{spaces}{key}:\n{_format_mapping(value, indent + 1)}"
        elif isinstance(value, (list, tuple)):
            result += f"{spaces}{key}:\n{_format_sequence(value, indent + 1)}"
        else:
            result += f"{spaces}{key}: {format_scalar(value)}\n"
    return result


def format_yaml(value: Any, indent: int = 0) -> str:
    """Render a mapping, sequence or scalar as YAML text at the given indent level."""
    if isinstance(value, Mapping):
        return _format_mapping(value, indent)
    if isinstance(value, (list, tuple)):
        return _format_sequence(value, indent)
    if value is None:
        return ""
    return f"{INDENT * indent}{format_scalar(value)}\n"
