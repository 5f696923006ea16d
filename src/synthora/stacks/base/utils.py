"""
Common utilities for stacks.

Naming helpers shared by the backend and frontend generators. Specification
names are free text; these turn them into identifiers, file names and route
prefixes, raising ValueError when a name has nothing usable in it.
"""

from __future__ import annotations

import json
import keyword
import re

_WORD = re.compile(r"[A-Za-z0-9]+")
_NON_IDENT = re.compile(r"\W+")


def _words(name: str) -> list[str]:
    words = _WORD.findall(name)
    if not words:
        raise ValueError(f"'{name}' does not contain any letters or digits to build an identifier from")
    return words


def pascal_case(name: str) -> str:
    """
    'client list' -> 'ClientList', 'ClientDeal' -> 'ClientDeal'.

    A leading digit gets an underscore prefix so the result stays a valid
    identifier.
    """
    ident = "".join(w[0].upper() + w[1:] for w in _words(name))
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def module_name(name: str) -> str:
    """Lower-cased file/module name: 'Client' -> 'client', 'Line Item' -> 'line_item'."""
    ident = "_".join(_words(name)).lower()
    if ident[0].isdigit():
        ident = f"_{ident}"
    return ident


def collection_name(name: str) -> str:
    """Table name and route prefix of a data model: name lower-cased plus 's'."""
    return f"{module_name(name)}s"


def camel_case(name: str) -> str:
    ident = pascal_case(name)
    return ident[0].lower() + ident[1:]


def field_identifier(name: str) -> str:
    """A Python attribute name for a field; keywords get a trailing underscore."""
    ident = _NON_IDENT.sub("_", name.strip()).strip("_")
    if not ident:
        raise ValueError(f"Field name '{name}' cannot be used as an attribute name")
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident


def slug(name: str) -> str:
    return "-".join(_WORD.findall(name)).lower() or "app"


def js_string(value: str) -> str:
    """A JS/JSX string literal; embed in JSX text as ``{...}``."""
    return json.dumps(value)


def indent(text: str, spaces: int = 4) -> str:
    """
    Indent all lines in text by specified number of spaces.

    Args:
        text: Text to indent
        spaces: Number of spaces to indent

    Returns:
        Indented text
    """
    indent_str = " " * spaces
    lines = text.split("\n")
    return "\n".join(indent_str + line if line.strip() else line for line in lines)
