"""
ElementTree helpers shared by the emitters and parsers.
"""

from __future__ import annotations

import logging
import warnings
import xml.etree.ElementTree as ET
from typing import Any, Iterable, Optional

from models.errors import BadInput, SchemaMismatch

INDENT = "  "


def xml_text(value: Any) -> str:
    """Render a scalar the way the downstream services expect it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def sub(parent: ET.Element, tag: str, value: Any = None) -> ET.Element:
    """Append a child element, with text when ``value`` is given."""
    elem = ET.SubElement(parent, tag)
    if value is not None:
        elem.text = xml_text(value)
    return elem


def to_document(root: ET.Element, declaration: str) -> str:
    """Serialize ``root`` with two-space indentation under ``declaration``."""
    ET.indent(root, space=INDENT)
    return f"{declaration}\n{ET.tostring(root, encoding='unicode')}"


def child_text(elem: ET.Element, tag: str) -> str:
    child = elem.find(tag)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


def report_mismatch(message: str) -> None:
    logging.warning(message)
    warnings.warn(message, SchemaMismatch, stacklevel=3)


def load_root(text: str, roots: Iterable[str], schema: str, strict: bool) -> Optional[ET.Element]:
    """
    Parse ``text`` and check its root element.

    Returns the root element, or None after reporting a SchemaMismatch when
    the document is malformed or has an unexpected root. Strict mode raises
    BadInput instead.
    """
    roots = tuple(roots)
    try:
        if not text or not text.strip():
            raise ValueError("document is empty")
        root = ET.fromstring(text)
    except (ET.ParseError, ValueError) as e:
        message = f"{schema}: malformed document ({e})"
        if strict:
            raise BadInput(message) from e
        report_mismatch(message)
        return None

    if root.tag not in roots:
        message = f"{schema}: unexpected root <{root.tag}>, expected one of {', '.join(roots)}"
        if strict:
            raise BadInput(message)
        report_mismatch(message)
        return None
    return root
