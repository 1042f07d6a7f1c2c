"""Convert elements to CSS paths / XPath expressions and back.

The same algorithm is embedded as JavaScript in ``picker.py``; both sides are
checked against ``tests/locator_vectors.py``.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

import soupsieve
from bs4 import BeautifulSoup, Tag
from bs4.element import CData, NavigableString, PreformattedString
from lxml import etree

logger = logging.getLogger("url_clipper")

CSS_MAX_DEPTH = 8
XPATH_MAX_DEPTH = 12

_PLAIN_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_.\-]*\Z")
_PREFIX_NAMESPACE = "urn:url-clipper:prefix:"
_PLACEHOLDER_NAME = "url-clipper-unnamed"


def _element_id(element: Tag) -> str:
    value = element.get("id")
    if isinstance(value, list):
        value = " ".join(value)
    if not value or not value.strip():
        return ""
    return value


def _class_tokens(element: Tag) -> List[str]:
    value = element.get("class") or []
    if isinstance(value, str):
        value = value.split()
    return [token for token in value if token]


def _same_tag_siblings(element: Tag) -> List[Tag]:
    parent = element.parent
    if parent is None:
        return [element]
    return [child for child in parent.find_all(element.name, recursive=False)]


def _position(element: Tag, siblings: List[Tag]) -> int:
    for index, sibling in enumerate(siblings, start=1):
        if sibling is element:
            return index
    return 1


def build_css_path(element: Tag) -> str:
    """Build a ``>``-joined CSS path from the nearest id (or root) to *element*."""
    element_id = _element_id(element)
    if element_id:
        return "#" + soupsieve.escape(element_id)
    if element.name == "html":
        return "html"

    parts: List[str] = []
    current: Optional[Tag] = element
    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
        if current.name == "html":
            break
        current_id = _element_id(current)
        if current_id:
            parts.insert(0, "#" + soupsieve.escape(current_id))
            break

        part = soupsieve.escape(current.name)
        classes = _class_tokens(current)[:2]
        if classes:
            part += "." + ".".join(soupsieve.escape(token) for token in classes)
        siblings = _same_tag_siblings(current)
        if len(siblings) > 1:
            part += f":nth-of-type({_position(current, siblings)})"

        parts.insert(0, part)
        current = current.parent
        if len(parts) >= CSS_MAX_DEPTH:
            break
    return " > ".join(parts)


def _xpath_literal(value: str) -> str:
    if '"' not in value:
        return f'"{value}"'
    if "'" not in value:
        return f"'{value}'"
    pieces = value.split('"')
    return "concat(" + ", '\"', ".join(f'"{piece}"' for piece in pieces) + ")"


def _name_test(name: str) -> str:
    # Prefixed names such as Word's ``o:p`` would need a namespace binding.
    if _PLAIN_NAME.match(name):
        return name
    return f"*[name()={_xpath_literal(name)}]"


def build_xpath(element: Tag) -> str:
    """Build an absolute XPath of same-tag positional steps for *element*."""
    element_id = _element_id(element)
    if element_id:
        return f"//*[@id={_xpath_literal(element_id)}]"

    parts: List[str] = []
    current: Optional[Tag] = element
    truncated = False
    while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
        parent = current.parent
        if parent is None:
            break
        siblings = _same_tag_siblings(current)
        parts.insert(0, f"/{_name_test(current.name)}[{_position(current, siblings)}]")
        current = parent
        if len(parts) >= XPATH_MAX_DEPTH:
            truncated = not isinstance(current, BeautifulSoup)
            break
    path = "".join(parts)
    if truncated:
        return "/" + path
    return path


def resolve_by_css(tree: Tag, selector: str) -> Optional[Tag]:
    """Return the first element matching *selector*; malformed selectors match nothing."""
    selector = (selector or "").strip()
    if not selector:
        return None
    try:
        return tree.select_one(selector)
    except (soupsieve.SelectorSyntaxError, NotImplementedError) as exc:
        logger.debug("Invalid CSS selector %r: %s", selector, exc)
        return None


def _text_of(child: NavigableString) -> Optional[str]:
    # Comments, doctypes and processing instructions carry no text.
    if isinstance(child, PreformattedString) and not isinstance(child, CData):
        return None
    return str(child)


def _append_text(node: etree._Element, text: str) -> None:
    # lxml rejects control characters that are not valid XML.
    try:
        if len(node):
            last = node[-1]
            last.tail = (last.tail or "") + text
        else:
            node.text = (node.text or "") + text
    except ValueError:
        logger.debug("Dropping text that is not XML compatible")


def _new_node(parent: Optional[etree._Element], name: str) -> etree._Element:
    """Create an lxml element whose ``name()`` matches the bs4 tag name.

    lxml rejects colons in plain names, so ``o:p`` becomes ``p`` in a
    namespace bound to the ``o`` prefix. Names that still fail get a
    placeholder so the element and its children stay addressable.
    """
    candidates = [(name, None)]
    prefix, colon, local = name.partition(":")
    if colon and prefix and local:
        uri = _PREFIX_NAMESPACE + prefix
        candidates.append((f"{{{uri}}}{local}", {prefix: uri}))
    candidates.append((_PLACEHOLDER_NAME, None))
    for tag, nsmap in candidates:
        try:
            if parent is None:
                return etree.Element(tag, nsmap=nsmap)
            return etree.SubElement(parent, tag, nsmap=nsmap)
        except ValueError:
            continue
    raise ValueError(f"Cannot mirror element {name!r}")


def _mirror_children(source: Tag, target: etree._Element, mapping: Dict[etree._Element, Tag]) -> None:
    for child in source.children:
        if isinstance(child, Tag):
            node = _new_node(target, child.name)
            _mirror_attributes(child, node)
            mapping[node] = child
            _mirror_children(child, node, mapping)
        elif isinstance(child, NavigableString):
            text = _text_of(child)
            if text:
                _append_text(target, text)


def _mirror_attributes(source: Tag, target: etree._Element) -> None:
    for name, value in source.attrs.items():
        if isinstance(value, list):
            value = " ".join(value)
        try:
            target.set(name, value)
        except (ValueError, TypeError):
            continue


def _mirror_tree(tree: Tag):
    """Copy the bs4 tree into lxml so XPath can run against it."""
    mapping: Dict[etree._Element, Tag] = {}
    top_level = [child for child in tree.children if isinstance(child, Tag)]
    if isinstance(tree, BeautifulSoup):
        if not top_level:
            return None, mapping
        if len(top_level) > 1:
            logger.debug("Document has %d top-level elements; using the first", len(top_level))
        source = top_level[0]
    else:
        source = tree
    root = _new_node(None, source.name)
    _mirror_attributes(source, root)
    mapping[root] = source
    _mirror_children(source, root, mapping)
    return etree.ElementTree(root), mapping


def resolve_by_xpath(tree: Tag, expression: str) -> Optional[Tag]:
    """Return the first element selected by *expression*; malformed input matches nothing."""
    expression = (expression or "").strip()
    if not expression:
        return None
    document, mapping = _mirror_tree(tree)
    if document is None:
        return None
    try:
        result = document.xpath(expression)
    except etree.XPathError as exc:
        logger.debug("Invalid XPath %r: %s", expression, exc)
        return None
    if not isinstance(result, list):
        return None
    for node in result:
        if isinstance(node, etree._Element) and node in mapping:
            return mapping[node]
    return None
