"""Logic-less template parser and renderer for package manifests.

Supported tags::

    {{a.b.c}}  {{{a.b}}}  {{& a.b}}   variable substitution (never escaped)
    {{.}}                             the current context item
    {{#path}} ... {{/path}}           section
    {{^path}} ... {{/path}}           inverted section
    {{! anything }}                   comment

Templates render JSON payloads, not markup, so nothing is HTML escaped and
the three variable forms are equivalent. Partials and delimiter changes are
not supported and are rejected at parse time.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

from common.errors import TemplateError

from .values import ValueKind, is_falsy, kind_of, render_scalar

logger = logging.getLogger(__name__)

OPEN = "{{"
CLOSE = "}}"


@dataclass
class Literal:
    text: str


@dataclass
class Variable:
    path: str


@dataclass
class Comment:
    text: str


@dataclass
class Section:
    path: str
    inverted: bool = False
    children: List["Node"] = field(default_factory=list)


Node = Union[Literal, Variable, Comment, Section]


def _line_of(source: str, pos: int) -> int:
    return source.count("\n", 0, pos) + 1


def _read_tag(source: str, start: int) -> Tuple[str, str, int]:
    """Return (sigil, body, end) for the tag opening at ``start``."""
    pos = start + len(OPEN)
    if source.startswith("{", pos):
        end = source.find("}" + CLOSE, pos + 1)
        if end < 0:
            raise TemplateError(f"unclosed tag at line {_line_of(source, start)}", operation="parse_template")
        return "&", source[pos + 1:end].strip(), end + 3

    end = source.find(CLOSE, pos)
    if end < 0:
        raise TemplateError(f"unclosed tag at line {_line_of(source, start)}", operation="parse_template")
    body = source[pos:end]
    stripped = body.strip()
    sigil = stripped[:1]
    if sigil in ("#", "^", "/", "!", "&", ">", "="):
        return sigil, stripped[1:].strip(), end + len(CLOSE)
    return "", stripped, end + len(CLOSE)


def parse(source: str) -> List[Node]:
    """Parse ``source`` into a node tree.

    Raises:
        TemplateError: Unclosed tag or section, mismatched closer, empty
            tag name, or an unsupported tag type.
    """
    root: List[Node] = []
    # (section, line it opened on); the root frame has no section
    stack: List[Tuple[Optional[Section], int]] = [(None, 0)]
    current = root
    pos = 0

    while True:
        start = source.find(OPEN, pos)
        if start < 0:
            if pos < len(source):
                current.append(Literal(source[pos:]))
            break
        if start > pos:
            current.append(Literal(source[pos:start]))

        sigil, body, pos = _read_tag(source, start)
        line = _line_of(source, start)

        if sigil == "!":
            current.append(Comment(body))
            continue
        if sigil in (">", "="):
            raise TemplateError(f"unsupported tag {{{{{sigil}{body}}}}} at line {line}", operation="parse_template")
        if not body:
            raise TemplateError(f"empty tag at line {line}", operation="parse_template")

        if sigil in ("#", "^"):
            section = Section(body, inverted=sigil == "^")
            current.append(section)
            stack.append((section, line))
            current = section.children
        elif sigil == "/":
            opened, _ = stack[-1]
            if opened is None:
                raise TemplateError(f"unexpected closing tag {body!r} at line {line}", operation="parse_template")
            if opened.path != body:
                raise TemplateError(
                    f"closing tag {body!r} at line {line} does not match open section {opened.path!r}",
                    operation="parse_template",
                )
            stack.pop()
            parent, _ = stack[-1]
            current = root if parent is None else parent.children
        else:
            current.append(Variable(body))

    if len(stack) > 1:
        section, line = stack[-1]
        raise TemplateError(f"unclosed section {section.path!r} opened at line {line}", operation="parse_template")
    return root


def _resolve(path: str, stack: Sequence[Any]) -> Any:
    if path == ".":
        return stack[-1] if stack else None

    head, *rest = path.split(".")
    for frame in reversed(stack):
        if kind_of(frame) is ValueKind.OBJECT and head in frame:
            value = frame[head]
            break
    else:
        return None

    for segment in rest:
        if kind_of(value) is not ValueKind.OBJECT or segment not in value:
            return None
        value = value[segment]
    return value


def _render_nodes(nodes: Sequence[Node], stack: List[Any], out: List[str]) -> None:
    for node in nodes:
        if isinstance(node, Literal):
            out.append(node.text)
        elif isinstance(node, Variable):
            out.append(render_scalar(_resolve(node.path, stack)))
        elif isinstance(node, Section):
            value = _resolve(node.path, stack)
            if node.inverted:
                if is_falsy(value):
                    _render_nodes(node.children, stack, out)
            elif is_falsy(value):
                continue
            elif kind_of(value) is ValueKind.ARRAY:
                for item in value:
                    stack.append(item)
                    _render_nodes(node.children, stack, out)
                    stack.pop()
            else:
                stack.append(value)
                _render_nodes(node.children, stack, out)
                stack.pop()


class Template:
    """A parsed template, renderable against any number of contexts."""

    def __init__(self, source: str):
        self.source = source
        self.nodes = parse(source)

    def render(self, context: Any) -> str:
        out: List[str] = []
        _render_nodes(self.nodes, [context], out)
        return "".join(out)


def render(source: Union[str, bytes, None], context: Any) -> str:
    """Parse and render ``source`` against ``context`` in one step."""
    if isinstance(source, bytes):
        try:
            source = source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise TemplateError(f"Template is not valid UTF-8: {exc}", operation="parse_template") from exc
    return Template(source or "").render(context)
