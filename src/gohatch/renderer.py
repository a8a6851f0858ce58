"""
gohatch.renderer - Template Substitution
========================================

Templates use a deliberately small action language modeled on Go's
``text/template`` syntax, so the bundled Go sources read naturally:

=================================  =========================================
Action                             Meaning
=================================  =========================================
``{{ .ModulePath }}``              substitute a context field
``{{ if .RedisEnabled }}``         start a section kept when the flag is true
``{{ if not .PprofEnabled }}``     start a section kept when the flag is false
``{{ if eq .DatabaseType "x" }}``  start a section kept when the field equals
``{{ if ne .DatabaseType "x" }}``  start a section kept when it differs
``{{ else }}``                     alternative section
``{{ end }}``                      close the innermost ``if``
``{{/* text */}}``                 comment, produces nothing
=================================  =========================================

A ``-`` directly inside the braces followed by whitespace (``{{- `` or
`` -}}``) trims all whitespace on that side of the action.

Every field reference is checked when the template is compiled, including
those in sections that end up not being rendered. Anything outside the
table above is a :class:`~gohatch.errors.SubstitutionError`.

Example
-------
>>> from gohatch.models import VariableContext
>>> ctx = VariableContext.for_project("demo", redis_enabled=False)
>>> render(b"module {{ .ModulePath }}{{ if .RedisEnabled }} +redis{{ end }}", ctx)
b'module github.com/user/demo'
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING

from gohatch.errors import SubstitutionError
from gohatch.models import BOOLEAN_FIELDS, TEMPLATE_FIELDS


if TYPE_CHECKING:
    from gohatch.models import VariableContext


# Quoted literals are consumed whole so a "}}" inside one does not end the action
ACTION_PATTERN = re.compile(
    r'\{\{(?:(?P<ltrim>-)\s+|\s*)(?P<body>(?>"(?:[^"\\]|\\.)*"|.)*?)(?:\s+(?P<rtrim>-)|\s*)\}\}',
    re.DOTALL,
)
FIELD_PATTERN = re.compile(r"^\.([A-Za-z][A-Za-z0-9]*)$")
ARGUMENT_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"|(\S+)')


# =============================================================================
# Syntax Tree
# =============================================================================


@dataclass(frozen=True)
class Text:
    """Literal text copied to the output."""

    value: str


@dataclass(frozen=True)
class FieldRef:
    """A ``{{ .Field }}`` substitution."""

    name: str
    line: int


@dataclass(frozen=True)
class Condition:
    """
    The test of an ``if`` action.

    ``op`` is one of ``truthy``, ``not``, ``eq`` or ``ne``; ``literal`` is
    only set for the comparisons.
    """

    op: str
    field: str
    literal: str | None = None

    def evaluate(self, context: VariableContext) -> bool:
        value = context.lookup(self.field)
        if self.op == "truthy":
            return bool(value)
        if self.op == "not":
            return not value
        if self.op == "eq":
            return format_value(value) == self.literal
        return format_value(value) != self.literal


@dataclass
class Branch:
    """An ``if``/``else``/``end`` block."""

    condition: Condition
    line: int
    then: list[Node] = field(default_factory=list)
    otherwise: list[Node] = field(default_factory=list)
    in_else: bool = False

    @property
    def current(self) -> list[Node]:
        return self.otherwise if self.in_else else self.then


Node = Text | FieldRef | Branch


def format_value(value: object) -> str:
    """String form of a context value as it appears in rendered output."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# =============================================================================
# Compilation
# =============================================================================


class Template:
    """
    A compiled template.

    Build one with :func:`compile_template`; render it any number of times
    with :meth:`render`.
    """

    def __init__(self, nodes: list[Node], fields: frozenset[str]) -> None:
        self._nodes = nodes
        self.fields = fields

    def render(self, context: VariableContext) -> str:
        out: list[str] = []
        _render_nodes(self._nodes, context, out)
        return "".join(out)


def _render_nodes(nodes: Iterable[Node], context: VariableContext, out: list[str]) -> None:
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        elif isinstance(node, FieldRef):
            out.append(format_value(context.lookup(node.name)))
        elif node.condition.evaluate(context):
            _render_nodes(node.then, context, out)
        else:
            _render_nodes(node.otherwise, context, out)


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def _check_text(chunk: str, text: str, offset: int) -> None:
    """Reject literal text that still contains an opening delimiter."""
    index = chunk.find("{{")
    if index != -1:
        raise SubstitutionError("unclosed action", line=_line_of(text, offset + index))


def _parse_field(token: str, known: frozenset[str], line: int) -> str:
    match = FIELD_PATTERN.match(token)
    if not match:
        raise SubstitutionError(f"expected a field reference, got {token!r}", line=line)
    name = match.group(1)
    if name not in known:
        raise SubstitutionError(f"unknown field '.{name}'", line=line)
    return name


def _parse_condition(
    expression: str,
    known: frozenset[str],
    flags: frozenset[str],
    line: int,
) -> Condition:
    args: list[tuple[str, bool]] = []
    for match in ARGUMENT_PATTERN.finditer(expression):
        quoted, bare = match.groups()
        args.append((quoted, True) if quoted is not None else (bare, False))

    words = [value for value, _ in args]
    if len(args) == 1 and not args[0][1]:
        name = _parse_field(words[0], known, line)
        if name not in flags:
            raise SubstitutionError(f"'.{name}' is not a boolean flag", line=line)
        return Condition("truthy", name)
    if len(args) == 2 and words[0] == "not" and not args[1][1]:
        name = _parse_field(words[1], known, line)
        if name not in flags:
            raise SubstitutionError(f"'.{name}' is not a boolean flag", line=line)
        return Condition("not", name)
    if len(args) == 3 and words[0] in {"eq", "ne"} and not args[1][1] and args[2][1]:
        name = _parse_field(words[1], known, line)
        return Condition(words[0], name, words[2])
    raise SubstitutionError(f"malformed condition {expression!r}", line=line)


@lru_cache(maxsize=256)
def _compile(
    text: str,
    known: frozenset[str],
    flags: frozenset[str],
) -> Template:
    root: list[Node] = []
    stack: list[Branch] = []
    referenced: set[str] = set()
    position = 0
    trim_next = False

    def target() -> list[Node]:
        return stack[-1].current if stack else root

    for match in ACTION_PATTERN.finditer(text):
        chunk = text[position:match.start()]
        _check_text(chunk, text, position)
        if trim_next:
            chunk = chunk.lstrip()
        if match.group("ltrim"):
            chunk = chunk.rstrip()
        if chunk:
            target().append(Text(chunk))
        position = match.end()
        trim_next = bool(match.group("rtrim"))

        body = match.group("body").strip()
        line = _line_of(text, match.start())

        if body.startswith("/*"):
            if not body.endswith("*/"):
                raise SubstitutionError("unterminated comment", line=line)
            continue

        if body.startswith("."):
            name = _parse_field(body, known, line)
            referenced.add(name)
            target().append(FieldRef(name, line))
            continue

        keyword, _, rest = body.partition(" ")
        if keyword == "if":
            condition = _parse_condition(rest.strip(), known, flags, line)
            referenced.add(condition.field)
            branch = Branch(condition, line)
            target().append(branch)
            stack.append(branch)
        elif keyword == "else" and not rest:
            if not stack or stack[-1].in_else:
                raise SubstitutionError("unexpected {{ else }}", line=line)
            stack[-1].in_else = True
        elif keyword == "end" and not rest:
            if not stack:
                raise SubstitutionError("unexpected {{ end }}", line=line)
            stack.pop()
        elif not body:
            raise SubstitutionError("empty action", line=line)
        else:
            raise SubstitutionError(f"unknown action {body!r}", line=line)

    tail = text[position:]
    _check_text(tail, text, position)
    if trim_next:
        tail = tail.lstrip()
    if tail:
        root.append(Text(tail))

    if stack:
        raise SubstitutionError("missing {{ end }} for {{ if }}", line=stack[-1].line)

    return Template(root, frozenset(referenced))


def compile_template(
    text: str,
    fields: Iterable[str] = TEMPLATE_FIELDS,
    flags: Iterable[str] = BOOLEAN_FIELDS,
) -> Template:
    """
    Parse template text into a :class:`Template`.

    Parameters
    ----------
    text : str
        Template source.
    fields : Iterable[str]
        Field names the template may reference.
    flags : Iterable[str]
        Subset of ``fields`` that hold booleans and may be used as bare
        ``if`` conditions.

    Raises
    ------
    SubstitutionError
        If the template is malformed or references an unknown field.
    """
    return _compile(text, frozenset(fields), frozenset(flags))


def render(
    template: bytes,
    context: VariableContext,
    *,
    identifier: str | None = None,
) -> bytes:
    """
    Render raw template bytes against a variable context.

    Parameters
    ----------
    template : bytes
        UTF-8 encoded template source.
    context : VariableContext
        Values to substitute.
    identifier : str | None
        Template identifier, used only to annotate errors.

    Returns
    -------
    bytes
        UTF-8 encoded output. Identical inputs always give identical output.

    Raises
    ------
    SubstitutionError
        If the template cannot be decoded, is malformed, or references an
        unknown field.
    """
    try:
        text = template.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SubstitutionError(
            f"template is not valid UTF-8 ({exc.reason})", template=identifier
        ) from exc

    try:
        compiled = compile_template(text)
    except SubstitutionError as exc:
        if identifier is None:
            raise
        raise exc.with_template(identifier) from exc

    return compiled.render(context).encode("utf-8")


__all__ = [
    "Condition",
    "Template",
    "compile_template",
    "format_value",
    "render",
]
