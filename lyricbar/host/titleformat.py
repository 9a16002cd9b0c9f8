"""
Minimal title formatting, enough to build a command line from track fields.

    %artist%        field value, empty when missing
    [%album% - ]    section, dropped unless a field inside has a value
    %%              literal percent sign
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

MAX_OUTPUT_LEN = 4096


class TemplateError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class Literal:
    text: str


@dataclass(frozen=True, slots=True)
class Field:
    name: str


@dataclass(frozen=True, slots=True)
class Section:
    nodes: tuple["Node", ...]


Node = Union[Literal, Field, Section]


@dataclass(frozen=True, slots=True)
class CompiledTemplate:
    source: str
    nodes: tuple[Node, ...]


def compile_template(source: str) -> CompiledTemplate:
    stack: list[list[Node]] = [[]]
    buf: list[str] = []

    def flush() -> None:
        if buf:
            stack[-1].append(Literal("".join(buf)))
            buf.clear()

    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        if ch == "%":
            end = source.find("%", i + 1)
            if end < 0:
                raise TemplateError(f"unterminated field at position {i}")
            name = source[i + 1 : end]
            if name:
                flush()
                stack[-1].append(Field(name))
            else:
                buf.append("%")
            i = end + 1
        elif ch == "[":
            flush()
            stack.append([])
            i += 1
        elif ch == "]":
            if len(stack) == 1:
                raise TemplateError(f"unbalanced ']' at position {i}")
            flush()
            nodes = stack.pop()
            stack[-1].append(Section(tuple(nodes)))
            i += 1
        else:
            buf.append(ch)
            i += 1

    if len(stack) != 1:
        raise TemplateError("unbalanced '['")
    flush()
    return CompiledTemplate(source=source, nodes=tuple(stack[0]))


def _render(nodes: tuple[Node, ...], lookup: Callable[[str], str | None]) -> tuple[str, bool]:
    out: list[str] = []
    any_field = False
    for node in nodes:
        if isinstance(node, Literal):
            out.append(node.text)
        elif isinstance(node, Field):
            value = lookup(node.name) or ""
            if value:
                any_field = True
            out.append(value)
        else:
            text, present = _render(node.nodes, lookup)
            if present:
                any_field = True
                out.append(text)
    return "".join(out), any_field


def evaluate(compiled: CompiledTemplate, lookup: Callable[[str], str | None]) -> str:
    text, _ = _render(compiled.nodes, lookup)
    if len(text) > MAX_OUTPUT_LEN:
        raise TemplateError(f"expanded command is longer than {MAX_OUTPUT_LEN} characters")
    return text
