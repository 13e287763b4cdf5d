# a11y_audit/selectors.py
"""
Minimal CSS simple-selector matcher.

Selector families are kept as data (strings) and evaluated against
ElementDescriptor nodes. Supported: type and universal selectors, ``#id``,
``.class``, attribute selectors (``[a]``, ``[a="v"]``, ``[a~="v"]``,
``[a^="v"]``, ``[a*="v"]``), ``:not(<compound>)`` and comma lists.
Combinators are not supported.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .tree import ElementDescriptor


_ATTR_OPERATORS = ("~=", "^=", "*=", "=")


class SelectorSyntaxError(ValueError):
    pass


@dataclass(frozen=True)
class AttributeCondition:
    name: str
    operator: Optional[str] = None
    value: Optional[str] = None

    def matches(self, element: "ElementDescriptor") -> bool:
        actual = element.attributes.get(self.name)
        if actual is None:
            return False
        if self.operator is None:
            return True
        if self.operator == "=":
            return actual == self.value
        if self.operator == "~=":
            return self.value in actual.split()
        if self.operator == "^=":
            return actual.startswith(self.value)
        if self.operator == "*=":
            return self.value in actual
        return False


@dataclass(frozen=True)
class CompoundSelector:
    tag: Optional[str] = None
    element_id: Optional[str] = None
    classes: Tuple[str, ...] = ()
    attributes: Tuple[AttributeCondition, ...] = ()
    negations: Tuple["CompoundSelector", ...] = field(default=())

    def matches(self, element: "ElementDescriptor") -> bool:
        if self.tag is not None and element.tag != self.tag:
            return False
        if self.element_id is not None and element.attributes.get("id") != self.element_id:
            return False
        if self.classes:
            element_classes = element.classes
            if any(cls not in element_classes for cls in self.classes):
                return False
        if any(not condition.matches(element) for condition in self.attributes):
            return False
        return not any(negation.matches(element) for negation in self.negations)


def _read_identifier(text: str, pos: int) -> Tuple[str, int]:
    start = pos
    while pos < len(text) and (text[pos].isalnum() or text[pos] in "-_"):
        pos += 1
    if pos == start:
        raise SelectorSyntaxError(f"Expected identifier at {start} in {text!r}")
    return text[start:pos], pos


def _read_attribute(text: str, pos: int) -> Tuple[AttributeCondition, int]:
    end = text.find("]", pos)
    if end == -1:
        raise SelectorSyntaxError(f"Unclosed attribute selector in {text!r}")
    body = text[pos + 1:end].strip()
    for operator in _ATTR_OPERATORS:
        if operator in body:
            name, _, value = body.partition(operator)
            value = value.strip()
            if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
                value = value[1:-1]
            return AttributeCondition(name.strip().lower(), operator, value), end + 1
    return AttributeCondition(body.lower()), end + 1


def _parse_compound(text: str) -> CompoundSelector:
    text = text.strip()
    if not text:
        raise SelectorSyntaxError("Empty selector")

    pos = 0
    tag = None
    element_id = None
    classes: List[str] = []
    attributes: List[AttributeCondition] = []
    negations: List[CompoundSelector] = []

    if text[0] == "*":
        pos = 1
    elif text[0].isalpha():
        tag, pos = _read_identifier(text, 0)
        tag = tag.lower()

    while pos < len(text):
        char = text[pos]
        if char == "#":
            element_id, pos = _read_identifier(text, pos + 1)
        elif char == ".":
            name, pos = _read_identifier(text, pos + 1)
            classes.append(name)
        elif char == "[":
            condition, pos = _read_attribute(text, pos)
            attributes.append(condition)
        elif text.startswith(":not(", pos):
            depth, end = 0, pos + 4
            while end < len(text):
                if text[end] == "(":
                    depth += 1
                elif text[end] == ")":
                    depth -= 1
                    if depth == 0:
                        break
                end += 1
            if end >= len(text):
                raise SelectorSyntaxError(f"Unclosed :not() in {text!r}")
            negations.append(_parse_compound(text[pos + 5:end]))
            pos = end + 1
        else:
            raise SelectorSyntaxError(f"Unsupported selector syntax {text[pos:]!r} in {text!r}")

    return CompoundSelector(
        tag=tag,
        element_id=element_id,
        classes=tuple(classes),
        attributes=tuple(attributes),
        negations=tuple(negations),
    )


def _split_top_level(text: str) -> List[str]:
    parts, depth, current = [], 0, []
    for char in text:
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [part for part in parts if part.strip()]


@lru_cache(maxsize=256)
def parse_selector(text: str) -> Tuple[CompoundSelector, ...]:
    """Parse a comma separated selector list into compound selectors."""
    return tuple(_parse_compound(part) for part in _split_top_level(text))


def matches(element: "ElementDescriptor", selector: str) -> bool:
    return any(compound.matches(element) for compound in parse_selector(selector))
