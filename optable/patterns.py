#!/usr/bin/env python3
"""
Bit template compilation.

A bit template is a string (or sequence of BitSymbol) with one symbol per
bit position of an instruction word:

    0  bit must be 0
    1  bit must be 1
    _  don't care

The leftmost symbol is the most significant bit. Compiling a template
produces a (select_mask, value_mask) pair:

    template:    ____00__________________________
    select_mask: 0x0c000000   (bits that are checked)
    value_mask:  0x00000000   (bits that must be 1)

Matching logic: (word & select_mask) == value_mask
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union


IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class BitSymbol(Enum):
    REQUIRE_0 = "0"
    REQUIRE_1 = "1"
    DONT_CARE = "_"

    @staticmethod
    def from_char(ch: str) -> 'BitSymbol':
        """Parse a single template character ('0', '1' or '_')."""
        for symbol in BitSymbol:
            if symbol.value == ch:
                return symbol
        raise ValueError(f"Invalid bit template character: '{ch}' (expected 0, 1, or _)")


Template = Union[str, Sequence[BitSymbol]]


class TableError(ValueError):
    """Base class for errors that abort generation of a table."""

    def __init__(self, message: str, index: Optional[int] = None, table: Optional[str] = None):
        self.message = message
        self.index = index
        self.table = table
        super().__init__(str(self))

    def with_table(self, table: str) -> 'TableError':
        self.table = table
        self.args = (str(self),)
        return self

    def __str__(self):
        location = []
        if self.table is not None:
            location.append(f"table {self.table}")
        if self.index is not None:
            location.append(f"rule {self.index}")
        if location:
            return f"{', '.join(location)}: {self.message}"
        return self.message


class MalformedPattern(TableError):
    """A bit template has the wrong length or contains an invalid symbol."""

    def __init__(self, template: Template, reason: str, index: Optional[int] = None,
                 table: Optional[str] = None):
        self.template = template_to_str(template)
        self.reason = reason
        super().__init__(f"malformed pattern '{self.template}': {reason}", index, table)


class MalformedCategory(TableError):
    """A category label cannot become a member of a closed enumeration."""

    def __init__(self, category: str, reason: str, index: Optional[int] = None,
                 table: Optional[str] = None):
        self.category = category
        super().__init__(f"malformed category '{category}': {reason}", index, table)


def template_to_str(template: Template) -> str:
    if isinstance(template, str):
        return template
    return "".join(s.value if isinstance(s, BitSymbol) else str(s) for s in template)


def check_width(width: int) -> int:
    if isinstance(width, bool) or not isinstance(width, int) or width <= 0:
        raise ValueError(f"Invalid table width: {width!r} (expected a positive integer)")
    return width


def parse_template(template: Template, width: int, index: Optional[int] = None) -> Tuple[BitSymbol, ...]:
    """
    Parse a template into BitSymbols, checking it against the table width.

    Raises:
        MalformedPattern: length != width, or a symbol outside {0, 1, _}
    """
    check_width(width)

    if len(template) != width:
        raise MalformedPattern(
            template, f"length {len(template)} doesn't match table width {width}", index)

    symbols = []
    for pos, item in enumerate(template):
        if isinstance(item, BitSymbol):
            symbols.append(item)
            continue
        try:
            symbols.append(BitSymbol.from_char(item))
        except (ValueError, TypeError):
            raise MalformedPattern(
                template, f"invalid symbol {item!r} at position {pos} (expected 0, 1, or _)", index)

    return tuple(symbols)


def normalize_category(category: str, category_name: Optional[str] = None,
                       index: Optional[int] = None) -> str:
    """
    Check a category label and strip an 'Enum::' qualifier.

    'ARMInstrType::Branch' is accepted for a table whose category enum is
    ARMInstrType and reduced to 'Branch'.
    """
    if not isinstance(category, str):
        raise MalformedCategory(str(category), "expected a string", index)

    if "::" in category:
        prefix, _, member = category.rpartition("::")
        if category_name is not None and prefix != category_name:
            raise MalformedCategory(
                category, f"qualifier '{prefix}' doesn't match category enum '{category_name}'", index)
        category = member

    if not IDENTIFIER_RE.match(category):
        raise MalformedCategory(category, "not a valid identifier", index)

    return category


@dataclass(frozen=True)
class CompiledRule:
    """A bit template compiled into select/value masks."""
    select_mask: int       # bit set iff position is not don't-care
    value_mask: int        # bit set iff position must be 1 (subset of select_mask)
    significant_bits: int  # popcount(select_mask)
    category: str
    description: str
    width: int
    index: int = 0         # position in the authored rule list

    def matches(self, word: int) -> bool:
        return (word & self.select_mask) == self.value_mask

    def to_template(self) -> str:
        """Render the masks back to a 0/1/_ template string."""
        chars = []
        for bit_pos in range(self.width - 1, -1, -1):
            bit = 1 << bit_pos
            if not self.select_mask & bit:
                chars.append(BitSymbol.DONT_CARE.value)
            elif self.value_mask & bit:
                chars.append(BitSymbol.REQUIRE_1.value)
            else:
                chars.append(BitSymbol.REQUIRE_0.value)
        return "".join(chars)

    def __str__(self):
        return f"{self.to_template()} -> {self.category}"


def compile_rule(template: Template, width: int, category: str, description: str = "",
                 index: int = 0, category_name: Optional[str] = None) -> CompiledRule:
    """
    Compile one bit template into a CompiledRule.

    Args:
        template: '0'/'1'/'_' string or BitSymbol sequence, MSB first
        width: declared bit width of the table
        category: category identifier the rule classifies into
        description: free-form label, carried through for comments
        index: position of the rule in the input list (for error reports)
        category_name: enum name of the table, for 'Enum::Member' categories

    Example: "0101__0_________" (width 16)
        - select_mask: 0xf200
        - value_mask:  0x5000
        - significant_bits: 5
    """
    symbols = parse_template(template, width, index)
    category = normalize_category(category, category_name, index)

    select_mask = 0
    value_mask = 0
    significant_bits = 0

    # Process template from left to right (MSB to LSB)
    for i, symbol in enumerate(symbols):
        bit_pos = width - 1 - i

        if symbol is BitSymbol.DONT_CARE:
            continue

        select_mask |= (1 << bit_pos)
        significant_bits += 1
        if symbol is BitSymbol.REQUIRE_1:
            value_mask |= (1 << bit_pos)

    return CompiledRule(
        select_mask=select_mask,
        value_mask=value_mask,
        significant_bits=significant_bits,
        category=category,
        description=description or "",
        width=width,
        index=index,
    )


def compile_rules(definitions: Sequence, width: int,
                  category_name: Optional[str] = None) -> List[CompiledRule]:
    """
    Compile (template, category, description) definitions in input order.

    Accepts RuleDefinition objects or plain 2/3-tuples. Stops at the first
    malformed rule.
    """
    rules = []
    for index, definition in enumerate(definitions):
        if hasattr(definition, "template"):
            template, category, description = (
                definition.template, definition.category, definition.description)
        else:
            if len(definition) not in (2, 3):
                raise TableError(
                    f"expected (template, category[, description]), got {tuple(definition)!r}", index)
            template, category, *rest = definition
            description = rest[0] if rest else ""
        rules.append(compile_rule(template, width, category, description,
                                  index=index, category_name=category_name))
    return rules
