#!/usr/bin/env python3
"""
Specificity ordering of compiled rules.

Rules are tested first-match-wins at decode time, so a table must list
rules with more significant (non don't-care) bits before rules with
fewer. A rule with more fixed bits matches a subset of the words matched
by any overlapping rule with fewer fixed bits, so testing it first keeps
a general rule from hiding a specific one.

Ties keep the authored order.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Type

from .patterns import CompiledRule, TableError, check_width, compile_rules
from .registry import CategoryRegistry, register_categories


def order_rules(rules: Sequence[CompiledRule]) -> List[CompiledRule]:
    """Sort rules by significant bit count, descending. Stable on ties."""
    return sorted(rules, key=lambda rule: -rule.significant_bits)


def is_specificity_ordered(rules: Sequence[CompiledRule]) -> bool:
    """True if no rule has more significant bits than the rule before it."""
    return all(a.significant_bits >= b.significant_bits for a, b in zip(rules, rules[1:]))


def classify(rules: Sequence[CompiledRule], word: int) -> Optional[CompiledRule]:
    """Return the first rule matching word, or None."""
    for rule in rules:
        if rule.matches(word):
            return rule
    return None


def covers(earlier: CompiledRule, later: CompiledRule) -> bool:
    """True if every word matched by later is also matched by earlier."""
    if earlier.select_mask & ~later.select_mask:
        return False
    return (later.value_mask & earlier.select_mask) == earlier.value_mask


def find_shadowed_rules(rules: Sequence[CompiledRule]) -> List[Tuple[CompiledRule, CompiledRule]]:
    """
    Find rules that can never be selected because an earlier rule claims
    every word they match.

    Returns:
        (earlier, later) pairs, at most one per unreachable rule
    """
    shadowed = []
    for i, later in enumerate(rules):
        for earlier in rules[:i]:
            if covers(earlier, later):
                shadowed.append((earlier, later))
                break
    return shadowed


@dataclass
class OrderedTable:
    """A compiled, specificity-ordered table and its category set."""
    name: str
    category_name: str
    width: int
    rules: List[CompiledRule] = field(default_factory=list)
    categories: CategoryRegistry = field(default_factory=CategoryRegistry)

    @classmethod
    def build(cls, name: str, category_name: str, width: int, definitions: Sequence) -> 'OrderedTable':
        """
        Compile definitions, order them and register their categories.

        Raises:
            MalformedPattern: for the first bad template, annotated with the table name
            MalformedCategory: for the first bad category label
        """
        check_width(width)
        try:
            compiled = compile_rules(definitions, width, category_name)
        except TableError as e:
            e.with_table(name)
            raise
        return cls(
            name=name,
            category_name=category_name,
            width=width,
            rules=order_rules(compiled),
            categories=register_categories(compiled),
        )

    def classify(self, word: int) -> Optional[CompiledRule]:
        return classify(self.rules, word)

    def category_of(self, word: int) -> Optional[str]:
        rule = self.classify(word)
        return rule.category if rule else None

    @property
    def category_enum(self) -> Type[Enum]:
        return self.categories.as_enum(self.category_name)

    def shadowed_rules(self) -> List[Tuple[CompiledRule, CompiledRule]]:
        return find_shadowed_rules(self.rules)

    def __len__(self):
        return len(self.rules)
