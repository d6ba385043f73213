#!/usr/bin/env python3
"""
Category registry: distinct categories in first-occurrence order.
"""

from enum import Enum
from typing import Dict, Iterable, Iterator, List, Type

from .patterns import CompiledRule


class CategoryRegistry:
    """Insertion-ordered set of category identifiers."""

    def __init__(self, categories: Iterable[str] = ()):
        self._categories: Dict[str, int] = {}
        for category in categories:
            self.add(category)

    def add(self, category: str) -> bool:
        """Record a category. Returns False if it was already present."""
        if category in self._categories:
            return False
        self._categories[category] = len(self._categories)
        return True

    def index(self, category: str) -> int:
        """Position of a category in enumeration order."""
        try:
            return self._categories[category]
        except KeyError:
            raise KeyError(f"Unknown category '{category}'") from None

    def as_list(self) -> List[str]:
        return list(self._categories)

    def as_enum(self, name: str) -> Type[Enum]:
        """Build an Enum whose members are the categories, in registry order."""
        return Enum(name, [(category, i) for i, category in enumerate(self._categories)])

    def __iter__(self) -> Iterator[str]:
        return iter(self._categories)

    def __len__(self):
        return len(self._categories)

    def __contains__(self, category):
        return category in self._categories

    def __eq__(self, other):
        if isinstance(other, CategoryRegistry):
            return self.as_list() == other.as_list()
        return NotImplemented

    def __repr__(self):
        return f"CategoryRegistry({self.as_list()})"


def register_categories(rules: Iterable[CompiledRule]) -> CategoryRegistry:
    """
    Collect the distinct categories of rules, in the order they first appear.

    Pass the rules in authored order (before specificity ordering) so the
    emitted enumeration reads in the same order as the rule list.
    """
    registry = CategoryRegistry()
    for rule in rules:
        registry.add(rule.category)
    return registry
