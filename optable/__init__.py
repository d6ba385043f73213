"""
optable - compile bit-pattern rules into ordered opcode dispatch tables.

This package provides tools for:
- Compiling fixed-width bit templates into select/value mask pairs
- Ordering rules so the most specific match always wins
- Collecting rule categories into a closed enumeration
- Emitting the table and enumeration as Rust, SystemVerilog or JSON

Example rule (32-bit ARM "Branch and Exchange"):
    ____000100101111111111110001____  ->  select 0x0ffffff0, value 0x012fff10

A word W matches a rule iff (W & select_mask) == value_mask; the first
matching entry of an ordered table classifies the word.
"""

__version__ = "0.1.0"

from .patterns import (
    BitSymbol,
    CompiledRule,
    TableError,
    MalformedPattern,
    MalformedCategory,
    parse_template,
    compile_rule,
    compile_rules,
)

from .ordering import (
    OrderedTable,
    order_rules,
    classify,
    find_shadowed_rules,
    is_specificity_ordered,
)

from .registry import (
    CategoryRegistry,
    register_categories,
)

from .emitters import (
    Artifact,
    FORMATTERS,
    emit,
    emit_all,
    format_hex,
    get_formatter,
)

from .config import (
    RuleDefinition,
    TableDefinition,
    RuleSet,
    load_rule_set,
    rule_set_from_dict,
)

from .generator import (
    build_table,
    generate_table,
    generate,
)

__all__ = [
    # Pattern compiler
    "BitSymbol",
    "CompiledRule",
    "TableError",
    "MalformedPattern",
    "MalformedCategory",
    "parse_template",
    "compile_rule",
    "compile_rules",
    # Ordering
    "OrderedTable",
    "order_rules",
    "classify",
    "find_shadowed_rules",
    "is_specificity_ordered",
    # Categories
    "CategoryRegistry",
    "register_categories",
    # Emission
    "Artifact",
    "FORMATTERS",
    "emit",
    "emit_all",
    "format_hex",
    "get_formatter",
    # Rule sets
    "RuleDefinition",
    "TableDefinition",
    "RuleSet",
    "load_rule_set",
    "rule_set_from_dict",
    # Pipeline
    "build_table",
    "generate_table",
    "generate",
]
