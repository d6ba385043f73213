#!/usr/bin/env python3
"""
Generate opcode dispatch tables from rule sets.

This module:
1. Loads a rule set (YAML file or built-in)
2. Compiles each bit template into select/value masks
3. Orders every table most specific first
4. Collects the categories of each table in authored order
5. Emits table + category enumeration in the requested syntax

A malformed template aborts generation: no output is written, not even
for the tables that compiled cleanly.
"""

import sys
from pathlib import Path
from typing import List, Optional, Union

from .config import RuleSet, TableDefinition, load_rule_set_or_builtin
from .emitters import Artifact, Formatter, emit, emit_all, format_hex
from .ordering import OrderedTable
from .patterns import TableError


DEFAULT_FORMAT = "rust"


def status(msg: str):
    """Progress and warnings go to stderr so stdout can carry the artifact."""
    print(msg, file=sys.stderr)


def build_table(definition: TableDefinition) -> OrderedTable:
    """Compile, order and register one table definition."""
    return OrderedTable.build(
        definition.name, definition.category_name, definition.width, definition.rules)


def emit_table(table: OrderedTable, formatter: Union[str, Formatter] = DEFAULT_FORMAT) -> Artifact:
    return emit(table.name, table.category_name, table.width, table.rules, table.categories, formatter)


def generate_table(definition: TableDefinition,
                   formatter: Union[str, Formatter] = DEFAULT_FORMAT) -> Artifact:
    return emit_table(build_table(definition), formatter)


def generate_artifacts(rule_set: RuleSet, formatter: Union[str, Formatter, None] = None,
                       verbose: bool = False) -> List[Artifact]:
    """Build every table of a rule set. Raises on the first malformed table."""
    formatter = formatter or rule_set.format or DEFAULT_FORMAT
    artifacts = []
    for definition in rule_set.tables:
        if verbose:
            status(f"Compiling {definition.name} ({len(definition.rules)} rules, {definition.width}-bit)...")
        table = build_table(definition)
        for earlier, later in table.shadowed_rules():
            status(f"Warning: {table.name} rule {later.index} ({later.description or later.category}) "
                   f"is unreachable, rule {earlier.index} ({earlier.description or earlier.category}) "
                   f"matches every word it matches")
        artifacts.append(emit_table(table, formatter))
    return artifacts


def generate(rule_set: RuleSet, formatter: Union[str, Formatter, None] = None,
             verbose: bool = False) -> str:
    """Render a whole rule set as one document."""
    artifacts = generate_artifacts(rule_set, formatter, verbose)
    return emit_all(artifacts, rule_set.source)


def parse_word(text: str) -> int:
    """Parse an instruction word literal: 0x..., 0b..., or decimal."""
    try:
        value = int(text.replace("_", ""), 0)
    except ValueError:
        raise ValueError(f"Invalid instruction word: '{text}'") from None
    if value < 0:
        raise ValueError(f"Invalid instruction word: '{text}' (must not be negative)")
    return value


def _load(args) -> RuleSet:
    path = Path(args.rule_file) if args.rule_file else None
    return load_rule_set_or_builtin(path, args.builtin)


def run_generate(args) -> int:
    try:
        rule_set = _load(args)
        code = generate(rule_set, args.format, verbose=True)
    except (TableError, ValueError) as e:
        status(f"Error: {e}")
        return 1
    except FileNotFoundError:
        status(f"Error: File '{args.rule_file}' not found")
        return 1
    except OSError as e:
        status(f"Error: {e}")
        return 1

    if args.output_file and args.output_file != "-":
        try:
            with open(args.output_file, 'w') as f:
                f.write(code)
        except OSError as e:
            status(f"Error: Cannot write '{args.output_file}': {e}")
            return 1
        status(f"Successfully wrote {len(rule_set.tables)} tables to {args.output_file}")
    else:
        sys.stdout.write(code)
    return 0


def run_check(args) -> int:
    try:
        rule_set = _load(args)
        tables = [build_table(definition) for definition in rule_set.tables]
    except (TableError, ValueError) as e:
        status(f"Error: {e}")
        return 1
    except FileNotFoundError:
        status(f"Error: File '{args.rule_file}' not found")
        return 1
    except OSError as e:
        status(f"Error: {e}")
        return 1

    print(f"✓ {rule_set.source or 'rule set'}: {len(tables)} tables")
    for table in tables:
        print(f"\n{table.name} ({table.width}-bit, {len(table)} rules, "
              f"{len(table.categories)} categories as {table.category_name})")
        if args.verbose:
            for pos, rule in enumerate(table.rules, 1):
                print(f"  {pos:3}. {format_hex(rule.select_mask, table.width)} "
                      f"{format_hex(rule.value_mask, table.width)} "
                      f"{rule.significant_bits:3} bits  {rule.to_template()}  "
                      f"{rule.category} ({rule.description})")
            print(f"  Categories: {', '.join(table.categories)}")
        for earlier, later in table.shadowed_rules():
            status(f"Warning: {table.name} rule {later.index} is unreachable "
                   f"(covered by rule {earlier.index})")
    return 0


def run_classify(args) -> int:
    try:
        word = parse_word(args.word)
        rule_set = _load(args)
        definitions = rule_set.tables
        if args.table:
            definition = rule_set.get_table(args.table)
            if definition is None:
                raise ValueError(
                    f"Unknown table '{args.table}' (available: {', '.join(rule_set.table_names)})")
            definitions = [definition]
        tables = [build_table(definition) for definition in definitions]
    except (TableError, ValueError) as e:
        status(f"Error: {e}")
        return 1
    except FileNotFoundError:
        status(f"Error: File '{args.rule_file}' not found")
        return 1
    except OSError as e:
        status(f"Error: {e}")
        return 1

    matched = False
    for table in tables:
        if word >> table.width:
            print(f"{table.name}: {args.word} does not fit in {table.width} bits")
            continue
        rule = table.classify(word)
        if rule is None:
            print(f"{table.name}: no match")
            continue
        matched = True
        print(f"{table.name}: {table.category_name}::{rule.category} ({rule.description})")
    return 0 if matched else 1


def run_list(args) -> int:
    from .builtin import BUILTIN_RULE_SETS
    from .emitters import FORMATTERS

    print("Built-in rule sets:")
    for name, rule_set in BUILTIN_RULE_SETS.items():
        tables = ", ".join(f"{t.name} ({t.width}-bit)" for t in rule_set.tables)
        print(f"  {name}: {tables}")
    print("Output formats:")
    for name in FORMATTERS:
        print(f"  {name}")
    return 0
