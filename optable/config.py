#!/usr/bin/env python3
"""
Rule set loading.

A rule set is a YAML file listing one or more tables. Each table names
the emitted constant, the category enumeration and the instruction
width, followed by its rules in authored order:

    format: rust
    tables:
      - name: THUMB_OPCODE_TABLE
        category_name: THUMBInstrType
        width: 16
        rules:
          - ["000_____________", MoveShiftedRegister, "Move Shifted Register"]
          - pattern: "00011___________"
            category: AddSubtract
            description: "Add / Subtract"

The file structure is validated against RULE_SET_SCHEMA. Template
contents are checked later by the compiler, so errors in them are
reported with the table name and rule index.
"""

import yaml
import jsonschema
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from dataclasses import dataclass, field


IDENTIFIER_PATTERN = "^[A-Za-z_][A-Za-z0-9_]*$"

# JSON Schema for validating rule set YAML files
RULE_SET_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Opcode Table Rule Set",
    "description": "Bit-pattern rules compiled into ordered opcode dispatch tables",
    "type": "object",
    "required": ["tables"],
    "properties": {
        "format": {
            "type": "string",
            "description": "Default output format (rust, systemverilog, json)"
        },
        "tables": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "category_name", "width", "rules"],
                "properties": {
                    "name": {
                        "type": "string",
                        "pattern": IDENTIFIER_PATTERN,
                        "description": "Name of the emitted table constant"
                    },
                    "category_name": {
                        "type": "string",
                        "pattern": IDENTIFIER_PATTERN,
                        "description": "Name of the emitted category enumeration"
                    },
                    "width": {
                        "type": "integer",
                        "minimum": 1,
                        "description": "Instruction word width in bits"
                    },
                    "rules": {
                        "type": "array",
                        "items": {
                            "oneOf": [
                                {
                                    "type": "array",
                                    "minItems": 2,
                                    "maxItems": 3,
                                    "items": {"type": "string"},
                                    "description": "[pattern, category, description]"
                                },
                                {
                                    "type": "object",
                                    "required": ["pattern", "category"],
                                    "properties": {
                                        "pattern": {"type": "string"},
                                        "category": {"type": "string"},
                                        "description": {"type": "string"}
                                    },
                                    "additionalProperties": False
                                }
                            ]
                        }
                    }
                },
                "additionalProperties": False
            }
        }
    },
    "additionalProperties": False
}


@dataclass
class RuleDefinition:
    """One authored rule: bit template, category and description."""
    template: str
    category: str
    description: str = ""

    @classmethod
    def from_yaml(cls, item: Union[List[str], Dict[str, str]]) -> 'RuleDefinition':
        """Create a RuleDefinition from a list row or a mapping."""
        if isinstance(item, dict):
            return cls(item['pattern'], item['category'], item.get('description', ""))
        return cls(*item)


@dataclass
class TableDefinition:
    """A table to generate: names, width and rules in authored order."""
    name: str
    category_name: str
    width: int
    rules: List[RuleDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'TableDefinition':
        return cls(
            name=d['name'],
            category_name=d['category_name'],
            width=d['width'],
            rules=[RuleDefinition.from_yaml(item) for item in d['rules']],
        )


@dataclass
class RuleSet:
    """All tables from one rule set file."""
    tables: List[TableDefinition] = field(default_factory=list)
    format: Optional[str] = None
    source: Optional[str] = None

    def get_table(self, name: str) -> Optional[TableDefinition]:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @property
    def table_names(self) -> List[str]:
        return [table.name for table in self.tables]


def _describe(source: Optional[str]) -> str:
    return f" {source}" if source else ""


def rule_set_from_dict(data: Any, source: Optional[str] = None) -> RuleSet:
    """
    Validate and convert parsed YAML data into a RuleSet.

    Raises:
        ValueError: If data doesn't match RULE_SET_SCHEMA or table names repeat
    """
    try:
        jsonschema.validate(instance=data, schema=RULE_SET_SCHEMA)
    except jsonschema.ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path)
        location = f" at '{where}'" if where else ""
        raise ValueError(f"Invalid rule set{_describe(source)}{location}: {e.message}") from e

    rule_set = RuleSet(format=data.get('format'), source=source)
    for table_data in data['tables']:
        table = TableDefinition.from_dict(table_data)
        if rule_set.get_table(table.name) is not None:
            raise ValueError(f"Invalid rule set{_describe(source)}: duplicate table name '{table.name}'")
        rule_set.tables.append(table)

    return rule_set


def load_rule_set(path: Path) -> RuleSet:
    """Load and validate a rule set from a YAML file.

    Raises:
        ValueError: If the file isn't UTF-8, the YAML is malformed or doesn't match the schema
        OSError: If the file can't be opened (FileNotFoundError if it doesn't exist)
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ValueError(f"Invalid rule set file {path}: {e}") from e

    return rule_set_from_dict(data, source=str(path))


def load_rule_set_or_builtin(path: Optional[Path] = None, builtin: Optional[str] = None) -> RuleSet:
    """
    Load a rule set from file or use a built-in one.

    Priority:
        1. path if provided
        2. built-in rule set matching builtin name
        3. default built-in rule set (arm7tdmi)
    """
    from .builtin import DEFAULT_RULE_SET, get_builtin_rule_set

    if path:
        return load_rule_set(path)

    name = builtin or DEFAULT_RULE_SET
    rule_set = get_builtin_rule_set(name)
    if rule_set is None:
        raise ValueError(f"Unknown built-in rule set '{name}'")
    return rule_set
