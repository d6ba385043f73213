#!/usr/bin/env python3
"""
Render ordered tables as source code.

Each table is emitted as one artifact made of two fragments that refer
to each other:

1. a constant table of (select_mask, value_mask, category) entries in
   specificity order, each followed by its description as a comment
2. an enumeration of every category, in first-occurrence order

The masks, order and categories are the same whatever the syntax; the
formatter only decides how they are spelled. Supported formatters:

    rust           const array of tuples + pub enum
    systemverilog  typedef enum + packed struct + localparam array
    json           plain data, for tools that are not compilers
"""

import json
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Type, Union

from .patterns import CompiledRule, check_width


def hex_digits(width: int) -> int:
    """Number of hex digits needed to show a width-bit value."""
    return (check_width(width) + 3) // 4


def format_hex(value: int, width: int, prefix: str = "0x") -> str:
    """Zero-padded hex literal, e.g. format_hex(0xc000000, 32) -> '0x0c000000'."""
    return f"{prefix}{value:0{hex_digits(width)}x}"


def single_line(text: str) -> str:
    return " ".join(text.split())


@dataclass
class Artifact:
    """Rendered table + category enumeration for one table."""
    table_name: str
    category_name: str
    width: int
    rules: List[CompiledRule]
    categories: List[str]
    text: str
    formatter: str

    def __len__(self):
        return len(self.rules)


class Formatter:
    """Base class for target syntaxes."""
    name = ""
    comment = "//"

    def render(self, table_name: str, category_name: str, width: int,
               rules: Sequence[CompiledRule], categories: Sequence[str]) -> str:
        raise NotImplementedError

    def banner(self, artifact: Artifact) -> str:
        return f"{self.comment} {artifact.table_name} ({artifact.width}-bit, {len(artifact)} entries)\n"

    def render_document(self, artifacts: Sequence[Artifact], source: Optional[str] = None) -> str:
        """Join several artifacts into one output file."""
        doc = f"{self.comment} Auto-generated opcode dispatch tables"
        if source:
            doc += f" ({source})"
        doc += "\n"
        doc += f"{self.comment} Entries are ordered most specific first: the first matching entry wins.\n"
        for artifact in artifacts:
            doc += "\n" + self.banner(artifact) + artifact.text
        return doc


class RustFormatter(Formatter):
    name = "rust"

    INT_TYPES = ((8, "u8"), (16, "u16"), (32, "u32"), (64, "u64"), (128, "u128"))

    def int_type(self, width: int) -> str:
        for bits, type_name in self.INT_TYPES:
            if width <= bits:
                return type_name
        raise ValueError(f"Unsupported width for rust output: {width} (max 128)")

    def render(self, table_name, category_name, width, rules, categories):
        int_type = self.int_type(width)

        code = f"const {table_name}: [({int_type}, {int_type}, {category_name}); {len(rules)}] = [\n"
        for rule in rules:
            code += (f"    ({format_hex(rule.select_mask, width)}, {format_hex(rule.value_mask, width)}, "
                     f"{category_name}::{rule.category}),")
            if rule.description:
                code += f" // {single_line(rule.description)}"
            code += "\n"
        code += "];\n\n"

        code += "#[derive(Debug, Clone, Copy, PartialEq, Eq)]\n"
        code += f"pub enum {category_name} {{\n"
        for category in categories:
            code += f"    {category},\n"
        code += "}\n"
        return code


class SystemVerilogFormatter(Formatter):
    name = "systemverilog"

    @staticmethod
    def label(category_name: str, category: str) -> str:
        # Enum labels share the enclosing scope, so qualify them
        return f"{category_name}_{category}"

    def render(self, table_name, category_name, width, rules, categories):
        if not rules:
            return f"// {table_name}: no entries, {category_name}: no categories\n"

        enum_bits = max(1, (len(categories) - 1).bit_length())
        sv_code = f"typedef enum logic [{enum_bits - 1}:0] {{\n"
        sv_code += ",\n".join(f"  {self.label(category_name, c)}" for c in categories)
        sv_code += f"\n}} {category_name};\n\n"

        entry_type = f"{table_name}_entry_t"
        sv_code += "typedef struct packed {\n"
        sv_code += f"  logic [{width - 1}:0] select_mask;\n"
        sv_code += f"  logic [{width - 1}:0] value_mask;\n"
        sv_code += f"  {category_name} category;\n"
        sv_code += f"}} {entry_type};\n\n"

        sv_code += f"localparam {entry_type} {table_name} [{len(rules)}] = '{{\n"
        for i, rule in enumerate(rules):
            select = format_hex(rule.select_mask, width, prefix=f"{width}'h")
            value = format_hex(rule.value_mask, width, prefix=f"{width}'h")
            sep = "," if i < len(rules) - 1 else ""
            sv_code += f"  '{{{select}, {value}, {self.label(category_name, rule.category)}}}{sep}"
            if rule.description:
                sv_code += f" // {single_line(rule.description)}"
            sv_code += "\n"
        sv_code += "};\n"
        return sv_code


class JsonFormatter(Formatter):
    name = "json"

    @staticmethod
    def table_data(table_name, category_name, width, rules, categories) -> Dict:
        return {
            "table": table_name,
            "category_name": category_name,
            "width": width,
            "size": len(rules),
            "entries": [
                {
                    "select_mask": format_hex(rule.select_mask, width),
                    "value_mask": format_hex(rule.value_mask, width),
                    "category": rule.category,
                    "description": rule.description,
                    "significant_bits": rule.significant_bits,
                    "template": rule.to_template(),
                }
                for rule in rules
            ],
            "categories": list(categories),
        }

    def render(self, table_name, category_name, width, rules, categories):
        data = self.table_data(table_name, category_name, width, rules, categories)
        return json.dumps(data, indent=2) + "\n"

    def render_document(self, artifacts, source=None):
        doc = {"tables": [json.loads(artifact.text) for artifact in artifacts]}
        if source:
            doc["source"] = source
        return json.dumps(doc, indent=2) + "\n"


FORMATTERS: Dict[str, Type[Formatter]] = {
    RustFormatter.name: RustFormatter,
    SystemVerilogFormatter.name: SystemVerilogFormatter,
    JsonFormatter.name: JsonFormatter,
}


def get_formatter(formatter: Union[str, Formatter]) -> Formatter:
    """Look up a formatter by name ('rust', 'systemverilog', 'json')."""
    if isinstance(formatter, Formatter):
        return formatter
    try:
        return FORMATTERS[formatter.lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown output format '{formatter}' (expected one of: {', '.join(FORMATTERS)})") from None


def emit(table_name: str, category_name: str, width: int, ordered_rules: Sequence[CompiledRule],
         categories: Iterable[str], formatter: Union[str, Formatter] = "rust") -> Artifact:
    """
    Render one ordered table and its category set.

    Args:
        table_name: name of the emitted constant (e.g. ARM_OPCODE_TABLE)
        category_name: name of the emitted enumeration (e.g. ARMInstrType)
        width: instruction word width in bits
        ordered_rules: rules in specificity order
        categories: distinct categories in first-occurrence order
        formatter: formatter name or instance

    Returns:
        Artifact holding the rendered text and the data it was built from
    """
    check_width(width)
    fmt = get_formatter(formatter)
    rules = list(ordered_rules)
    category_list = list(categories)

    text = fmt.render(table_name, category_name, width, rules, category_list)

    return Artifact(
        table_name=table_name,
        category_name=category_name,
        width=width,
        rules=rules,
        categories=category_list,
        text=text,
        formatter=fmt.name,
    )


def emit_all(artifacts: Sequence[Artifact], source: Optional[str] = None) -> str:
    """Join artifacts produced with the same formatter into one document."""
    if not artifacts:
        return ""
    names = {artifact.formatter for artifact in artifacts}
    if len(names) != 1:
        raise ValueError(f"Cannot join artifacts from different formatters: {', '.join(sorted(names))}")
    return get_formatter(names.pop()).render_document(artifacts, source)
