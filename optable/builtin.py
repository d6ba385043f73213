#!/usr/bin/env python3
"""
Built-in rule sets.

Rows are (template, category, description). Templates are written MSB
first with '_' marking don't-care bits.
"""

from typing import Dict, List, Optional

from .config import RuleDefinition, RuleSet, TableDefinition


def _rules(rows) -> List[RuleDefinition]:
    return [RuleDefinition(template, category, description) for template, category, description in rows]


# ARM7TDMI, ARM state (32-bit instruction words)
ARM_TABLE = _rules([
    ("____00__________________________", "DataProcessing",              "Data Processing / PSR Transfer"),
    ("____000000______________1001____", "Multiply",                    "Multiply"),
    ("____00001_______________1001____", "MultiplyLong",                "Multiply Long"),
    ("____00010_00________00001001____", "SingleDataSwap",              "Single Data Swap"),
    ("____000100101111111111110001____", "BranchAndExchange",           "Branch and Exchange"),
    ("____000__0__________00001__1____", "HalfwordDataTransfer",        "Halfword Data Transfer (register offset)"),
    ("____000__1______________1__1____", "HalfwordDataTransfer",        "Halfword Data Transfer (immediate offset)"),
    ("____01__________________________", "SingleDataTransfer",          "Single Data Transfer"),
    ("____011____________________1____", "Undefined",                   "Undefined"),
    ("____100_________________________", "BlockDataTransfer",           "Block Data Transfer"),
    ("____101_________________________", "Branch",                      "Branch"),
    ("____110_________________________", "CoprocessorDataTransfer",     "Coprocessor Data Transfer"),
    ("____1110___________________0____", "CoprocessorDataOperation",    "Coprocessor Data Operation"),
    ("____1110___________________1____", "CoprocessorRegisterTransfer", "Coprocessor Register Transfer"),
    ("____1111________________________", "SoftwareInterrupt",           "Software Interrupt"),
])

# ARM7TDMI, THUMB state (16-bit instruction words)
THUMB_TABLE = _rules([
    ("000_____________", "MoveShiftedRegister",         "Move Shifted Register"),
    ("00011___________", "AddSubtract",                 "Add / Subtract"),
    ("001_____________", "MoveCompareAddSubtractImm",   "Move/ Compare/ Add/ Subtract Immediate"),
    ("010000__________", "ALUOperations",               "ALU Operations"),
    ("010001__________", "HiRegisterOperations",        "Hi Register Operations / Branch Exchange"),
    ("01001___________", "PCRelativeLoad",              "PC-relative Load"),
    ("0101__0_________", "LoadStoreWithRegisterOffset", "Load/Store with register offset"),
    ("0101__1_________", "LoadStoreSignHalfwordByte",   "Load/Store Sign-Extended Byte/Halfword"),
    ("011_____________", "LoadStoreWithImmOffset",      "Load/Store with Immediate Offset"),
    ("1000____________", "LoadStoreHalfword",           "Load/Store Halfword"),
    ("1001____________", "SPRelativeLoadStore",         "SP-relative Load/Store"),
    ("1010____________", "LoadAddress",                 "Load Address"),
    ("10110000________", "AddOffsetToStackPointer",     "Add Offset to Stack Pointer"),
    ("1011_10_________", "PushPopRegisters",            "Push/Pop Registers"),
    ("1100____________", "MultipleLoadStore",           "Multiple Load/Store"),
    ("1101____________", "ConditionalBranch",           "Conditional Branch"),
    ("11011111________", "SoftwareInterrupt",           "Software Interrupt"),
])

ARM7TDMI = RuleSet(tables=[
    TableDefinition("ARM_OPCODE_TABLE", "ARMInstrType", 32, ARM_TABLE),
    TableDefinition("THUMB_OPCODE_TABLE", "THUMBInstrType", 16, THUMB_TABLE),
], source="builtin:arm7tdmi")

BUILTIN_RULE_SETS: Dict[str, RuleSet] = {
    "arm7tdmi": ARM7TDMI,
}

DEFAULT_RULE_SET = "arm7tdmi"


def get_builtin_rule_set(name: str) -> Optional[RuleSet]:
    """Get a built-in rule set by name (case-insensitive)"""
    return BUILTIN_RULE_SETS.get(name.lower())
