"""
Tests for specificity ordering, classification and table building.
"""

from enum import Enum

import pytest

from optable.ordering import (
    OrderedTable,
    classify,
    find_shadowed_rules,
    is_specificity_ordered,
    order_rules,
)
from optable.patterns import MalformedPattern, compile_rule, compile_rules
from optable.builtin import ARM_TABLE, THUMB_TABLE


DATA_PROCESSING = "____00" + "_" * 26
BRANCH_AND_EXCHANGE = "____000100101111111111110001____"

ARM_EXPECTED = [
    (0x0FFFFFF0, 0x012FFF10, "BranchAndExchange"),
    (0x0FB00FF0, 0x01000090, "SingleDataSwap"),
    (0x0FC000F0, 0x00000090, "Multiply"),
    (0x0E400F90, 0x00000090, "HalfwordDataTransfer"),
    (0x0F8000F0, 0x00800090, "MultiplyLong"),
    (0x0E400090, 0x00400090, "HalfwordDataTransfer"),
    (0x0F000010, 0x0E000000, "CoprocessorDataOperation"),
    (0x0F000010, 0x0E000010, "CoprocessorRegisterTransfer"),
    (0x0E000010, 0x06000010, "Undefined"),
    (0x0F000000, 0x0F000000, "SoftwareInterrupt"),
    (0x0E000000, 0x08000000, "BlockDataTransfer"),
    (0x0E000000, 0x0A000000, "Branch"),
    (0x0E000000, 0x0C000000, "CoprocessorDataTransfer"),
    (0x0C000000, 0x00000000, "DataProcessing"),
    (0x0C000000, 0x04000000, "SingleDataTransfer"),
]

THUMB_EXPECTED = [
    (0xFF00, 0xB000, "AddOffsetToStackPointer"),
    (0xFF00, 0xDF00, "SoftwareInterrupt"),
    (0xFC00, 0x4000, "ALUOperations"),
    (0xFC00, 0x4400, "HiRegisterOperations"),
    (0xF600, 0xB400, "PushPopRegisters"),
    (0xF800, 0x1800, "AddSubtract"),
    (0xF800, 0x4800, "PCRelativeLoad"),
    (0xF200, 0x5000, "LoadStoreWithRegisterOffset"),
    (0xF200, 0x5200, "LoadStoreSignHalfwordByte"),
    (0xF000, 0x8000, "LoadStoreHalfword"),
    (0xF000, 0x9000, "SPRelativeLoadStore"),
    (0xF000, 0xA000, "LoadAddress"),
    (0xF000, 0xC000, "MultipleLoadStore"),
    (0xF000, 0xD000, "ConditionalBranch"),
    (0xE000, 0x0000, "MoveShiftedRegister"),
    (0xE000, 0x2000, "MoveCompareAddSubtractImm"),
    (0xE000, 0x6000, "LoadStoreWithImmOffset"),
]


@pytest.fixture
def arm_table():
    return OrderedTable.build("ARM_OPCODE_TABLE", "ARMInstrType", 32, ARM_TABLE)


@pytest.fixture
def thumb_table():
    return OrderedTable.build("THUMB_OPCODE_TABLE", "THUMBInstrType", 16, THUMB_TABLE)


def test_more_specific_rule_is_ordered_first():
    general = compile_rule(DATA_PROCESSING, 32, "DataProcessing", index=0)
    specific = compile_rule(BRANCH_AND_EXCHANGE, 32, "BranchAndExchange", index=1)
    ordered = order_rules([general, specific])
    assert ordered == [specific, general]

    word = 0xE12FFF1E
    assert general.matches(word) and specific.matches(word)
    assert classify(ordered, word).category == "BranchAndExchange"


def test_ties_keep_input_order():
    rules = compile_rules([
        ("1___", "A"),
        ("11__", "B"),
        ("0___", "C"),
        ("00__", "D"),
        ("_1__", "E"),
    ], 4)
    ordered = order_rules(rules)
    assert [r.category for r in ordered] == ["B", "D", "A", "C", "E"]


def test_order_does_not_mutate_input():
    rules = compile_rules([("1___", "A"), ("11__", "B")], 4)
    order_rules(rules)
    assert [r.category for r in rules] == ["A", "B"]


def test_empty_rule_list():
    assert order_rules([]) == []
    assert classify([], 0) is None
    assert is_specificity_ordered([])


def test_arm_table_order(arm_table):
    assert [(r.select_mask, r.value_mask, r.category) for r in arm_table.rules] == ARM_EXPECTED
    assert is_specificity_ordered(arm_table.rules)


def test_thumb_table_order(thumb_table):
    assert [(r.select_mask, r.value_mask, r.category) for r in thumb_table.rules] == THUMB_EXPECTED
    assert is_specificity_ordered(thumb_table.rules)


def test_is_specificity_ordered_detects_violation():
    rules = compile_rules([("1___", "A"), ("11__", "B")], 4)
    assert not is_specificity_ordered(rules)


@pytest.mark.parametrize("word, category", [
    (0xE12FFF1E, "BranchAndExchange"),   # bx lr
    (0xE1A00000, "DataProcessing"),      # mov r0, r0
    (0xE0000091, "Multiply"),            # mul r0, r1, r0
    (0xE1000091, "SingleDataSwap"),      # swp r0, r1, [r0]
    (0xE5910000, "SingleDataTransfer"),  # ldr r0, [r1]
    (0xEAFFFFFE, "Branch"),              # b .
    (0xEF000000, "SoftwareInterrupt"),   # swi 0
])
def test_arm_classification(arm_table, word, category):
    assert arm_table.category_of(word) == category


@pytest.mark.parametrize("word, category", [
    (0xDF00, "SoftwareInterrupt"),       # swi 0, also matches the conditional branch rule
    (0xD0FE, "ConditionalBranch"),       # beq .
    (0xB500, "PushPopRegisters"),        # push {lr}
    (0xB082, "AddOffsetToStackPointer"), # sub sp, #8
    (0x4770, "HiRegisterOperations"),    # bx lr
    (0x4008, "ALUOperations"),           # ands r0, r1
    (0x6800, "LoadStoreWithImmOffset"),  # ldr r0, [r0]
    (0x1840, "AddSubtract"),             # adds r0, r0, r1
])
def test_thumb_classification(thumb_table, word, category):
    assert thumb_table.category_of(word) == category


def test_unmatched_word(thumb_table):
    # Unconditional branch has no THUMB_TABLE row
    assert thumb_table.classify(0xE7FE) is None
    assert thumb_table.category_of(0xE7FE) is None


def test_first_match_is_most_specific(arm_table):
    for word in (0xE12FFF1E, 0xE0000091, 0xE1000091, 0xEE000010, 0xE6000010):
        matching = [r for r in arm_table.rules if r.matches(word)]
        assert matching
        assert matching[0].significant_bits == max(r.significant_bits for r in matching)


def test_categories_in_first_occurrence_order(arm_table):
    assert arm_table.categories.as_list() == [
        "DataProcessing",
        "Multiply",
        "MultiplyLong",
        "SingleDataSwap",
        "BranchAndExchange",
        "HalfwordDataTransfer",
        "SingleDataTransfer",
        "Undefined",
        "BlockDataTransfer",
        "Branch",
        "CoprocessorDataTransfer",
        "CoprocessorDataOperation",
        "CoprocessorRegisterTransfer",
        "SoftwareInterrupt",
    ]


def test_category_enum(thumb_table):
    enum_cls = thumb_table.category_enum
    assert issubclass(enum_cls, Enum)
    assert enum_cls.__name__ == "THUMBInstrType"
    assert len(enum_cls) == 17
    assert list(enum_cls)[0].name == "MoveShiftedRegister"
    assert enum_cls["SoftwareInterrupt"].value == 16


def test_duplicate_template_is_shadowed():
    rules = order_rules(compile_rules([
        ("1100", "Halt", "halt"),
        ("11__", "Alu"),
        ("1100", "Stop", "stop"),
    ], 4))
    shadowed = find_shadowed_rules(rules)
    assert [(e.category, l.category) for e, l in shadowed] == [("Halt", "Stop")]


def test_general_rule_before_specific_is_shadowed():
    rules = compile_rules([("11__", "Alu"), ("1100", "Halt")], 4)
    shadowed = find_shadowed_rules(rules)
    assert [(e.category, l.category) for e, l in shadowed] == [("Alu", "Halt")]


def test_builtin_tables_have_no_shadowed_rules(arm_table, thumb_table):
    assert arm_table.shadowed_rules() == []
    assert thumb_table.shadowed_rules() == []


def test_build_reports_table_name():
    with pytest.raises(MalformedPattern) as exc_info:
        OrderedTable.build("ARM_OPCODE_TABLE", "ARMInstrType", 32,
                           [("____00" + "_" * 25, "DataProcessing", "Data Processing")])
    assert exc_info.value.table == "ARM_OPCODE_TABLE"
    assert exc_info.value.index == 0
    assert str(exc_info.value).startswith("table ARM_OPCODE_TABLE, rule 0:")


def test_empty_table():
    table = OrderedTable.build("EMPTY", "EmptyType", 16, [])
    assert len(table) == 0
    assert len(table.categories) == 0
    assert table.classify(0x1234) is None
