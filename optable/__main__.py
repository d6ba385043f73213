#!/usr/bin/env python3
"""
CLI entry point for the optable package.

Allows running the table generator via: python -m optable <command>
"""

import sys
import argparse

from .emitters import FORMATTERS


def add_rule_set_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "rule_file",
        nargs="?",
        help="YAML rule set file (default: builtin arm7tdmi rule set)"
    )
    parser.add_argument(
        "--builtin",
        help="Use a built-in rule set instead of a file (see 'list')"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="optable",
        description="optable - compile bit-pattern rules into ordered opcode dispatch tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Emit the built-in ARM7TDMI tables as Rust
  python -m optable generate

  # Emit a rule set file as SystemVerilog
  python -m optable generate examples/arm7tdmi.yaml -f systemverilog -o decode_tables.sv

  # Show the ordered table with masks and templates
  python -m optable check examples/arm7tdmi.yaml -v

  # Classify an instruction word
  python -m optable classify 0xe12fff1e -t ARM_OPCODE_TABLE
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Generate command
    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate dispatch tables from a rule set"
    )
    add_rule_set_arguments(generate_parser)
    generate_parser.add_argument(
        "-o", "--output-file",
        help="Output file (default: stdout)"
    )
    generate_parser.add_argument(
        "-f", "--format",
        choices=sorted(FORMATTERS),
        help="Output format (default: rule set 'format' or rust)"
    )

    # Check command
    check_parser = subparsers.add_parser(
        "check",
        help="Compile a rule set and report its ordered tables"
    )
    add_rule_set_arguments(check_parser)
    check_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show every ordered entry"
    )

    # Classify command
    classify_parser = subparsers.add_parser(
        "classify",
        help="Classify an instruction word"
    )
    classify_parser.add_argument("word", help="Instruction word (0x..., 0b... or decimal)")
    add_rule_set_arguments(classify_parser)
    classify_parser.add_argument(
        "-t", "--table",
        help="Only classify against this table"
    )

    subparsers.add_parser(
        "list",
        help="List built-in rule sets and output formats"
    )

    subparsers.add_parser(
        "version",
        help="Show version information"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to appropriate handler
    if args.command == "generate":
        from .generator import run_generate
        return run_generate(args)

    elif args.command == "check":
        from .generator import run_check
        return run_check(args)

    elif args.command == "classify":
        from .generator import run_classify
        return run_classify(args)

    elif args.command == "list":
        from .generator import run_list
        return run_list(args)

    elif args.command == "version":
        from . import __version__
        print(f"optable version {__version__}")
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
