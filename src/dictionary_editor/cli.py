"""
Command-line interface for reviewing and merging dictionary suggestions.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .config import EditorConfig, load_config
from .editor import DictionaryEditor
from .exceptions import DictionaryEditorError


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the dictionary-editor CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        config = _resolve_config(args)
    except DictionaryEditorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        with DictionaryEditor(config=config) as editor:
            return args.func(editor, args)
    except DictionaryEditorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dictionary-editor",
        description="Review and merge crowd-sourced dictionary suggestions",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--db",
        type=str,
        help="Database file (overrides config)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (overrides config)",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # merge-word command
    merge_word_parser = subparsers.add_parser(
        "merge-word",
        help="Merge a word suggestion and its example suggestions",
    )
    merge_word_parser.add_argument("suggestion_id", help="Word suggestion id")
    merge_word_parser.add_argument(
        "--merged-by",
        required=True,
        help="Identity of the editor performing the merge",
    )
    merge_word_parser.set_defaults(func=cmd_merge_word)

    # merge-example command
    merge_example_parser = subparsers.add_parser(
        "merge-example",
        help="Merge an example suggestion",
    )
    merge_example_parser.add_argument("suggestion_id", help="Example suggestion id")
    merge_example_parser.add_argument(
        "--merged-by",
        required=True,
        help="Identity of the editor performing the merge",
    )
    merge_example_parser.set_defaults(func=cmd_merge_example)

    # delete-word command
    delete_parser = subparsers.add_parser(
        "delete-word",
        help="Delete a word, folding it into another word",
    )
    delete_parser.add_argument("word_id", help="Word to delete")
    delete_parser.add_argument(
        "--into",
        required=True,
        dest="primary_word_id",
        help="Word that absorbs the deleted word",
    )
    delete_parser.set_defaults(func=cmd_delete_word)

    # show-word command
    show_parser = subparsers.add_parser(
        "show-word",
        help="Show a word and its examples",
    )
    show_parser.add_argument("word_id", help="Word id")
    show_parser.set_defaults(func=cmd_show_word)

    # history command
    history_parser = subparsers.add_parser(
        "history",
        help="View edit history",
    )
    history_parser.add_argument("--entity-type", type=str)
    history_parser.add_argument("--entity-id", type=str)
    history_parser.add_argument("--operation", type=str.upper)
    history_parser.add_argument(
        "--merged-by",
        type=str,
        help="Only merges performed by this editor",
    )
    history_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of records to show, newest last (default: 20)",
    )
    history_parser.set_defaults(func=cmd_history)

    # pending command
    pending_parser = subparsers.add_parser(
        "pending",
        help="List word merges that stopped part-way",
    )
    pending_parser.set_defaults(func=cmd_pending)

    return parser


def _resolve_config(args: argparse.Namespace) -> EditorConfig:
    overrides = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.log_level:
        overrides["log_level"] = args.log_level
    config = load_config(args.config)
    if overrides:
        config = load_config({**asdict(config), **overrides}, environ={})
    return config


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def cmd_merge_word(editor: DictionaryEditor, args: argparse.Namespace) -> int:
    """Handle merge-word command."""
    populated = editor.merge_word(args.suggestion_id, args.merged_by)
    _print_json(populated.to_dict())
    return 0


def cmd_merge_example(editor: DictionaryEditor, args: argparse.Namespace) -> int:
    """Handle merge-example command."""
    example = editor.merge_example(args.suggestion_id, args.merged_by)
    _print_json(example.to_dict())
    return 0


def cmd_delete_word(editor: DictionaryEditor, args: argparse.Namespace) -> int:
    """Handle delete-word command."""
    word = editor.delete_word(args.word_id, args.primary_word_id)
    _print_json(word.to_dict())
    return 0


def cmd_show_word(editor: DictionaryEditor, args: argparse.Namespace) -> int:
    """Handle show-word command."""
    _print_json(editor.get_populated_word(args.word_id).to_dict())
    return 0


def cmd_history(editor: DictionaryEditor, args: argparse.Namespace) -> int:
    """Handle history command."""
    records = editor.get_history(
        entity_type=args.entity_type,
        entity_id=args.entity_id,
        operation=args.operation,
        merged_by=args.merged_by,
    )
    if args.limit > 0:
        records = records[-args.limit:]
    _print_json([asdict(r) for r in records])
    return 0


def cmd_pending(editor: DictionaryEditor, args: argparse.Namespace) -> int:
    """Handle pending command."""
    _print_json([asdict(i) for i in editor.list_pending_merges()])
    return 0


if __name__ == "__main__":
    sys.exit(main())
