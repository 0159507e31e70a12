"""Command line entry point for labelsmith."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_args, get_origin, get_type_hints

from .core.ranges import line_column
from .editor.workspace import DocumentWorkspace
from .engine import LabelEngine
from .errors import LabelsmithError, RenameIncompleteError
from .events import EventBus
from .prompts import ConsolePrompter, Prompter, QtPrompter
from .services.settings import Settings, SettingsStore, active_env_overrides
from .utils import file_io
from .utils import logging as logging_utils

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


def configure_logging(settings: Settings, *, force: bool = False) -> Path:
    """Configure file logging; the console only echoes records when debugging."""

    log_path = logging_utils.setup_logging(settings, force=force)
    _LOGGER.debug("Logging to %s (debug=%s)", log_path, settings.debug_logging)
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        settings = active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        settings = Settings()
    return settings


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    """Entry point invoked by the ``labelsmith`` console script."""

    out = stdout or sys.stdout
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings_path = args.settings_path or os.environ.get("LABELSMITH_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    settings_store = SettingsStore(resolved_path)
    try:
        cli_overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=settings_store, overrides=cli_overrides or None)
    if args.debug or _env_flag("LABELSMITH_DEBUG"):
        settings = replace(settings, debug_logging=True)
    configure_logging(settings)

    if args.dump_settings:
        _dump_settings(settings, settings_store, overrides=cli_overrides, stream=out)
        return 0
    if args.command is None:
        parser.print_usage(sys.stderr)
        return 2

    bus = EventBus()
    workspace = DocumentWorkspace(event_bus=bus, encoding=settings.encoding)
    prompter: Prompter
    if getattr(args, "gui", False):
        prompter = QtPrompter()
    else:
        prompter = ConsolePrompter(stdin=stdin, stdout=out)
    engine = LabelEngine(workspace, prompter=prompter, settings=settings, event_bus=bus)

    handler = _COMMANDS[args.command]
    try:
        return handler(engine, args, out)
    except RenameIncompleteError as exc:
        print(f"labelsmith: {exc.message}", file=sys.stderr)
        for path in exc.rewritten:
            print(f"  rewritten: {path}", file=sys.stderr)
        if getattr(args, "write", False):
            engine.save(exc.rewritten)
        return 1
    except LabelsmithError as exc:
        _LOGGER.debug("Command %s failed: %s", args.command, exc.to_dict())
        print(f"labelsmith: {exc.message}", file=sys.stderr)
        return 1


# ----------------------------------------------------------------------
# Subcommands
# ----------------------------------------------------------------------
def _cmd_at(engine: LabelEngine, args: argparse.Namespace, out: TextIO) -> int:
    token = engine.token_at(args.file, args.offset)
    if token is None:
        return 0
    if args.json:
        json.dump(token.to_dict(), out, indent=2)
        out.write("\n")
    else:
        span = token.span
        out.write(f"{token.kind.value} {token.name} \\{token.command} {span.start}-{span.end}\n")
    return 0


def _cmd_index(engine: LabelEngine, args: argparse.Namespace, out: TextIO) -> int:
    index = engine.index(args.file)
    names = [args.name] if args.name else list(index.names())
    if args.json:
        payload = {
            "summary": index.summary(),
            "labels": {name: [token.to_dict() for token in index.tokens(name)] for name in names},
        }
        json.dump(payload, out, indent=2)
        out.write("\n")
        return 0

    texts: dict[Path, str] = {}
    for name in names:
        tokens = index.tokens(name)
        out.write(f"{name} ({len(tokens)})\n")
        for token in tokens:
            if token.path is None:  # pragma: no cover - index tokens always carry paths
                continue
            if token.path not in texts:
                texts[token.path] = _source_text(engine, token.path)
            line, column = line_column(texts[token.path], token.span.start)
            out.write(f"  {token.kind.value:<9} {token.path}:{line}:{column} \\{token.command}\n")
    return 0


def _cmd_dangling(engine: LabelEngine, args: argparse.Namespace, out: TextIO) -> int:
    for name in engine.index(args.file).dangling_references():
        out.write(f"{name}\n")
    return 0


def _cmd_rename(engine: LabelEngine, args: argparse.Namespace, out: TextIO) -> int:
    transaction = engine.rename_at(
        args.file, args.offset, args.new_name, accept_collision=args.yes
    )
    if transaction is None:
        print(f"labelsmith: no label at {args.file}:{args.offset}", file=sys.stderr)
        return 1
    if not transaction.rewritten:
        out.write(f"{transaction.old_name}: nothing to rewrite\n")
        return 0

    out.write(
        f"Renamed {transaction.old_name} -> {transaction.new_name}: "
        f"{len(transaction.tokens)} occurrence(s) in {len(transaction.rewritten)} file(s)\n"
    )
    for path in transaction.rewritten:
        out.write(f"  {path}\n")
    if args.write:
        engine.save(transaction.rewritten)
    elif engine.workspace.dirty_paths():
        out.write("Dry run: pass --write to save the rewritten files.\n")
    return 0


_COMMANDS = {
    "at": _cmd_at,
    "index": _cmd_index,
    "dangling": _cmd_dangling,
    "rename": _cmd_rename,
}


def _source_text(engine: LabelEngine, path: Path) -> str:
    document = engine.workspace.find(path)
    if document is not None:
        return document.text
    return file_io.read_text(path, errors="replace")


# ----------------------------------------------------------------------
# Argument parsing
# ----------------------------------------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="labelsmith",
        description="Inspect and rename \\label/\\ref names across a multi-file LaTeX project.",
    )
    parser.add_argument(
        "--dump-settings",
        action="store_true",
        help="Print the effective settings payload and exit.",
    )
    parser.add_argument(
        "--settings-path",
        metavar="PATH",
        help="Override the default ~/.labelsmith/settings.json path.",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override persisted settings for this run (repeatable).",
    )
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level to stderr too.")

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    at = commands.add_parser("at", help="Show the label construct at an offset.")
    at.add_argument("file", type=Path)
    at.add_argument("offset", type=_offset)
    at.add_argument("--json", action="store_true", help="Emit JSON.")

    index = commands.add_parser("index", help="List every label and reference in the project.")
    index.add_argument("file", type=Path)
    index.add_argument("--name", help="Only show this label name.")
    index.add_argument("--json", action="store_true", help="Emit JSON.")

    dangling = commands.add_parser("dangling", help="List references to undefined labels.")
    dangling.add_argument("file", type=Path)

    rename = commands.add_parser("rename", help="Rename the label at an offset project-wide.")
    rename.add_argument("file", type=Path)
    rename.add_argument("offset", type=_offset)
    rename.add_argument("new_name", nargs="?", help="New name (prompted for when omitted).")
    rename.add_argument("--yes", action="store_true", help="Accept a collision with an existing label.")
    rename.add_argument("--write", action="store_true", help="Save rewritten files.")
    rename.add_argument("--gui", action="store_true", help="Prompt with Qt dialogs (needs PySide6).")
    return parser


def _offset(value: str) -> int:
    try:
        offset = int(value, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"offset must be an integer: {value!r}") from exc
    if offset < 0:
        raise argparse.ArgumentTypeError("offset must not be negative")
    return offset


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if not items:
        return overrides

    fields = Settings.__dataclass_fields__  # type: ignore[attr-defined]
    type_hints = get_type_hints(Settings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError("Override is missing a field name.")
        if key not in fields:
            raise ValueError(f"Unknown setting '{key}'.")
        annotation = type_hints.get(key, fields[key].type)
        overrides[key] = _coerce_value(annotation, raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    optional = type(None) in get_args(annotation)
    target = _resolve_annotation(annotation)
    normalized = raw_value.strip()

    if optional and normalized.lower() in {"none", "null"}:
        return None
    if target is bool:
        return _parse_bool(normalized)
    if target is int:
        return int(normalized, 10)
    if target is float:
        return float(normalized)
    return normalized


def _resolve_annotation(annotation: Any) -> Any:
    if get_origin(annotation) is None:
        return annotation
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if args else annotation


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Cannot coerce '{value}' to a boolean.")


def _dump_settings(
    settings: Settings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO | None = None,
) -> None:
    destination = stream or sys.stdout
    metadata = {
        "path": str(store.path),
        "cli_overrides": sorted(overrides.keys()),
        "environment_variables": active_env_overrides(),
    }
    json.dump({"settings": asdict(settings), "meta": metadata}, destination, indent=2)
    destination.write("\n")
