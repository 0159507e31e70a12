"""Project discovery collaborators.

A locator answers one question: which files make up the project that a
document belongs to. Locators return ``None`` when they do not recognize the
document; :class:`~labelsmith.project.corpus.CorpusResolver` then asks the
next one.
"""

from __future__ import annotations

import glob
import logging
import re
from pathlib import Path
from typing import Any, Callable, Iterable, Protocol, Sequence

import jsonschema
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..errors import ProjectConfigError
from ..utils import file_io

__all__ = [
    "ProjectLocator",
    "TextProvider",
    "ManifestLocator",
    "MasterFileLocator",
    "StaticProjectLocator",
    "MANIFEST_SCHEMA",
    "DEFAULT_MANIFEST_NAME",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "labelsmith.yaml"
MAX_SCHEMA_ERRORS = 10

MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "root": {"type": "string", "minLength": 1},
        "files": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
            "minItems": 1,
        },
    },
    "required": ["files"],
    "additionalProperties": False,
}

TextProvider = Callable[[Path], "str | None"]

_MAGIC_ROOT = re.compile(r"^%\s*!\s*TEX\s+root\s*=\s*(?P<root>.+?)\s*$", re.MULTILINE | re.IGNORECASE)
_TEX_MASTER = re.compile(
    r"^%+\s*TeX-master:\s*(?:\"(?P<root>[^\"]+)\"|(?P<flag>t|nil)\b)", re.MULTILINE
)
_DOCUMENTCLASS = re.compile(r"^[^%\n]*\\documentclass\b", re.MULTILINE)
_INCLUDE = re.compile(
    r"\\(?P<command>input|include|subfile)\{(?P<file>[^{}]+)\}"
    r"|\\(?P<import>import|subimport)\*?\{(?P<dir>[^{}]*)\}\{(?P<ifile>[^{}]+)\}"
)
_COMMENT = re.compile(r"(?<!\\)%.*$", re.MULTILINE)
_GLOB_CHARS = frozenset("*?[")


class ProjectLocator(Protocol):
    """Protocol implemented by project discovery collaborators."""

    def locate(self, path: Path, text: str | None = None) -> Sequence[Path] | None:
        """Return the project's files (in project order) or ``None``."""
        ...


class StaticProjectLocator:
    """Locator for hosts that already know their project file list."""

    def __init__(self, paths: Iterable[Path | str]) -> None:
        self._paths = tuple(Path(path).expanduser().resolve() for path in paths)

    def locate(self, path: Path, text: str | None = None) -> Sequence[Path] | None:
        del text
        return self._paths if path in self._paths else None


class ManifestLocator:
    """Finds the nearest ``labelsmith.yaml`` manifest listing the document.

    Manifest format::

        root: main.tex          # optional, listed first
        files:
          - main.tex
          - chapters/*.tex
    """

    def __init__(self, manifest_name: str = DEFAULT_MANIFEST_NAME) -> None:
        self._manifest_name = manifest_name

    def locate(self, path: Path, text: str | None = None) -> Sequence[Path] | None:
        del text
        for directory in path.parents:
            manifest = directory / self._manifest_name
            if not manifest.is_file():
                continue
            files = self.load_manifest(manifest)
            if path in files:
                LOGGER.debug("Manifest %s lists %d file(s)", manifest, len(files))
                return files
            LOGGER.debug("Manifest %s does not list %s; searching further up", manifest, path)
        return None

    def load_manifest(self, manifest: Path) -> list[Path]:
        """Parse and validate ``manifest``, returning its expanded file list."""

        payload = _load_yaml(manifest)
        _validate_manifest(manifest, payload)

        base = manifest.parent
        files: list[Path] = []
        root = payload.get("root")
        if root:
            files.append(_resolve_entry(base, root))
        for pattern in payload["files"]:
            files.extend(_expand_pattern(manifest, base, pattern))
        return files


class MasterFileLocator:
    """Builds the project from a master file and its ``\\input``/``\\include`` tree.

    The master is named by a ``%!TEX root = main.tex`` magic comment or an
    AUCTeX ``TeX-master: "main"`` local variable. A document containing
    ``\\documentclass`` is its own master.
    """

    def __init__(self, *, text_provider: TextProvider | None = None, suffix: str = ".tex") -> None:
        self._text_provider = text_provider
        self._suffix = suffix

    def locate(self, path: Path, text: str | None = None) -> Sequence[Path] | None:
        if text is None:
            text = self._read(path)
        if text is None:
            return None

        master = self._master_for(path, text)
        if master is None:
            return None

        files = self.collect(master)
        if path not in files:
            LOGGER.debug("Master %s does not include %s", master, path)
            return None
        return files

    def collect(self, master: Path) -> list[Path]:
        """Return ``master`` plus every file it includes, depth first."""

        ordered: list[Path] = []
        seen: set[Path] = set()
        self._walk(master, master.parent, ordered, seen)
        return ordered

    def _walk(self, current: Path, root_dir: Path, ordered: list[Path], seen: set[Path]) -> None:
        if current in seen:
            return
        seen.add(current)
        ordered.append(current)

        text = self._read(current)
        if text is None:
            LOGGER.warning("Included file %s could not be read; not descending", current)
            return

        for match in _INCLUDE.finditer(_COMMENT.sub("", text)):
            command = match.group("command")
            if command:
                anchor = current.parent if command == "subfile" else root_dir
                child = self._with_suffix((anchor / match.group("file").strip()).resolve())
            else:
                anchor = root_dir if match.group("import") == "import" else current.parent
                directory = anchor / match.group("dir").strip()
                child = self._with_suffix((directory / match.group("ifile").strip()).resolve())
            self._walk(child, root_dir, ordered, seen)

    def _master_for(self, path: Path, text: str) -> Path | None:
        match = _MAGIC_ROOT.search(text)
        if match is not None:
            return self._with_suffix((path.parent / match.group("root").strip()).resolve())
        match = _TEX_MASTER.search(text)
        if match is not None:
            if match.group("flag") == "t":
                return path
            if match.group("root"):
                return self._with_suffix((path.parent / match.group("root").strip()).resolve())
        if _DOCUMENTCLASS.search(text):
            return path
        return None

    def _with_suffix(self, path: Path) -> Path:
        return path if path.suffix else path.with_name(path.name + self._suffix)

    def _read(self, path: Path) -> str | None:
        if self._text_provider is not None:
            text = self._text_provider(path)
            if text is not None:
                return text
        try:
            return file_io.read_text(path)
        except (OSError, UnicodeDecodeError):
            return None


# ---------------------------------------------------------------------------
# Manifest helpers
# ---------------------------------------------------------------------------
def _create_yaml_parser() -> YAML:
    parser = YAML(typ="safe")
    parser.allow_duplicate_keys = False
    return parser


def _load_yaml(manifest: Path) -> Any:
    try:
        text = file_io.read_text(manifest)
    except (OSError, UnicodeDecodeError) as exc:
        raise ProjectConfigError(manifest, f"unreadable ({exc})") from exc
    try:
        return _create_yaml_parser().load(text)
    except YAMLError as exc:
        raise ProjectConfigError(manifest, f"invalid YAML ({exc})") from exc


def _validate_manifest(manifest: Path, payload: Any) -> None:
    validator = jsonschema.Draft202012Validator(MANIFEST_SCHEMA)
    messages: list[str] = []
    for issue in validator.iter_errors(payload):
        location = ".".join(str(part) for part in issue.absolute_path)
        messages.append(f"{location}: {issue.message}" if location else issue.message)
        if len(messages) >= MAX_SCHEMA_ERRORS:
            break
    if messages:
        raise ProjectConfigError(manifest, "; ".join(messages))


def _resolve_entry(base: Path, entry: str) -> Path:
    return (base / entry).expanduser().resolve()


def _expand_pattern(manifest: Path, base: Path, pattern: str) -> list[Path]:
    if Path(pattern).is_absolute():
        raise ProjectConfigError(manifest, f"patterns must be relative: {pattern}")
    if not _GLOB_CHARS.intersection(pattern):
        # literal entries stay even when missing; loading reports them
        return [_resolve_entry(base, pattern)]
    matches = glob.glob(glob.escape(str(base)) + "/" + pattern, recursive=True)
    return [Path(match).resolve() for match in sorted(matches) if Path(match).is_file()]
