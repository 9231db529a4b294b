"""Import/export analysis for script files of an artifact.

Builds, per file, the set of declared exports and the list of imports,
and resolves local import sources to files of the artifact using alias
stripping and conventional extension/index guesses. Regex based: this is
a heuristic, not a module resolver.
"""

from __future__ import annotations

import posixpath
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from forgeloop.models.artifact import ArtifactFile

SCRIPT_EXTENSIONS: tuple[str, ...] = (".tsx", ".ts", ".jsx", ".js", ".mjs", ".cjs")
_ASSET_EXTENSIONS: tuple[str, ...] = (".json", ".css", ".scss", ".svg")
_ALIAS_PREFIXES: tuple[str, ...] = ("@/", "~/")
_ALIAS_ROOTS: tuple[str, ...] = ("", "src/")

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"(?<![:\"'\\])//[^\n]*")

_DEFAULT_EXPORT = re.compile(r"^\s*export\s+default\b", re.MULTILINE)
_NAMED_DECLARATION = re.compile(
    r"^\s*export\s+(?:declare\s+)?(?:async\s+)?"
    r"(?:function\s*\*?|const|let|var|class|interface|type|enum|abstract\s+class)\s+(\w+)",
    re.MULTILINE,
)
_EXPORT_LIST = re.compile(r"^\s*export\s+(?:type\s+)?\{([^}]*)\}", re.MULTILINE)
_EXPORT_STAR = re.compile(r"^\s*export\s+\*\s+from\b", re.MULTILINE)

_IMPORT = re.compile(
    r"^\s*import\s+(?:type\s+)?(?P<clause>[^'\";]*?)\s*from\s*['\"](?P<source>[^'\"]+)['\"]",
    re.MULTILINE,
)
_SIDE_EFFECT_IMPORT = re.compile(r"^\s*import\s+['\"](?P<source>[^'\"]+)['\"]", re.MULTILINE)


def strip_comments(code: str) -> str:
    return _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", code))


def is_script(path: str) -> bool:
    return path.lower().endswith(SCRIPT_EXTENSIONS)


@dataclass(frozen=True)
class ModuleExports:
    """Exports declared by one file.

    Attributes:
        default_count: Number of default-style exports.
        names: Named exports.
        reexports_all: True if the file has ``export * from``; named
            lookups against it are not checked.
    """

    default_count: int = 0
    names: frozenset[str] = frozenset()
    reexports_all: bool = False

    @property
    def has_default(self) -> bool:
        return self.default_count > 0


@dataclass(frozen=True)
class ImportRecord:
    """One import statement.

    ``default`` is the local binding of a default import; ``names`` are
    the imported (not aliased) names of named imports.
    """

    source: str
    default: str | None = None
    names: tuple[str, ...] = ()
    namespace: bool = False

    @property
    def is_local(self) -> bool:
        return self.source.startswith((".", "/", *_ALIAS_PREFIXES))


def _split_specifiers(body: str) -> list[tuple[str, str]]:
    """Parse ``A, B as C, type D`` into (imported, local) pairs."""
    pairs: list[tuple[str, str]] = []
    for raw in body.split(","):
        specifier = raw.strip()
        if specifier.startswith("type "):
            specifier = specifier[5:].strip()
        if not specifier:
            continue
        parts = re.split(r"\s+as\s+", specifier)
        original = parts[0].strip()
        local = parts[-1].strip()
        if original:
            pairs.append((original, local))
    return pairs


def parse_exports(code: str) -> ModuleExports:
    code = strip_comments(code)
    default_count = len(_DEFAULT_EXPORT.findall(code))
    names = set(_NAMED_DECLARATION.findall(code))
    for body in _EXPORT_LIST.findall(code):
        for original, local in _split_specifiers(body):
            if local == "default":
                default_count += 1
            else:
                names.add(local)
    return ModuleExports(
        default_count=default_count,
        names=frozenset(names),
        reexports_all=bool(_EXPORT_STAR.search(code)),
    )


def parse_imports(code: str) -> list[ImportRecord]:
    code = strip_comments(code)
    records: list[ImportRecord] = []
    for match in _IMPORT.finditer(code):
        clause = match.group("clause").strip()
        source = match.group("source")
        default: str | None = None
        names: list[str] = []
        namespace = False
        brace = re.search(r"\{([^}]*)\}", clause)
        if brace:
            names = [orig for orig, _ in _split_specifiers(brace.group(1))]
            clause = (clause[: brace.start()] + clause[brace.end():]).strip()
        for part in (p.strip() for p in clause.split(",")):
            if not part:
                continue
            if part.startswith("*"):
                namespace = True
            elif re.fullmatch(r"[A-Za-z_$][\w$]*", part):
                default = part
        if "default" in names:
            names.remove("default")
            default = default or "default"
        records.append(
            ImportRecord(source=source, default=default, names=tuple(names), namespace=namespace)
        )
    for match in _SIDE_EFFECT_IMPORT.finditer(code):
        records.append(ImportRecord(source=match.group("source")))
    return records


def _candidates(base: str) -> list[str]:
    base = posixpath.normpath(base)
    found = [base]
    stem, ext = posixpath.splitext(base)
    if ext.lower() in (".js", ".jsx", ".mjs"):
        # TypeScript ESM style: `./x.js` resolves to `x.ts`.
        found.extend(stem + alt for alt in SCRIPT_EXTENSIONS)
    found.extend(base + ext_ for ext_ in SCRIPT_EXTENSIONS + _ASSET_EXTENSIONS)
    found.extend(posixpath.join(base, "index" + ext_) for ext_ in SCRIPT_EXTENSIONS)
    return found


def resolve_import(importer: str, source: str, paths: Iterable[str]) -> str | None:
    """Resolve a local import source to a path of the artifact, or None."""
    available = set(paths)
    bases: list[str] = []
    alias = next((p for p in _ALIAS_PREFIXES if source.startswith(p)), None)
    if alias is not None:
        rest = source[len(alias):]
        bases = [root + rest for root in _ALIAS_ROOTS]
    elif source.startswith("/"):
        bases = [source.lstrip("/")]
    else:
        bases = [posixpath.join(posixpath.dirname(importer), source)]
    for base in bases:
        if base.startswith("../") or base == "..":
            continue
        for candidate in _candidates(base):
            if candidate in available:
                return candidate
    return None


@dataclass
class ModuleGraph:
    """Export and import maps for every script file of an artifact."""

    exports: dict[str, ModuleExports] = field(default_factory=dict)
    imports: dict[str, list[ImportRecord]] = field(default_factory=dict)
    paths: frozenset[str] = frozenset()

    @classmethod
    def build(cls, files: Iterable[ArtifactFile]) -> ModuleGraph:
        files = list(files)
        graph = cls(paths=frozenset(f.path for f in files))
        for file in files:
            if is_script(file.path):
                graph.exports[file.path] = parse_exports(file.content)
                graph.imports[file.path] = parse_imports(file.content)
        return graph

    def resolve(self, importer: str, source: str) -> str | None:
        return resolve_import(importer, source, self.paths)
