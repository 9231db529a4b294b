"""Response parser: extract files from free-form completion text.

Primary strategy reads fenced blocks. The path of each block comes from,
in order: a path annotation on its first line (stripped from the stored
content), a label right before the block, content sniffing, and finally
a generated ``generated/file-N.ext`` path. When no closed fenced block
yields a file (no fences at all, or a completion cut off inside an open
fence) the parser falls back to inline ``// filepath:`` markers, then to
treating the whole text as one entry-point file. Stray fence lines are
stripped from fallback bodies.
"""

from __future__ import annotations

import logging
import re

from forgeloop.models.artifact import ArtifactFile, language_for_path, normalize_path

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```([\w+#.\-]*)[^\S\r\n]*\r?\n(.*?)```", re.DOTALL)

_PATH_TOKEN = r"[\w@~\-./\[\]()]+\.[A-Za-z0-9]+"

# `// filepath: app/page.tsx`, `# src/main.py`, `/* file: a.css */`, `<!-- index.html -->`
_ANNOTATION_RE = re.compile(
    r"^\s*(?://|#|/\*|<!--|--)\s*"
    r"(?:(?:filepath|filename|file|path)(?:\s*:\s*|\s+))?"
    rf"(?P<path>{_PATH_TOKEN})"
    r"\s*(?:\*/|-->)?\s*$",
    re.IGNORECASE,
)

# `**app/page.tsx**`, `` `app/page.tsx`: ``, `### app/page.tsx`, `File: app/page.tsx`
_LABEL_RE = re.compile(
    r"(?:\*\*|`|#{1,6}\s+|(?:file(?:path)?|path)\s*:\s*)"
    r"(?:(?:file(?:path)?|path)\s*:\s*)?`?"
    rf"(?P<path>{_PATH_TOKEN})"
    r"`?(?:\*\*)?\s*:?\s*$",
    re.IGNORECASE,
)

_INLINE_MARKER_RE = re.compile(
    rf"^[^\S\r\n]*(?://|#)\s*filepath:\s*(?P<path>{_PATH_TOKEN})[^\S\r\n]*\r?\n"
    r"(?P<body>.*?)(?=^[^\S\r\n]*(?://|#)\s*filepath:|\Z)",
    re.DOTALL | re.IGNORECASE | re.MULTILINE,
)

_FENCE_LINE_RE = re.compile(r"^[^\S\r\n]*```[\w+#.\-]*[^\S\r\n]*\r?$\n?", re.MULTILINE)

_EXPORTED_FUNCTION_RE = re.compile(r"export\s+(?:default\s+)?function\s+(\w+)")
_ENTRY_POINT_SYNTAX = re.compile(
    r"export\s+default\s+function|import\s+React|import\s*\{\s*useState"
    r"|^def\s+main\s*\(|if\s+__name__\s*==",
    re.MULTILINE,
)
_CODE_START_RE = re.compile(
    r"^(?:import\s|export\s|from\s+\S+\s+import\s|def\s|['\"]use client['\"])",
    re.MULTILINE,
)

_TAG_EXTENSIONS: dict[str, str] = {
    "css": "css",
    "json": "json",
    "javascript": "jsx",
    "js": "js",
    "jsx": "jsx",
    "python": "py",
    "py": "py",
    "html": "html",
    "markdown": "md",
    "md": "md",
    "yaml": "yml",
    "yml": "yml",
    "sql": "sql",
    "bash": "sh",
    "sh": "sh",
    "shell": "sh",
}

_PROSE_EXTENSIONS = (".md", ".mdx", ".txt", ".rst")
_CODE_SYMBOLS = set("{}()[];=<>:\"'`/")
_MIN_INLINE_BODY = 20
_MIN_WHOLE_TEXT = 50


def _strip_alias(path: str) -> str:
    for prefix in ("@/", "~/"):
        if path.startswith(prefix):
            return path[len(prefix):]
    return path


def _strip_fence_lines(code: str) -> str:
    return _FENCE_LINE_RE.sub("", code).strip()


def looks_like_prose(content: str) -> bool:
    """True when a block reads like explanatory text rather than code.

    Prose has almost no code punctuation and its lines are mostly
    sentences of several words.
    """
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if not lines:
        return True
    symbols = sum(1 for ch in content if ch in _CODE_SYMBOLS)
    if symbols / max(1, len(content)) >= 0.02:
        return False
    sentences = sum(
        1
        for line in lines
        if len(line.split()) >= 5 and line[0].isalpha() and line[-1] in ".!?,"
    )
    return sentences / len(lines) >= 0.6


def sniff_path(code: str, language_tag: str = "") -> str | None:
    """Map recognizable content shapes onto conventional paths."""
    stripped = code.lstrip()
    ext = "jsx" if language_tag.lower() in ("javascript", "js", "jsx") else "tsx"
    if stripped.startswith("{") and ('"name"' in code or '"dependencies"' in code):
        return "package.json"
    if '"compilerOptions"' in code:
        return "tsconfig.json"
    if "@tailwind" in code or stripped.startswith("@import"):
        return "app/globals.css"
    if "module.exports" in code and "content:" in code:
        return "tailwind.config.js"
    if re.search(r"^def\s+main\s*\(|if\s+__name__\s*==", code, re.MULTILINE):
        return "main.py"
    if "export default function App" in code:
        return f"App.{ext}"
    if re.search(r"export\s+default\s+function\s+(?:RootLayout|Layout)\b", code):
        return f"app/layout.{ext}"
    if re.search(r"export\s+default\s+function\s+(?:Home|Page)\b", code):
        return f"app/page.{ext}"
    match = _EXPORTED_FUNCTION_RE.search(code)
    if match:
        name = match.group(1)
        if name.lower().endswith("page") and name.lower() != "page":
            return f"app/{name[:-4].lower()}/page.{ext}"
        return f"components/{name}.{ext}"
    return None


class ResponseParser:
    """Extracts ArtifactFile records from generated text.

    Output paths are unique after normalization. When the same path
    appears twice the later block's content wins, at the position of the
    first occurrence.
    """

    def parse(self, text: str) -> list[ArtifactFile]:
        files = self._parse_fenced(text)
        if not files:
            files = self._parse_inline_markers(text)
            if not files:
                files = self._parse_whole_text(text)
        logger.debug("Parsed %d file(s) from %d chars", len(files), len(text))
        return files

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _parse_fenced(self, text: str) -> list[ArtifactFile]:
        collected: dict[str, ArtifactFile] = {}
        generated = 0
        prose_start = 0
        for match in _FENCE_RE.finditer(text):
            tag = match.group(1) or ""
            code = match.group(2).strip("\r\n")
            preceding = text[prose_start:match.start()]
            prose_start = match.end()
            if not code.strip():
                continue

            path, code = self._annotated_path(code)
            explicit = path is not None
            if path is None:
                path = self._label_path(preceding)
            if path is None:
                path = sniff_path(code, tag)
            if path is None:
                generated += 1
                ext = _TAG_EXTENSIONS.get(tag.lower(), "tsx")
                path = f"generated/file-{generated}.{ext}"

            path = normalize_path(_strip_alias(path))
            if not path.lower().endswith(_PROSE_EXTENSIONS) and looks_like_prose(code):
                logger.debug("Discarding prose block for %s", path)
                continue
            if not explicit:
                logger.debug("Inferred path %s for untagged block", path)
            self._add(collected, path, code.strip())
        return list(collected.values())

    def _parse_inline_markers(self, text: str) -> list[ArtifactFile]:
        collected: dict[str, ArtifactFile] = {}
        for match in _INLINE_MARKER_RE.finditer(text):
            body = _strip_fence_lines(match.group("body"))
            if len(body) <= _MIN_INLINE_BODY:
                continue
            path = normalize_path(_strip_alias(match.group("path")))
            self._add(collected, path, body)
        return list(collected.values())

    def _parse_whole_text(self, text: str) -> list[ArtifactFile]:
        if not _ENTRY_POINT_SYNTAX.search(text):
            return []
        start = _CODE_START_RE.search(text)
        if start is None:
            return []
        code = _strip_fence_lines(text[start.start():])
        if "def " not in code:
            last_brace = code.rfind("}")
            if last_brace > 0:
                code = code[: last_brace + 1]
        code = code.strip()
        if len(code) <= _MIN_WHOLE_TEXT:
            return []
        path = sniff_path(code) or "App.tsx"
        return [ArtifactFile(path=path, content=code, language=language_for_path(path))]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _annotated_path(code: str) -> tuple[str | None, str]:
        """Return (path, code without the annotation line) or (None, code)."""
        lines = code.splitlines()
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            match = _ANNOTATION_RE.match(line)
            if match is None:
                return None, code
            remainder = "\n".join(lines[:index] + lines[index + 1:])
            return match.group("path"), remainder
        return None, code

    @staticmethod
    def _label_path(preceding: str) -> str | None:
        for line in reversed(preceding.splitlines()):
            if line.strip():
                match = _LABEL_RE.search(line.strip())
                return match.group("path") if match else None
        return None

    @staticmethod
    def _add(collected: dict[str, ArtifactFile], path: str, content: str) -> None:
        if path in collected:
            logger.debug("Duplicate block for %s, keeping the later one", path)
        collected[path] = ArtifactFile(
            path=path, content=content, language=language_for_path(path)
        )
