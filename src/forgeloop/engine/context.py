"""Context builder: budget-bounded selection of artifact files.

Scores every file, sorts by score (stable, so ties keep artifact order)
and greedily packs files into a character budget. A file that does not
fit whole is truncated with a marker when enough budget remains,
otherwise dropped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from forgeloop.models.artifact import ArtifactFile, ContextSelection, SelectedFile

logger = logging.getLogger(__name__)

BASE_PRIORITY = 50
ENTRY_POINT_BONUS = 30
REQUEST_MENTION_BONUS = 25
CROSS_CUTTING_BONUS = 15
CONFIG_PENALTY = 20
LARGE_FILE_PENALTY = 10
HUGE_FILE_PENALTY = 15

LARGE_FILE_CHARS = 8_000
HUGE_FILE_CHARS = 20_000

# A file is only truncated when more than this much budget is left.
MIN_TRUNCATION_CHARS = 500

TRUNCATION_MARKER = "\n/* ... truncated, {size} chars in full ... */"

_ENTRY_POINT_STEMS = frozenset({"page", "app", "index", "main", "layout"})
_CROSS_CUTTING = re.compile(
    r"\bcreateContext\b|\bProvider\b|\buseReducer\b|\bcreateStore\b|\bstore\b"
)
_CONFIG_NAMES = frozenset({
    "package.json",
    "package-lock.json",
    "tsconfig.json",
    "jsconfig.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".eslintrc",
    ".eslintrc.json",
    ".prettierrc",
})


def _is_config(file: ArtifactFile) -> bool:
    name = file.name.lower()
    return name in _CONFIG_NAMES or ".config." in name or name.startswith(".eslintrc")


def _mentioned(file: ArtifactFile, request_lower: str) -> bool:
    name = file.name.lower()
    stem = file.stem.lower()
    if name in request_lower:
        return True
    return len(stem) >= 3 and re.search(rf"\b{re.escape(stem)}\b", request_lower) is not None


def score_file(file: ArtifactFile, request: str) -> int:
    """Priority of one file for the given request. Higher packs first."""
    priority = BASE_PRIORITY
    if file.stem.lower() in _ENTRY_POINT_STEMS:
        priority += ENTRY_POINT_BONUS
    if _mentioned(file, request.lower()):
        priority += REQUEST_MENTION_BONUS
    if _CROSS_CUTTING.search(file.content):
        priority += CROSS_CUTTING_BONUS
    if _is_config(file):
        priority -= CONFIG_PENALTY
    size = len(file.content)
    if size > LARGE_FILE_CHARS:
        priority -= LARGE_FILE_PENALTY
    if size > HUGE_FILE_CHARS:
        priority -= HUGE_FILE_PENALTY
    return priority


class ContextBuilder:
    """Selects and truncates artifact files under a character budget.

    Only file content counts against the budget; headers added by
    :meth:`render` do not.

    Usage::

        builder = ContextBuilder()
        selection = builder.select(store.list(), "add a search box", 50_000)
        prompt_section = builder.render(selection)
    """

    def __init__(self, *, min_truncation_chars: int = MIN_TRUNCATION_CHARS) -> None:
        self._min_truncation = min_truncation_chars

    def select(
        self,
        files: Sequence[ArtifactFile],
        request: str,
        max_chars: int,
    ) -> ContextSelection:
        """Pick files for the context.

        Guarantees ``total_chars <= max_chars``; a partially included file
        is always flagged ``truncated``.
        """
        ranked = sorted(files, key=lambda f: -score_file(f, request))
        remaining = max(0, max_chars)
        included: list[SelectedFile] = []
        dropped: list[str] = []

        for file in ranked:
            size = len(file.content)
            if size <= remaining:
                included.append(SelectedFile(file=file, content=file.content))
                remaining -= size
                continue

            if remaining > self._min_truncation:
                marker = TRUNCATION_MARKER.format(size=size)
                keep = remaining - len(marker)
                if keep > 0:
                    content = file.content[:keep] + marker
                    included.append(
                        SelectedFile(file=file, content=content, truncated=True)
                    )
                    remaining -= len(content)
                    logger.debug("Context truncated %s to %d chars", file.path, keep)
                    continue

            dropped.append(file.path)
            logger.debug("Context dropped %s (%d chars)", file.path, size)

        total = sum(len(s.content) for s in included)
        return ContextSelection(
            included_files=included,
            total_chars=total,
            dropped_paths=dropped,
        )

    @staticmethod
    def render(selection: ContextSelection) -> str:
        """Render a selection as a prompt section. Empty selection -> ''."""
        if not selection.included_files and not selection.dropped_paths:
            return ""
        blocks: list[str] = []
        for selected in selection.included_files:
            label = selected.file.path
            if selected.truncated:
                label += " (truncated)"
            blocks.append(
                f"### {label}\n```{selected.file.language}\n{selected.content}\n```"
            )
        for path in selection.dropped_paths:
            blocks.append(f"### {path} (omitted, over context budget)")
        count = len(selection.included_files) + len(selection.dropped_paths)
        return f"## Existing files ({count})\n\n" + "\n\n".join(blocks)
