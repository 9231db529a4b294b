"""Approve or reject registered suggestions.

Approval applies every suggested change to the artifact through the
store's upsert before marking the suggestion approved.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from forgeloop.exceptions import SuggestionError
from forgeloop.models.suggestion import SuggestionStatus

if TYPE_CHECKING:
    from forgeloop.models.artifact import ArtifactFile
    from forgeloop.models.suggestion import Suggestion
    from forgeloop.storage.protocols import ArtifactStore, SuggestionStore

logger = logging.getLogger(__name__)


def apply_suggestion(
    suggestion_id: str,
    artifacts: ArtifactStore,
    suggestions: SuggestionStore,
) -> list[ArtifactFile]:
    """Write a suggestion's changes into the artifact and approve it.

    Returns:
        The files written, in change order.

    Raises:
        SuggestionNotFoundError: If the id is unknown.
        SuggestionError: If the suggestion was already decided or carries
            no concrete changes.
    """
    suggestion = suggestions.get(suggestion_id)
    _require_pending(suggestion)
    if not suggestion.applicable:
        raise SuggestionError(
            f"Suggestion {suggestion_id} has no file changes to apply"
        )
    written = [
        artifacts.upsert(change.file_path, change.new_content)
        for change in suggestion.suggested_changes
    ]
    suggestions.approve(suggestion_id)
    logger.info(
        "Applied suggestion %s (%s): %d file(s)",
        suggestion_id,
        suggestion.title,
        len(written),
    )
    return written


def reject_suggestion(suggestion_id: str, suggestions: SuggestionStore) -> Suggestion:
    """Mark a pending suggestion rejected without touching the artifact."""
    _require_pending(suggestions.get(suggestion_id))
    rejected = suggestions.reject(suggestion_id)
    logger.info("Rejected suggestion %s", suggestion_id)
    return rejected


def _require_pending(suggestion: Suggestion) -> None:
    if suggestion.status is not SuggestionStatus.PENDING:
        raise SuggestionError(
            f"Suggestion {suggestion.id} is already {suggestion.status.value}"
        )
