"""In-memory store implementations."""

from __future__ import annotations

from forgeloop.exceptions import SuggestionNotFoundError
from forgeloop.models.artifact import ArtifactFile, normalize_path
from forgeloop.models.suggestion import Suggestion, SuggestionStatus
from forgeloop.storage.protocols import ArtifactStore, SuggestionStore


class MemoryArtifactStore(ArtifactStore):
    """Dict-backed artifact store. Insertion order is file order."""

    def __init__(self, files: list[ArtifactFile] | None = None) -> None:
        self._files: dict[str, ArtifactFile] = {}
        for file in files or []:
            self._files[file.path] = file

    def list(self) -> list[ArtifactFile]:
        return list(self._files.values())

    def upsert(self, path: str, content: str, language: str = "") -> ArtifactFile:
        file = ArtifactFile(path=normalize_path(path), content=content, language=language)
        self._files[file.path] = file
        return file

    def clear_all(self) -> None:
        self._files.clear()

    def get(self, path: str) -> ArtifactFile | None:
        return self._files.get(normalize_path(path))

    def __len__(self) -> int:
        return len(self._files)


class MemorySuggestionStore(SuggestionStore):
    def __init__(self) -> None:
        self._suggestions: dict[str, Suggestion] = {}

    def add(self, suggestion: Suggestion) -> None:
        self._suggestions[suggestion.id] = suggestion

    def get(self, suggestion_id: str) -> Suggestion:
        try:
            return self._suggestions[suggestion_id]
        except KeyError:
            raise SuggestionNotFoundError(suggestion_id) from None

    def approve(self, suggestion_id: str) -> Suggestion:
        suggestion = self.get(suggestion_id)
        suggestion.status = SuggestionStatus.APPROVED
        return suggestion

    def reject(self, suggestion_id: str) -> Suggestion:
        suggestion = self.get(suggestion_id)
        suggestion.status = SuggestionStatus.REJECTED
        return suggestion

    def list(self, status: SuggestionStatus | None = None) -> list[Suggestion]:
        return [
            s for s in self._suggestions.values() if status is None or s.status is status
        ]
