# =============================================================================
# Document Catalog — Which Namespaces a User May Search
# =============================================================================
#
# Library and synthesis retrieval fan out over "every document the user
# owns" or an explicit subset of them. Ownership lives in the host
# application's database; this module only fixes the interface the
# pipeline needs, plus an in-memory implementation for tests and demos.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRef:
    """A searchable document: its namespace id and display name."""

    id: str
    name: str


class DocumentCatalog(Protocol):
    """Lists the documents a user can search."""

    async def list_documents(
        self,
        user_id: str,
        document_ids: Sequence[str] | None = None,
    ) -> list[DocumentRef]:
        """
        Return the user's documents, optionally restricted to `document_ids`.

        Ids the user does not own are silently excluded.
        """
        ...


class InMemoryDocumentCatalog:
    """DocumentCatalog backed by a dict of user id → documents."""

    def __init__(self, documents: dict[str, Iterable[DocumentRef]] | None = None) -> None:
        self._documents: dict[str, list[DocumentRef]] = {
            user_id: list(docs) for user_id, docs in (documents or {}).items()
        }

    def add(self, user_id: str, document: DocumentRef) -> None:
        self._documents.setdefault(user_id, []).append(document)

    async def list_documents(
        self,
        user_id: str,
        document_ids: Sequence[str] | None = None,
    ) -> list[DocumentRef]:
        owned = self._documents.get(user_id, [])
        if document_ids is None:
            return list(owned)
        wanted = set(document_ids)
        selected = [doc for doc in owned if doc.id in wanted]
        if len(selected) < len(wanted):
            logger.warning(
                "User %s requested %d documents, %d are in their library",
                user_id, len(wanted), len(selected),
            )
        return selected
