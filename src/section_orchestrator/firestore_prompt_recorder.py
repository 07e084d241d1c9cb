from __future__ import annotations

import logging

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .models.generation import PromptRecord, PromptType

logger = logging.getLogger(__name__)


class FirestorePromptRecorder:
    """Firestore-backed prompt log for production use."""

    COLLECTION_NAME = "ai_prompts"

    def __init__(self, project_id: str | None = None, collection_name: str | None = None) -> None:
        self._db = firestore.Client(project=project_id)
        self._collection = self._db.collection(collection_name or self.COLLECTION_NAME)

    def record(self, entry: PromptRecord) -> None:
        """Store one prompt/response summary."""
        doc_ref = self._collection.document()
        doc_ref.set(self._to_firestore_dict(entry))

        logger.info(
            "Recorded prompt",
            extra={
                "record_id": doc_ref.id,
                "user_id": entry.user_id,
                "prompt_type": entry.prompt_type.value,
            },
        )

    def list_records(self, user_id: str, *, limit: int = 50) -> list[PromptRecord]:
        """List a user's prompts, newest first."""
        query = (
            self._collection.where(filter=FieldFilter("user_id", "==", user_id))
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [self._from_firestore_dict(doc.to_dict()) for doc in query.stream()]

    def _to_firestore_dict(self, entry: PromptRecord) -> dict:
        return {
            "user_id": entry.user_id,
            "prompt_type": entry.prompt_type.value,
            "prompt_text": entry.prompt_text,
            "response_summary": entry.response_summary,
            "created_at": entry.created_at,
        }

    def _from_firestore_dict(self, data: dict) -> PromptRecord:
        return PromptRecord(
            user_id=data["user_id"],
            prompt_type=PromptType(data["prompt_type"]),
            prompt_text=data.get("prompt_text", ""),
            response_summary=data.get("response_summary", ""),
            created_at=data["created_at"],
        )


__all__ = ["FirestorePromptRecorder"]
