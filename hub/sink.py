from datetime import datetime, timezone
from typing import Any, Protocol


class PersistenceSink(Protocol):
    def record(self, collection: str, document: dict[str, Any]) -> None: ...


class InMemorySink:
    """Append-only document sink keyed by collection name."""

    def __init__(self):
        self.collections: dict[str, list[dict[str, Any]]] = {}

    def record(self, collection: str, document: dict[str, Any]) -> None:
        doc = {**document, "recorded_at": datetime.now(timezone.utc)}
        self.collections.setdefault(collection, []).append(doc)

    def documents(self, collection: str) -> list[dict[str, Any]]:
        return list(self.collections.get(collection, []))
