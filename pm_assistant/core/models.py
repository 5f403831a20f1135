# models.py
from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Message:
    """A single chat message and the project the UI had selected"""

    text: str
    project_context: Optional[str] = None

    @property
    def lower(self) -> str:
        return self.text.lower().strip()


@dataclass(frozen=True)
class IndexedDocument:
    """A flattened domain record ready to be embedded"""

    fingerprint: str
    text: str
    payload: Dict[str, Any]

    @staticmethod
    def make_fingerprint(doc_type: str, key: Any) -> str:
        """Deterministic identity for a record, e.g. ``requirement:42``"""
        return hashlib.md5(f"{doc_type}:{key}".encode()).hexdigest()

    @classmethod
    def build(cls, doc_type: str, key: Any, text: str, **payload: Any) -> "IndexedDocument":
        clean = {k: ("" if v is None else v) for k, v in payload.items()}
        clean["type"] = doc_type
        clean["item_id"] = str(key)
        clean.setdefault("source", "db")
        return cls(
            fingerprint=cls.make_fingerprint(doc_type, key),
            text=text,
            payload=clean,
        )


@dataclass(frozen=True)
class SearchHit:
    """A document returned from the vector index"""

    fingerprint: str
    text: str
    payload: Dict[str, Any]
    score: Optional[float] = None

    def to_context_line(self) -> str:
        """Render the hit for inclusion in an LLM prompt"""
        return json.dumps({"text": self.text, **self.payload}, default=str)


@dataclass
class PayloadFilter:
    """Exact-match filter over document payload fields.

    ``equals`` pins a field to one value, ``any_of`` to a set of values and
    ``none_of`` excludes values. All conditions must hold.
    """

    equals: Dict[str, Any] = field(default_factory=dict)
    any_of: Dict[str, List[Any]] = field(default_factory=dict)
    none_of: Dict[str, List[Any]] = field(default_factory=dict)

    def matches(self, payload: Dict[str, Any]) -> bool:
        for key, value in self.equals.items():
            if payload.get(key) != value:
                return False
        for key, values in self.any_of.items():
            if payload.get(key) not in values:
                return False
        for key, values in self.none_of.items():
            if payload.get(key) in values:
                return False
        return True


@dataclass
class SyncResult:
    """Outcome of a full index rebuild"""

    synced: int
    skipped: int = 0
    message: str = "Sync successful! Vector index updated."

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "synced": self.synced}


@dataclass
class ChatReply:
    """Reply sent back to the chat UI"""

    reply: str
    data_changed: bool = False
    new_item: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"reply": self.reply}
        if self.data_changed:
            data["data_changed"] = True
            data["new_item"] = self.new_item
        return data
