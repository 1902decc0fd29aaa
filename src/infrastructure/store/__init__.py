"""Event Storeインフラストラクチャ"""

from infrastructure.store.json_event_store import EventStore, JsonEventStore

__all__ = [
    "EventStore",
    "JsonEventStore",
]
