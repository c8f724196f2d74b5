"""The set of stores one hosting process owns."""

from dataclasses import dataclass, field

from .gateway import SerializationGateway
from .history import HistoryLog
from .store import EntityStore


@dataclass
class Library:
    """Entity store, history log and the gateway bound to the store."""

    store: EntityStore = field(default_factory=EntityStore)
    history: HistoryLog = field(default_factory=HistoryLog)
    gateway: SerializationGateway = field(init=False)

    def __post_init__(self):
        self.gateway = SerializationGateway(self.store)
