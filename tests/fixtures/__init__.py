"""Test fixtures for in-memory implementations."""

from .fake_collaborators import FakeQrisGateway, FakeTransferClient
from .in_memory_storage import InMemoryKeyValueStore
from .wallets import SENDER, claimer_address

__all__ = [
    "FakeQrisGateway",
    "FakeTransferClient",
    "InMemoryKeyValueStore",
    "SENDER",
    "claimer_address",
]
