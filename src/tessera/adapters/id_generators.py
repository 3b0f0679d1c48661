"""ID generators for Tessera."""

import threading
import uuid

from ulid import monotonic

from tessera.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class ULIDGenerator(IdGenerator):
    """Thread-safe monotonic ULID generator.

    ULIDs are unique, lexicographically sortable identifiers made of a
    timestamp and a random component, which keeps generated datastore keys in
    creation order. This generator uses the `ulid-py` library.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class UUIDv4Generator(IdGenerator):
    """UUIDv4 generator.

    Random identifiers without any ordering, from Python's built-in `uuid`.
    """

    def new_id(self) -> str:
        """Generate a new UUID."""
        return str(uuid.uuid4())


class SimpleIdGenerator(IdGenerator):
    """Sequential, zero-padded identifiers with an optional prefix.

    Note:
        Not suitable for production use; primarily for tests, where
        predictable keys and callback names are handy.
    """

    def __init__(self, length: int = 26, prefix: str = "") -> None:
        self._counter = 0
        self._length = length
        self._prefix = prefix

    def new_id(self) -> str:
        """Generate the next identifier."""
        self._counter += 1
        return f"{self._prefix}{self._counter:0{self._length}d}"
