"""Thread-safe conversation log shared by the UI thread and background turns."""

from __future__ import annotations

import itertools
import threading

from streamchat.types import Message, Role

EntryId = int


class ConversationStore:
    """Ordered log of messages with atomic append, replace and snapshot.

    Every entry gets an id that is never reused, so a background turn can
    replace exactly its own placeholder even when several are pending.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._entries: list[tuple[EntryId, Message]] = []
        self._version = 0

    def append(self, message: Message) -> EntryId:
        """Add ``message`` at the end and return its id."""
        with self._lock:
            entry_id = next(self._ids)
            self._entries.append((entry_id, message))
            self._version += 1
            return entry_id

    def replace(self, entry_id: EntryId, message: Message) -> bool:
        """Swap the entry ``entry_id`` for ``message``.

        Returns ``False`` without changing anything when the entry is gone,
        e.g. after :meth:`clear`.
        """
        with self._lock:
            for index, (existing_id, _) in enumerate(self._entries):
                if existing_id == entry_id:
                    self._entries[index] = (entry_id, message)
                    self._version += 1
                    return True
            return False

    def get(self, entry_id: EntryId) -> Message | None:
        with self._lock:
            for existing_id, message in self._entries:
                if existing_id == entry_id:
                    return message
            return None

    def snapshot(self) -> tuple[Message, ...]:
        """Point-in-time copy of the log in display order."""
        with self._lock:
            return tuple(message for _, message in self._entries)

    def entries(self) -> tuple[tuple[EntryId, Message], ...]:
        with self._lock:
            return tuple(self._entries)

    def pending_ids(self) -> tuple[EntryId, ...]:
        with self._lock:
            return tuple(entry_id for entry_id, message in self._entries if message.role is Role.PENDING)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._version += 1

    @property
    def version(self) -> int:
        """Counter bumped by every mutation; lets renderers skip redraws."""
        with self._lock:
            return self._version

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
