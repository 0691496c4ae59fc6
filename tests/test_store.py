import threading
import unittest

from pydantic import ValidationError

from streamchat.store import ConversationStore
from streamchat.types import Message, Role


class ConversationStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = ConversationStore()

    def test_append_keeps_insertion_order(self) -> None:
        first = self.store.append(Message.user("a"))
        second = self.store.append(Message.pending("..."))
        self.assertNotEqual(first, second)
        self.assertEqual([m.content for m in self.store.snapshot()], ["a", "..."])
        self.assertEqual(len(self.store), 2)

    def test_replace_swaps_only_the_given_entry(self) -> None:
        self.store.append(Message.user("one"))
        slow = self.store.append(Message.pending("slow..."))
        self.store.append(Message.user("two"))
        fast = self.store.append(Message.pending("fast..."))

        self.assertTrue(self.store.replace(fast, Message.assistant("fast reply")))
        self.assertEqual(self.store.pending_ids(), (slow,))
        self.assertEqual(
            [m.content for m in self.store.snapshot()],
            ["one", "slow...", "two", "fast reply"],
        )
        self.assertEqual(self.store.get(fast).role, Role.ASSISTANT)

    def test_replace_after_clear_is_a_no_op(self) -> None:
        placeholder = self.store.append(Message.pending("..."))
        self.store.clear()
        self.assertFalse(self.store.replace(placeholder, Message.assistant("late")))
        self.assertEqual(self.store.snapshot(), ())
        self.assertIsNone(self.store.get(placeholder))

    def test_ids_are_not_reused_after_clear(self) -> None:
        before = self.store.append(Message.user("a"))
        self.store.clear()
        after = self.store.append(Message.user("b"))
        self.assertGreater(after, before)

    def test_snapshot_is_detached(self) -> None:
        self.store.append(Message.user("a"))
        snapshot = self.store.snapshot()
        self.store.append(Message.user("b"))
        self.assertEqual(len(snapshot), 1)
        with self.assertRaises(ValidationError):
            snapshot[0].content = "mutated"

    def test_version_tracks_mutations(self) -> None:
        start = self.store.version
        entry = self.store.append(Message.user("a"))
        self.store.replace(entry, Message.user("b"))
        self.store.replace(entry + 100, Message.user("c"))
        self.assertEqual(self.store.version, start + 2)

    def test_concurrent_appends_get_unique_ids(self) -> None:
        ids: list[int] = []
        ids_lock = threading.Lock()

        def worker(n: int) -> None:
            for i in range(200):
                entry = self.store.append(Message.user(f"{n}-{i}"))
                with ids_lock:
                    ids.append(entry)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(set(ids)), 1600)
        self.assertEqual(len(self.store), 1600)


if __name__ == "__main__":
    unittest.main()
