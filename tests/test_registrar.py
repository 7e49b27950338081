import threading
import unittest

from competitii.errors import AlreadyJoinedError, NoActiveDrawError
from competitii.prize_draw import (
    DrawLifecycleManager,
    ParticipationRegistrar,
    WinnerSelector,
)
from competitii.records import DrawStatus, ParticipantRecord
from competitii.storage import InMemoryDrawStore

from tests.helpers import ManualClock, MemoryStoreMixin, SqlStoreMixin


class _RegistrarTests:
    def setUp(self):
        self.store = self.make_store()
        self.clock = ManualClock()
        self.manager = DrawLifecycleManager(self.store, clock=self.clock)
        self.registrar = ParticipationRegistrar(self.store, clock=self.clock)

    def test_join_without_active_draw(self):
        with self.assertRaises(NoActiveDrawError):
            self.registrar.join(101)

    def test_join_returns_receipt_for_active_draw(self):
        draw = self.manager.create_draw("Spring Giveaway")
        receipt = self.registrar.join(101)

        self.assertEqual(receipt.draw_id, draw.id)
        self.assertEqual(receipt.title, "Spring Giveaway")
        entry = self.store.find_participant(draw.id, 101)
        assert entry is not None
        self.assertEqual(entry.user_id, 101)

    def test_repeated_joins_succeed_exactly_once(self):
        draw = self.manager.create_draw("Spring Giveaway")
        self.registrar.join(101)
        for _ in range(5):
            with self.assertRaises(AlreadyJoinedError):
                self.registrar.join(101)
        self.assertEqual(self.store.count_participants(draw.id), 1)

    def test_user_keeps_entries_across_draws(self):
        first = self.manager.create_draw("First")
        self.registrar.join(101)
        self.manager.close_draw()
        second = self.manager.create_draw("Second")
        self.registrar.join(101)

        self.assertEqual(self.registrar.list_participants(first.id), [101])
        self.assertEqual(self.registrar.list_participants(second.id), [101])
        self.assertEqual(self.store.count_participants(), 2)

    def test_join_after_close_is_rejected(self):
        self.manager.create_draw("Spring Giveaway")
        self.manager.close_draw()
        with self.assertRaises(NoActiveDrawError):
            self.registrar.join(101)

    def test_has_joined(self):
        self.manager.create_draw("Spring Giveaway")
        self.registrar.join(101)
        self.assertTrue(self.registrar.has_joined(101))
        self.assertFalse(self.registrar.has_joined(202))

    def test_has_joined_without_active_draw(self):
        with self.assertRaises(NoActiveDrawError):
            self.registrar.has_joined(101)

    def test_list_participants_keeps_insertion_order(self):
        draw = self.manager.create_draw("Spring Giveaway")
        for user_id in (303, 101, 202):
            self.registrar.join(user_id)
        self.assertEqual(self.registrar.list_participants(draw.id), [303, 101, 202])

    def test_list_participants_of_unknown_draw_is_empty(self):
        self.assertEqual(self.registrar.list_participants("missing"), [])

    def test_active_participant_count(self):
        draw = self.manager.create_draw("Spring Giveaway")
        self.registrar.join(101)
        self.registrar.join(202)
        active, count = self.registrar.active_participant_count()
        self.assertEqual(active.id, draw.id)
        self.assertEqual(count, 2)

    def _close_and_draw_before_next_write(self):
        """Run close and winner selection right after join reads the entries."""
        lookup = self.store.find_participant

        def find_participant(draw_id, user_id):
            found = lookup(draw_id, user_id)
            self.store.find_participant = lookup
            self.manager.close_draw()
            WinnerSelector(self.store, clock=self.clock).draw_winners(draw_id)
            return found

        self.store.find_participant = find_participant

    def test_join_racing_close_and_draw_is_rejected(self):
        draw = self.manager.create_draw("Spring Giveaway")
        self.registrar.join(101)

        self._close_and_draw_before_next_write()
        with self.assertRaises(NoActiveDrawError):
            self.registrar.join(202)

        stored = self.store.find_draw(draw.id)
        self.assertIs(stored.status, DrawStatus.DRAWN)
        self.assertEqual(stored.winners, (101,))
        self.assertEqual(self.registrar.list_participants(draw.id), [101])

    def test_store_refuses_entries_for_closed_or_unknown_draw(self):
        draw = self.manager.create_draw("Spring Giveaway")
        self.manager.close_draw()
        for draw_id in (draw.id, "missing"):
            with self.assertRaises(NoActiveDrawError):
                self.store.create_participant(
                    ParticipantRecord(draw_id=draw_id, user_id=7, created_at=self.clock())
                )
        self.assertEqual(self.store.count_participants(), 0)


class InMemoryRegistrarTests(MemoryStoreMixin, _RegistrarTests, unittest.TestCase):
    def test_concurrent_joins_by_same_user(self):
        self.manager.create_draw("Spring Giveaway")
        workers = 8
        barrier = threading.Barrier(workers)
        outcomes: list[str] = []
        lock = threading.Lock()

        def attempt():
            barrier.wait()
            try:
                self.registrar.join(101)
                result = "joined"
            except AlreadyJoinedError:
                result = "already"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("joined"), 1)
        self.assertEqual(outcomes.count("already"), workers - 1)


class SqlRegistrarTests(SqlStoreMixin, _RegistrarTests, unittest.TestCase):
    pass


class StoreUniquenessTests(unittest.TestCase):
    def test_store_rejects_duplicate_even_if_precheck_is_skipped(self):
        store = InMemoryDrawStore()
        draw = DrawLifecycleManager(store).create_draw("Spring Giveaway")

        registrar = ParticipationRegistrar(store)
        registrar.join(101)
        # Simulate the losing side of a race: the read saw no entry.
        store.find_participant = lambda draw_id, user_id: None  # type: ignore[method-assign]
        with self.assertRaises(AlreadyJoinedError):
            registrar.join(101)
        self.assertEqual(store.count_participants(draw.id), 1)


if __name__ == "__main__":
    unittest.main()
