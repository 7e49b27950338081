from __future__ import annotations

import random
import threading
import unittest
from collections import Counter
from dataclasses import replace

from competitii.errors import (
    DrawNotFoundError,
    InvalidInputError,
    InvalidStateError,
    NoParticipantsError,
    NotFoundError,
)
from competitii.prize_draw import (
    DrawLifecycleManager,
    ParticipationRegistrar,
    WinnerSelector,
    sample_without_replacement,
)
from competitii.records import DrawStatus

from tests.helpers import ManualClock, MemoryStoreMixin, SqlStoreMixin


class SampleWithoutReplacementTests(unittest.TestCase):
    def test_returns_distinct_members(self):
        rng = random.Random(7)
        population = list(range(20))
        picked = sample_without_replacement(population, 5, rng)
        self.assertEqual(len(picked), 5)
        self.assertEqual(len(set(picked)), 5)
        self.assertTrue(set(picked) <= set(population))

    def test_k_is_clamped_to_population(self):
        picked = sample_without_replacement([1, 2, 3], 10, random.Random(1))
        self.assertEqual(sorted(picked), [1, 2, 3])

    def test_zero_and_negative_k(self):
        self.assertEqual(sample_without_replacement([1, 2], 0, random.Random(1)), [])
        with self.assertRaises(ValueError):
            sample_without_replacement([1, 2], -1, random.Random(1))

    def test_population_is_not_mutated(self):
        population = [1, 2, 3, 4]
        sample_without_replacement(population, 2, random.Random(3))
        self.assertEqual(population, [1, 2, 3, 4])

    def test_single_winner_distribution_is_uniform(self):
        rng = random.Random(2024)
        trials = 8000
        counts = Counter(
            sample_without_replacement([101, 202, 303, 404], 1, rng)[0]
            for _ in range(trials)
        )
        self.assertEqual(set(counts), {101, 202, 303, 404})
        # Expected 2000 each; the standard deviation is about 39.
        for user_id, seen in counts.items():
            self.assertAlmostEqual(seen, trials / 4, delta=200, msg=str(user_id))

    def test_pair_distribution_is_uniform(self):
        rng = random.Random(99)
        trials = 6000
        counts = Counter(
            frozenset(sample_without_replacement(["a", "b", "c", "d"], 2, rng))
            for _ in range(trials)
        )
        # Six unordered pairs, 1000 expected each.
        self.assertEqual(len(counts), 6)
        for seen in counts.values():
            self.assertAlmostEqual(seen, trials / 6, delta=150)


class _SelectorTests:
    def setUp(self):
        self.store = self.make_store()
        self.clock = ManualClock()
        self.manager = DrawLifecycleManager(self.store, clock=self.clock)
        self.registrar = ParticipationRegistrar(self.store, clock=self.clock)
        self.selector = WinnerSelector(self.store, rng=random.Random(42), clock=self.clock)

    def _closed_draw(self, *user_ids):
        draw = self.manager.create_draw("Spring Giveaway")
        for user_id in user_ids:
            self.registrar.join(user_id)
        self.manager.close_draw()
        return draw

    def test_default_count_is_one(self):
        draw = self._closed_draw(101, 202, 303)
        drawn = self.selector.draw_winners(draw.id)
        self.assertEqual(len(drawn.winners), 1)
        self.assertIn(drawn.winners[0], {101, 202, 303})

    def test_configured_default_count(self):
        draw = self._closed_draw(101, 202, 303, 404)
        selector = WinnerSelector(
            self.store, rng=random.Random(7), clock=self.clock, default_count=3
        )
        drawn = selector.draw_winners(draw.id)
        self.assertEqual(len(drawn.winners), 3)
        self.assertEqual(len(set(drawn.winners)), 3)

    def test_invalid_default_count(self):
        for default_count in (0, -1, True, 2.0):
            with self.assertRaises(InvalidInputError):
                WinnerSelector(self.store, default_count=default_count)  # type: ignore[arg-type]

    def test_invalid_counts(self):
        draw = self._closed_draw(101)
        for count in (0, -3, True, 1.5, "2"):
            with self.assertRaises(InvalidInputError):
                self.selector.draw_winners(draw.id, count)  # type: ignore[arg-type]
        stored = self.store.find_draw(draw.id)
        assert stored is not None
        self.assertIs(stored.status, DrawStatus.CLOSED)

    def test_count_above_participants_returns_everyone_once(self):
        draw = self._closed_draw(101, 202, 303)
        drawn = self.selector.draw_winners(draw.id, 10)
        self.assertEqual(sorted(drawn.winners), [101, 202, 303])

    def test_winners_are_persisted_and_status_is_drawn(self):
        draw = self._closed_draw(101, 202, 303, 404)
        drawn = self.selector.draw_winners(draw.id, 2)

        stored = self.store.find_draw(draw.id)
        assert stored is not None
        self.assertIs(stored.status, DrawStatus.DRAWN)
        self.assertEqual(stored.winners, drawn.winners)
        self.assertEqual(len(set(stored.winners)), 2)
        self.assertIsNotNone(stored.drawn_at)

    def test_second_draw_is_rejected(self):
        draw = self._closed_draw(101, 202)
        first = self.selector.draw_winners(draw.id)
        with self.assertRaises(InvalidStateError):
            self.selector.draw_winners(draw.id)
        stored = self.store.find_draw(draw.id)
        assert stored is not None
        self.assertEqual(stored.winners, first.winners)

    def test_active_draw_cannot_be_drawn(self):
        draw = self.manager.create_draw("Open")
        self.registrar.join(101)
        with self.assertRaises(InvalidStateError):
            self.selector.draw_winners(draw.id)

    def test_unknown_draw(self):
        with self.assertRaises(DrawNotFoundError) as ctx:
            self.selector.draw_winners("missing")
        self.assertIsInstance(ctx.exception, InvalidStateError)
        self.assertIsInstance(ctx.exception, NotFoundError)

    def test_no_participants_keeps_draw_closed(self):
        draw = self._closed_draw()
        with self.assertRaises(NoParticipantsError):
            self.selector.draw_winners(draw.id)
        stored = self.store.find_draw(draw.id)
        assert stored is not None
        self.assertIs(stored.status, DrawStatus.CLOSED)
        self.assertEqual(stored.winners, ())

    def test_seeded_selection_is_reproducible(self):
        draw = self._closed_draw(101, 202, 303, 404, 505)
        expected = sample_without_replacement(
            [101, 202, 303, 404, 505], 3, random.Random(5)
        )
        selector = WinnerSelector(self.store, rng=random.Random(5))
        self.assertEqual(list(selector.draw_winners(draw.id, 3).winners), expected)

    def test_compare_and_set_rejects_stale_writer(self):
        draw = self._closed_draw(101, 202)
        closed = self.store.find_draw(draw.id)
        assert closed is not None
        drawn = replace(closed, status=DrawStatus.DRAWN, winners=(101,))
        self.assertTrue(self.store.update_draw(drawn, expected_status=DrawStatus.CLOSED))
        stale = replace(closed, status=DrawStatus.DRAWN, winners=(202,))
        self.assertFalse(self.store.update_draw(stale, expected_status=DrawStatus.CLOSED))

        stored = self.store.find_draw(draw.id)
        assert stored is not None
        self.assertEqual(stored.winners, (101,))


class InMemorySelectorTests(MemoryStoreMixin, _SelectorTests, unittest.TestCase):
    def test_concurrent_draws_on_same_draw(self):
        draw = self._closed_draw(*range(1, 51))
        workers = 6
        barrier = threading.Barrier(workers)
        outcomes: list[str] = []
        lock = threading.Lock()

        def attempt(seed):
            selector = WinnerSelector(self.store, rng=random.Random(seed))
            barrier.wait()
            try:
                selector.draw_winners(draw.id, 3)
                result = "drawn"
            except InvalidStateError:
                result = "lost"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("drawn"), 1)
        self.assertEqual(outcomes.count("lost"), workers - 1)
        stored = self.store.find_draw(draw.id)
        assert stored is not None
        self.assertEqual(len(stored.winners), 3)


class SqlSelectorTests(SqlStoreMixin, _SelectorTests, unittest.TestCase):
    pass


if __name__ == "__main__":
    unittest.main()
