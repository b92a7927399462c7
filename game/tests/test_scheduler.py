import pytest

from game.scheduler import Scheduler


class TestScheduler:
    def test_fires_in_due_order(self):
        scheduler = Scheduler()
        fired = []
        scheduler.call_later(300, lambda: fired.append("c"))
        scheduler.call_later(100, lambda: fired.append("a"))
        scheduler.call_later(200, lambda: fired.append("b"))
        assert scheduler.run_due(1000) == 3
        assert fired == ["a", "b", "c"]

    def test_same_due_time_keeps_insertion_order(self):
        scheduler = Scheduler()
        fired = []
        for name in "xyz":
            scheduler.call_later(50, lambda n=name: fired.append(n))
        scheduler.run_due(50)
        assert fired == ["x", "y", "z"]

    def test_nothing_fires_early(self):
        scheduler = Scheduler()
        fired = []
        scheduler.call_later(100, lambda: fired.append(1))
        scheduler.run_due(99)
        assert fired == []
        scheduler.run_due(100)
        assert fired == [1]

    def test_cancelled_timer_never_fires(self):
        scheduler = Scheduler()
        fired = []
        handle = scheduler.call_later(10, lambda: fired.append(1))
        scheduler.cancel(handle)
        scheduler.cancel(handle)
        scheduler.cancel(None)
        scheduler.run_due(100)
        assert fired == []
        assert not handle.pending

    def test_now_is_due_time_inside_callback(self):
        scheduler = Scheduler()
        seen = []
        scheduler.call_later(120, lambda: seen.append(scheduler.now_ms))
        scheduler.run_due(500)
        assert seen == [120]
        assert scheduler.now_ms == 500

    def test_frame_is_the_tick_that_ran_the_callback(self):
        scheduler = Scheduler()
        seen = []
        scheduler.call_later(500, lambda: seen.append((scheduler.now_ms, scheduler.frame_ms)))
        scheduler.run_due(516)
        assert seen == [(500, 516)]
        assert scheduler.frame_ms == 516

    def test_chained_timers_fire_in_one_pass(self):
        scheduler = Scheduler()
        fired = []

        def first():
            fired.append(scheduler.now_ms)
            scheduler.call_later(50, lambda: fired.append(scheduler.now_ms))

        scheduler.call_later(100, first)
        scheduler.run_due(1000)
        assert fired == [100, 150]

    def test_chained_timer_not_yet_due_waits(self):
        scheduler = Scheduler()
        fired = []
        scheduler.call_later(100, lambda: scheduler.call_later(500, lambda: fired.append(1)))
        scheduler.run_due(200)
        assert fired == []
        assert scheduler.pending_count() == 1
        scheduler.advance(400)
        assert fired == [1]

    def test_negative_delay_is_rejected(self):
        with pytest.raises(ValueError):
            Scheduler().call_later(-1, lambda: None)

    def test_clear_drops_everything(self):
        scheduler = Scheduler()
        fired = []
        scheduler.call_later(10, lambda: fired.append(1))
        scheduler.clear()
        scheduler.run_due(100)
        assert fired == []
        assert scheduler.pending_count() == 0
