import threading

import pytest

from romasub.models.transcript import Segment
from romasub.player.sync import PlaybackSynchronizer, RepeatingTask, find_active_index

SEGMENTS = [Segment(start=0, end=2, text="a"), Segment(start=3, end=5, text="b")]


@pytest.mark.parametrize("t, expected", [
    (1.5, 0),
    (0, 0),
    (2, None),
    (2.5, None),
    (3, 1),
    (4, 1),
    (5, None),
    (-1, None),
    (100, None),
])
def test_find_active_index(t, expected):
    assert find_active_index(SEGMENTS, t) == expected


def test_find_active_index_on_longer_list():
    segments = [Segment(start=i * 2, end=i * 2 + 1, text=str(i)) for i in range(50)]
    assert find_active_index(segments, 76.5) == 38
    assert find_active_index(segments, 77.0) is None
    assert find_active_index([], 1.0) is None


class _Player:
    def __init__(self):
        self.time = 0.0
        self.actions = []

    def get_current_time(self):
        return self.time

    def seek(self, time):
        self.actions.append(("seek", time))

    def play(self):
        self.actions.append(("play",))


class _View:
    def __init__(self):
        self.events = []

    def activate(self, index):
        self.events.append(("on", index))

    def deactivate(self, index):
        self.events.append(("off", index))


def test_tick_moves_highlight_only_on_change():
    player, view = _Player(), _View()
    sync = PlaybackSynchronizer(player, view, interval=0.01)
    sync.load(SEGMENTS)

    for t in (0.5, 1.0, 2.5, 3.5, 4.0):
        player.time = t
        sync.tick()

    assert view.events == [("on", 0), ("off", 0), ("on", 1)]
    assert sync.active_index == 1


def test_tick_without_segments_is_a_no_op():
    player, view = _Player(), _View()
    sync = PlaybackSynchronizer(player, view)
    sync.tick()
    assert view.events == []


def test_broken_player_samples_as_zero():
    class _Broken(_Player):
        def get_current_time(self):
            raise RuntimeError("player not ready")

    view = _View()
    sync = PlaybackSynchronizer(_Broken(), view)
    sync.load(SEGMENTS)
    sync.tick()
    assert view.events == [("on", 0)]


def test_seek_asks_player_and_leaves_index_to_next_tick():
    player, view = _Player(), _View()
    sync = PlaybackSynchronizer(player, view)
    sync.load(SEGMENTS)
    sync.seek(1)
    assert player.actions == [("seek", 3.0), ("play",)]
    assert sync.active_index is None
    assert view.events == []


@pytest.mark.parametrize("index", [-1, 2, 10])
def test_seek_rejects_out_of_range_index(index):
    player, view = _Player(), _View()
    sync = PlaybackSynchronizer(player, view)
    sync.load(SEGMENTS)
    with pytest.raises(IndexError):
        sync.seek(index)
    assert player.actions == []


def test_load_resets_active_index():
    player, view = _Player(), _View()
    sync = PlaybackSynchronizer(player, view)
    sync.load(SEGMENTS)
    sync.tick()
    sync.load(SEGMENTS)
    assert sync.active_index is None


def test_repeating_task_start_is_idempotent_and_stop_repeatable():
    ticked = threading.Event()
    task = RepeatingTask(ticked.set, interval=0.01)
    task.start()
    thread = task._thread
    task.start()
    assert task._thread is thread
    assert ticked.wait(2.0)
    task.stop()
    task.stop()
    assert not task.running
    assert not thread.is_alive()


def test_synchronizer_runs_on_its_own_tick():
    player, view = _Player(), _View()
    player.time = 3.5
    sync = PlaybackSynchronizer(player, view, interval=0.01)
    sync.load(SEGMENTS)
    activated = threading.Event()
    view.activate = lambda index: activated.set()
    sync.start()
    sync.start()
    try:
        assert activated.wait(2.0)
        assert sync.running
    finally:
        sync.stop()
        sync.stop()
    assert not sync.running
    assert sync.active_index == 1
