"""Tests for queue management."""

import random

import pytest

from conftest import make_tracks
from subsonic_player.playback.queue import (
    PlayQueue,
    compute_next,
    compute_previous,
    compute_shuffled_order,
    find_track_index,
)
from subsonic_player.playback.types import RepeatMode, Track


class TestComputeNext:
    """Tests for next-index computation."""

    def test_empty_queue(self) -> None:
        assert compute_next(-1, 0, RepeatMode.OFF) is None
        assert compute_next(-1, 0, RepeatMode.ALL) is None

    def test_sequential(self) -> None:
        assert compute_next(0, 3, RepeatMode.OFF) == 1
        assert compute_next(1, 3, RepeatMode.ALL) == 2

    def test_end_of_queue_repeat_off(self) -> None:
        assert compute_next(2, 3, RepeatMode.OFF) is None

    def test_end_of_queue_repeat_all_wraps(self) -> None:
        assert compute_next(2, 3, RepeatMode.ALL) == 0

    def test_repeat_one_replays_current(self) -> None:
        assert compute_next(1, 3, RepeatMode.ONE) == 1
        assert compute_next(2, 3, RepeatMode.ONE) == 2

    def test_single_track_repeat_all(self) -> None:
        assert compute_next(0, 1, RepeatMode.ALL) == 0

    def test_no_current_starts_at_head(self) -> None:
        assert compute_next(-1, 3, RepeatMode.OFF) == 0


class TestComputePrevious:
    """Tests for previous-index computation."""

    def test_restart_after_threshold(self) -> None:
        assert compute_previous(2, 5.0) is None

    def test_previous_within_threshold(self) -> None:
        assert compute_previous(2, 1.0) == 1

    def test_exactly_at_threshold_goes_back(self) -> None:
        assert compute_previous(2, 3.0) == 1

    def test_head_restarts(self) -> None:
        assert compute_previous(0, 0.0) is None

    def test_custom_threshold(self) -> None:
        assert compute_previous(2, 5.0, threshold=10.0) == 1


class TestComputeShuffledOrder:
    """Tests for shuffled order generation."""

    def test_anchor_first(self) -> None:
        tracks = make_tracks("A", "B", "C", "D", "E")
        for seed in range(20):
            order = compute_shuffled_order(tracks, 2, random.Random(seed))
            assert order[0].id == "C"

    def test_is_permutation(self) -> None:
        tracks = make_tracks("A", "B", "C", "D", "E")
        order = compute_shuffled_order(tracks, 0, random.Random(7))
        assert sorted(t.id for t in order) == ["A", "B", "C", "D", "E"]

    def test_no_anchor(self) -> None:
        tracks = make_tracks("A", "B", "C")
        order = compute_shuffled_order(tracks, -1, random.Random(7))
        assert sorted(t.id for t in order) == ["A", "B", "C"]

    def test_duplicates_kept(self) -> None:
        a, b = make_tracks("A", "B")
        order = compute_shuffled_order([a, b, a], 1, random.Random(3))
        assert order[0] is b
        assert [t.id for t in order].count("A") == 2


class TestFindTrackIndex:
    """Tests for track lookup by ID."""

    def test_found(self) -> None:
        assert find_track_index(make_tracks("A", "B", "C"), "B") == 1

    def test_missing(self) -> None:
        assert find_track_index(make_tracks("A"), "Z") == -1

    def test_duplicate_returns_lowest(self) -> None:
        a, b = make_tracks("A", "B")
        assert find_track_index([b, a, b], "B") == 0


class TestPlayQueue:
    """Tests for PlayQueue class."""

    @pytest.fixture
    def queue(self) -> PlayQueue:
        """Create a fresh queue."""
        return PlayQueue(rng=random.Random(42))

    @pytest.fixture
    def sample_tracks(self) -> list[Track]:
        return make_tracks("A", "B", "C", "D", "E")

    # =========================================================================
    # Load Queue Tests
    # =========================================================================

    def test_empty(self, queue: PlayQueue) -> None:
        assert queue.is_empty
        assert queue.index == -1
        assert queue.current is None
        assert len(queue) == 0

    def test_set_queue(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        assert len(queue) == 5
        assert queue.index == 2
        assert queue.current is not None
        assert queue.current.id == "C"

    def test_set_queue_out_of_range_clamps(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks, 10)
        assert queue.index == 0

    def test_set_empty_queue(self, queue: PlayQueue) -> None:
        queue.set_queue([], 3)
        assert queue.index == -1

    def test_append_keeps_cursor(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks[:2], 1)
        queue.append(sample_tracks[2:])
        assert len(queue) == 5
        assert queue.index == 1

    def test_replace_track(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 0)
        starred = Track(id="B", title="Track B", starred=True)
        queue.replace_track(starred)
        assert queue[1] is starred

    # =========================================================================
    # Removal Tests
    # =========================================================================

    def test_remove_before_cursor(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        removed = queue.remove_at(0)
        assert removed is not None and removed.id == "A"
        assert queue.index == 1
        assert queue.current is not None and queue.current.id == "C"

    def test_remove_after_cursor(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        queue.remove_at(4)
        assert queue.index == 2
        assert not queue.detached

    def test_remove_out_of_range(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        assert queue.remove_at(5) is None
        assert queue.remove_at(-1) is None
        assert len(queue) == 5

    def test_remove_current_detaches(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        queue.remove_at(2)
        assert queue.detached
        assert queue.current is None
        assert [t.id for t in queue.tracks] == ["A", "B", "D", "E"]
        # Next is the track that followed the removed one
        assert queue.next_index(RepeatMode.OFF) == 2
        assert queue[2].id == "D"

    def test_detached_repeat_one_moves_on(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks, 1)
        queue.remove_at(1)
        assert queue.next_index(RepeatMode.ONE) == 1

    def test_detached_previous(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        queue.remove_at(2)
        assert queue.previous_index(1.0) == 1
        assert queue.previous_index(10.0) is None

    def test_detached_removal_before_cursor(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks, 2)
        queue.remove_at(2)
        queue.remove_at(1)
        assert queue.index == 0
        assert queue[queue.next_index(RepeatMode.OFF)].id == "D"

    def test_move_to_reattaches(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 2)
        queue.remove_at(2)
        track = queue.move_to(2)
        assert track is not None and track.id == "D"
        assert not queue.detached

    # =========================================================================
    # Shuffle Tests
    # =========================================================================

    def test_shuffle_anchors_current(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 3)
        queue.set_shuffle(True)
        assert queue.is_shuffled
        assert queue.index == 0
        assert queue.current is not None and queue.current.id == "D"
        assert sorted(t.id for t in queue.tracks) == ["A", "B", "C", "D", "E"]

    def test_unshuffle_restores_order(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 1)
        queue.set_shuffle(True)
        queue.move_to(3)
        current_id = queue.current.id  # type: ignore[union-attr]
        queue.set_shuffle(False)
        assert [t.id for t in queue.tracks] == ["A", "B", "C", "D", "E"]
        assert queue.current is not None and queue.current.id == current_id

    def test_unshuffle_duplicates_lowest_index(self, queue: PlayQueue) -> None:
        a, b, c = make_tracks("A", "B", "C")
        queue.set_queue([a, b, a, c], 2)
        queue.set_shuffle(True)
        queue.set_shuffle(False)
        assert queue.index == 0

    def test_append_while_shuffled_survives_unshuffle(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks[:3], 0)
        queue.set_shuffle(True)
        queue.append(sample_tracks[3:])
        queue.set_shuffle(False)
        assert [t.id for t in queue.tracks] == ["A", "B", "C", "D", "E"]

    def test_remove_while_shuffled_survives_unshuffle(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks, 0)
        queue.set_shuffle(True)
        index_of_c = find_track_index(queue.tracks, "C")
        queue.remove_at(index_of_c)
        queue.set_shuffle(False)
        assert [t.id for t in queue.tracks] == ["A", "B", "D", "E"]

    def test_unshuffle_when_not_shuffled_is_noop(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks, 2)
        queue.set_shuffle(False)
        assert [t.id for t in queue.tracks] == ["A", "B", "C", "D", "E"]
        assert queue.index == 2

    # =========================================================================
    # Snapshot Tests
    # =========================================================================

    def test_snapshot_restore(self, queue: PlayQueue, sample_tracks: list[Track]) -> None:
        queue.set_queue(sample_tracks, 3)
        snapshot = queue.snapshot()
        queue.clear()
        assert queue.is_empty

        queue.restore(snapshot)
        assert [t.id for t in queue.tracks] == ["A", "B", "C", "D", "E"]
        assert queue.index == 3

    def test_snapshot_keeps_shuffle_origin(
        self, queue: PlayQueue, sample_tracks: list[Track]
    ) -> None:
        queue.set_queue(sample_tracks, 0)
        queue.set_shuffle(True)
        shuffled = queue.tracks
        snapshot = queue.snapshot()
        queue.clear()

        queue.restore(snapshot)
        assert queue.tracks == shuffled
        assert queue.is_shuffled
        queue.set_shuffle(False)
        assert [t.id for t in queue.tracks] == ["A", "B", "C", "D", "E"]
