"""Tests for the Player transport facade."""

import asyncio

import pytest

from playqueue.config import PlayerConfig
from playqueue.engines import EngineState, MemoryEngine
from playqueue.models import Track
from playqueue.playback import ClockMode, Player, PlayerSnapshot, RepeatMode
from playqueue.playback.queue import NO_INDEX


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _url(track_id: str) -> str:
    return f"http://cdn.test/{track_id}.mp3"


def _streamed(*ids: str) -> list[Track]:
    return [Track(track_id=i, streaming_url=_url(i)) for i in ids]


async def _create_player(engine: MemoryEngine = None, **config) -> Player:
    player = Player(config=PlayerConfig(**config), engine=engine)
    await player.start()
    return player


def _ids(snapshot: PlayerSnapshot) -> list[str]:
    return [t.track_id for t in snapshot.queue]


# ---------------------------------------------------------------------------
# Tests: flags and modes
# ---------------------------------------------------------------------------


class TestFlags:
    """Test synchronous mode and panel toggles."""

    @pytest.mark.asyncio
    async def test_initial_snapshot(self) -> None:
        player = await _create_player()
        snap = player.snapshot()
        assert snap.current_track is None
        assert snap.current_index == NO_INDEX
        assert snap.queue == ()
        assert snap.is_playing is False
        assert snap.progress == 0.0
        assert snap.volume == 80.0
        assert snap.repeat_mode == RepeatMode.OFF
        assert snap.is_shuffled is False
        assert snap.is_minimized is False
        assert snap.is_queue_open is False
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_repeat_cycle(self) -> None:
        player = await _create_player()
        assert player.toggle_repeat() == RepeatMode.ONE
        assert player.toggle_repeat() == RepeatMode.ALL
        assert player.toggle_repeat() == RepeatMode.OFF
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_double_toggles_are_identity(self) -> None:
        player = await _create_player()
        before = player.snapshot()

        player.toggle_shuffle()
        player.toggle_shuffle()
        player.toggle_minimize()
        player.toggle_minimize()
        player.toggle_queue_panel()
        player.toggle_queue_panel()

        assert player.snapshot() == before
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_queue_panel_open_close_idempotent(self) -> None:
        player = await _create_player()
        player.open_queue_panel()
        player.open_queue_panel()
        assert player.snapshot().is_queue_open is True
        player.close_queue_panel()
        player.close_queue_panel()
        assert player.snapshot().is_queue_open is False
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_listeners_receive_snapshots(self) -> None:
        player = await _create_player()
        seen: list[PlayerSnapshot] = []
        player.add_listener(seen.append)

        player.toggle_shuffle()
        player.remove_listener(seen.append)
        player.toggle_shuffle()

        assert len(seen) == 1
        assert seen[0].is_shuffled is True
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_listener_error_is_contained(self) -> None:
        player = await _create_player()

        def broken(snapshot: PlayerSnapshot) -> None:
            raise RuntimeError("boom")

        player.add_listener(broken)
        assert player.toggle_shuffle() is True
        await player.shutdown()


# ---------------------------------------------------------------------------
# Tests: transport
# ---------------------------------------------------------------------------


class TestTransport:
    """Test play, pause, seek and volume."""

    @pytest.mark.asyncio
    async def test_play_track_replaces_queue(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            player.append(Track("X"))
            player.append(Track("Y"))

            await player.play_track(Track("A", streaming_url=_url("A")))

            snap = player.snapshot()
            assert _ids(snap) == ["A"]
            assert snap.current_index == 0
            assert snap.is_playing is True
            assert engine.state == EngineState.PLAYING
            assert player.clock_mode == ClockMode.REAL
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_play_current_track_toggles(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            track = Track("A", streaming_url=_url("A"))
            await player.play_track(track)

            await player.play_track(track)
            assert player.snapshot().is_playing is False
            assert engine.state == EngineState.PAUSED

            await player.play_track(track)
            assert player.snapshot().is_playing is True
            assert engine.state == EngineState.PLAYING
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_toggle_without_track_is_noop(self) -> None:
        player = await _create_player()
        await player.toggle_play()
        assert player.snapshot().is_playing is False
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_seek_repositions_engine(self) -> None:
        engine = MemoryEngine(track_duration_s=200.0)
        player = await _create_player(engine)
        try:
            await player.play_track(Track("A", streaming_url=_url("A")))
            await player.toggle_play()

            await player.seek(50)

            assert player.snapshot().progress == 50.0
            assert engine.position == pytest.approx(100.0)
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_seek_clamps(self) -> None:
        player = await _create_player(tick_interval_ms=1000)
        try:
            await player.play_track(Track("A"))
            await player.seek(150)
            assert player.snapshot().progress == 100.0
            await player.seek(-10)
            assert player.snapshot().progress == 0.0
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_seek_without_track_ignored(self) -> None:
        player = await _create_player()
        await player.seek(50)
        assert player.snapshot().progress == 0.0
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_set_volume_applies_to_engine(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            assert await player.set_volume(40) == 40.0
            assert player.snapshot().volume == 40.0
            assert engine.volume == pytest.approx(0.4)

            assert await player.set_volume(250) == 100.0
            assert engine.volume == pytest.approx(1.0)
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_start_applies_default_volume(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine, default_volume=30.0)
        assert engine.is_connected() is True
        assert engine.volume == pytest.approx(0.3)
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_close_player_resets_everything(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.play_track(Track("A", streaming_url=_url("A")))
            await player.set_volume(10)
            player.toggle_shuffle()
            player.toggle_repeat()
            player.toggle_minimize()
            player.open_queue_panel()

            await player.close_player()

            snap = player.snapshot()
            assert snap.queue == ()
            assert snap.current_track is None
            assert snap.is_playing is False
            assert snap.volume == 80.0
            assert snap.is_shuffled is False
            assert snap.repeat_mode == RepeatMode.OFF
            assert snap.is_minimized is False
            assert snap.is_queue_open is False
            assert engine.state == EngineState.STOPPED
            assert player.clock_mode == ClockMode.IDLE
        finally:
            await player.shutdown()


# ---------------------------------------------------------------------------
# Tests: queue operations
# ---------------------------------------------------------------------------


class TestQueueOperations:
    """Test queue mutations with playback side effects."""

    @pytest.mark.asyncio
    async def test_append_selects_without_playing(self) -> None:
        player = await _create_player()
        player.append(Track("A"))
        snap = player.snapshot()
        assert snap.current_index == 0
        assert snap.is_playing is False
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_append_without_selection_selects_new_entry(self) -> None:
        """Test a cleared selection moves to the new entry, not back to the first."""
        player = await _create_player()
        await player.set_queue([Track("A"), Track("B")])
        assert player.snapshot().current_index == NO_INDEX

        player.append(Track("C"))

        snap = player.snapshot()
        assert snap.current_index == 2
        assert snap.current_track is not None
        assert snap.current_track.track_id == "C"
        assert snap.is_playing is False
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_remove_before_current(self) -> None:
        """Test [T1,T2,T3] at 2, remove T2 -> [T1,T3] at 1, T3 re-loaded."""
        engine = MemoryEngine(track_duration_s=100.0)
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2", "T3"))
            await player.play_from_queue(2)
            await player.seek(50)

            assert await player.remove("T2") is True

            snap = player.snapshot()
            assert _ids(snap) == ["T1", "T3"]
            assert snap.current_index == 1
            assert snap.current_track is not None
            assert snap.current_track.track_id == "T3"
            assert snap.is_playing is True
            assert snap.progress == 0.0
            assert engine.url == _url("T3")
            assert engine.state == EngineState.PLAYING
            assert engine.position < 50.0
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_remove_after_current_reloads_paused(self) -> None:
        """Test removing a later entry while paused re-loads without playing."""
        engine = MemoryEngine(track_duration_s=100.0)
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2", "T3"))
            await player.play_from_queue(0)
            await player.toggle_play()
            await player.seek(40)

            await player.remove("T3")

            snap = player.snapshot()
            assert _ids(snap) == ["T1", "T2"]
            assert snap.current_index == 0
            assert snap.is_playing is False
            assert snap.progress == 0.0
            assert engine.url == _url("T1")
            assert engine.state == EngineState.LOADED
            assert player.clock_mode == ClockMode.IDLE
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_remove_current_loads_successor(self) -> None:
        """Test [T1,T2,T3] at 1, remove T2 -> T3 current from 0."""
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2", "T3"))
            await player.play_from_queue(1)
            await player.seek(60)

            await player.remove("T2")

            snap = player.snapshot()
            assert _ids(snap) == ["T1", "T3"]
            assert snap.current_index == 1
            assert snap.current_track is not None
            assert snap.current_track.track_id == "T3"
            assert snap.progress == 0.0
            assert snap.is_playing is True
            assert engine.url == _url("T3")
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_remove_current_while_paused_stays_paused(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2"))
            await player.play_from_queue(0)
            await player.toggle_play()

            await player.remove("T1")

            snap = player.snapshot()
            assert snap.current_track is not None
            assert snap.current_track.track_id == "T2"
            assert snap.is_playing is False
            assert engine.state != EngineState.PLAYING
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_remove_last_track_stops(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.play_track(Track("A", streaming_url=_url("A")))

            await player.remove("A")

            snap = player.snapshot()
            assert snap.queue == ()
            assert snap.current_index == NO_INDEX
            assert snap.is_playing is False
            assert engine.state == EngineState.STOPPED
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_remove_unknown(self) -> None:
        player = await _create_player()
        player.append(Track("A"))
        assert await player.remove("Z") is False
        assert _ids(player.snapshot()) == ["A"]
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_reorder_keeps_current(self) -> None:
        """Test [A,B,C] at B, move 0 -> 2 gives [B,C,A] at 0."""
        player = await _create_player()
        await player.set_queue([Track("A"), Track("B"), Track("C")])
        await player.set_current_index(1)

        assert player.reorder(0, 2) is True

        snap = player.snapshot()
        assert _ids(snap) == ["B", "C", "A"]
        assert snap.current_index == 0
        assert snap.current_track is not None
        assert snap.current_track.track_id == "B"
        assert player.reorder(1, 1) is False
        await player.shutdown()

    @pytest.mark.asyncio
    async def test_clear_keeps_modes(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.play_track(Track("A", streaming_url=_url("A")))
            await player.set_volume(33)
            player.toggle_repeat()

            await player.clear()

            snap = player.snapshot()
            assert snap.queue == ()
            assert snap.is_playing is False
            assert snap.volume == 33.0
            assert snap.repeat_mode == RepeatMode.ONE
            assert engine.state == EngineState.STOPPED
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_set_queue_stops_when_current_changes(self) -> None:
        player = await _create_player(tick_interval_ms=1000)
        try:
            await player.play_track(Track("A"))

            await player.set_queue([Track("B")])

            snap = player.snapshot()
            assert snap.current_track is not None
            assert snap.current_track.track_id == "B"
            assert snap.is_playing is False
            assert player.clock_mode == ClockMode.IDLE
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_set_queue_keeps_playing_same_track(self) -> None:
        player = await _create_player(tick_interval_ms=1000)
        try:
            await player.play_track(Track("A"))

            await player.set_queue([Track("A"), Track("B")])

            assert player.snapshot().is_playing is True
            assert player.clock_mode == ClockMode.SYNTHETIC
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_set_current_index_out_of_range(self) -> None:
        player = await _create_player()
        player.append(Track("A"))
        assert await player.set_current_index(5) is False
        assert player.snapshot().current_index == 0
        await player.shutdown()


# ---------------------------------------------------------------------------
# Tests: engine events
# ---------------------------------------------------------------------------


class TestEngineEvents:
    """Test reactions to ended and error events."""

    @pytest.mark.asyncio
    async def test_ended_advances(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2"))
            await player.play_from_queue(0)

            engine.finish()
            await asyncio.gather(*player._tasks)

            snap = player.snapshot()
            assert snap.current_index == 1
            assert snap.is_playing is True
            assert engine.url == _url("T2")
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_repeat_one_double_skip_keeps_playing(self) -> None:
        """Test overlapping restarts of the same stream end in real playback."""

        class SlowStartEngine(MemoryEngine):
            async def play(self) -> None:
                await super().play()
                await asyncio.sleep(0.01)

        engine = SlowStartEngine()
        player = await _create_player(engine)
        try:
            player.append(_streamed("a")[0])
            player.toggle_repeat()

            await asyncio.gather(player.skip_next(), player.skip_next())

            snap = player.snapshot()
            assert snap.current_index == 0
            assert snap.is_playing is True
            assert player.clock_mode == ClockMode.REAL
            assert engine.state == EngineState.PLAYING
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_ended_on_last_track_clears_selection(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.play_track(Track("A", streaming_url=_url("A")))

            engine.finish()
            await asyncio.gather(*player._tasks)

            snap = player.snapshot()
            assert snap.current_index == NO_INDEX
            assert snap.is_playing is False
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_ended_while_paused_ignored(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2"))
            await player.play_from_queue(0)
            await player.toggle_play()

            engine.finish()

            assert not player._tasks
            assert player.snapshot().current_index == 0
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_error_stops_playback_keeps_queue(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        try:
            await player.set_queue(_streamed("T1", "T2"))
            await player.play_from_queue(1)

            engine.fail("decoder crashed")

            snap = player.snapshot()
            assert snap.is_playing is False
            assert snap.current_index == 1
            assert _ids(snap) == ["T1", "T2"]
            assert player.clock_mode == ClockMode.IDLE
        finally:
            await player.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_detaches_engine(self) -> None:
        engine = MemoryEngine()
        player = await _create_player(engine)
        await player.play_track(Track("A", streaming_url=_url("A")))

        await player.shutdown()

        assert engine.is_connected() is False
        assert player.clock_mode == ClockMode.IDLE
        # Events after shutdown reach nobody
        engine.fail("late")
        assert player.snapshot().is_playing is False
