"""
Unit tests for the game session engine.

All network traffic goes through FakeWikiClient (see conftest.py), so
these tests exercise the real resolver, fetcher, retry and cache code.
"""

import asyncio
import random
import time

import pytest

from conftest import GRID_TITLES, STARTING_TITLE
from wikibingo.errors import CatalogUnavailable, NetworkError
from wikibingo.game import GameSession, SessionPhase
from wikibingo.game.state import FOUND_PREFIX


def make_session(catalog, resolver, fetcher, **kwargs):
    return GameSession(catalog, resolver, fetcher, rng=random.Random(0), **kwargs)


@pytest.fixture
def changes():
    """Every snapshot passed to on_change."""
    return []


@pytest.fixture
def session(catalog, resolver, fetcher, changes):
    return make_session(catalog, resolver, fetcher, on_change=changes.append)


class TestStartNewGame:
    """Test starting a game."""

    def test_initial_state(self, session):
        state = session.get_state()

        assert state.phase == SessionPhase.NOT_STARTED
        assert state.started is False
        assert state.click_count == 0

    @pytest.mark.asyncio
    async def test_replayed_set(self, session, bingo_titles):
        state = await session.start_new_game(bingo_titles)

        assert state.phase == SessionPhase.ACTIVE
        assert [cell.article for cell in state.grid_cells] == GRID_TITLES
        assert [cell.id for cell in state.grid_cells][:2] == ["cell-0", "cell-1"]
        assert state.starting_article == STARTING_TITLE
        assert state.current_title == STARTING_TITLE
        assert state.history == [STARTING_TITLE]
        assert state.timer_running is True
        assert state.article_loading is False
        assert state.click_count == 0
        assert state.game_type == "repeat"
        assert not session.navigating

    @pytest.mark.asyncio
    async def test_random_set(self, session, catalog):
        state = await session.start_new_game()
        titles = set(catalog.all_titles())

        assert len(state.grid_cells) == 25
        assert all(cell.article in titles for cell in state.grid_cells)
        assert state.starting_article in titles
        assert state.game_type == "random"

    @pytest.mark.asyncio
    async def test_loading_before_timer(self, session, bingo_titles, changes):
        """The first snapshot is loading with the timer stopped."""
        await session.start_new_game(bingo_titles)

        assert changes[0].phase == SessionPhase.LOADING
        assert changes[0].article_loading is True
        assert changes[0].timer_running is False

    @pytest.mark.asyncio
    async def test_no_catalog(self, resolver, fetcher):
        session = make_session(None, resolver, fetcher)

        with pytest.raises(CatalogUnavailable):
            await session.start_new_game()

    @pytest.mark.asyncio
    async def test_no_catalog_with_replayed_set(self, resolver, fetcher, bingo_titles):
        session = make_session(None, resolver, fetcher)

        state = await session.start_new_game(bingo_titles, game_type="daily")
        assert state.game_type == "daily"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "titles",
        [
            GRID_TITLES,
            GRID_TITLES + ["Target 0"],
            GRID_TITLES + ["target_0"],
            GRID_TITLES + ["  "],
        ],
    )
    async def test_rejects_invalid_set(self, session, titles):
        with pytest.raises(ValueError):
            await session.start_new_game(titles)

    @pytest.mark.asyncio
    async def test_grid_redirects_warmed(self, session, fake_client, bingo_titles):
        """Grid titles are resolved during start, so clicks only look up the clicked title."""
        await session.start_new_game(bingo_titles)
        assert sorted(fake_client.redirect_calls) == sorted(GRID_TITLES)

        fake_client.redirect_calls.clear()
        await session.register_navigation("Paris")
        assert fake_client.redirect_calls == ["Paris"]

        fake_client.redirect_calls.clear()
        await session.register_navigation("Target 3")
        assert fake_client.redirect_calls == []

    @pytest.mark.asyncio
    async def test_starting_article_unavailable(self, session, fake_client, bingo_titles):
        """A dead starting article is swapped for a catalog article."""
        fake_client.failing.add("start_page")

        state = await session.start_new_game(bingo_titles)

        assert state.current_title.startswith("Spare")
        assert state.history == [state.current_title]
        assert state.timer_running is True


class TestNavigation:
    """Test register_navigation()."""

    @pytest.mark.asyncio
    async def test_ignored_before_start(self, session):
        assert await session.register_navigation("Target 0") is False
        assert session.get_state().click_count == 0

    @pytest.mark.asyncio
    async def test_ignores_empty_title(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)

        assert await session.register_navigation("") is False
        assert session.get_state().click_count == 0

    @pytest.mark.asyncio
    async def test_click_count_equals_navigations(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)
        titles = ["Paris", "France", "Paris", "Target 12", "Europe"]

        for title in titles:
            assert await session.register_navigation(title) is True

        state = session.get_state()
        assert state.click_count == len(titles)
        assert state.history == [STARTING_TITLE] + titles
        assert state.current_title == "Europe"

    @pytest.mark.asyncio
    async def test_literal_match(self, catalog, resolver, fetcher, bingo_titles):
        matches = []
        session = make_session(catalog, resolver, fetcher, on_match=matches.append)
        await session.start_new_game(bingo_titles)

        await session.register_navigation("target_3")

        state = session.get_state()
        assert state.grid_cells[3].matched is True
        assert state.matched == {"target_3"}
        assert matches == ["Target 3"]

    @pytest.mark.asyncio
    async def test_redirect_to_grid_title(self, session, fake_client, bingo_titles):
        """Visiting 'USA' matches a 'United States' cell."""
        fake_client.add_redirect("USA", "United States")
        bingo_titles[0] = "United States"
        await session.start_new_game(bingo_titles)

        await session.register_navigation("USA")

        state = session.get_state()
        assert state.grid_cells[0].matched is True
        assert state.current_title == "United States"

    @pytest.mark.asyncio
    async def test_grid_title_is_redirect(self, session, fake_client, bingo_titles):
        """Visiting 'United States' matches a 'USA' cell."""
        fake_client.add_redirect("USA", "United States")
        bingo_titles[0] = "USA"
        await session.start_new_game(bingo_titles)

        await session.register_navigation("United States")

        assert session.get_state().grid_cells[0].matched is True

    @pytest.mark.asyncio
    async def test_matches_are_monotonic(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)
        seen = set()

        for title in ["Target 7", "Paris", "Target 9", "Target 7", "London"]:
            await session.register_navigation(title)
            matched = session.get_state().matched
            assert seen <= matched
            seen = matched

        assert seen == {"target_7", "target_9"}

    @pytest.mark.asyncio
    async def test_redirect_failure_uses_literal_title(self, session, fake_client, bingo_titles):
        await session.start_new_game(bingo_titles)
        fake_client.redirect_error = NetworkError("offline")

        assert await session.register_navigation("Target 4") is True
        assert session.get_state().grid_cells[4].matched is True

    @pytest.mark.asyncio
    async def test_redirect_deadline(self, catalog, resolver, fetcher, fake_client, bingo_titles):
        """A hanging redirect API falls back to the literal title."""
        session = make_session(catalog, resolver, fetcher, redirect_timeout=0.05)
        await session.start_new_game(bingo_titles)
        fake_client.redirect_delay = 5.0

        started = time.monotonic()
        assert await session.register_navigation("Target 2") is True

        assert time.monotonic() - started < 2.0
        state = session.get_state()
        assert state.current_title == "Target 2"
        assert state.grid_cells[2].matched is True
        assert state.article_loading is False

    @pytest.mark.asyncio
    async def test_content_failure_substitutes_grid_cell(self, session, fake_client, bingo_titles):
        """A grid article with no content is replaced without raising."""
        fake_client.failing.add("target_0")
        await session.start_new_game(bingo_titles)

        assert await session.register_navigation("Target 0") is True

        state = session.get_state()
        replacement_cell = state.grid_cells[0]
        assert replacement_cell.article.startswith("Spare")
        assert replacement_cell.matched is False
        assert state.current_title.startswith("Spare")
        assert state.current_title != replacement_cell.article
        assert state.click_count == 1
        assert state.matched == set()
        assert len({cell.key for cell in state.grid_cells}) == 25

    @pytest.mark.asyncio
    async def test_content_failure_without_catalog(self, resolver, fetcher, fake_client, bingo_titles):
        """Without a catalog the page is shown empty."""
        session = make_session(None, resolver, fetcher)
        fake_client.failing.add("paris")
        await session.start_new_game(bingo_titles)

        assert await session.register_navigation("Paris") is True

        state = session.get_state()
        assert state.current_title == "Paris"
        assert state.current_article.html == ""

    @pytest.mark.asyncio
    async def test_malformed_summary_does_not_stall(self, session, fake_client, bingo_titles):
        """A wrong-shaped summary after two failed legs still completes the click."""
        await session.start_new_game(bingo_titles)
        fake_client.failing_endpoints = {"desktop", "mobile"}
        fake_client.summary_payload = ["not", "an", "object"]

        assert await session.register_navigation("Paris") is True

        state = session.get_state()
        assert state.article_loading is False
        assert state.timer_running is True
        assert state.click_count == 1
        assert state.current_article.html == ""

    @pytest.mark.asyncio
    async def test_malformed_redirect_response(self, session, fake_client, bingo_titles):
        fake_client.redirect_payload = {"query": {"pages": {"1": "x"}}}
        await session.start_new_game(bingo_titles)

        assert await session.register_navigation("Target 1") is True
        assert session.get_state().grid_cells[1].matched is True

    @pytest.mark.asyncio
    async def test_unexpected_error_restores_timer(
        self, session, fetcher, bingo_titles, changes, monkeypatch
    ):
        """An unexpected failure propagates but leaves the session playable."""
        await session.start_new_game(bingo_titles)

        async def broken_fetch(title):
            raise RuntimeError("parser exploded")

        monkeypatch.setattr(fetcher, "fetch", broken_fetch)
        with pytest.raises(RuntimeError):
            await session.register_navigation("Paris")

        state = session.get_state()
        assert state.article_loading is False
        assert state.timer_running is True
        assert state.click_count == 1
        assert not session.navigating
        assert not any(s.timer_running and s.article_loading for s in changes)

        monkeypatch.undo()
        assert await session.register_navigation("Target 0") is True
        assert session.get_state().grid_cells[0].matched is True

    @pytest.mark.asyncio
    async def test_concurrent_click_ignored(self, session, fake_client, bingo_titles):
        """A click while a navigation is in flight is dropped."""
        await session.start_new_game(bingo_titles)
        fake_client.content_delay = 0.05

        first = asyncio.create_task(session.register_navigation("Target 0"))
        await asyncio.sleep(0)

        assert session.navigating
        assert await session.register_navigation("Target 1") is False
        assert await first is True

        state = session.get_state()
        assert state.click_count == 1
        assert state.matched == {"target_0"}
        assert not session.navigating

    @pytest.mark.asyncio
    async def test_new_game_discards_stale_navigation(self, session, fake_client, bingo_titles):
        await session.start_new_game(bingo_titles)
        fake_client.content_delay = 0.05

        pending = asyncio.create_task(session.register_navigation("Target 0"))
        await asyncio.sleep(0)
        other_titles = [f"Other {i}" for i in range(26)]
        await session.start_new_game(other_titles)
        assert await pending is True

        state = session.get_state()
        assert [cell.article for cell in state.grid_cells] == other_titles[:25]
        assert state.click_count == 0
        assert state.history == ["Other 25"]
        assert state.matched == set()
        assert not session.navigating

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_break_session(self, catalog, resolver, fetcher, bingo_titles):
        def broken(_):
            raise RuntimeError("listener failed")

        session = make_session(catalog, resolver, fetcher, on_change=broken, on_match=broken)
        await session.start_new_game(bingo_titles)

        assert await session.register_navigation("Target 0") is True
        assert session.get_state().grid_cells[0].matched is True


class TestTimer:
    """Test the timer/loading state machine."""

    @pytest.mark.asyncio
    async def test_tick_while_active(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)

        session.tick()
        session.tick(2)

        assert session.get_state().elapsed_seconds == 3

    def test_tick_before_start(self, session):
        session.tick()
        assert session.get_state().elapsed_seconds == 0

    @pytest.mark.asyncio
    async def test_paused_while_loading(self, session, fake_client, bingo_titles):
        await session.start_new_game(bingo_titles)
        fake_client.content_delay = 0.05

        task = asyncio.create_task(session.register_navigation("Paris"))
        await asyncio.sleep(0)

        state = session.get_state()
        assert state.article_loading is True
        assert state.timer_running is False
        session.tick()
        assert session.get_state().elapsed_seconds == 0

        await task
        session.tick()
        assert session.get_state().elapsed_seconds == 1

    @pytest.mark.asyncio
    async def test_never_running_while_loading(self, session, fake_client, bingo_titles, changes):
        fake_client.failing.add("target_1")
        await session.start_new_game(bingo_titles)

        for title in ["Target 0", "Target 1", "Paris", "Target 2", "Target 3", "Target 4"]:
            await session.register_navigation(title)
            session.tick()

        assert changes
        assert not any(s.timer_running and s.article_loading for s in changes)

    @pytest.mark.asyncio
    async def test_run_timer(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)

        task = asyncio.create_task(session.run_timer(interval=0.01))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.get_state().elapsed_seconds > 0


class TestWin:
    """Test win detection and the finished-game record."""

    @pytest.mark.asyncio
    async def test_top_row_wins(self, catalog, resolver, fetcher, bingo_titles):
        records = []
        session = make_session(catalog, resolver, fetcher, on_win=records.append)
        await session.start_new_game(bingo_titles)
        session.tick(10)

        for index in range(4):
            await session.register_navigation(f"Target {index}")
            assert session.get_state().won is False

        await session.register_navigation("Target 4")

        state = session.get_state()
        assert state.won is True
        assert state.phase == SessionPhase.WON
        assert state.winning_lines == [0]
        assert state.winning_cells == [0, 1, 2, 3, 4]
        assert state.timer_running is False
        assert len(records) == 1

        record = records[0]
        assert record.click_count == 5
        assert record.elapsed_seconds == 10
        assert record.score == 50
        assert record.game_type == "repeat"
        assert record.history == [STARTING_TITLE] + [f"Target {i}" for i in range(5)]
        assert record.bingo_squares[:5] == [f"{FOUND_PREFIX}Target {i}" for i in range(5)]
        assert record.bingo_squares[5] == "Target 5"

    @pytest.mark.asyncio
    async def test_won_is_terminal(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)
        for index in (4, 8, 12, 16, 20):
            await session.register_navigation(f"Target {index}")
        assert session.get_state().winning_lines == [11]

        assert await session.register_navigation("Target 0") is False
        session.tick()

        state = session.get_state()
        assert state.click_count == 5
        assert state.elapsed_seconds == 0
        assert state.won is True

    @pytest.mark.asyncio
    async def test_game_record_before_win(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)
        await session.register_navigation("Target 6")
        session.tick(3)

        record = session.game_record()
        assert record.score == 3
        assert record.bingo_squares[6] == f"{FOUND_PREFIX}Target 6"


class TestReplaceGridArticle:
    """Test replace_grid_article()."""

    @pytest.mark.asyncio
    async def test_replaces_unmatched_cell(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)

        replacement = session.replace_grid_article("Target 7")

        state = session.get_state()
        assert replacement is not None
        assert replacement.startswith("Spare")
        assert state.grid_cells[7].article == replacement
        assert state.grid_cells[7].id == "cell-7"

    @pytest.mark.asyncio
    async def test_matched_cell_kept(self, session, bingo_titles):
        await session.start_new_game(bingo_titles)
        await session.register_navigation("Target 7")

        assert session.replace_grid_article("Target 7") is None
        assert session.get_state().grid_cells[7].article == "Target 7"
