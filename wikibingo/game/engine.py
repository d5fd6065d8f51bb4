"""
Game session engine for Wikipedia Bingo.

Runs one bingo game: draws the 26-article set, loads articles as the player
navigates, matches visited articles against the grid (including redirect
equivalents) and detects completed lines.

All state changes happen on the event loop. Network work (redirects and
article content) is awaited; exactly one navigation is processed at a time
and extra clicks arriving meanwhile are ignored.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Sequence

from wikibingo.config import GRID_CELL_COUNT, REDIRECT_TIMEOUT, STARTING_POOL_SIZE
from wikibingo.data.catalog import Catalog
from wikibingo.errors import CatalogUnavailable, ContentUnavailable
from wikibingo.game.bingo import generate_bingo_set, pick_replacement_article
from wikibingo.game.state import GameRecord, GridCell, SessionPhase, SessionState
from wikibingo.game.win_detection import detect_wins, winning_cells
from wikibingo.wikipedia.articles import Article, ArticleFetcher
from wikibingo.wikipedia.redirects import RedirectResolver, Resolution
from wikibingo.wikipedia.titles import normalize_title

logger = logging.getLogger(__name__)

# Replacement articles tried before showing an empty page
MAX_SUBSTITUTIONS = 3


class GameSession:
    """
    Orchestrates a single player's bingo game.

    The session handles:
    - Drawing a bingo set (or loading a given one)
    - The timer/loading state machine
    - Navigation with a single-flight lock
    - Redirect-aware, bidirectional matching against the grid
    - Win detection and the finished-game record

    Callbacks (all optional, called synchronously on the event loop):
        on_change(SessionState): after every state change, with a snapshot
        on_match(str): once per newly matched grid title
        on_win(GameRecord): once, when the game is won
    """

    def __init__(
        self,
        catalog: Catalog | None,
        resolver: RedirectResolver,
        fetcher: ArticleFetcher,
        *,
        redirect_timeout: float = REDIRECT_TIMEOUT,
        on_change: Callable[[SessionState], None] | None = None,
        on_match: Callable[[str], None] | None = None,
        on_win: Callable[[GameRecord], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the session.

        Args:
            catalog: Article catalog for drawing sets and replacements
                (may be None when only replaying given sets)
            resolver: Redirect resolver (its cache may be shared)
            fetcher: Article fetcher (its cache may be shared)
            redirect_timeout: Wall-clock ceiling for redirect resolution
            on_change: State listener
            on_match: Match listener
            on_win: Win listener (leaderboard hand-off)
            rng: Random source
        """
        self._catalog = catalog
        self._resolver = resolver
        self._fetcher = fetcher
        self._redirect_timeout = redirect_timeout
        self._on_change = on_change
        self._on_match = on_match
        self._on_win = on_win
        self._rng = rng or random.Random()

        self._state = SessionState()
        # Bumped on every new game; responses from an older game are discarded
        self._generation = 0
        # Token of the navigation holding the lock, None when idle
        self._inflight: int | None = None
        self._next_token = 0

    # =========================================================================
    # Queries
    # =========================================================================

    def get_state(self) -> SessionState:
        """Snapshot of the current state."""
        return self._state.snapshot()

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def navigating(self) -> bool:
        """Whether a navigation (or the initial load) is in flight."""
        return self._inflight is not None

    def game_record(self) -> GameRecord:
        """Leaderboard record for the current game."""
        return self._state.to_record()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start_new_game(
        self,
        bingo_set: Sequence[str] | None = None,
        game_type: str | None = None,
    ) -> SessionState:
        """
        Start a game and load the starting article.

        Args:
            bingo_set: 26 titles to replay (grid first, starting article
                last); a fresh set is drawn from the catalog if omitted
            game_type: Label for the record ("random"/"repeat" by default)

        Returns:
            Snapshot after the starting article has loaded

        Raises:
            CatalogUnavailable: If no set was given and the catalog is empty
            ValueError: If the given set is not 26 distinct titles
        """
        if bingo_set is None:
            if self._catalog is None:
                raise CatalogUnavailable("No article catalog loaded")
            bingo_set = generate_bingo_set(
                self._catalog.categories, self._catalog.groups, rng=self._rng
            )
            game_type = game_type or "random"
        else:
            bingo_set = list(bingo_set)
            keys = {normalize_title(title) for title in bingo_set}
            if len(bingo_set) != STARTING_POOL_SIZE or len(keys) != STARTING_POOL_SIZE or "" in keys:
                raise ValueError(
                    f"A bingo set needs {STARTING_POOL_SIZE} distinct titles, got {len(bingo_set)}"
                )
            game_type = game_type or "repeat"

        self._generation += 1
        generation = self._generation
        token = self._acquire()

        state = SessionState(
            started=True,
            grid_cells=[
                GridCell(id=f"cell-{index}", article=title)
                for index, title in enumerate(bingo_set[:GRID_CELL_COUNT])
            ],
            starting_article=bingo_set[GRID_CELL_COUNT],
            article_loading=True,
            timer_running=False,
            game_type=game_type,
        )
        self._state = state
        logger.info(f"New {game_type} game, starting from '{state.starting_article}'")
        self._notify()

        try:
            # Warm the redirect cache for the grid while the starting article loads
            (article, _), _ = await asyncio.gather(
                self._load_article(state, state.starting_article, set(), generation),
                self._grid_canonical_keys(state),
            )
            if self._is_stale(generation):
                return self.get_state()

            state.current_title = article.title
            state.current_article = article
            state.history.append(article.title)
            state.article_loading = False
            state.timer_running = True
            self._notify()
            return self.get_state()
        finally:
            self._release(token)

    async def register_navigation(self, title: str) -> bool:
        """
        Navigate to `title` (a link click or a history click).

        Returns:
            True if the navigation was processed, False if it was ignored
            (another navigation in flight, game not active, or empty title)
        """
        state = self._state
        if self._inflight is not None:
            logger.debug(f"Navigation already in progress, ignoring click on '{title}'")
            return False
        if not state.started or state.won:
            return False
        if not normalize_title(title):
            return False

        token = self._acquire()
        generation = self._generation
        try:
            state.click_count += 1
            state.article_loading = True
            state.timer_running = False
            self._notify()

            resolution = await self._resolve_with_deadline(title)
            if self._is_stale(generation):
                return True

            requested = {normalize_title(title), normalize_title(resolution.title)}
            article, substituted = await self._load_article(
                state, resolution.title, requested, generation
            )
            if self._is_stale(generation):
                return True

            visited = {normalize_title(article.title)} if substituted else requested

            grid_keys = await self._grid_canonical_keys(state)
            if self._is_stale(generation):
                return True

            # Apply: no awaits from here on
            state.current_title = article.title
            state.current_article = article
            state.history.append(article.title)
            state.article_loading = False
            state.timer_running = not state.won

            newly_matched = self._apply_matches(state, visited, grid_keys)
            won_now = False
            if newly_matched:
                lines = detect_wins(state.matched_cells)
                if lines and not state.won:
                    self._declare_win(state, lines)
                    won_now = True

            logger.info(
                f"Click {state.click_count}: '{title}' -> '{article.title}'"
                + (f", matched {newly_matched}" if newly_matched else "")
            )
            self._notify()
            self._emit_matches(newly_matched)
            if won_now:
                self._emit_win(state)
            return True
        except Exception as e:
            if generation == self._generation:
                logger.error(f"Navigation to '{title}' failed: {e}")
                state.article_loading = False
                state.timer_running = state.started and not state.won
                self._notify()
            raise
        finally:
            self._release(token)

    def tick(self, seconds: int = 1) -> None:
        """Advance the timer if it is running."""
        state = self._state
        if state.timer_running and not state.article_loading and not state.won:
            state.elapsed_seconds += seconds
            self._notify()

    async def run_timer(self, interval: float = 1.0) -> None:
        """Tick once per `interval` until cancelled."""
        while True:
            await asyncio.sleep(interval)
            self.tick()

    def replace_grid_article(self, title: str) -> str | None:
        """
        Swap an unmatched grid cell holding `title` for an unused catalog article.

        Returns:
            The replacement title, or None if no cell was replaced
        """
        state = self._state
        return self._replace_grid_cells(state, {normalize_title(title)})

    # =========================================================================
    # Internals
    # =========================================================================

    def _acquire(self) -> int:
        self._next_token += 1
        self._inflight = self._next_token
        return self._next_token

    def _release(self, token: int) -> None:
        # A new game may have taken the lock while an old navigation was awaiting
        if self._inflight == token:
            self._inflight = None

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.info("Discarding response for a game that has been replaced")
            return True
        return False

    async def _resolve_with_deadline(self, title: str) -> Resolution:
        """Resolve a redirect, falling back to the literal title after the deadline."""
        try:
            return await asyncio.wait_for(
                self._resolver.lookup(title), timeout=self._redirect_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Redirect resolution for '{title}' exceeded {self._redirect_timeout}s, "
                "using original title"
            )
            return Resolution(title=title, resolved=False)

    async def _grid_canonical_keys(self, state: SessionState) -> list[str]:
        """Normalized canonical title of every grid cell."""
        resolutions = await asyncio.gather(
            *(self._resolve_with_deadline(cell.article) for cell in state.grid_cells)
        )
        return [normalize_title(resolution.title) for resolution in resolutions]

    @staticmethod
    def _apply_matches(state: SessionState, visited: set[str], grid_keys: list[str]) -> list[str]:
        """
        Mark grid cells equivalent to the visited article.

        A cell matches when its literal or canonical title equals the
        visited article's literal or canonical title.
        """
        newly_matched: list[str] = []
        for cell, canonical in zip(state.grid_cells, grid_keys):
            if cell.matched:
                continue
            if {cell.key, canonical} & visited:
                cell.matched = True
                state.matched.add(cell.key)
                newly_matched.append(cell.article)
        return newly_matched

    @staticmethod
    def _declare_win(state: SessionState, lines: list[int]) -> None:
        state.won = True
        state.timer_running = False
        state.winning_lines = list(lines)
        state.winning_cells = winning_cells(lines)
        logger.info(
            f"Won! {state.click_count} clicks, {state.elapsed_seconds}s, lines {lines}"
        )

    def _used_titles(self, state: SessionState) -> set[str]:
        used = {cell.article for cell in state.grid_cells}
        if state.starting_article:
            used.add(state.starting_article)
        used.update(state.history)
        return used

    def _replace_grid_cells(self, state: SessionState, keys: set[str]) -> str | None:
        if self._catalog is None:
            return None

        for cell in state.grid_cells:
            if cell.matched or cell.key not in keys:
                continue
            replacement = pick_replacement_article(
                self._catalog.categories, self._used_titles(state), rng=self._rng
            )
            logger.warning(f"Replacing grid article '{cell.article}' with '{replacement}'")
            cell.article = replacement
            self._notify()
            return replacement
        return None

    async def _load_article(
        self,
        state: SessionState,
        title: str,
        requested_keys: set[str],
        generation: int,
    ) -> tuple[Article, bool]:
        """
        Fetch `title`, substituting an unused catalog article if it has no content.

        When the failed title is on the grid, that cell is replaced too.

        Returns:
            (article, substituted)
        """
        try:
            return await self._fetcher.fetch(title), False
        except ContentUnavailable:
            logger.warning(f"Article failed to load: '{title}'")

        if self._is_stale(generation) or self._catalog is None:
            return Article(title=title, html=""), False

        self._replace_grid_cells(state, requested_keys | {normalize_title(title)})

        tried: set[str] = {title}
        for _ in range(MAX_SUBSTITUTIONS):
            replacement = pick_replacement_article(
                self._catalog.categories, self._used_titles(state) | tried, rng=self._rng
            )
            if replacement in tried:
                break
            tried.add(replacement)
            try:
                article = await self._fetcher.fetch(replacement)
            except ContentUnavailable:
                logger.warning(f"Replacement article failed to load: '{replacement}'")
                continue
            if not self._is_stale(generation):
                logger.info(f"Replaced viewed article '{title}' with '{replacement}'")
            return article, True

        logger.error(f"No replacement content available for '{title}', showing empty page")
        return Article(title=title, html=""), False

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self._state.snapshot())
        except Exception:
            logger.exception("Error in on_change callback")

    def _emit_matches(self, titles: list[str]) -> None:
        if self._on_match is None:
            return
        for title in titles:
            try:
                self._on_match(title)
            except Exception:
                logger.exception(f"Error in on_match callback for '{title}'")

    def _emit_win(self, state: SessionState) -> None:
        if self._on_win is None:
            return
        try:
            self._on_win(state.to_record())
        except Exception:
            logger.exception("Error in on_win callback")
