"""
Game state dataclasses for tracking Wikipedia Bingo progress.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from wikibingo.wikipedia.articles import Article
from wikibingo.wikipedia.titles import normalize_title

FOUND_PREFIX = "[Found] "


class SessionPhase(str, Enum):
    """Lifecycle of a session: NOT_STARTED -> LOADING -> ACTIVE -> WON."""

    NOT_STARTED = "not_started"
    LOADING = "loading"
    ACTIVE = "active"
    WON = "won"


@dataclass
class GridCell:
    """
    One of the 25 target articles.

    Attributes:
        id: Stable identifier ("cell-0" .. "cell-24")
        article: Article title as drawn from the catalog
        matched: Whether the article has been visited
    """

    id: str
    article: str
    matched: bool = False

    @property
    def key(self) -> str:
        """Normalized title used in the matched set."""
        return normalize_title(self.article)


@dataclass
class GameRecord:
    """
    Finished-session record handed to the leaderboard.

    Attributes:
        elapsed_seconds: Timer value when the game was won
        click_count: Number of navigations
        score: elapsed_seconds * click_count (lower is better)
        bingo_squares: Grid titles, matched ones prefixed with "[Found] "
        history: Visited titles in order, starting article first
        game_type: "random" for a freshly drawn set, "repeat" for a replayed one
        timestamp: When the record was created
    """

    elapsed_seconds: int
    click_count: int
    score: int
    bingo_squares: list[str]
    history: list[str]
    game_type: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class SessionState:
    """
    Mutable state of one game session.

    Attributes:
        started: A game has been set up
        won: At least one line is complete (terminal)
        grid_cells: The 25 target cells, row-major
        starting_article: Title the player starts from
        matched: Normalized titles of matched grid cells
        winning_lines: Indices of completed lines (see WIN_LINES)
        winning_cells: Grid indices covered by the completed lines
        click_count: Navigations registered so far
        elapsed_seconds: Seconds the timer has run
        timer_running: Timer is counting
        article_loading: An article is being resolved/fetched
        history: Visited titles in order
        current_title: Title of the article on screen
        current_article: The article on screen
        game_type: "random" or "repeat"
    """

    started: bool = False
    won: bool = False
    grid_cells: list[GridCell] = field(default_factory=list)
    starting_article: str | None = None
    matched: set[str] = field(default_factory=set)
    winning_lines: list[int] = field(default_factory=list)
    winning_cells: list[int] = field(default_factory=list)
    click_count: int = 0
    elapsed_seconds: int = 0
    timer_running: bool = False
    article_loading: bool = False
    history: list[str] = field(default_factory=list)
    current_title: str | None = None
    current_article: Article | None = None
    game_type: str | None = None

    @property
    def phase(self) -> SessionPhase:
        if not self.started:
            return SessionPhase.NOT_STARTED
        if self.won:
            return SessionPhase.WON
        if self.current_title is None:
            return SessionPhase.LOADING
        return SessionPhase.ACTIVE

    @property
    def matched_cells(self) -> list[bool]:
        """One flag per grid cell, in grid order."""
        return [cell.matched for cell in self.grid_cells]

    @property
    def score(self) -> int:
        return self.elapsed_seconds * self.click_count

    def bingo_squares(self) -> list[str]:
        """Grid titles with matched cells tagged for the leaderboard."""
        return [
            f"{FOUND_PREFIX}{cell.article}" if cell.matched else cell.article
            for cell in self.grid_cells
        ]

    def snapshot(self) -> SessionState:
        """Independent copy safe to hand to the UI."""
        return copy.deepcopy(self)

    def to_record(self) -> GameRecord:
        """Convert to the leaderboard record."""
        return GameRecord(
            elapsed_seconds=self.elapsed_seconds,
            click_count=self.click_count,
            score=self.score,
            bingo_squares=self.bingo_squares(),
            history=list(self.history),
            game_type=self.game_type,
        )
