"""
Game engine module.

Provides bingo set generation, win detection and session management:
- generate_bingo_set: Draws the 26-article set
- detect_wins: Finds completed rows/columns/diagonals
- SessionState: Tracks current game state
- GameRecord: Finished-game record for the leaderboard
- GameSession: Runs a game as the player navigates
"""

from wikibingo.game.bingo import BingoSet, generate_bingo_set, pick_replacement_article
from wikibingo.game.engine import GameSession
from wikibingo.game.state import GameRecord, GridCell, SessionPhase, SessionState
from wikibingo.game.win_detection import WIN_LINES, detect_wins, winning_cells

__all__ = [
    "BingoSet",
    "GameRecord",
    "GameSession",
    "GridCell",
    "SessionPhase",
    "SessionState",
    "WIN_LINES",
    "detect_wins",
    "generate_bingo_set",
    "pick_replacement_article",
    "winning_cells",
]
