#!/usr/bin/env python3
"""
Wikipedia Bingo CLI - play a bingo game against live Wikipedia in the terminal.

Usage:
    python scripts/play.py
    python scripts/play.py --catalog data/curatedArticles.json --seed 42
    python scripts/play.py --replay "Title 1" "Title 2" ... "Title 26"

Commands during play:
    <n>       Follow link number n on the current article
    h <n>     Go back to history entry n (counts as a click)
    g <n>     Show the summary of grid cell n
    l         List all links again
    q         Quit
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from dataclasses import asdict
from pathlib import Path

# Fix Windows console encoding
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from wikibingo.config import CATALOG_PATH, GRID_SIZE, LOG_FORMAT, LOG_LEVEL  # noqa: E402
from wikibingo.data import load_catalog  # noqa: E402
from wikibingo.errors import ArticleNotFound, CatalogUnavailable, FetchError  # noqa: E402
from wikibingo.game import GameRecord, GameSession, SessionState  # noqa: E402
from wikibingo.wikipedia import ArticleFetcher, RedirectResolver, WikiClient  # noqa: E402

# Links shown per page
MAX_LINKS_SHOWN = 40


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Play Wikipedia Bingo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--catalog",
        type=Path,
        default=CATALOG_PATH,
        help=f"Curated article catalog JSON (default: {CATALOG_PATH})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the bingo set",
    )
    parser.add_argument(
        "--replay",
        nargs=26,
        metavar="TITLE",
        default=None,
        help="Replay a fixed set: 25 grid titles then the starting article",
    )
    parser.add_argument(
        "--record",
        type=Path,
        default=None,
        help="Write the finished-game record to this JSON file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args()


def print_grid(state: SessionState) -> None:
    """Print the 5x5 grid, matched cells marked with *."""
    width = 24
    print()
    for row in range(GRID_SIZE):
        cells = state.grid_cells[row * GRID_SIZE:(row + 1) * GRID_SIZE]
        line = []
        for offset, cell in enumerate(cells):
            index = row * GRID_SIZE + offset
            marker = "*" if cell.matched else " "
            label = f"{index:>2}{marker}{cell.article}"
            line.append(label[:width].ljust(width))
        print(" | ".join(line))
    print()


def print_status(state: SessionState) -> None:
    print(
        f"[{state.elapsed_seconds}s | {state.click_count} clicks | "
        f"{len(state.matched)}/25 found] Now on: {state.current_title}"
    )


def print_links(links: list[str]) -> None:
    for index, link in enumerate(links[:MAX_LINKS_SHOWN]):
        print(f"  {index:>3}. {link}")
    if len(links) > MAX_LINKS_SHOWN:
        print(f"  ... {len(links) - MAX_LINKS_SHOWN} more links not shown")


def print_record(record: GameRecord) -> None:
    print("\n" + "=" * 60)
    print("BINGO!")
    print("=" * 60)
    print(f"  Time:   {record.elapsed_seconds}s")
    print(f"  Clicks: {record.click_count}")
    print(f"  Score:  {record.score} (lower is better)")
    print("\nPath taken:")
    for i, title in enumerate(record.history):
        marker = " (START)" if i == 0 else ""
        print(f"  {i}. {title}{marker}")


async def play(args: argparse.Namespace) -> int:
    """Run one interactive game."""
    try:
        catalog = load_catalog(args.catalog)
    except CatalogUnavailable as e:
        if args.replay is None:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        catalog = None

    records: list[GameRecord] = []

    with WikiClient() as client:
        fetcher = ArticleFetcher(client)
        session = GameSession(
            catalog,
            RedirectResolver(client),
            fetcher,
            on_match=lambda title: print(f"  >>> Found '{title}'!"),
            on_win=records.append,
            rng=random.Random(args.seed),
        )

        print("Loading game...")
        state = await session.start_new_game(bingo_set=args.replay)
        timer = asyncio.create_task(session.run_timer())

        try:
            while not state.won:
                print_grid(state)
                print_status(state)
                links = state.current_article.links if state.current_article else []
                print_links(links)

                command = (await asyncio.to_thread(input, "> ")).strip()
                if not command:
                    continue
                if command == "q":
                    print("Game abandoned")
                    return 1
                if command == "l":
                    continue

                target: str | None = None
                if command.startswith("h "):
                    arg = command[2:].strip()
                    index = int(arg) if arg.isdigit() else -1
                    if 0 <= index < len(state.history):
                        target = state.history[index]
                elif command.startswith("g "):
                    arg = command[2:].strip()
                    index = int(arg) if arg.isdigit() else -1
                    if 0 <= index < len(state.grid_cells):
                        title = state.grid_cells[index].article
                        try:
                            summary = await fetcher.fetch_summary(title)
                        except (ArticleNotFound, FetchError) as e:
                            summary = f"(no summary: {e})"
                        print(f"\n{title}: {summary}\n")
                    continue
                elif command.isdigit() and int(command) < len(links):
                    target = links[int(command)]

                if target is None:
                    print("Unknown command")
                    continue

                await session.register_navigation(target)
                state = session.get_state()
        except (KeyboardInterrupt, EOFError):
            print("\n\nGame interrupted by user")
            return 130
        finally:
            timer.cancel()

    print_grid(state)
    record = records[0] if records else session.game_record()
    print_record(record)

    if args.record:
        payload = asdict(record)
        payload["timestamp"] = record.timestamp.isoformat()
        args.record.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"\nRecord written to {args.record}")

    return 0


def main() -> int:
    """Main entry point."""
    args = parse_args()

    log_level = logging.DEBUG if args.verbose else getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    return asyncio.run(play(args))


if __name__ == "__main__":
    sys.exit(main())
