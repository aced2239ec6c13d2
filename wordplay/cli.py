"""
Wordplay CLI - Command-line interface for the engine.

Usage:
    wordplay play [--variant NAME] [--words FILE] [--vectors FILE] [--opponent]
    wordplay serve [--host HOST] [--port PORT]
    wordplay variants

In a game, type a word to play it, or one of:
    /hint  /skip  /score  /rules  /define <word>  /stop
"""

import argparse
import asyncio
import logging
import sys

from .config import EngineSettings, configure_logging
from .errors import WordplayError, DependencyError, TerminalSessionError

CONVERSATION_ID = "cli"


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Wordplay - Turn-based word games",
        prog="wordplay",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--env-file", help="Load settings from this .env file")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a game in the terminal")
    play_parser.add_argument("--variant", default="random", help="Variant name or 'random'")
    play_parser.add_argument("--words", help="Word list file (default: online dictionary)")
    play_parser.add_argument("--vectors", help="word2vec text file for hints and synonyms")
    play_parser.add_argument("--opponent", action="store_true", help="Engine replies with a word each turn")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    # Variants command
    subparsers.add_parser("variants", help="List game variants and rules")

    args = parser.parse_args()
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "play":
        cmd_play(args)
    elif args.command == "serve":
        cmd_serve(args)
    elif args.command == "variants":
        cmd_variants(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_variants(args):
    """Print every variant with its rules."""
    from .api.service import WordplayService
    from .clients import LocalEmbeddingClient, WordListDictionary, WordVectorIndex
    from .session import SessionManager

    settings = EngineSettings.from_env(args.env_file)
    manager = SessionManager(
        WordListDictionary([]),
        LocalEmbeddingClient(index=WordVectorIndex.empty()),
        settings=settings,
    )
    service = WordplayService(manager=manager)
    for info in service.variants().variants:
        print(f"[{info.name}] {info.summary}")
        print(info.rules)
        print()


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn
    from .api.app import create_app

    print(f"Serving on http://{args.host}:{args.port} (docs at /api/docs)")
    uvicorn.run(create_app(), host=args.host, port=args.port)


def cmd_play(args):
    """Interactive game over the SessionManager."""
    from .api.service import WordplayService

    settings = EngineSettings.from_env(args.env_file)
    if args.opponent:
        settings = settings.with_overrides(opponent_replies=True)

    try:
        service = WordplayService.from_env(
            settings=settings,
            words_file=args.words,
            vectors_file=args.vectors,
        )
    except OSError as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        asyncio.run(_play(service.manager, args.variant))
    except KeyboardInterrupt:
        print("\nBye!")


async def _play(manager, variant_name: str):
    from .games.rules import rules_text

    await manager.start_session(CONVERSATION_ID)
    try:
        outcome = await manager.select_variant(CONVERSATION_ID, variant_name)
    except WordplayError as e:
        print(f"Error: {e.message}")
        return
    print(outcome.message)

    while True:
        try:
            line = (await asyncio.to_thread(input, "> ")).strip()
        except EOFError:
            line = "/stop"
        if not line:
            continue

        command, _, rest = line.partition(" ")
        try:
            if command == "/hint":
                outcome = await manager.request_hint(CONVERSATION_ID)
            elif command == "/skip":
                outcome = await manager.skip(CONVERSATION_ID)
            elif command == "/score":
                outcome = await manager.status(CONVERSATION_ID)
            elif command == "/rules":
                session = manager.get_session(CONVERSATION_ID)
                print(rules_text(session.variant))
                continue
            elif command == "/define":
                definition = await manager.dictionary.define(rest.strip())
                print(definition or f"No definition found for '{rest.strip()}'")
                continue
            elif command == "/stop":
                outcome = await manager.stop(CONVERSATION_ID)
            elif command.startswith("/"):
                print("Commands: /hint /skip /score /rules /define <word> /stop")
                continue
            else:
                outcome = await manager.submit_word(CONVERSATION_ID, line)
        except DependencyError as e:
            print(f"{e.message} (try again)")
            continue
        except TerminalSessionError as e:
            print(e.message)
            return
        except WordplayError as e:
            print(f"Error: {e.message}")
            continue

        print(outcome.message)
        if outcome.status.is_terminal:
            return


if __name__ == "__main__":
    main()
