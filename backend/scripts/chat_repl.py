from __future__ import annotations

import argparse
import asyncio
import sys

from agent.loop import run_chat_turn
from app.core.config import get_settings
from app.store.factory import build_record_store
from app.store.memory import build_memory_store

EXIT_COMMANDS = {"exit", "quit", ":q"}


def _append_history(history: list[dict], role: str, content: str, window: int) -> list[dict]:
    history.append({"role": role, "content": content})
    if window > 0 and len(history) > window:
        del history[: len(history) - window]
    return history


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = build_memory_store() if args.memory else build_record_store(settings)
    window = int(getattr(settings, "chat_history_window", 12) or 0)
    history: list[dict] = []
    pending = None

    print(f"[chat-repl] store={store.backend} (type 'exit' to quit)")
    while True:
        try:
            text = input("you> ").strip()
        except EOFError:
            print()
            return 0
        if not text:
            continue
        if text.lower() in EXIT_COMMANDS:
            return 0

        turn = await run_chat_turn(user_text=text, history=history, pending=pending, store=store)
        pending = turn.pending
        print(f"bot> {turn.reply_text}")
        if args.verbose:
            print(
                f"     action={turn.resolved_intent.action} source={turn.intent_source} "
                f"pending={pending.to_dict() if pending else None}"
            )
        _append_history(history, "user", text, window)
        _append_history(history, "assistant", turn.reply_text, window)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Interactive chat loop against the task/account assistant")
    parser.add_argument("--memory", action="store_true", help="Use an in-process store instead of Supabase")
    parser.add_argument("--verbose", action="store_true", help="Print resolved action and pending state per turn")
    args = parser.parse_args(argv)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
