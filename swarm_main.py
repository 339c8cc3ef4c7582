#!/usr/bin/env python3
"""swarmAgent - Main entry point.

Usage:
    python swarm_main.py                     # interactive
    python swarm_main.py "Summarize today's news"

Each task runs through a swarm of role agents. Every tool an agent wants to
use is shown here for approval before it runs.

Commands:
    /quit, /exit      - leave
    /status <id>      - show an execution's status
    /abort <id>       - abort an execution
    /history <id>     - show the approval audit trail
    /roles            - list the agent roles
"""

import argparse
import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from swarmAgent.config.settings import get_settings
from swarmAgent.graph.events import (
    AgentStatusChanged,
    ApprovalDecided,
    EventChannel,
    ExecutionStatusChanged,
)
from swarmAgent.runtime.app import build_swarm_engine
from swarmAgent.utils.error_handler import ExecutionNotFoundError
from swarmAgent.utils.logging_utils import setup_logging


def print_event(event) -> None:
    if isinstance(event, AgentStatusChanged):
        detail = f" - {event.error}" if event.error else ""
        print(f"  [{event.role}] {event.status}{detail}")
    elif isinstance(event, ExecutionStatusChanged) and event.status != "running":
        print(f"\n== Execution {event.status} ==")
        if event.result:
            print(event.result)
        if event.error:
            print(f"Error: {event.error}")


async def ask(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, lambda: input(prompt).strip())


async def review_pending(engine, execution_id: str) -> None:
    """Ask the user about every undecided tool call until none are left."""
    while True:
        pending = engine.list_pending_approvals(execution_id)
        if not pending:
            return
        for request in pending:
            print()
            print(f"🔐 {request.context}")
            print(f"   Tool: {request.tool_name} ({request.provider}), risk: {request.risk.value}")
            if request.risk_reason:
                print(f"   Why: {request.risk_reason}")
            print(f"   Arguments: {request.arguments}")
            answer = (await ask("   Approve? [y/N] ")).lower()
            await engine.decide(ApprovalDecided(id=request.id, approved=answer in ("y", "yes")))


async def run_task(engine, task: str) -> None:
    execution_id = await engine.submit_task(task, channel=EventChannel(print_event))
    print(f"Execution: {execution_id}")
    await review_pending(engine, execution_id)


async def handle_command(engine, text: str) -> bool:
    """Handle a slash command; returns False when the user wants to leave."""
    cmd, _, arg = text.partition(" ")
    arg = arg.strip()
    if cmd in ("/quit", "/exit"):
        return False
    try:
        if cmd == "/status" and arg:
            print(engine.status(arg).model_dump_json(indent=2))
        elif cmd == "/abort" and arg:
            print("Aborted." if await engine.abort(arg) else "Already finished.")
        elif cmd == "/roles":
            print(engine.registry.get_catalog_text())
        elif cmd == "/history" and arg:
            for record in engine.list_approval_history(arg):
                verdict = "approved" if record.approved else "denied"
                print(f"  {record.timestamp.isoformat()} {record.tool_name} {verdict} ({record.reason})")
        else:
            print("Commands: /quit, /status <id>, /abort <id>, /history <id>, /roles")
    except ExecutionNotFoundError as e:
        print(f"⚠️  {e.user_message}")
    return True


async def main():
    parser = argparse.ArgumentParser(description="Run tasks through a swarm of approval-gated agents.")
    parser.add_argument("task", nargs="?", help="Task to run once, then exit")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(log_dir=settings.observability.log_dir)

    engine = build_swarm_engine(settings)
    resumed = await engine.recover(channel=EventChannel(print_event))
    if resumed:
        print(f"Resumed {len(resumed)} execution(s): {', '.join(resumed)}")
        for execution_id in resumed:
            await review_pending(engine, execution_id)

    try:
        if args.task:
            await run_task(engine, args.task)
            return

        print("=" * 60)
        print("swarmAgent - approval-gated agent swarm")
        print("=" * 60)
        print("Type a task, or /quit to leave.\n")
        while True:
            text = await ask("> ")
            if not text:
                continue
            if text.startswith("/"):
                if not await handle_command(engine, text):
                    break
                continue
            await run_task(engine, text)
    finally:
        await engine.shutdown()


def cli():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nBye!")


if __name__ == "__main__":
    cli()
