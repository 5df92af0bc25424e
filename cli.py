"""CLI entrypoint: run the proxy or call it with retries."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

import main as app_main
import state
from client import proxy_client_factory
from logging_config import setup_logging
from models import Err
from orchestrator import RetryOrchestrator
from wizard import (
    RequestOutline,
    RequestProblems,
    SelectTitle,
    SubmitTopic,
    WizardState,
    run_command,
)


def _orchestrator(client, url: Optional[str]) -> RetryOrchestrator:
    if not url:
        return RetryOrchestrator.from_settings(client, state.settings)
    return RetryOrchestrator(
        client,
        url=url,
        backoff=state.settings.retry_backoff,
        attempt_timeout=state.settings.attempt_timeout,
    )


async def _generate(prompt: str, url: Optional[str], retries: int) -> int:
    async with proxy_client_factory(state.settings) as client:
        result = await _orchestrator(client, url).generate(prompt, retries)
    if isinstance(result, Err):
        print(f"error: {result.message}", file=sys.stderr)
        return 1
    print(result.text)
    return 0


async def _wizard(args: argparse.Namespace) -> int:
    async with proxy_client_factory(state.settings) as client:
        generator = _orchestrator(client, args.url)
        wizard_state, _ = await run_command(
            WizardState(), SubmitTopic(args.major, args.interest), generator, args.retries
        )
        if wizard_state.error:
            print(f"error: {wizard_state.error}", file=sys.stderr)
            return 1
        print("Titles:")
        for index, title in enumerate(wizard_state.titles, start=1):
            print(f"  {index}. {title}")

        pick = min(max(args.pick, 1), len(wizard_state.titles))
        wizard_state, _ = await run_command(
            wizard_state, SelectTitle(wizard_state.titles[pick - 1]), generator
        )
        print(f"\nSelected title: {wizard_state.selected_title}")

        for command, heading in (
            (RequestProblems(), "Problem statements"),
            (RequestOutline(), "Chapter one outline"),
        ):
            wizard_state, _ = await run_command(
                wizard_state, command, generator, args.retries
            )
            if wizard_state.error:
                print(f"error: {wizard_state.error}", file=sys.stderr)
                return 1
            if isinstance(command, RequestProblems):
                text = wizard_state.problems
            else:
                text = wizard_state.outline
            print(f"\n{heading}:\n{text}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Thesis wizard Gemini proxy.")
    parser.add_argument("--debug", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the proxy server.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    generate = sub.add_parser("generate", help="Send one prompt through the proxy.")
    generate.add_argument("prompt")
    generate.add_argument("--url", default=None, help="Proxy endpoint URL.")
    generate.add_argument("--retries", type=int, default=state.settings.max_retries)

    wizard = sub.add_parser("wizard", help="Walk through titles, problems and outline.")
    wizard.add_argument("--major", required=True)
    wizard.add_argument("--interest", required=True)
    wizard.add_argument("--pick", type=int, default=1, help="1-based title to select.")
    wizard.add_argument("--url", default=None, help="Proxy endpoint URL.")
    wizard.add_argument("--retries", type=int, default=state.settings.max_retries)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the thesis proxy CLI."""
    args = build_parser().parse_args(argv)
    if args.debug:
        setup_logging(True)

    if args.command == "serve":
        app_main.run(host=args.host, port=args.port)
        return 0
    if args.command == "generate":
        return asyncio.run(_generate(args.prompt, args.url, args.retries))
    return asyncio.run(_wizard(args))


if __name__ == "__main__":
    sys.exit(main())
