#!/usr/bin/env python3
"""
Prompt Actions - Main Entry Point

Runs natural-language instructions against the registered actions.

Usage:
    python main.py "search google for Indian recipes"     # One instruction
    python main.py --multi 2 "book a table and notify Sam" # Several actions
    python main.py --steps "plan a trip and email it"     # Multi-step decomposition
    python main.py --script dinner.txt                    # Run a script from SCRIPT_DIR
    python main.py --detect "Gandhi was born in 1869..."   # Hallucination check
    python main.py                                        # Interactive session

Actions come from the modules listed in ACTION_MODULES.
"""

import argparse
import sys
from typing import List, Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table
from rich import box

from config import Config
from detect.hallucination import HallucinationDetector
from error_handler import ActionSystemError, ErrorClassifier, format_error_for_user
from llms.gemini_flash import GeminiFlash
from logger import Logger
from orchestration.action_model import ActionResult
from orchestration.decisions import LoggingExplainDecision, LoggingHumanDecision
from orchestration.pipeline import ActionProcessor
from orchestration.prediction import PredictionEngine
from orchestration.registry import ActionRegistry, get_registry
from orchestration.script_processor import ScriptProcessor
from ui.confirmation_ui import ConsoleExplainDecision, ConsoleHumanDecision, RISK_STYLES

console = Console()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run natural-language instructions as actions")
    parser.add_argument("prompt", nargs="?", help="instruction to run")
    parser.add_argument("--multi", type=int, metavar="N", help="let the model pick N actions")
    parser.add_argument("--steps", action="store_true", help="decompose into sub-prompts first")
    parser.add_argument("--script", metavar="FILE", help="run a script from SCRIPT_DIR")
    parser.add_argument("--detect", metavar="TEXT", help="check TEXT for hallucination")
    parser.add_argument("--explain", action="store_true", help="show why each action was chosen")
    parser.add_argument("--yes", action="store_true", help="skip human approval")
    parser.add_argument("--verbose", "-v", action="store_true", help="show debug information")
    return parser.parse_args(argv)


def print_registry(registry: ActionRegistry):
    table = Table(show_header=True, header_style="bold cyan", border_style="dim", box=box.ROUNDED)
    table.add_column("Action", style="white")
    table.add_column("Risk")
    table.add_column("Description", style="dim")

    for name in sorted(registry.names()):
        descriptor = registry.resolve(name)
        table.add_row(name, f"[{RISK_STYLES[descriptor.risk]}]{descriptor.risk.value}[/]", descriptor.description)

    console.print(table)
    console.print()


def print_results(results: List[ActionResult]):
    for outcome in results:
        console.print(f"[bold cyan]{outcome.action_name}[/bold cyan] [dim]({outcome.status.value})[/dim]")
        console.print(outcome.result_text)
        console.print()


def run_interactive_session(processor: ActionProcessor):
    """Read instructions until the user quits"""
    from prompt_toolkit import PromptSession

    session = PromptSession()

    while True:
        try:
            user_input = session.prompt("You › ").strip()
        except (KeyboardInterrupt, EOFError):
            break

        if user_input.lower() in ['exit', 'quit', 'bye', 'q']:
            break
        if not user_input:
            continue

        try:
            print_results([processor.process_single_action(user_input)])
        except ActionSystemError as e:
            console.print(Markdown(format_error_for_user(ErrorClassifier.classify(e), user_input)))

    console.print("[dim]Goodbye[/dim]")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.verbose or Config.VERBOSE:
        Logger.set_level("DEBUG")

    try:
        llm = GeminiFlash.from_settings(Config.provider_settings())

        if args.detect:
            assessment = HallucinationDetector(llm).detect(args.detect)
            for pair in assessment.pairs:
                console.print(f"[bold]{pair.question}[/bold]\n  {pair.answer} [dim]({pair.score:.0f})[/dim]")
            verdict = "[red]likely hallucination[/red]" if assessment.flagged else "[green]consistent[/green]"
            console.print(f"\nScore {assessment.score:.1f} / threshold {assessment.threshold}: {verdict}")
            return 0

        registry = get_registry()
        print_registry(registry)

        engine = PredictionEngine(llm, registry)
        processor = ActionProcessor(
            engine,
            human_decision=LoggingHumanDecision() if args.yes else ConsoleHumanDecision(registry, console),
            explain_decision=ConsoleExplainDecision(console) if args.explain
            else LoggingExplainDecision() if Config.EXPLAIN_ACTIONS else None,
        )

        if args.script:
            scripts = ScriptProcessor(processor)
            result = scripts.process(args.script)
            for entry in result.results:
                console.print(f"[bold]{entry.line}[/bold]\n  {entry.outcome}")
            console.print(f"\n[bold cyan]Summary[/bold cyan]\n{scripts.summarize(result)}")
        elif args.prompt and args.steps:
            print_results(processor.process_multi_step(args.prompt))
        elif args.prompt and args.multi:
            print_results(processor.process_multiple_actions(args.prompt, args.multi))
        elif args.prompt:
            print_results([processor.process_single_action(args.prompt)])
        else:
            run_interactive_session(processor)

    except ActionSystemError as e:
        console.print(Markdown(format_error_for_user(ErrorClassifier.classify(e), args.prompt or "")))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
