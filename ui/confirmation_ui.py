"""
Confirmation UI: terminal gates for the execution pipeline.

ConsoleHumanDecision asks the user before a risky action runs.
ConsoleExplainDecision shows why the model picked an action.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.text import Text
from rich import box

from orchestration.action_model import RiskLevel
from orchestration.decisions import ExplainDecision, HumanDecision
from orchestration.registry import ActionRegistry

RISK_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "bold red",
}


class ConsoleHumanDecision(HumanDecision):
    """Yes/no confirmation before an action runs"""

    def __init__(self, registry: Optional[ActionRegistry] = None, console: Optional[Console] = None):
        self.registry = registry
        self.console = console or Console()

    def approve(self, prompt: str, action_name: str) -> bool:
        descriptor = self.registry.resolve(action_name) if self.registry else None

        body = Text()
        body.append("Instruction: ", style="bold")
        body.append(f"{prompt}\n")
        body.append("Action: ", style="bold")
        body.append(action_name, style="cyan")

        if descriptor is not None:
            body.append("\nRisk: ", style="bold")
            body.append(descriptor.risk.value.upper(), style=RISK_STYLES[descriptor.risk])
            if descriptor.description and descriptor.description != action_name:
                body.append(f"\n{descriptor.description}", style="dim")

        self.console.print(Panel(body, title="Review action", border_style="yellow", box=box.ROUNDED))

        try:
            return Confirm.ask("Proceed?", console=self.console, default=False)
        except (KeyboardInterrupt, EOFError):
            self.console.print("[red]✗ Cancelled by user[/red]")
            return False


class ConsoleExplainDecision(ExplainDecision):

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def on_explain(self, prompt: str, action_name: str, explanation: str) -> None:
        self.console.print(Panel(
            explanation,
            title=f"Why {action_name}",
            border_style="dim",
            box=box.ROUNDED,
        ))
