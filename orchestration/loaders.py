"""
Shell action loader: turns a JSON file of command definitions into actions.

File format:
    [
        {
            "name": "listFiles",
            "description": "list the files in a directory",
            "command": "ls",
            "parameters": ["path"],
            "risk": "low"
        }
    ]

Parameters are strings and are passed to the command as positional
arguments, in the listed order.
"""

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from error_handler import LoaderError
from logger import get_logger
from orchestration.action_model import ActionDescriptor, ActionKind, ActionParameter, RiskLevel
from orchestration.capabilities import CapabilityLoader

logger = get_logger(__name__)


class ShellCommand:
    """Callable handler that runs one command with an argv list"""

    def __init__(self, command: str, timeout: Optional[float] = None):
        self.command = command
        self.timeout = timeout

    def __call__(self, argv: List[str]) -> str:
        completed = subprocess.run(
            [self.command, *argv],
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        return completed.stdout.strip()

    def __repr__(self) -> str:
        return f"ShellCommand({self.command!r})"


class ShellActionLoader(CapabilityLoader):

    source = "shell"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[ActionDescriptor]:
        """
        Raises:
            LoaderError: if the file is missing, unreadable or malformed
        """
        if not self.path.exists():
            raise LoaderError(f"Shell action file {self.path} not found")

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise LoaderError(f"Cannot read shell actions from {self.path}: {e}") from e

        if not isinstance(entries, list):
            raise LoaderError(f"{self.path} must contain a list of commands")

        return [self._descriptor(entry) for entry in entries]

    def _descriptor(self, entry: Dict[str, Any]) -> ActionDescriptor:
        try:
            name = entry['name']
            command = entry['command']
        except (KeyError, TypeError) as e:
            raise LoaderError(f"Shell action entry {entry!r} needs a name and a command") from e

        try:
            risk = RiskLevel.parse(entry.get('risk', 'low'))
        except ValueError as e:
            raise LoaderError(f"Unknown risk level for {name}: {entry.get('risk')!r}") from e

        logger.debug(f"Shell action {name} -> {command}")
        return ActionDescriptor(
            name=name,
            description=entry.get('description') or name,
            parameters=tuple(ActionParameter(p) for p in entry.get('parameters', [])),
            handler=ShellCommand(command, entry.get('timeout')),
            risk=risk,
            group=entry.get('group'),
            kind=ActionKind.SHELL,
        )
