"""
Script processor: runs a text script one instruction per line.

Before each line after the first, the model is shown the results so far and
asked whether the line still needs an action. Every line ends up in the
ScriptResult, in order, either with its real outcome or with a note that no
action was taken.
"""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from config import Config
from error_handler import ActionProcessingError, ScriptResourceError
from logger import get_logger
from orchestration.pipeline import ActionProcessor
from orchestration.prediction import PredictionEngine

logger = get_logger(__name__)

ScriptCallback = Callable[[str], str]


@dataclass(frozen=True)
class ScriptLineResult:
    line: str
    outcome: str


@dataclass
class ScriptResult:
    """Append-only record of a script run"""
    results: List[ScriptLineResult] = field(default_factory=list)

    def add_result(self, line: str, outcome: str) -> None:
        self.results.append(ScriptLineResult(line=line, outcome=outcome))

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    def __len__(self) -> int:
        return len(self.results)


class ScriptProcessor:

    def __init__(
        self,
        processor: ActionProcessor,
        engine: Optional[PredictionEngine] = None,
        script_dir: Union[str, Path, None] = None
    ):
        self.processor = processor
        self.engine = engine or processor.engine
        self.script_dir = Path(script_dir if script_dir is not None else Config.SCRIPT_DIR)

    def process(self, file_name: str, callback: Optional[ScriptCallback] = None) -> ScriptResult:
        """
        Run the script stored as <script_dir>/<file_name>.

        A missing or unreadable script is logged and an empty result is
        returned; nothing is raised.
        """
        result = ScriptResult()

        try:
            lines = self.read_script(file_name)
        except ScriptResourceError as e:
            logger.error(str(e))
            return result

        self._run(lines, result, callback)
        return result

    def read_script(self, file_name: str) -> List[str]:
        """
        Raises:
            ScriptResourceError: if the script is missing or unreadable
        """
        path = self.script_dir / file_name
        try:
            with open(path, encoding='utf-8') as handle:
                return handle.readlines()
        except FileNotFoundError as e:
            raise ScriptResourceError(f"Script {path} not found. Make sure the file path is correct.") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptResourceError(f"Could not read script {path}: {e}") from e

    def process_lines(self, lines: Iterable[str], callback: Optional[ScriptCallback] = None) -> ScriptResult:
        result = ScriptResult()
        self._run(lines, result, callback)
        return result

    def summarize(self, result: ScriptResult) -> str:
        return self.engine.summarize(result.to_json())

    def _run(self, lines: Iterable[str], result: ScriptResult, callback: Optional[ScriptCallback]) -> None:
        for raw_line in lines:
            line = raw_line.strip()
            if not line:
                continue

            logger.info(line)
            previous_results = result.to_json()

            decision = "yes"
            if len(result) > 0:
                decision = self.engine.script_decision(line, previous_results)

            if "yes" in decision.lower():
                outcome = self._run_line(line, previous_results)
            else:
                outcome = f"No action taken due to {previous_results}"

            if callback is not None:
                outcome = callback(outcome)

            logger.info(outcome)
            result.add_result(line, outcome)

    def _run_line(self, line: str, previous_results: str) -> str:
        try:
            action_result = self.processor.process_single_action(
                f"{line} - here are previous action results {previous_results}"
            )
        except ActionProcessingError as e:
            logger.error(f"Line failed: {line}: {e}")
            return f"Action failed: {e}"

        return action_result.result_text
