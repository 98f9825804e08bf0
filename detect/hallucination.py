"""
Zero-shot hallucination detection by self-consistency.

A candidate answer is broken into a handful of probing questions. The model
answers them through a single function-calling tool grounded on a reference
context, and every (question, answer) pair is scored against the candidate.

Scores are discrepancy percentages: 0 means the answer is fully supported by
the candidate, 100 means nothing in it is. Pair scores are averaged; an
average above the threshold flags a likely hallucination.

    DECOMPOSE -> ANSWER -> AGGREGATE

Any transport or parsing failure fails the whole detection; no partial score
is ever returned.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from config import Config
from error_handler import ActionProcessingError, HallucinationDetectionError
from llms.base_llm import BaseLLM
from logger import get_logger
from orchestration.action_model import ActionDescriptor, ActionParameter, ParameterType
from orchestration.pipeline import invoke_action
from orchestration.registry import ActionRegistry
from orchestration.schema_builder import SchemaBuilder

logger = get_logger(__name__)

ANSWER_ACTION_NAME = "answerQuestions"

PairScorer = Callable[[str, str, str], float]

_WORD = re.compile(r"[a-z0-9]+")
_STOPWORDS = frozenset(
    "a an and are as at be by for from had has have he her his in is it its of on or she "
    "that the their there they this to was were what when where which who why will with".split()
)


@dataclass
class HallucinationQA:
    question: str
    answer: str
    score: float = 0.0


@dataclass
class HallucinationAssessment:
    pairs: List[HallucinationQA] = field(default_factory=list)
    score: float = 0.0
    threshold: float = 50.0

    @property
    def flagged(self) -> bool:
        """True when the aggregate score crosses the threshold"""
        return self.score > self.threshold


def aggregate_scores(scores: List[float]) -> float:
    """Arithmetic mean of the pair scores"""
    if not scores:
        raise HallucinationDetectionError("No question/answer pairs to score")
    return sum(scores) / len(scores)


def _content_words(text: str) -> List[str]:
    return [w for w in _WORD.findall(text.lower()) if w not in _STOPWORDS and len(w) > 2]


def token_support_scorer(question: str, answer: str, context: str) -> float:
    """
    Share of the answer's content words that do not appear in the context, 0-100.
    Deterministic; an empty answer scores 100.
    """
    words = _content_words(answer)
    if not words:
        return 100.0

    supported = set(_content_words(context)) | set(_content_words(question))
    missing = sum(1 for w in words if w not in supported)
    return round(100.0 * missing / len(words), 2)


def split_questions(text: str) -> List[str]:
    """Questions out of a single-line reply: each ends at a question mark"""
    questions = [q.strip() + "?" for q in text.split("?") if q.strip()]
    if questions and not text.rstrip().endswith("?"):
        questions[-1] = questions[-1][:-1]
    return questions


class HallucinationDetector:

    def __init__(
        self,
        llm: BaseLLM,
        number_of_questions: Optional[int] = None,
        threshold: Optional[float] = None,
        scorer: PairScorer = token_support_scorer
    ):
        self.llm = llm
        self.number_of_questions = number_of_questions or Config.NUMBER_OF_QUESTIONS
        self.threshold = Config.HALLUCINATION_THRESHOLD if threshold is None else threshold
        self.scorer = scorer

    def detect(self, response: str, reference: Optional[str] = None) -> HallucinationAssessment:
        """
        Check a candidate answer for self-consistency.

        Args:
            response: The candidate answer
            reference: Context the probing questions are answered from
                       (defaults to the candidate itself)
        """
        questions = self.derive_questions(response)
        pairs = self.answer_questions(questions, reference or response)
        return self.assess(pairs, response)

    def derive_questions(self, response: str) -> str:
        """DECOMPOSE: the questions come back as one line"""
        session = self.llm.start_chat()
        reply = session.send_message(
            f"Can you derive {self.number_of_questions} questions from this context and provide me "
            "a single line without line breaks or backslash n character, you should reply with "
            f"questions and nothing else - {response}"
        )
        questions = " ".join((reply.text or "").split())
        if not questions:
            raise HallucinationDetectionError("Model returned no questions")

        logger.info(questions)
        return questions

    def answer_questions(self, questions: str, reference: str) -> List[HallucinationQA]:
        """ANSWER: one tool call carries every question with its answer"""
        registry = ActionRegistry()
        registry.register(self._answer_action(split_questions(questions)))
        action = registry.resolve(ANSWER_ACTION_NAME)

        schema = SchemaBuilder.build(action)
        session = self.llm.start_chat(tools=[self.llm.build_function_declaration(schema)])
        reply = session.send_message(
            f"ask these questions - {questions} - end of questions. Answer each one using only "
            f"this context and call {ANSWER_ACTION_NAME} with every question and its answer - {reference}"
        )

        arguments = SchemaBuilder.extract(schema, reply)
        try:
            pairs = invoke_action(action, arguments)
        except ActionProcessingError as e:
            raise HallucinationDetectionError(f"Could not collect answers: {e}") from e

        if not pairs:
            raise HallucinationDetectionError("Model answered none of the questions")
        return pairs

    def assess(self, pairs: List[HallucinationQA], response: str) -> HallucinationAssessment:
        """AGGREGATE: score each pair against the candidate and average"""
        for pair in pairs:
            pair.score = self.scorer(pair.question, pair.answer, response)

        assessment = HallucinationAssessment(
            pairs=pairs,
            score=aggregate_scores([pair.score for pair in pairs]),
            threshold=self.threshold,
        )
        logger.info(
            f"Consistency score {assessment.score:.1f} (threshold {self.threshold}) "
            f"flagged={assessment.flagged}"
        )
        return assessment

    def _answer_action(self, parsed_questions: List[str]) -> ActionDescriptor:
        """Throwaway action whose parameters are question_i/answer_i pairs"""
        parameters = []
        for i in range(1, self.number_of_questions + 1):
            parameters.append(ActionParameter(f"question_{i}", ParameterType.STRING))
            parameters.append(ActionParameter(f"answer_{i}", ParameterType.STRING))

        def collect(**values: str) -> List[HallucinationQA]:
            pairs = []
            for i in range(1, self.number_of_questions + 1):
                answer = values.get(f"answer_{i}")
                if answer is None:
                    continue
                question = values.get(f"question_{i}")
                if question is None and i <= len(parsed_questions):
                    question = parsed_questions[i - 1]
                pairs.append(HallucinationQA(question=question or "", answer=answer))
            return pairs

        return ActionDescriptor(
            name=ANSWER_ACTION_NAME,
            description="record the answer to every question",
            parameters=tuple(parameters),
            handler=collect,
        )
