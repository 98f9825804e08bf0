"""
Error Taxonomy and Classification

Every failure the orchestration core can raise belongs to one category:
- Configuration errors (missing provider settings - fatal at startup)
- Discovery errors (capability without action metadata - fatal at startup)
- Transport errors (model service unreachable or refused - fatal for the call)
- Processing errors (resolution, marshalling, invocation - fatal for one instruction)
- Script resource errors (script missing or unreadable - partial results)
- Detection errors (hallucination check could not complete)

The classifier turns any of these into a user-facing explanation for the
terminal front end. Nothing here retries: the core never retries a call.
"""

from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field


class ErrorCategory(str, Enum):
    """Categories of errors with different handling strategies"""
    CONFIGURATION = "configuration"  # Startup settings missing - abort
    DISCOVERY = "discovery"          # Capability metadata missing - abort
    TRANSPORT = "transport"          # Model service failure - abort the call
    RESOLUTION = "resolution"        # Predicted action not registered
    MARSHALLING = "marshalling"      # Arguments could not be built
    EXECUTION = "execution"          # Handler raised
    SCRIPT_RESOURCE = "script_resource"  # Script source missing/unreadable
    DETECTION = "detection"          # Hallucination check incomplete
    UNKNOWN = "unknown"


class ActionSystemError(Exception):
    """Base class for every error raised by the orchestration core"""
    category = ErrorCategory.UNKNOWN
    fatal = False


class ConfigurationError(ActionSystemError):
    """A required setting is missing"""
    category = ErrorCategory.CONFIGURATION
    fatal = True


class DiscoveryError(ActionSystemError):
    """A capability exposes no usable action metadata"""
    category = ErrorCategory.DISCOVERY
    fatal = True


class LoaderError(ActionSystemError):
    """A declarative loader could not produce its actions; the loader is skipped"""
    category = ErrorCategory.DISCOVERY


class TransportError(ActionSystemError):
    """Communication with the model service failed"""
    category = ErrorCategory.TRANSPORT


class ActionProcessingError(ActionSystemError):
    """One instruction could not be processed"""
    category = ErrorCategory.UNKNOWN

    def __init__(self, message: str, action_name: Optional[str] = None):
        super().__init__(message)
        self.action_name = action_name


class ActionNotFoundError(ActionProcessingError):
    """The predicted action name has no registry entry"""
    category = ErrorCategory.RESOLUTION


class MarshallingError(ActionProcessingError):
    """The model's response could not be turned into handler arguments"""
    category = ErrorCategory.MARSHALLING


class ActionExecutionError(ActionProcessingError):
    """The action handler raised"""
    category = ErrorCategory.EXECUTION


class ScriptResourceError(ActionSystemError):
    """A script could not be found or read"""
    category = ErrorCategory.SCRIPT_RESOURCE


class HallucinationDetectionError(ActionSystemError):
    """The self-consistency check could not produce a score"""
    category = ErrorCategory.DETECTION


@dataclass
class ErrorClassification:
    """Complete error classification with recovery suggestions"""
    category: ErrorCategory
    is_fatal: bool
    explanation: str  # What happened in simple terms
    technical_details: Optional[str] = None  # Full error message
    suggestions: List[str] = field(default_factory=list)  # What user can do


class ErrorClassifier:
    """
    Maps exceptions raised by the core onto categories and suggestions.
    """

    EXPLANATIONS = {
        ErrorCategory.CONFIGURATION: (
            "The model provider is not configured",
            ["• Set PROJECT_ID, LOCATION and MODEL_NAME (a .env file works)"],
        ),
        ErrorCategory.DISCOVERY: (
            "A capability could not be registered",
            ["• Make sure every provider names an existing action method",
             "• Check the modules listed in ACTION_MODULES"],
        ),
        ErrorCategory.TRANSPORT: (
            "The language model could not be reached",
            ["• Check network access and GOOGLE_API_KEY",
             "• Run the instruction again once the service responds"],
        ),
        ErrorCategory.RESOLUTION: (
            "The model chose an action that is not registered",
            ["• Rephrase the instruction so it matches an available action"],
        ),
        ErrorCategory.MARSHALLING: (
            "The action's arguments could not be built from the instruction",
            ["• Mention every value the action needs explicitly"],
        ),
        ErrorCategory.EXECUTION: (
            "The action ran but failed",
            ["• Check the action's own logs for details"],
        ),
        ErrorCategory.SCRIPT_RESOURCE: (
            "The script could not be read",
            ["• Verify the script name and SCRIPT_DIR"],
        ),
        ErrorCategory.DETECTION: (
            "The hallucination check could not be completed",
            ["• Try again with a shorter answer"],
        ),
    }

    @staticmethod
    def classify(error: BaseException) -> ErrorClassification:
        """
        Classify an exception and return handling strategy.

        Args:
            error: Any exception; non-core exceptions land in UNKNOWN

        Returns:
            ErrorClassification with category, fatality and suggestions
        """
        if isinstance(error, ActionSystemError):
            category = error.category
            is_fatal = error.fatal
        else:
            category = ErrorCategory.UNKNOWN
            is_fatal = False

        explanation, suggestions = ErrorClassifier.EXPLANATIONS.get(
            category,
            ("An unexpected error occurred", ["• Run with --verbose for more details"]),
        )

        return ErrorClassification(
            category=category,
            is_fatal=is_fatal,
            explanation=explanation,
            technical_details=str(error),
            suggestions=list(suggestions),
        )


def format_error_for_user(classification: ErrorClassification, instruction: str = "") -> str:
    """
    Format an error classification into a user-friendly message.

    Args:
        classification: The error classification
        instruction: The original instruction, if any

    Returns:
        Formatted error message for user
    """
    if classification.is_fatal:
        header = "❌ **Cannot continue**"
    elif classification.category == ErrorCategory.TRANSPORT:
        header = "⏳ **Model unavailable**"
    else:
        header = "⚠️ **Error**"

    message = f"{header}\n\n"
    message += f"**What happened**: {classification.explanation}\n\n"

    if instruction:
        message += f"**Instruction**: {instruction}\n\n"

    if classification.suggestions:
        message += "**What you can try**:\n"
        for suggestion in classification.suggestions:
            message += f"{suggestion}\n"
        message += "\n"

    if classification.technical_details:
        message += f"**Technical details**: {classification.technical_details}\n"

    return message.strip()
