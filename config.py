"""
Production configuration for the action orchestration system.
All hardcoded values moved here for easy tuning.
"""

import os
from dataclasses import dataclass
from typing import Dict, Any, List

from dotenv import load_dotenv

from error_handler import ConfigurationError

load_dotenv()


@dataclass(frozen=True)
class ProviderSettings:
    """Model provider settings required at startup"""
    project_id: str
    location: str
    model_name: str


class Config:
    """Central configuration for all system components."""

    # Model provider
    GOOGLE_API_KEY = os.getenv('GOOGLE_API_KEY', '')
    REQUIRED_PROVIDER_SETTINGS = ('PROJECT_ID', 'LOCATION', 'MODEL_NAME')

    # Human approval is requested for actions at or above this risk level
    APPROVAL_RISK_THRESHOLD = os.getenv('APPROVAL_RISK_THRESHOLD', 'medium').lower()
    EXPLAIN_ACTIONS = os.getenv('EXPLAIN_ACTIONS', 'false').lower() == 'true'

    # Hallucination detection
    HALLUCINATION_THRESHOLD = float(os.getenv('HALLUCINATION_THRESHOLD', '50.0'))
    NUMBER_OF_QUESTIONS = int(os.getenv('NUMBER_OF_QUESTIONS', '4'))

    # Scripts and capability discovery
    SCRIPT_DIR = os.getenv('SCRIPT_DIR', 'scripts')
    ACTION_MODULES = os.getenv('ACTION_MODULES', 'sample_actions')
    SHELL_ACTIONS_FILE = os.getenv('SHELL_ACTIONS_FILE', 'shell_actions.json')

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    VERBOSE = os.getenv('VERBOSE', 'false').lower() == 'true'

    @classmethod
    def provider_settings(cls) -> ProviderSettings:
        """
        Read the provider project, location and model from the environment.

        Raises:
            ConfigurationError: if any of the three settings is missing
        """
        values = {name: os.getenv(name, '').strip() for name in cls.REQUIRED_PROVIDER_SETTINGS}
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

        return ProviderSettings(
            project_id=values['PROJECT_ID'],
            location=values['LOCATION'],
            model_name=values['MODEL_NAME'],
        )

    @classmethod
    def action_modules(cls) -> List[str]:
        """Module names listed in ACTION_MODULES, in order"""
        return [name.strip() for name in cls.ACTION_MODULES.split(',') if name.strip()]

    @classmethod
    def get_config(cls) -> Dict[str, Any]:
        """Return all config values as a dictionary."""
        return {
            'approval_risk_threshold': cls.APPROVAL_RISK_THRESHOLD,
            'explain_actions': cls.EXPLAIN_ACTIONS,
            'hallucination_threshold': cls.HALLUCINATION_THRESHOLD,
            'number_of_questions': cls.NUMBER_OF_QUESTIONS,
            'script_dir': cls.SCRIPT_DIR,
            'action_modules': cls.action_modules(),
            'shell_actions_file': cls.SHELL_ACTIONS_FILE,
            'log_level': cls.LOG_LEVEL,
            'verbose': cls.VERBOSE,
        }
