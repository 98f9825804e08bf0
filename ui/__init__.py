"""
UI Module

Terminal front end for the orchestration core:
- ConsoleHumanDecision: approve or veto risky actions
- ConsoleExplainDecision: show why an action was chosen
"""

from ui.confirmation_ui import ConsoleExplainDecision, ConsoleHumanDecision, RISK_STYLES

__all__ = [
    'ConsoleExplainDecision',
    'ConsoleHumanDecision',
    'RISK_STYLES',
]
