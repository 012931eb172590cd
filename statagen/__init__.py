# StataGen Source Package
"""
StataGen: Stata do-file wizard for empirical economics

This package contains the core modules for the wizard:
- state: Data schemas and WorkflowState
- catalog: Analysis method catalog
- taxonomy: Variable validation and role grouping
- workflow: Stage transitions (pure reducers)
- prompts: Suggestion and code-generation requests
- session: Orchestration of the Gemini exchanges
- graph: LangGraph batch pipeline
- client: Gemini API wrapper
- progress: CLI progress and logging
"""

from .state import Role, Stage, WorkflowState
from .session import WizardSession

__version__ = "0.1.0"
__all__ = ["Role", "Stage", "WorkflowState", "WizardSession"]
