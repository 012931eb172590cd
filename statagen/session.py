# statagen/session.py
"""
Wizard Session - Orchestration Boundary

WizardSession owns the current WorkflowState and drives the two
language-model exchanges on top of the pure reducers in workflow.py.

Concurrency model:
- Everything runs on one asyncio event loop. The only await points are
  the suggestion and code-generation calls.
- Each call kind has a busy flag (suggesting / generating). A second
  call of the same kind while one is outstanding raises SessionBusy.
  Other edits (renames, category switches) are always allowed.
- Each call kind also has a request token. cancel_suggestions() and
  cancel_generation() advance the token; a response that arrives for an
  older token is discarded instead of being applied.

Failures of either exchange are caught here, turned into a Notice and
logged. The workflow state is left exactly as it was.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .agents import fetch_variables, generate_code
from .catalog import CATEGORY_IDS, get_method
from .errors import CodeGenerationFailure, SessionBusy, StageError, SuggestionFetchFailure, UnknownMethod
from .progress import log_event
from .prompts import build_code_request
from .state import (
    AnalysisMethod,
    CodeSection,
    Role,
    Stage,
    VariableDefinition,
    WorkflowState,
    create_initial_state,
)
from .taxonomy import group_by_role
from . import workflow


SUGGEST = "suggest"
GENERATE = "generate"


@dataclass(frozen=True)
class Notice:
    """A user-visible, dismissible failure message."""
    kind: str                 # "SuggestionFetchFailure", "SchemaMismatch", ...
    message: str


class WizardSession:
    """
    One researcher's pass through the wizard.

    Attributes:
        state: Current WorkflowState (replaced on every change)
        suggesting: True while a suggestion call is outstanding
        generating: True while a code-generation call is outstanding
        notices: Failures not yet dismissed, oldest first
    """

    def __init__(self, client, config: Optional[dict] = None, state: Optional[WorkflowState] = None):
        self.client = client
        self.config = config or {}
        self.state = state or create_initial_state()
        self.suggesting = False
        self.generating = False
        self.notices: List[Notice] = []
        self._tokens: Dict[str, int] = {SUGGEST: 0, GENERATE: 0}

    def _thinking_level(self, agent: str) -> Optional[str]:
        return self.config.get("generation", {}).get(agent, {}).get("thinking_level")

    # --- NOTICES ---

    def _notify(self, error: Exception, stage: str) -> None:
        notice = Notice(kind=type(error).__name__, message=str(error))
        self.notices.append(notice)
        log_event("ERROR", stage, f"{notice.kind}: {notice.message}")

    def dismiss_notice(self, index: int = 0) -> Notice:
        return self.notices.pop(index)

    def clear_notices(self) -> None:
        self.notices.clear()

    # --- TOPIC INTAKE ---

    def set_topic(self, topic: str) -> None:
        self.state = workflow.set_topic(self.state, topic)

    def set_field(self, field: str) -> None:
        self.state = workflow.set_field(self.state, field)

    def configure_roles(self, **counts) -> None:
        """Change role counts; see workflow.configure_roles for the keywords."""
        self.state = workflow.configure_roles(self.state, **counts)

    async def request_suggestions(self) -> bool:
        """
        Fetch a taxonomy and move to VariableReview.

        Returns:
            True if the stage advanced. False if the exchange failed (a
            notice is recorded) or the response was superseded.

        Raises:
            StageError: If not in TopicIntake
            SessionBusy: If a suggestion call is already outstanding
        """
        if self.state.stage != Stage.TOPIC_INTAKE:
            raise StageError(f"Cannot request suggestions in stage '{self.state.stage.value}'")
        if self.suggesting:
            raise SessionBusy("A variable suggestion request is already in progress")

        if not self.state.topic:
            # Nothing is dispatched for an empty topic
            self._notify(SuggestionFetchFailure("Please enter a research topic first"), "Suggester")
            return False

        self._tokens[SUGGEST] += 1
        token = self._tokens[SUGGEST]
        topic, field, role_config = self.state.topic, self.state.field, self.state.role_config

        self.suggesting = True
        try:
            variables = await fetch_variables(
                self.client, topic, field, role_config,
                thinking_level=self._thinking_level("suggester"),
            )
        except SuggestionFetchFailure as e:
            if token == self._tokens[SUGGEST]:
                self._notify(e, "Suggester")
            return False
        finally:
            if token == self._tokens[SUGGEST]:
                self.suggesting = False

        if token != self._tokens[SUGGEST]:
            log_event("WARNING", "Suggester", f"Discarded superseded suggestion response (request {token})")
            return False

        self.state = workflow.accept_suggestions(self.state, variables)
        log_event("INFO", "Review", f"Entered variable review with {len(variables)} variables")
        return True

    def cancel_suggestions(self) -> None:
        """Abandon the outstanding suggestion call; its response will be ignored."""
        if self.suggesting:
            self._tokens[SUGGEST] += 1
            self.suggesting = False
            log_event("INFO", "Suggester", "Cancelled outstanding suggestion request")

    # --- VARIABLE REVIEW ---

    def rename_variable(self, index: int, new_name: str) -> None:
        self.state = workflow.rename_variable(self.state, index, new_name)

    def relabel_variable(self, index: int, new_label: str) -> None:
        self.state = workflow.relabel_variable(self.state, index, new_label)

    def return_to_topic(self) -> None:
        self.state = workflow.return_to_topic(self.state)
        log_event("INFO", "Review", "Returned to topic intake")

    def confirm(self) -> None:
        self.state = workflow.confirm_variables(self.state)
        log_event("INFO", "Review", f"Confirmed {len(self.state.variables)} variables")

    def grouped_variables(self) -> Dict[Role, List[VariableDefinition]]:
        return group_by_role(self.state.variables)

    # --- WORKBENCH ---

    def select_category(self, category: str) -> None:
        self.state = workflow.select_category(self.state, category)

    async def generate(
        self,
        method: Union[AnalysisMethod, int, str],
        category: Optional[str] = None,
    ) -> Optional[CodeSection]:
        """
        Generate code for a method and prepend it to a category's history.

        Args:
            method: An AnalysisMethod, or an index/name within the category
            category: Target category; defaults to the active category

        Returns:
            The new CodeSection, or None if generation failed (a notice is
            recorded) or the response was superseded

        Raises:
            StageError: If not in the Workbench stage
            SessionBusy: If a generation call is already outstanding
            UnknownMethod: If the category or method is not in the catalog
        """
        if self.state.stage != Stage.WORKBENCH:
            raise StageError(f"Cannot generate code in stage '{self.state.stage.value}'")
        if self.generating:
            raise SessionBusy("A code generation request is already in progress")

        category = category or self.state.active_category
        if category not in CATEGORY_IDS:
            raise UnknownMethod(
                f"Unknown category '{category}'. Expected one of: {', '.join(CATEGORY_IDS)}"
            )
        if not isinstance(method, AnalysisMethod):
            method = get_method(category, method)

        # The request is fixed at dispatch; later taxonomy edits do not affect it
        request = build_code_request(self.state.topic, self.state.variables, method)

        self._tokens[GENERATE] += 1
        token = self._tokens[GENERATE]

        self.generating = True
        try:
            section = await generate_code(
                self.client, request,
                thinking_level=self._thinking_level("coder"),
            )
        except CodeGenerationFailure as e:
            if token == self._tokens[GENERATE]:
                self._notify(e, "Coder")
            return None
        finally:
            if token == self._tokens[GENERATE]:
                self.generating = False

        if token != self._tokens[GENERATE]:
            log_event("WARNING", "Coder", f"Discarded superseded result for {method.name} (request {token})")
            return None

        self.state = workflow.record_section(self.state, category, section)
        log_event("INFO", "Coder", f"Added '{section.title}' to {category} "
                                   f"({len(self.state.sections(category))} sections)")
        return section

    def cancel_generation(self) -> None:
        """Abandon the outstanding generation call; its response will be ignored."""
        if self.generating:
            self._tokens[GENERATE] += 1
            self.generating = False
            log_event("INFO", "Coder", "Cancelled outstanding generation request")
