# statagen/workflow.py
"""
Wizard Stage Controller

Pure transition functions over WorkflowState:

    TopicIntake ──accept_suggestions──▶ VariableReview ──confirm_variables──▶ Workbench
         ▲                                   │
         └──────────return_to_topic──────────┘

Every function takes a state and returns a new one; the input is never
modified. A call that is not legal in the current stage raises
StageError and produces no new state.
"""

from dataclasses import replace
from typing import Optional, Sequence

from .catalog import CATEGORY_IDS
from .errors import InvalidVariableName, StageError, UnknownMethod
from .state import (
    DEFAULT_FIELD,
    CodeSection,
    Role,
    RoleConfiguration,
    Stage,
    VariableDefinition,
    WorkflowState,
    is_valid_variable_name,
)
from .store import prepend_section
from .taxonomy import count_by_role


def _require_stage(state: WorkflowState, action: str, *allowed: Stage) -> None:
    if state.stage not in allowed:
        expected = " or ".join(stage.value for stage in allowed)
        raise StageError(
            f"Cannot {action} in stage '{state.stage.value}' (requires {expected})"
        )


# --- TOPIC INTAKE ---

def set_topic(state: WorkflowState, topic: str) -> WorkflowState:
    _require_stage(state, "change the topic", Stage.TOPIC_INTAKE)
    return replace(state, topic=topic.strip())


def set_field(state: WorkflowState, field: str) -> WorkflowState:
    """Blank input falls back to DEFAULT_FIELD."""
    _require_stage(state, "change the research field", Stage.TOPIC_INTAKE)
    return replace(state, field=field.strip() or DEFAULT_FIELD)


def configure_roles(
    state: WorkflowState,
    control_count: Optional[int] = None,
    fixed_effect_count: Optional[int] = None,
    mechanism_count: Optional[int] = None,
    hetero_count: Optional[int] = None,
) -> WorkflowState:
    """
    Change the requested role counts. Only legal in TopicIntake.

    Unspecified counts keep their current value. Out-of-range counts
    raise InvalidRoleConfiguration.
    """
    _require_stage(state, "change role counts", Stage.TOPIC_INTAKE)
    current = state.role_config
    config = RoleConfiguration(
        control_count=current.control_count if control_count is None else control_count,
        fixed_effect_count=current.fixed_effect_count if fixed_effect_count is None else fixed_effect_count,
        mechanism_count=current.mechanism_count if mechanism_count is None else mechanism_count,
        hetero_count=current.hetero_count if hetero_count is None else hetero_count,
    )
    return replace(state, role_config=config)


def accept_suggestions(state: WorkflowState, variables: Sequence[VariableDefinition]) -> WorkflowState:
    """
    TopicIntake -> VariableReview with a freshly suggested taxonomy.

    Replaces any taxonomy retained from an earlier round. The taxonomy
    must hold exactly one Y and one X.
    """
    _require_stage(state, "accept suggested variables", Stage.TOPIC_INTAKE)
    if not variables:
        raise StageError("Cannot enter variable review with an empty taxonomy")
    counts = count_by_role(variables)
    for role in (Role.Y, Role.X):
        if counts[role] != 1:
            raise StageError(
                f"Cannot enter variable review: expected exactly one {role.value} variable, "
                f"got {counts[role]}"
            )
    return replace(state, stage=Stage.VARIABLE_REVIEW, variables=tuple(variables))


# --- VARIABLE REVIEW ---

def return_to_topic(state: WorkflowState) -> WorkflowState:
    """VariableReview -> TopicIntake. The taxonomy is kept, not cleared."""
    _require_stage(state, "return to topic intake", Stage.VARIABLE_REVIEW)
    return replace(state, stage=Stage.TOPIC_INTAKE)


def confirm_variables(state: WorkflowState) -> WorkflowState:
    """VariableReview -> Workbench."""
    _require_stage(state, "confirm variables", Stage.VARIABLE_REVIEW)
    if not state.variables:
        raise StageError("Cannot confirm an empty taxonomy")
    return replace(state, stage=Stage.WORKBENCH)


def _replace_variable(state: WorkflowState, index: int, **changes) -> WorkflowState:
    if not 0 <= index < len(state.variables):
        raise IndexError(f"No variable at position {index} (taxonomy has {len(state.variables)})")
    variables = list(state.variables)
    variables[index] = replace(variables[index], **changes)
    return replace(state, variables=tuple(variables))


def rename_variable(state: WorkflowState, index: int, new_name: str) -> WorkflowState:
    """
    Rename the variable at a position in the taxonomy.

    Role and position are unchanged. Names are not checked for
    uniqueness across the taxonomy.

    Raises:
        InvalidVariableName: If new_name is not a valid Stata identifier
    """
    _require_stage(state, "rename variables", Stage.VARIABLE_REVIEW, Stage.WORKBENCH)
    new_name = new_name.strip()
    if not is_valid_variable_name(new_name):
        raise InvalidVariableName(
            f"'{new_name}' is not a valid Stata variable name "
            "(lowercase letters, digits and underscores, starting with a letter)"
        )
    return _replace_variable(state, index, name=new_name)


def relabel_variable(state: WorkflowState, index: int, new_label: str) -> WorkflowState:
    _require_stage(state, "relabel variables", Stage.VARIABLE_REVIEW, Stage.WORKBENCH)
    return _replace_variable(state, index, label=new_label)


# --- WORKBENCH ---

def select_category(state: WorkflowState, category: str) -> WorkflowState:
    _require_stage(state, "switch categories", Stage.WORKBENCH)
    if category not in CATEGORY_IDS:
        raise UnknownMethod(
            f"Unknown category '{category}'. Expected one of: {', '.join(CATEGORY_IDS)}"
        )
    return replace(state, active_category=category)


def record_section(state: WorkflowState, category: str, section: CodeSection) -> WorkflowState:
    """Prepend a generated section to a category's history."""
    _require_stage(state, "record generated code", Stage.WORKBENCH)
    if category not in CATEGORY_IDS:
        raise UnknownMethod(f"Unknown category '{category}'")
    return replace(state, store=prepend_section(state.store, category, section))
