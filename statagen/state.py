# statagen/state.py
"""
State Management - Data Schemas and WorkflowState

This module defines all the data structures used throughout the
StataGen wizard: variable roles, the role-count configuration, generated
code sections and the root WorkflowState aggregate.

WorkflowState is immutable. Every change goes through the reducer
functions in workflow.py, which return a new state.
"""

import re
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Dict, List, Mapping, Tuple, TypedDict

from .errors import InvalidRoleConfiguration


class Stage(str, Enum):
    """The three stages of the project wizard."""
    TOPIC_INTAKE = "topic_intake"       # Topic, field and role counts
    VARIABLE_REVIEW = "variable_review"  # Review/edit suggested variables
    WORKBENCH = "workbench"             # Generate analysis code


class Role(str, Enum):
    """The analytical function a variable plays in the study."""
    Y = "Y"
    X = "X"
    CONTROL = "Control"
    MECHANISM = "Mechanism"
    HETERO = "Hetero"
    FIXED_EFFECT = "FixedEffect"


# Fixed display order for grouped taxonomies
ROLE_ORDER: Tuple[Role, ...] = (
    Role.Y,
    Role.X,
    Role.CONTROL,
    Role.MECHANISM,
    Role.HETERO,
    Role.FIXED_EFFECT,
)

ROLE_LABELS: Dict[Role, str] = {
    Role.Y: "被解释变量 (Dependent Variable)",
    Role.X: "核心解释变量 (Independent Variable)",
    Role.CONTROL: "控制变量 (Control Variables)",
    Role.MECHANISM: "机制变量 (Mechanism)",
    Role.HETERO: "异质性变量 (Heterogeneity)",
    Role.FIXED_EFFECT: "固定效应变量 (Fixed Effects)",
}

RESEARCH_FIELDS: List[str] = [
    "发展经济学 (Development Economics)",
    "劳动经济学 (Labor Economics)",
    "公司金融 (Corporate Finance)",
    "环境经济学 (Environmental Economics)",
    "宏观经济学 (Macroeconomics)",
    "国际贸易 (International Trade)",
    "卫生经济学 (Health Economics)",
    "区域经济学 (Regional Economics)",
]

DEFAULT_FIELD = RESEARCH_FIELDS[0]

# Stata variable names: lowercase, no whitespace
VARIABLE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


def is_valid_variable_name(name: str) -> bool:
    """Check whether a name is usable as a Stata variable identifier."""
    return bool(VARIABLE_NAME_PATTERN.match(name))


@dataclass(frozen=True)
class VariableDefinition:
    """
    A single variable in the study taxonomy.

    The name is what appears in generated code; the label is the
    human-readable description shown to the researcher.
    """
    name: str                 # Stata identifier (e.g., "digital_idx")
    label: str                # Free-form description
    role: Role

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "label": self.label, "role": self.role.value}


@dataclass(frozen=True)
class RoleConfiguration:
    """
    How many variables of each role to request from the suggester.

    Exactly one Y and one X are always implied and are not configurable.
    Ranges follow the wizard inputs: controls 1-20, fixed effects 0-5,
    mechanisms 1-5, heterogeneity groupings 0-5.
    """
    control_count: int = 4
    fixed_effect_count: int = 2
    mechanism_count: int = 1
    hetero_count: int = 1

    LIMITS = {
        "control_count": (1, 20),
        "fixed_effect_count": (0, 5),
        "mechanism_count": (1, 5),
        "hetero_count": (0, 5),
    }

    def __post_init__(self):
        for attr, (low, high) in self.LIMITS.items():
            value = getattr(self, attr)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidRoleConfiguration(f"{attr} must be an integer, got {value!r}")
            if not low <= value <= high:
                raise InvalidRoleConfiguration(
                    f"{attr} must be between {low} and {high}, got {value}"
                )

    def expected_counts(self) -> Dict[Role, int]:
        """Number of variables expected per role, in display order."""
        return {
            Role.Y: 1,
            Role.X: 1,
            Role.CONTROL: self.control_count,
            Role.MECHANISM: self.mechanism_count,
            Role.HETERO: self.hetero_count,
            Role.FIXED_EFFECT: self.fixed_effect_count,
        }

    @property
    def expected_total(self) -> int:
        return sum(self.expected_counts().values())


@dataclass(frozen=True)
class AnalysisMethod:
    """An entry in the method catalog."""
    name: str                 # Display name (e.g., "双向固定效应 (Two-way FE)")
    hint: str                 # Command hint passed to the generator (e.g., "reghdfe")


@dataclass(frozen=True)
class CodeSection:
    """The result of one code-generation call."""
    title: str
    code: str
    explanation: str


@dataclass(frozen=True)
class WorkflowState:
    """
    The root aggregate for one wizard session.

    Fields:
        stage: Current wizard stage
        topic: Research topic entered by the user
        field: Research field (one of RESEARCH_FIELDS or free text)
        role_config: Requested variable counts per role
        variables: The taxonomy, in the order the suggester returned it
        active_category: Catalog category currently shown in the workbench
        store: Generated sections per category, newest first
    """
    stage: Stage = Stage.TOPIC_INTAKE
    topic: str = ""
    field: str = DEFAULT_FIELD
    role_config: RoleConfiguration = dataclass_field(default_factory=RoleConfiguration)
    variables: Tuple[VariableDefinition, ...] = ()
    active_category: str = "basic"
    store: Mapping[str, Tuple[CodeSection, ...]] = dataclass_field(default_factory=dict)

    def sections(self, category: str) -> Tuple[CodeSection, ...]:
        """Generated sections for a category, newest first."""
        return self.store.get(category, ())


def create_initial_state(
    topic: str = "",
    field: str = DEFAULT_FIELD,
    role_config: RoleConfiguration = None,
) -> WorkflowState:
    """
    Create a fresh WorkflowState in the TopicIntake stage.

    Args:
        topic: Research topic (may be filled in later)
        field: Research field
        role_config: Role counts; defaults to RoleConfiguration()

    Returns:
        A new WorkflowState with an empty taxonomy and an empty store
    """
    from .store import empty_store

    return WorkflowState(
        stage=Stage.TOPIC_INTAKE,
        topic=topic,
        field=field,
        role_config=role_config or RoleConfiguration(),
        variables=(),
        active_category="basic",
        store=empty_store(),
    )


class PipelineState(TypedDict, total=False):
    """
    The state dictionary for the batch LangGraph pipeline.

    The WorkflowState itself lives in the WizardSession bound to the
    graph nodes; this dictionary only tracks the batch run.

    Fields:
        method_queue: (category, method name) pairs still to generate
        generated: "category: method" entries generated so far
        failed: "category: method" entries whose generation failed
        stage: Wizard stage after the last node
        suggestion_rounds: How many suggestion exchanges have run
        run_dir: Path to this run's output directory
    """
    method_queue: List[Tuple[str, str]]
    generated: List[str]
    failed: List[str]
    stage: str
    suggestion_rounds: int
    run_dir: str
