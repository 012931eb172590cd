# statagen/taxonomy.py
"""
Variable Taxonomy

Parsing, validation and grouping of role-tagged variables.

The suggester returns JSON; parse_suggestions() turns it into
VariableDefinition objects and rejects anything that does not conform
to the variables schema. Role counts are deliberately NOT checked
against the requested RoleConfiguration: role_count_mismatches() reports
the difference so callers can log it, but the taxonomy is accepted.
"""

import json
from typing import Any, Dict, List, Sequence, Tuple

from .errors import SchemaMismatch
from .state import (
    ROLE_ORDER,
    Role,
    RoleConfiguration,
    VariableDefinition,
    is_valid_variable_name,
)


# Structured output schema for the suggestion exchange
SUGGESTION_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "variables": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Stata 变量名 (英文)"},
                    "label": {"type": "string", "description": "变量中文含义"},
                    "role": {"type": "string", "enum": [role.value for role in ROLE_ORDER]},
                },
                "required": ["name", "label", "role"],
            },
        }
    },
    "required": ["variables"],
}


def parse_suggestions(response_text: str) -> Tuple[VariableDefinition, ...]:
    """
    Parse and validate a suggestion response.

    Args:
        response_text: Raw JSON text returned by the suggester

    Returns:
        The variables in the order they were returned

    Raises:
        SchemaMismatch: If the text is empty, not JSON, or does not match
            the variables schema (missing keys, unknown role, invalid
            identifier, empty list, or not exactly one Y and one X)
    """
    if not response_text or not response_text.strip():
        raise SchemaMismatch("Suggestion response was empty")

    try:
        data = json.loads(response_text)
    except json.JSONDecodeError as e:
        raise SchemaMismatch(f"Suggestion response is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("variables"), list):
        raise SchemaMismatch("Suggestion response must be an object with a 'variables' array")

    items = data["variables"]
    if not items:
        raise SchemaMismatch("Suggestion response contained no variables")

    variables = []
    for i, item in enumerate(items):
        variables.append(_parse_variable(item, i))

    counts = count_by_role(variables)
    for role in (Role.Y, Role.X):
        if counts[role] != 1:
            raise SchemaMismatch(
                f"Expected exactly one {role.value} variable, got {counts[role]}"
            )

    return tuple(variables)


def _parse_variable(item: Any, index: int) -> VariableDefinition:
    if not isinstance(item, dict):
        raise SchemaMismatch(f"Variable #{index} is not an object")

    missing = [key for key in ("name", "label", "role") if not isinstance(item.get(key), str)]
    if missing:
        raise SchemaMismatch(f"Variable #{index} is missing string field(s): {', '.join(missing)}")

    name = item["name"].strip()
    if not is_valid_variable_name(name):
        raise SchemaMismatch(f"Variable #{index} has an invalid Stata name: {item['name']!r}")

    try:
        role = Role(item["role"])
    except ValueError:
        raise SchemaMismatch(f"Variable #{index} has an unknown role: {item['role']!r}") from None

    return VariableDefinition(name=name, label=item["label"].strip(), role=role)


def count_by_role(variables: Sequence[VariableDefinition]) -> Dict[Role, int]:
    """Count variables per role; every role is present, possibly zero."""
    counts = {role: 0 for role in ROLE_ORDER}
    for variable in variables:
        counts[variable.role] += 1
    return counts


def group_by_role(variables: Sequence[VariableDefinition]) -> Dict[Role, List[VariableDefinition]]:
    """
    Group variables into the six role buckets.

    Buckets come back in ROLE_ORDER (Y, X, Control, Mechanism, Hetero,
    FixedEffect); within a bucket insertion order is kept. Empty
    buckets are included.
    """
    groups: Dict[Role, List[VariableDefinition]] = {role: [] for role in ROLE_ORDER}
    for variable in variables:
        groups[variable.role].append(variable)
    return groups


def names_for_role(variables: Sequence[VariableDefinition], role: Role) -> List[str]:
    return [v.name for v in variables if v.role == role]


def role_count_mismatches(
    variables: Sequence[VariableDefinition],
    role_config: RoleConfiguration,
) -> Dict[Role, Tuple[int, int]]:
    """
    Compare the returned taxonomy with the requested counts.

    Returns:
        Mapping of role -> (expected, actual) for every role that differs.
        An empty dict means the suggester honoured the configuration.
    """
    actual = count_by_role(variables)
    return {
        role: (expected, actual[role])
        for role, expected in role_config.expected_counts().items()
        if expected != actual[role]
    }
