# statagen/agents/suggester.py
"""
The Suggester Agent

This agent proposes the variable taxonomy for a research topic:
1. Builds the suggestion request from topic, field and role counts
2. Asks the model for JSON matching the variables schema
3. Validates the response strictly (see taxonomy.parse_suggestions)
4. Logs, but tolerates, role counts that differ from the request
"""

from typing import Optional, Tuple

from ..errors import SchemaMismatch, SuggestionFetchFailure
from ..progress import log_event, update_display
from ..prompts import build_suggestion_request
from ..state import RoleConfiguration, VariableDefinition
from ..taxonomy import parse_suggestions, role_count_mismatches


async def fetch_variables(
    client,
    topic: str,
    field: str,
    role_config: RoleConfiguration,
    thinking_level: Optional[str] = None,
) -> Tuple[VariableDefinition, ...]:
    """
    Ask the model for a variable taxonomy.

    Args:
        client: GeminiLLMClient (or anything with an async acall_text)
        topic: Research topic; must be non-empty
        field: Research field
        role_config: Requested counts per role
        thinking_level: Optional chain-of-thought depth

    Returns:
        The suggested variables in the order returned

    Raises:
        SuggestionFetchFailure: Empty topic or transport error
        SchemaMismatch: Response empty or not matching the schema
    """
    if not topic or not topic.strip():
        raise SuggestionFetchFailure("Research topic is empty; nothing to suggest variables for")

    request = build_suggestion_request(topic.strip(), field, role_config)

    update_display("Suggester", "Requesting variable suggestions...")
    log_event("INFO", "Suggester", f"Requesting {role_config.expected_total} variables for: {request.topic}")

    try:
        response = await client.acall_text(
            system_prompt=request.system_prompt,
            user_text=request.prompt,
            thinking_level=thinking_level,
            response_schema=request.response_schema,
        )
    except Exception as e:
        raise SuggestionFetchFailure(f"Variable suggestion request failed: {e}") from e

    try:
        variables = parse_suggestions(response or "")
    except SchemaMismatch as e:
        log_event("ERROR", "Suggester", f"Rejected suggestion response: {e}")
        raise

    mismatches = role_count_mismatches(variables, role_config)
    if mismatches:
        detail = ", ".join(
            f"{role.value} expected {expected} got {actual}"
            for role, (expected, actual) in mismatches.items()
        )
        log_event("WARNING", "Suggester", f"Role counts differ from request: {detail}",
                  metadata={role.value: [e, a] for role, (e, a) in mismatches.items()})

    log_event("INFO", "Suggester", f"Received {len(variables)} variables")
    return variables
