"""
Shared fixtures for the StataGen test suite.

The language model is replaced by FakeClient (scripted responses) or
GatedClient (blocks until the test releases it), both exposing the same
async acall_text signature as GeminiLLMClient.
"""

import asyncio
import json

import pytest

from statagen.state import create_initial_state
from statagen.taxonomy import parse_suggestions
from statagen import workflow


TOPIC = "数字经济发展对城市碳排放的影响"


class FakeClient:
    """Returns scripted responses in order; the last one repeats."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def acall_text(self, system_prompt, user_text, thinking_level=None, response_schema=None):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_text": user_text,
            "thinking_level": thinking_level,
            "response_schema": response_schema,
        })
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class GatedClient(FakeClient):
    """Like FakeClient, but every call waits for gate to be set."""

    def __init__(self, gate: asyncio.Event, *responses):
        super().__init__(*responses)
        self.gate = gate

    async def acall_text(self, system_prompt, user_text, thinking_level=None, response_schema=None):
        await self.gate.wait()
        return await super().acall_text(system_prompt, user_text, thinking_level, response_schema)


def make_suggestion_json(control=4, mechanism=1, hetero=1, fixed_effect=2):
    """Build a suggestion response with exactly the requested counts."""
    fe_names = ["year", "city", "industry", "province", "firm"]
    variables = [
        {"name": "carbon_intensity", "label": "碳排放强度", "role": "Y"},
        {"name": "digital_idx", "label": "数字经济发展指数", "role": "X"},
    ]
    variables += [{"name": f"ctrl_{i}", "label": f"控制变量{i}", "role": "Control"} for i in range(control)]
    variables += [{"name": f"mech_{i}", "label": f"机制变量{i}", "role": "Mechanism"} for i in range(mechanism)]
    variables += [{"name": f"het_{i}", "label": f"异质性变量{i}", "role": "Hetero"} for i in range(hetero)]
    variables += [{"name": fe_names[i], "label": f"固定效应{i}", "role": "FixedEffect"} for i in range(fixed_effect)]
    return json.dumps({"variables": variables}, ensure_ascii=False)


@pytest.fixture
def suggestion_json():
    """Factory fixture for suggestion responses."""
    return make_suggestion_json


@pytest.fixture
def review_state():
    """A state in VariableReview with the default 10-variable taxonomy."""
    state = create_initial_state(topic=TOPIC)
    return workflow.accept_suggestions(state, parse_suggestions(make_suggestion_json()))


@pytest.fixture
def workbench_state(review_state):
    """A state in Workbench with the default taxonomy confirmed."""
    return workflow.confirm_variables(review_state)
