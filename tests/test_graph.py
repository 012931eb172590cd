"""
Tests for the batch LangGraph pipeline.
"""

import asyncio

from statagen.graph import run_pipeline, route_after_review, route_after_suggestion
from statagen.session import WizardSession
from statagen.state import Stage, create_initial_state

from conftest import TOPIC, FakeClient


def _session(client):
    return WizardSession(client, state=create_initial_state(topic=TOPIC))


class TestRunPipeline:

    def test_generates_every_queued_method(self, suggestion_json):
        client = FakeClient(suggestion_json(), "sum carbon_intensity, detail", "reghdfe carbon_intensity digital_idx")
        session = _session(client)
        queue = [("basic", "描述性统计 (Detail)"), ("benchmark", "双向固定效应 (Two-way FE)")]

        final = asyncio.run(run_pipeline(session, queue, run_dir="runs/test"))

        assert final["generated"] == ["basic: 描述性统计 (Detail)", "benchmark: 双向固定效应 (Two-way FE)"]
        assert final["failed"] == []
        assert final["method_queue"] == []
        assert final["stage"] == Stage.WORKBENCH.value
        assert session.state.sections("basic")[0].code == "sum carbon_intensity, detail"
        assert session.state.sections("benchmark")[0].title == "双向固定效应 (Two-way FE)"
        assert session.state.active_category == "benchmark"

    def test_stops_when_suggestion_fails(self):
        client = FakeClient(ConnectionError("offline"))
        session = _session(client)

        final = asyncio.run(run_pipeline(session, [("basic", "描述性统计 (Detail)")]))

        assert final["stage"] == Stage.TOPIC_INTAKE.value
        assert final["generated"] == []
        assert len(client.calls) == 1
        assert session.notices[0].kind == "SuggestionFetchFailure"

    def test_generation_failure_is_recorded_and_run_continues(self, suggestion_json):
        client = FakeClient(suggestion_json(), "", "xthreg carbon_intensity digital_idx")
        session = _session(client)
        queue = [("hetero", "分组回归检验"), ("hetero", "门槛效应模型")]

        final = asyncio.run(run_pipeline(session, queue))

        assert final["failed"] == ["hetero: 分组回归检验"]
        assert final["generated"] == ["hetero: 门槛效应模型"]
        assert len(session.state.sections("hetero")) == 1

    def test_review_hook_can_edit_and_go_back(self, suggestion_json):
        client = FakeClient(suggestion_json(control=1), suggestion_json(control=3), "reg")
        session = _session(client)
        visits = []

        def hook(s):
            visits.append(len(s.state.variables))
            if len(visits) == 1:
                s.return_to_topic()
                s.configure_roles(control_count=3)
            else:
                s.rename_variable(0, "co2_intensity")

        final = asyncio.run(run_pipeline(session, [("benchmark", "混合 OLS (Pooled OLS)")], review_hook=hook))

        assert visits == [7, 9]
        assert final["suggestion_rounds"] == 2
        assert session.state.variables[0].name == "co2_intensity"
        assert "co2_intensity" in client.calls[-1]["user_text"]

    def test_empty_queue_ends_after_confirmation(self, suggestion_json):
        session = _session(FakeClient(suggestion_json()))
        final = asyncio.run(run_pipeline(session, []))
        assert final["stage"] == Stage.WORKBENCH.value
        assert final["generated"] == []


class TestRouters:

    def test_route_after_suggestion(self):
        assert route_after_suggestion({"stage": "variable_review"}) == "review"
        assert route_after_suggestion({"stage": "topic_intake"}) == "end"

    def test_route_after_review(self):
        assert route_after_review({"stage": "topic_intake"}) == "back"
        assert route_after_review({"stage": "workbench", "method_queue": [("basic", "x")]}) == "generate"
        assert route_after_review({"stage": "workbench", "method_queue": []}) == "end"
