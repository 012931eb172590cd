"""
Tests for the wizard stage controller (pure reducers).
"""

import pytest

from statagen import workflow
from statagen.errors import InvalidRoleConfiguration, InvalidVariableName, StageError, UnknownMethod
from statagen.state import DEFAULT_FIELD, CodeSection, Role, Stage, VariableDefinition, create_initial_state
from statagen.taxonomy import group_by_role, parse_suggestions


class TestTopicIntake:

    def test_topic_and_field(self):
        state = create_initial_state()
        updated = workflow.set_field(workflow.set_topic(state, "  最低工资与就业  "), "劳动经济学 (Labor Economics)")
        assert updated.topic == "最低工资与就业"
        assert updated.field == "劳动经济学 (Labor Economics)"
        assert state.topic == ""

    def test_configure_roles_keeps_unspecified_counts(self):
        state = workflow.configure_roles(create_initial_state(), control_count=8)
        assert state.role_config.control_count == 8
        assert state.role_config.fixed_effect_count == 2

    def test_configure_roles_rejects_out_of_range(self):
        with pytest.raises(InvalidRoleConfiguration):
            workflow.configure_roles(create_initial_state(), mechanism_count=0)

    def test_role_config_frozen_outside_topic_intake(self, review_state, workbench_state):
        for state in (review_state, workbench_state):
            with pytest.raises(StageError):
                workflow.configure_roles(state, control_count=5)

    def test_accept_suggestions_enters_review(self, suggestion_json):
        variables = parse_suggestions(suggestion_json(control=4, mechanism=1, hetero=1, fixed_effect=2))
        state = workflow.accept_suggestions(create_initial_state(topic="t"), variables)

        assert state.stage == Stage.VARIABLE_REVIEW
        assert len(state.variables) == 10
        groups = group_by_role(state.variables)
        assert [len(b) for b in groups.values()] == [1, 1, 4, 1, 1, 2]

    def test_blank_field_falls_back_to_default(self):
        state = workflow.set_field(create_initial_state(), "劳动经济学 (Labor Economics)")
        assert workflow.set_field(state, "   ").field == DEFAULT_FIELD
        assert workflow.set_field(state, "").field == DEFAULT_FIELD

    def test_accept_requires_variables(self):
        with pytest.raises(StageError):
            workflow.accept_suggestions(create_initial_state(topic="t"), [])

    def test_accept_requires_one_y_and_one_x(self):
        y = VariableDefinition("carbon_intensity", "碳排放强度", Role.Y)
        x = VariableDefinition("digital_idx", "数字经济发展指数", Role.X)
        control = VariableDefinition("size", "规模", Role.CONTROL)
        state = create_initial_state(topic="t")

        for variables in ([control], [y, control], [x, control], [y, y, x], [y, x, x]):
            with pytest.raises(StageError):
                workflow.accept_suggestions(state, variables)

        assert workflow.accept_suggestions(state, [control, x, y]).stage == Stage.VARIABLE_REVIEW

    def test_cannot_edit_taxonomy_in_topic_intake(self):
        with pytest.raises(StageError):
            workflow.rename_variable(create_initial_state(), 0, "y")


class TestVariableReview:

    def test_return_retains_taxonomy(self, review_state):
        state = workflow.return_to_topic(review_state)
        assert state.stage == Stage.TOPIC_INTAKE
        assert state.variables == review_state.variables

    def test_new_suggestions_replace_retained_taxonomy(self, review_state, suggestion_json):
        state = workflow.return_to_topic(review_state)
        state = workflow.accept_suggestions(state, parse_suggestions(suggestion_json(control=1)))
        assert len(state.variables) == 7

    def test_confirm_enters_workbench(self, review_state):
        assert workflow.confirm_variables(review_state).stage == Stage.WORKBENCH

    def test_cannot_skip_review(self):
        with pytest.raises(StageError):
            workflow.confirm_variables(create_initial_state(topic="t"))

    def test_workbench_is_terminal(self, workbench_state):
        with pytest.raises(StageError):
            workflow.return_to_topic(workbench_state)
        with pytest.raises(StageError):
            workflow.confirm_variables(workbench_state)
        with pytest.raises(StageError):
            workflow.accept_suggestions(workbench_state, workbench_state.variables)


class TestEdits:
    """Renames and relabels keep role and position."""

    @pytest.mark.parametrize("index", range(10))
    def test_rename_preserves_role_and_bucket_position(self, review_state, index):
        before = review_state.variables[index]
        bucket_before = group_by_role(review_state.variables)[before.role]
        position = bucket_before.index(before)

        state = workflow.rename_variable(review_state, index, "renamed_var")
        after = state.variables[index]

        assert after.name == "renamed_var"
        assert after.role == before.role
        assert after.label == before.label
        assert group_by_role(state.variables)[before.role][position] == after
        assert len(state.variables) == len(review_state.variables)

    def test_relabel_preserves_name_and_role(self, review_state):
        state = workflow.relabel_variable(review_state, 2, "人均 GDP (对数)")
        assert state.variables[2].label == "人均 GDP (对数)"
        assert state.variables[2].name == review_state.variables[2].name
        assert state.variables[2].role == Role.CONTROL

    def test_edits_allowed_in_workbench(self, workbench_state):
        state = workflow.rename_variable(workbench_state, 0, "co2_per_gdp")
        assert state.variables[0].name == "co2_per_gdp"

    def test_rename_rejects_invalid_identifier(self, review_state):
        with pytest.raises(InvalidVariableName):
            workflow.rename_variable(review_state, 0, "Carbon Intensity")

    def test_rename_out_of_range(self, review_state):
        with pytest.raises(IndexError):
            workflow.rename_variable(review_state, 10, "z")

    def test_rename_does_not_check_uniqueness(self, review_state):
        state = workflow.rename_variable(review_state, 1, review_state.variables[0].name)
        assert state.variables[0].name == state.variables[1].name


class TestWorkbench:

    def test_select_category(self, workbench_state):
        assert workflow.select_category(workbench_state, "endo").active_category == "endo"
        with pytest.raises(UnknownMethod):
            workflow.select_category(workbench_state, "spatial")

    def test_select_category_requires_workbench(self, review_state):
        with pytest.raises(StageError):
            workflow.select_category(review_state, "endo")

    def test_record_section_prepends_without_dedup(self, workbench_state):
        first = CodeSection("双向固定效应 (Two-way FE)", "reghdfe y x", "Generated code for 双向固定效应 (Two-way FE).")
        second = CodeSection("双向固定效应 (Two-way FE)", "reghdfe y x", "Generated code for 双向固定效应 (Two-way FE).")

        state = workflow.record_section(workbench_state, "benchmark", first)
        state = workflow.record_section(state, "benchmark", second)

        assert len(state.sections("benchmark")) == 2
        assert state.sections("benchmark")[0] is second
        assert state.sections("benchmark")[1] is first
        assert workbench_state.sections("benchmark") == ()
        assert state.sections("basic") == ()
