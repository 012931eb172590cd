"""
Tests for suggestion and code-generation request construction.
"""

from statagen.catalog import get_method
from statagen.prompts import (
    CODE_CONSTRAINTS,
    build_code_request,
    build_suggestion_request,
    canonical_references,
    section_caption,
)
from statagen.state import Role, RoleConfiguration, VariableDefinition
from statagen.taxonomy import SUGGESTION_RESPONSE_SCHEMA


class TestCanonicalReferences:

    def test_default_taxonomy(self, review_state):
        refs = canonical_references(review_state.variables)
        assert refs.y == "carbon_intensity"
        assert refs.x == "digital_idx"
        assert refs.controls == "ctrl_0 ctrl_1 ctrl_2 ctrl_3"
        assert refs.mechanisms == "mech_0"
        assert refs.heteros == "het_0"
        assert refs.fixed_effects == "year city"

    def test_fallbacks_and_empty_roles(self):
        refs = canonical_references([VariableDefinition("size", "规模", Role.CONTROL)])
        assert refs.y == "y"
        assert refs.x == "x"
        assert refs.controls == "size"
        assert refs.mechanisms == ""
        assert refs.heteros == ""
        assert refs.fixed_effects == ""


class TestSuggestionRequest:

    def test_counts_in_prompt(self):
        config = RoleConfiguration(control_count=7, fixed_effect_count=3, mechanism_count=2, hetero_count=0)
        request = build_suggestion_request("最低工资与就业", "劳动经济学 (Labor Economics)", config)

        assert "研究主题: 最低工资与就业" in request.prompt
        assert "研究领域: 劳动经济学 (Labor Economics)" in request.prompt
        assert "建议 7 个控制变量 (Control)" in request.prompt
        assert "建议 2 个机制变量 (Mechanism)" in request.prompt
        assert "建议 0 个异质性分组变量 (Hetero)" in request.prompt
        assert "建议 3 个固定效应变量 (FixedEffect)" in request.prompt
        assert request.response_schema is SUGGESTION_RESPONSE_SCHEMA


class TestCodeRequest:

    def test_fixed_effect_slot(self, workbench_state):
        method = get_method("benchmark", 0)
        request = build_code_request(workbench_state.topic, workbench_state.variables, method)

        assert "固定效应变量 (Fixed Effects): year city" in request.prompt
        assert "absorb year city" in request.prompt
        assert request.references.fixed_effects == "year city"

    def test_embeds_topic_method_and_references(self, workbench_state):
        method = get_method("endo", 0)
        request = build_code_request(workbench_state.topic, workbench_state.variables, method)

        assert workbench_state.topic in request.prompt
        assert "工具变量法 (2SLS) (ivreg2)" in request.prompt
        assert "被解释变量 (Y): carbon_intensity" in request.prompt
        assert "核心解释变量 (X): digital_idx" in request.prompt
        assert "控制变量: ctrl_0 ctrl_1 ctrl_2 ctrl_3" in request.prompt
        assert request.method is method

    def test_every_constraint_included_in_order(self, workbench_state):
        request = build_code_request(workbench_state.topic, workbench_state.variables, get_method("robust", 8))

        positions = []
        for i, constraint in enumerate(CODE_CONSTRAINTS, start=1):
            text = f"{i}. {constraint.format(fixed_effects='year city')}"
            assert text in request.prompt
            positions.append(request.prompt.index(text))
        assert positions == sorted(positions)

    def test_constraint_topics(self):
        joined = "\n".join(CODE_CONSTRAINTS)
        assert "set obs" in joined                    # no synthetic data
        assert "确切变量名" in joined                  # exact names
        assert "absorb {fixed_effects}" in joined    # fixed-effect absorption
        assert "中文注释" in joined                    # commentary
        assert "esttab" in joined and "outreg2" in joined
        assert "markdown" in joined
        assert "permutation" in joined

    def test_no_fixed_effects(self, suggestion_json):
        from statagen.taxonomy import parse_suggestions

        variables = parse_suggestions(suggestion_json(fixed_effect=0))
        request = build_code_request("t", variables, get_method("benchmark", 1))
        assert "固定效应变量 (Fixed Effects): \n" in request.prompt


def test_section_caption():
    assert section_caption(get_method("basic", 0)) == "Generated code for 描述性统计 (Detail)."
