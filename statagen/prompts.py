# statagen/prompts.py
"""
Generation Request Builder

Builds the two kinds of request sent to the language model:

1. Variable suggestion: topic, field and role counts, answered with JSON
   matching taxonomy.SUGGESTION_RESPONSE_SCHEMA.
2. Code generation: topic, canonical variable references, the chosen
   method and the mandatory constraints, answered with a plain do-file
   body.

The constraint texts below define what a correct generated script is.
They are sent verbatim; change them only together with the tests.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .state import AnalysisMethod, Role, RoleConfiguration, VariableDefinition
from .taxonomy import SUGGESTION_RESPONSE_SCHEMA, names_for_role


SUGGESTER_SYSTEM_PROMPT = "请作为一名资深经济学家，为给定主题的 Stata 实证分析建议相关变量。"

CODER_SYSTEM_PROMPT = "你是一名精通 Stata 19 的经济学专家。"

# Mandatory requirements for every generated script. Order matters: the
# numbering is part of the prompt.
CODE_CONSTRAINTS = (
    "**假设数据已经导入并清洗完毕**：绝对不要生成 'clear', 'set obs', 'gen x = rnormal()' "
    "或任何生成虚拟数据的代码，也不要改变样本观测值数量。",
    "**直接写分析命令**：直接从数据声明或 global 定义开始，然后写 estimation commands。",
    "必须使用上面提供的确切变量名，不得替换或重新命名。",
    "如果是回归分析 (reghdfe/xtreg)，请正确使用固定效应变量 (absorb {fixed_effects})。",
    "使用标准的计量经济学命令 (如 reghdfe, ivreg2, esttab, sum, sgmediation 等)。",
    "代码中必须包含清晰的中文注释 (以 * 开头)，解释每一步的经济学含义。",
    "如果是回归分析，请包含 'esttab' 或 'outreg2' 命令来导出结果。",
    "仅返回纯文本代码，不要包含 markdown 的反引号。",
    "如果涉及\"安慰剂检验\"，请提供 permutation 代码框架或随机化处理变量的循环代码框架，"
    "不要生成假数据，而是对现有数据进行随机操作。",
)


@dataclass(frozen=True)
class VariableReferences:
    """
    Canonical variable references used in a code-generation request.

    Multi-variable roles are space-joined, ready to drop into a Stata
    varlist; a role without members is an empty string.
    """
    y: str
    x: str
    controls: str
    mechanisms: str
    heteros: str
    fixed_effects: str


@dataclass(frozen=True)
class SuggestionRequest:
    """A variable-suggestion request ready for dispatch."""
    topic: str
    field: str
    role_config: RoleConfiguration
    system_prompt: str
    prompt: str
    response_schema: Dict[str, Any]


@dataclass(frozen=True)
class CodeGenerationRequest:
    """A code-generation request ready for dispatch."""
    topic: str
    method: AnalysisMethod
    references: VariableReferences
    system_prompt: str
    prompt: str


def canonical_references(variables: Sequence[VariableDefinition]) -> VariableReferences:
    """
    Derive the canonical references from a taxonomy.

    Y and X fall back to "y" and "x" when absent. After variable review
    both are always present, so the fallback only matters for
    hand-built taxonomies.
    """
    ys = names_for_role(variables, Role.Y)
    xs = names_for_role(variables, Role.X)
    return VariableReferences(
        y=ys[0] if ys else "y",
        x=xs[0] if xs else "x",
        controls=" ".join(names_for_role(variables, Role.CONTROL)),
        mechanisms=" ".join(names_for_role(variables, Role.MECHANISM)),
        heteros=" ".join(names_for_role(variables, Role.HETERO)),
        fixed_effects=" ".join(names_for_role(variables, Role.FIXED_EFFECT)),
    )


def build_suggestion_request(
    topic: str,
    field: str,
    role_config: RoleConfiguration,
) -> SuggestionRequest:
    """
    Build the variable-suggestion request.

    Args:
        topic: Research topic (must be non-empty; checked by the caller)
        field: Research field
        role_config: Requested number of variables per role

    Returns:
        SuggestionRequest with prompt and response schema
    """
    prompt = f"""研究主题: {topic}
研究领域: {field}

请作为一名资深经济学家，为该主题的 Stata 实证分析建议相关变量。
请返回一个包含变量列表的 JSON 对象。

规则:
1. 建议 1 个主要被解释变量 (Y)。
2. 建议 1 个主要核心解释变量 (X)。
3. 建议 {role_config.control_count} 个控制变量 (Control)。
4. 建议 {role_config.mechanism_count} 个机制变量 (Mechanism)。
5. 建议 {role_config.hetero_count} 个异质性分组变量 (Hetero)。
6. 建议 {role_config.fixed_effect_count} 个固定效应变量 (FixedEffect) (例如: Year, Industry, City)。
7. 变量名 (name) 必须符合 Stata 格式 (小写英文，无空格，如 'gdp_growth', 'digital_idx')。
8. 变量标签 (label) 请使用中文描述该变量的含义。"""

    return SuggestionRequest(
        topic=topic,
        field=field,
        role_config=role_config,
        system_prompt=SUGGESTER_SYSTEM_PROMPT,
        prompt=prompt,
        response_schema=SUGGESTION_RESPONSE_SCHEMA,
    )


def format_constraints(references: VariableReferences) -> str:
    """Number the mandatory constraints, filling in the fixed-effect set."""
    lines = []
    for i, constraint in enumerate(CODE_CONSTRAINTS, start=1):
        lines.append(f"{i}. {constraint.format(fixed_effects=references.fixed_effects)}")
    return "\n".join(lines)


def build_code_request(
    topic: str,
    variables: Sequence[VariableDefinition],
    method: AnalysisMethod,
    references: Optional[VariableReferences] = None,
) -> CodeGenerationRequest:
    """
    Build the code-generation request for one method.

    Args:
        topic: Research topic
        variables: The confirmed taxonomy
        method: Catalog entry to generate code for
        references: Precomputed references (derived from variables if omitted)

    Returns:
        CodeGenerationRequest whose prompt embeds the topic, the variable
        references, the method name and hint, and the constraints
    """
    refs = references or canonical_references(variables)

    prompt = f"""研究主题: {topic}

变量定义:
- 被解释变量 (Y): {refs.y}
- 核心解释变量 (X): {refs.x}
- 控制变量: {refs.controls}
- 机制变量: {refs.mechanisms}
- 异质性变量: {refs.heteros}
- 固定效应变量 (Fixed Effects): {refs.fixed_effects}

任务: 请编写用于 {method.name} ({method.hint}) 的 Stata 代码。

关键要求:
{format_constraints(refs)}"""

    return CodeGenerationRequest(
        topic=topic,
        method=method,
        references=refs,
        system_prompt=CODER_SYSTEM_PROMPT,
        prompt=prompt,
    )


def section_caption(method: AnalysisMethod) -> str:
    """Caption stored with each generated section."""
    return f"Generated code for {method.name}."
