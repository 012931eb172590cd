# statagen/catalog.py
"""
Method Catalog

The fixed set of analysis methods offered in the workbench, grouped into
five categories. Each method carries a display name and a command hint
that is passed to the code generator alongside the name.

This is static configuration; nothing here is mutated at runtime.
"""

from typing import Dict, List, Tuple, Union

from .errors import UnknownMethod
from .state import AnalysisMethod


CATEGORY_IDS: Tuple[str, ...] = ("basic", "benchmark", "robust", "endo", "hetero")

CATEGORY_LABELS: Dict[str, str] = {
    "basic": "基础统计 (Descriptive)",
    "benchmark": "基准回归 (Benchmark)",
    "robust": "稳健性检验 (Robustness)",
    "endo": "内生性处理 (Endogeneity)",
    "hetero": "异质性与机制 (Heterogeneity & Mechanism)",
}


def _methods(*pairs: Tuple[str, str]) -> Tuple[AnalysisMethod, ...]:
    return tuple(AnalysisMethod(name=name, hint=hint) for name, hint in pairs)


METHOD_CATALOG: Dict[str, Tuple[AnalysisMethod, ...]] = {
    "basic": _methods(
        ("描述性统计 (Detail)", "sum, detail"),
        ("相关性矩阵 (Pearson)", "pwcorr"),
        ("Spearman 相关性", "spearman"),
        ("方差膨胀因子 (VIF)", "vif"),
        ("单位根检验 (Panel)", "xtunitroot"),
        ("正态性检验 (SW)", "swilk"),
        ("异方差检验 (White)", "estat hettest"),
        ("散点图矩阵", "graph matrix"),
        ("核密度估计图", "kdensity"),
        ("缺失值分析", "mdesc"),
        ("极端值检测", "extremes"),
        ("时间趋势图", "xtline"),
    ),
    "benchmark": _methods(
        ("双向固定效应 (Two-way FE)", "reghdfe"),
        ("混合 OLS (Pooled OLS)", "reg, r"),
        ("随机效应模型 (RE)", "xtreg, re"),
        ("逐步回归法 (Stepwise)", "stepwise"),
        ("Logit 模型 (二值)", "logit"),
        ("Probit 模型 (二值)", "probit"),
        ("泊松回归 (计数)", "poisson"),
        ("负二项回归 (计数)", "nbreg"),
        ("Tobit 模型 (截断)", "tobit"),
        ("PPML 回归 (引力模型)", "ppmlhdfe"),
        ("高维固定效应 (HDFE)", "reghdfe"),
        ("标准化系数回归", "reg, beta"),
    ),
    "robust": _methods(
        ("替换被解释变量", "Replace Y"),
        ("替换核心解释变量", "Replace X"),
        ("改变样本容量 (子样本)", "Sub-sample"),
        ("缩尾处理 (Winsorize 1%)", "winsor2"),
        ("解释变量滞后一期", "L.X"),
        ("改变聚类层级 (Cluster)", "vce(cluster)"),
        ("排除特殊样本 (直辖市等)", "drop if"),
        ("增加控制变量 (敏感性)", "Add Controls"),
        ("安慰剂检验 (随机化)", "Placebo Test"),
        ("分位数回归", "qreg"),
        ("变换模型设定", "Model Spec"),
        ("调整时间窗口", "Time Window"),
    ),
    "endo": _methods(
        ("工具变量法 (2SLS)", "ivreg2"),
        ("系统 GMM (System GMM)", "xtabond2"),
        ("差分 GMM (Diff GMM)", "xtabond"),
        ("双重差分 (DID)", "DID"),
        ("多期双重差分", "Time-varying DID"),
        ("事件研究法 (Event Study)", "Event Study"),
        ("倾向得分匹配 (PSM)", "psmatch2"),
        ("PSM-DID 结合", "PSM-DID"),
        ("Heckman 样本选择模型", "heckman"),
        ("断点回归 (RDD)", "rdrobust"),
        ("合成控制法 (SCM)", "synth"),
        ("Lewbel 异方差 IV", "ivreg2 (lewbel)"),
    ),
    "hetero": _methods(
        ("分组回归检验", "Group Regression"),
        ("交互项调节效应", "Interaction Term"),
        ("组间系数差异检验", "Chow/Suest"),
        ("经典中介效应 (三步法)", "Baron & Kenny"),
        ("Sobel/Bootstrap 中介", "sgmediation"),
        ("KHB 方法 (二值中介)", "khb"),
        ("门槛效应模型", "xthreg"),
        ("Oaxaca-Blinder 分解", "oaxaca"),
        ("分位数异质性", "sqreg"),
        ("空间溢出效应 (SAR/SEM)", "Spatial"),
        ("调节中介 (Moderated Mediation)", "Mod-Med"),
        ("非线性效应 (U型)", "c.X#c.X"),
    ),
}


def list_methods(category: str) -> Tuple[AnalysisMethod, ...]:
    """
    Return the ordered methods of a category.

    Raises:
        UnknownMethod: If the category is not in the catalog
    """
    try:
        return METHOD_CATALOG[category]
    except KeyError:
        raise UnknownMethod(
            f"Unknown category '{category}'. Expected one of: {', '.join(CATEGORY_IDS)}"
        ) from None


def get_method(category: str, key: Union[int, str]) -> AnalysisMethod:
    """
    Look up a method by category and position or name.

    Args:
        category: One of CATEGORY_IDS
        key: Zero-based index, a numeric string, or the exact method name

    Returns:
        The matching AnalysisMethod

    Raises:
        UnknownMethod: If the category or method does not exist
    """
    methods = list_methods(category)

    if isinstance(key, str) and key.strip().isdigit():
        key = int(key.strip())

    if isinstance(key, int):
        if 0 <= key < len(methods):
            return methods[key]
        raise UnknownMethod(
            f"Method index {key} out of range for '{category}' (0-{len(methods) - 1})"
        )

    for method in methods:
        if method.name == key:
            return method

    raise UnknownMethod(f"No method named '{key}' in category '{category}'")


def parse_method_selector(selector: str) -> Tuple[str, AnalysisMethod]:
    """
    Parse a CLI selector of the form "category:key".

    Example:
        parse_method_selector("benchmark:0") -> ("benchmark", 双向固定效应 ...)
    """
    category, sep, key = selector.partition(":")
    if not sep or not key:
        raise UnknownMethod(f"Method selector must look like 'category:key', got '{selector}'")
    category = category.strip()
    return category, get_method(category, key)


def all_selectors(category: str) -> List[Tuple[str, AnalysisMethod]]:
    """Every (category, method) pair of a category, in catalog order."""
    return [(category, method) for method in list_methods(category)]
