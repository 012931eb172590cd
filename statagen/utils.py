# statagen/utils.py
"""
Utility Functions

Configuration loading, run directories and export of the generated
do-file and taxonomy.
"""

import copy
import json
import yaml
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List

from dotenv import load_dotenv

from .catalog import CATEGORY_IDS, CATEGORY_LABELS
from .progress import EVENT_LOG, HUMAN_LOG
from .state import DEFAULT_FIELD, ROLE_LABELS, RoleConfiguration, WorkflowState
from .taxonomy import group_by_role


DEFAULT_CONFIG: Dict[str, Any] = {
    "models": {"text": "gemini-2.5-flash"},
    "google_genai": {"api_version": "v1beta"},
    "generation": {"suggester": {}, "coder": {}},
    "defaults": {
        "field": DEFAULT_FIELD,
        "roles": {"controls": 4, "fixed_effects": 2, "mechanisms": 1, "heteros": 1},
    },
}


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    A missing file yields DEFAULT_CONFIG; an empty file yields {}.

    Args:
        config_path: Path to config.yaml

    Returns:
        Configuration dictionary
    """
    path = Path(config_path)
    if not path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)
    with open(path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def role_config_from(config: Dict[str, Any]) -> RoleConfiguration:
    """Build the default RoleConfiguration from the 'defaults.roles' section."""
    roles = config.get("defaults", {}).get("roles", {})
    return RoleConfiguration(
        control_count=roles.get("controls", 4),
        fixed_effect_count=roles.get("fixed_effects", 2),
        mechanism_count=roles.get("mechanisms", 1),
        hetero_count=roles.get("heteros", 1),
    )


def create_run_directory(base_dir: str = "runs") -> str:
    """
    Create a timestamped directory for this run's outputs.

    Creates structure:
    runs/Job_{timestamp}/
    ├── run.log
    └── events.jsonl

    Args:
        base_dir: Base directory for runs

    Returns:
        Path to the created run directory
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(base_dir) / f"Job_{timestamp}"
    run_dir.mkdir(parents=True, exist_ok=True)

    (run_dir / HUMAN_LOG).touch()
    (run_dir / EVENT_LOG).touch()

    return str(run_dir)


def assemble_do_file(state: WorkflowState) -> str:
    """
    Assemble every generated section into one do-file.

    Categories follow catalog order; within a category sections are
    written oldest first so the script reads in the order it was built.
    Generated code is copied as-is.

    Args:
        state: The workflow state holding the store

    Returns:
        The do-file text
    """
    rule = "* " + "=" * 60
    parts: List[str] = [
        rule,
        "* StataGen do-file",
        f"* 研究主题: {state.topic}",
        f"* 研究领域: {state.field}",
        f"* 生成时间: {datetime.now().strftime('%Y-%m-%d %H:%M')}",
        rule,
        "",
        "* 变量定义 (Variables)",
    ]

    for role, bucket in group_by_role(state.variables).items():
        if bucket:
            names = " ".join(v.name for v in bucket)
            parts.append(f"*   {ROLE_LABELS[role]}: {names}")
    parts.append("")

    for category in CATEGORY_IDS:
        sections = state.sections(category)
        if not sections:
            continue
        parts.append(rule)
        parts.append(f"* {CATEGORY_LABELS[category]}")
        parts.append(rule)
        for section in reversed(sections):
            parts.append("")
            parts.append(f"* ---- {section.title} ----")
            parts.append(f"* {section.explanation}")
            parts.append(section.code.rstrip("\n"))
        parts.append("")

    return "\n".join(parts) + "\n"


def save_do_file(run_dir: str, state: WorkflowState, filename: str = "analysis.do") -> str:
    """
    Save the assembled do-file.

    Args:
        run_dir: The run directory path
        state: Workflow state whose store is exported
        filename: Output file name

    Returns:
        Path to the saved do-file
    """
    do_path = Path(run_dir) / filename
    with open(do_path, 'w', encoding='utf-8') as f:
        f.write(assemble_do_file(state))
    return str(do_path)


def save_taxonomy(run_dir: str, state: WorkflowState) -> str:
    """
    Save the confirmed taxonomy as variables.json.

    Returns:
        Path to variables.json
    """
    payload = {
        "topic": state.topic,
        "field": state.field,
        "variables": [v.to_dict() for v in state.variables],
    }
    path = Path(run_dir) / "variables.json"
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return str(path)


def load_dotenv_if_exists() -> None:
    """Load .env file if it exists."""
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)
