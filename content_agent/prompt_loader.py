import yaml
from pathlib import Path
from typing import Optional, Tuple
from jinja2 import Environment, StrictUndefined

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

_env = Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True, undefined=StrictUndefined)


def _prompt_path(name: str, prompts_dir: Optional[str] = None) -> Path:
    base = Path(prompts_dir) if prompts_dir else PROMPTS_DIR
    path = base / f"{name}.yaml"
    if not path.exists() and prompts_dir:
        path = PROMPTS_DIR / f"{name}.yaml"
    return path


def render_prompt(name: str, prompts_dir: Optional[str] = None, **variables) -> Tuple[str, str]:
    """Render the ``system`` and ``task`` templates of a YAML prompt file."""
    with open(_prompt_path(name, prompts_dir), "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    sys_part = _env.from_string(data.get("system", "")).render(**variables)
    task_part = _env.from_string(data.get("task", "")).render(**variables)
    return sys_part.strip(), task_part.strip()


def render_system_prompt(prompt_file: Optional[str] = None, **variables) -> str:
    if prompt_file:
        with open(prompt_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return _env.from_string(data.get("system", "")).render(**variables).strip()
    system, _ = render_prompt("agent_system", **variables)
    return system
