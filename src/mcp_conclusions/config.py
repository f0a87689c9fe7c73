"""Configuration loading for MCP Conclusions.

Supports three tiers:
1. Simple config via .toml or .json - most users
2. Python config via .py - power users with hooks
3. Passing a StoreConfig directly - embedding the store in other code
"""

from __future__ import annotations

import importlib.util
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

# Python 3.11+ has tomllib in stdlib; fall back to tomli for older versions
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # Python <3.11
    except ImportError:  # pragma: no cover
        tomllib = None

from .index import MIN_TOKEN_LENGTH
from .models import ImpactLevel
from .renderer import DEFAULT_CATEGORY
from .templates import DEFAULT_TEMPLATE_NAME


@dataclass
class StoreConfig:
    """Configuration for a conclusion store."""

    # Project identification
    project_name: str = "unnamed"
    project_root: Path = field(default_factory=Path.cwd)

    # Data files, under <project path>/<data_dir>/
    data_dir: str = "conclusion-data"
    conclusion_file: str = "conclusion.md"
    thoughts_file: str = "thoughts.md"
    lock_timeout: float = 10.0

    # Rendering
    template: str = DEFAULT_TEMPLATE_NAME
    templates: dict[str, str] = field(default_factory=dict)  # extra or overriding, name -> body
    default_category: str = DEFAULT_CATEGORY
    default_impact_level: str = ImpactLevel.MEDIUM.value

    # Search
    min_token_length: int = MIN_TOKEN_LENGTH

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # Hooks (populated from Python config)
    hooks: dict[str, Callable] = field(default_factory=dict)

    def get_data_path(self, project_path: Optional[Path] = None) -> Path:
        return (project_path or self.project_root) / self.data_dir

    def get_conclusion_path(self, project_path: Optional[Path] = None) -> Path:
        return self.get_data_path(project_path) / self.conclusion_file


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    if tomllib is None:
        raise ImportError("tomli required for TOML config: pip install tomli")
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_python_config(path: Path) -> tuple[dict[str, Any], dict[str, Callable]]:
    """Load configuration from Python file.

    Returns:
        Tuple of (config_dict, hooks_dict)

    Convention:
        - CONFIG dict or config dict for static configuration
        - Functions named hook_* become hooks (hook_pre_record, hook_post_record)
    """
    spec = importlib.util.spec_from_file_location("conclusions_config", path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load Python config from {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules["conclusions_config"] = module
    spec.loader.exec_module(module)

    config_dict = {}
    if hasattr(module, "CONFIG"):
        config_dict = module.CONFIG
    elif hasattr(module, "config"):
        config_dict = module.config

    hooks = {}
    for name in dir(module):
        if name.startswith("hook_"):
            hooks[name[5:]] = getattr(module, name)

    return config_dict, hooks


def dict_to_config(data: dict[str, Any], project_root: Path) -> StoreConfig:
    """Convert dictionary to StoreConfig."""
    config = StoreConfig(project_root=project_root)

    if "project" in data:
        proj = data["project"]
        if "name" in proj:
            config.project_name = proj["name"]

    if "storage" in data:
        storage = data["storage"]
        if "data_dir" in storage:
            config.data_dir = storage["data_dir"]
        if "conclusion_file" in storage:
            config.conclusion_file = storage["conclusion_file"]
        if "thoughts_file" in storage:
            config.thoughts_file = storage["thoughts_file"]
        if "lock_timeout" in storage:
            config.lock_timeout = float(storage["lock_timeout"])

    if "defaults" in data:
        defaults = data["defaults"]
        if "category" in defaults:
            config.default_category = defaults["category"]
        if "impact_level" in defaults:
            level = defaults["impact_level"]
            # Unknown levels raise ValueError here
            config.default_impact_level = ImpactLevel(level).value

    if "search" in data:
        search = data["search"]
        if "min_token_length" in search:
            config.min_token_length = int(search["min_token_length"])

    # "use" selects the active template; every other string entry is a template body
    if "templates" in data:
        for name, body in data["templates"].items():
            if name == "use":
                config.template = body
            elif isinstance(body, str):
                config.templates[name] = body

    if "logging" in data:
        log_cfg = data["logging"]
        if "level" in log_cfg:
            config.log_level = str(log_cfg["level"]).upper()
        if log_cfg.get("file"):
            log_file = Path(log_cfg["file"])
            config.log_file = log_file if log_file.is_absolute() else project_root / log_file

    return config


def find_config_file(project_root: Path) -> Optional[Path]:
    """Find configuration file in project root.

    Search order:
    1. conclusions_config.py (most flexible)
    2. conclusions_config.toml
    3. conclusions_config.json
    4. .conclusions.toml
    5. .conclusions.json
    """
    candidates = [
        "conclusions_config.py",
        "conclusions_config.toml",
        "conclusions_config.json",
        ".conclusions.toml",
        ".conclusions.json",
    ]

    for name in candidates:
        path = project_root / name
        if path.exists():
            return path

    return None


def load_config(project_root: Path, config_path: Optional[Path] = None) -> StoreConfig:
    """Load store configuration.

    Args:
        project_root: Root directory of the project
        config_path: Optional explicit path to config file

    Returns:
        StoreConfig instance
    """
    if config_path is None:
        config_path = find_config_file(project_root)

    if config_path is None:
        return StoreConfig(project_root=project_root)

    suffix = config_path.suffix.lower()

    if suffix == ".py":
        config_dict, hooks = load_python_config(config_path)
        config = dict_to_config(config_dict, project_root)
        config.hooks = hooks
        return config

    elif suffix == ".toml":
        return dict_to_config(load_toml_config(config_path), project_root)

    elif suffix == ".json":
        return dict_to_config(load_json_config(config_path), project_root)

    else:
        raise ValueError(f"Unsupported config file type: {suffix}")
