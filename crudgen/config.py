# File: crudgen/config.py
"""
crudgen - Generator Configuration
==================================
``GeneratorConfig`` holds the run-wide settings the pipeline reads
(naming defaults, prefix handling, declared dictionaries, concurrency
and timeout limits, default output path).

``load_config`` and ``load_mapping_file`` read JSON or YAML documents,
dispatching on the file extension.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.config")


class GeneratorConfig(BaseModel):
    """
    Run-wide generator settings.

    Table-level values stored in the catalog (class name, module name,
    author, ...) take priority over the defaults here.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    # -- Naming defaults ----------------------------------------------------
    author: str = Field(default="crudgen", min_length=1, description="Default function author.")
    package_name: str = Field(
        default="src/module", min_length=1, description="Backend package root."
    )
    module_name: str = Field(
        default="system", min_length=1, description="Default module (URL/menu segment)."
    )

    # -- Prefix handling ----------------------------------------------------
    table_prefixes: Tuple[str, ...] = Field(
        default=("sys_",), description="Prefixes stripped when auto_remove_prefix is on."
    )
    auto_remove_prefix: bool = Field(
        default=False, description="Strip a matching table prefix before deriving names."
    )

    # -- Dictionaries -------------------------------------------------------
    dict_type_names: Tuple[str, ...] = Field(
        default=(), description="Dictionary types declared in the target system."
    )

    # -- Execution ----------------------------------------------------------
    max_concurrency: int = Field(
        default=4, ge=1, le=64, description="Tables processed concurrently."
    )
    fetch_timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Timeout for one catalog fetch; None disables."
    )

    # -- Output -------------------------------------------------------------
    default_gen_path: str = Field(
        default="/", min_length=1, description="PATH-mode target when a request names none."
    )

    @field_validator("table_prefixes", "dict_type_names", mode="before")
    @classmethod
    def _split_csv(cls, v: Any) -> Any:
        """Accept ``"sys_,biz_"`` as well as a list."""
        if isinstance(v, str):
            return tuple(part.strip() for part in v.split(",") if part.strip())
        return v


# ---------------------------------------------------------------------------
# File loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_mapping_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a JSON or YAML document whose top level is a mapping.

    ``.json`` is parsed as JSON; anything else goes through YAML, which
    also accepts JSON.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    if path.suffix.lower() == ".json":
        return _load_json_file(path)
    return _load_yaml_file(path)


def load_config(path: Union[str, Path, None]) -> GeneratorConfig:
    """
    Build a ``GeneratorConfig`` from a file, or the defaults when *path* is None.

    The document may hold the settings at the top level or under a
    ``generator:`` key, so one YAML file can carry both configuration
    and a ``tables:`` catalog.
    """
    if path is None:
        return GeneratorConfig()
    data: Dict[str, Any] = load_mapping_file(path)
    if "generator" in data:
        section: Any = data["generator"] or {}
    else:
        section = {k: v for k, v in data.items() if k != "tables"}
    if not isinstance(section, dict):
        raise ValueError(f"'generator' section in {path} must be a mapping.")
    config = GeneratorConfig.model_validate(section)
    logger.debug("Loaded generator config from %s", path)
    return config


__all__: List[str] = [
    "GeneratorConfig",
    "load_mapping_file",
    "load_config",
]
