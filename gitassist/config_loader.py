"""
Configuration loader for GIT ASSIST.
Merges defaults with per-repo .gitassist/config.yaml overrides.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from gitassist.errors import ConfigurationError


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

class TicketConfig(BaseModel):
    prefix: str = "FINDATA"

    @field_validator("prefix")
    @classmethod
    def _prefix_is_word(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z][A-Za-z0-9_]*", value):
            raise ValueError(f"ticket prefix must be alphanumeric, got {value!r}")
        return value


class BranchConfig(BaseModel):
    remote: str = "origin"
    protected: list[str] = Field(default_factory=lambda: ["main", "master", "develop", "dev"])
    base_preference: list[str] = Field(default_factory=lambda: ["develop", "dev", "main", "master"])


class ToolsConfig(BaseModel):
    build_command: list[str] = Field(default_factory=lambda: ["mvn", "clean", "install"])
    scan_command: list[str] = Field(default_factory=lambda: ["snyk", "test", "--json"])
    java_command: list[str] = Field(default_factory=lambda: ["java"])
    editor: str | None = None

    def resolve_editor(self) -> str:
        return self.editor or os.environ.get("EDITOR") or "nano"


class ReportConfig(BaseModel):
    log_file: str = "git-assist.log"
    json_report: str = "snyk-vuln-report.json"
    markdown_report: str = "snyk-report.md"
    title: str = "Snyk Vulnerability Report"


class PushConfig(BaseModel):
    check_divergence: bool = True
    verify_rollback_commit: bool = True


class LauncherConfig(BaseModel):
    options_file: str = "config.txt"
    target_dir: str = "target"


class GitAssistConfig(BaseModel):
    ticket: TicketConfig = Field(default_factory=TicketConfig)
    branches: BranchConfig = Field(default_factory=BranchConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    reports: ReportConfig = Field(default_factory=ReportConfig)
    push: PushConfig = Field(default_factory=PushConfig)
    launcher: LauncherConfig = Field(default_factory=LauncherConfig)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(repo_path: Path | None = None) -> GitAssistConfig:
    """
    Load config by merging:
      1. Built-in defaults (gitassist/config.yaml)
      2. Repo-level overrides (<repo>/.gitassist/config.yaml)
    """
    with open(_DEFAULT_CONFIG_PATH, "r") as f:
        base: dict[str, Any] = yaml.safe_load(f) or {}

    if repo_path:
        repo_config = repo_path / ".gitassist" / "config.yaml"
        if repo_config.exists():
            with open(repo_config, "r") as f:
                try:
                    overrides: dict[str, Any] = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(f"Invalid YAML in {repo_config}: {e}") from e
            base = _deep_merge(base, overrides)

    try:
        return GitAssistConfig(**base)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
