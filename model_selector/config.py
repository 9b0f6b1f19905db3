"""
Configuration for the model selector.

Defaults mirror the stock plugin setup. A YAML file can override any field;
`load_config()` resolves the file from MODEL_SELECTOR_CONFIG after loading
a local .env file.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from model_selector.routing.signals import (
    DEFAULT_CATEGORY_ORDER,
    DEFAULT_SIGNALS,
    SIMPLE_CATEGORY,
)


logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "selector.yaml"


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_MODELS: dict[str, list[str]] = {
    "simple": ["gemini-flash", "sonnet"],
    "planning": ["gemini-pro", "opus"],
    "complex": ["opus", "sonnet"],
    "coding": ["opus", "gemini-pro"],
    "security": ["opus", "gemini-pro", "sonnet"],
}

DEFAULT_APPROVAL_TRIGGERS = [
    "go ahead",
    "proceed",
    "do it",
    "green light",
    "approved",
    "yes",
    "yeah",
    "yep",
    "looks good",
    "lgtm",
    "ship it",
    "build it",
    "execute",
    "start",
    "begin",
]

DEFAULT_OVERRIDE_TRIGGERS = [
    "stick with",
    "stay on",
    "keep",
    "no switch",
    "don't switch",
]

DEFAULT_STAY_TRIGGERS = [
    "stay on",
    "stick with",
    "keep using",
    "don't switch back",
    "no revert",
]

# Peer model -> model that gives a different perspective
DEFAULT_COMPLEMENT_TABLE: dict[str, str] = {
    "opus": "gemini-pro",
    "sonnet": "gemini-pro",
    "haiku": "gemini-flash",
    "geminipro": "opus",
    "geminiflash": "sonnet",
    "gpt5": "opus",
    "gpt4o": "opus",
}

DEFAULT_COMPLEMENT_ALIASES: dict[str, str] = {
    "claudeopus": "opus",
    "claudeopus4": "opus",
    "anthropicclaudeopus45": "opus",
    "claudesonnet": "sonnet",
    "claudesonnet4": "sonnet",
    "claudehaiku": "haiku",
    "gemini25pro": "geminipro",
    "googlegemini3propreview": "geminipro",
    "gemini20flash": "geminiflash",
    "gemini25flash": "geminiflash",
    "openaigpt51": "gpt5",
}


class CollaborationConfig(BaseModel):
    """Settings for picking a complement to a peer agent's model."""

    enabled: bool = False
    channel_ids: list[str] = Field(
        default_factory=list,
        description="Session keys containing one of these are collaborative; empty means all",
    )
    own_identity: Optional[str] = Field(
        default=None,
        description="Author name of this agent's own messages",
    )
    marker: str = Field(
        default="⚡ Switching to",
        description="Announcement text that precedes a model token",
    )
    window: int = Field(default=10, ge=1, le=200)
    complement_table: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_COMPLEMENT_TABLE)
    )
    aliases: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_COMPLEMENT_ALIASES)
    )
    family_a_markers: list[str] = Field(
        default_factory=lambda: ["claude", "anthropic", "opus", "sonnet", "haiku"]
    )
    family_a_representative: str = "opus"
    family_b_representative: str = "gemini-pro"


class SemanticConfig(BaseModel):
    """Optional LLM fallback for text no keyword rule matched."""

    enabled: bool = False
    model: str = "google/gemini-2.0-flash-001"
    min_length: int = Field(default=80, ge=0)
    timeout_seconds: float = Field(default=8.0, gt=0)


class TrackingConfig(BaseModel):
    """Escalation ledger and work tracker settings."""

    ledger_path: Optional[str] = Field(
        default=None,
        description="JSON file shared by every session; None keeps entries in memory",
    )
    todoist_enabled: bool = False
    todoist_project_id: Optional[str] = None
    completion_tools: list[str] = Field(
        default_factory=lambda: ["complete-tasks", "close-task"]
    )
    work_open_tools: list[str] = Field(
        default_factory=lambda: ["add-tasks", "create-task"]
    )


class SelectorConfig(BaseModel):
    """Complete model selector configuration."""

    enabled: bool = True
    announce_switch: bool = True
    announce_suggestion: bool = True

    default_model: str = Field(
        default="default",
        description="Identifier passed to the host to return to its default model",
    )
    models: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_MODELS.items()}
    )
    category_order: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CATEGORY_ORDER)
    )
    signals: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_SIGNALS.items()}
    )

    approval_triggers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_APPROVAL_TRIGGERS)
    )
    override_triggers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_OVERRIDE_TRIGGERS)
    )
    stay_triggers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STAY_TRIGGERS)
    )

    io_timeout_seconds: float = Field(default=5.0, gt=0)

    collaboration: CollaborationConfig = Field(default_factory=CollaborationConfig)
    semantic: SemanticConfig = Field(default_factory=SemanticConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)

    @field_validator("models", mode="before")
    @classmethod
    def _coerce_model_lists(cls, value):
        # A bare string is shorthand for a one-model list
        if isinstance(value, dict):
            return {
                category: [models] if isinstance(models, str) else (models or [])
                for category, models in value.items()
            }
        return value

    @model_validator(mode="after")
    def _check_categories(self) -> "SelectorConfig":
        if SIMPLE_CATEGORY not in self.models:
            raise ValueError(f"models must define the '{SIMPLE_CATEGORY}' category")

        # Explicit settings must be consistent; defaults shrink to the configured catalog
        unknown = [c for c in self.category_order if c not in self.models]
        if unknown:
            if "category_order" in self.model_fields_set:
                raise ValueError(f"category_order names unknown categories: {unknown}")
            self.category_order = [c for c in self.category_order if c in self.models]

        if SIMPLE_CATEGORY in self.category_order:
            raise ValueError(f"'{SIMPLE_CATEGORY}' is the fallback and cannot be a rule")

        unknown_signals = [c for c in self.signals if c not in self.models]
        if unknown_signals:
            if "signals" in self.model_fields_set:
                raise ValueError(f"signals defined for unknown categories: {unknown_signals}")
            self.signals = {c: s for c, s in self.signals.items() if c in self.models}

        return self

    @property
    def categories(self) -> list[str]:
        """The closed category set."""
        return list(self.models.keys())

    def models_for(self, category: str) -> list[str]:
        return list(self.models.get(category, []))

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "SelectorConfig":
        """
        Load configuration from a YAML file.

        A missing or empty file yields the defaults. Invalid values raise
        pydantic's ValidationError (a ValueError) at startup.
        """
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.info(f"No config at {config_path}, using defaults")
            data = {}

        return cls.model_validate(data)


def load_config(config_path: Optional[Union[str, Path]] = None) -> SelectorConfig:
    """Load configuration, honoring .env and MODEL_SELECTOR_CONFIG."""
    load_dotenv()
    path = config_path or os.getenv("MODEL_SELECTOR_CONFIG") or DEFAULT_CONFIG_PATH
    config = SelectorConfig.from_yaml(path)
    logger.debug(f"Loaded config from {path}: categories={config.categories}")
    return config
