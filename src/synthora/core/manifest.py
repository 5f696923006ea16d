"""
Synthora configuration.

Loaded from ``synthora.toml`` and overridable from the environment:

    [llm]
    provider = "anthropic"      # or "openai"
    model = "claude-3-5-sonnet-20241022"
    temperature = 0.3
    max_tokens = 8000

    [generation]
    output_dir = "./generated_apps"
    stack = "fastapi_react"

    [ml]
    models_dir = "./ml_models"

    [conversation]
    history_window = 5
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError

CONFIG_FILENAME = "synthora.toml"
PROVIDERS = ("anthropic", "openai")


@dataclass
class LLMConfig:
    """Language-model provider settings. API keys come from the environment."""

    provider: str = "anthropic"
    model: str | None = None
    temperature: float = 0.3
    max_tokens: int = 8000


@dataclass
class GenerationConfig:
    output_dir: Path = Path("./generated_apps")
    stack: str = "fastapi_react"


@dataclass
class MLSection:
    models_dir: Path = Path("./ml_models")


@dataclass
class ConversationConfig:
    history_window: int = 5  # recent turns passed to the classifier


@dataclass
class SynthoraConfig:
    llm: LLMConfig = field(default_factory=LLMConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    ml: MLSection = field(default_factory=MLSection)
    conversation: ConversationConfig = field(default_factory=ConversationConfig)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{name}] must be a table in {CONFIG_FILENAME}")
    return value


def _parse(data: dict[str, Any]) -> SynthoraConfig:
    llm_data = _section(data, "llm")
    gen_data = _section(data, "generation")
    ml_data = _section(data, "ml")
    conv_data = _section(data, "conversation")

    try:
        llm = LLMConfig(
            provider=str(llm_data.get("provider", "anthropic")).lower(),
            model=llm_data.get("model"),
            temperature=float(llm_data.get("temperature", 0.3)),
            max_tokens=int(llm_data.get("max_tokens", 8000)),
        )
        generation = GenerationConfig(
            output_dir=Path(gen_data.get("output_dir", "./generated_apps")),
            stack=str(gen_data.get("stack", "fastapi_react")),
        )
        ml = MLSection(models_dir=Path(ml_data.get("models_dir", "./ml_models")))
        conversation = ConversationConfig(history_window=int(conv_data.get("history_window", 5)))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value in {CONFIG_FILENAME}: {e}") from e

    return SynthoraConfig(llm=llm, generation=generation, ml=ml, conversation=conversation)


def _apply_env(config: SynthoraConfig, env: dict[str, str]) -> SynthoraConfig:
    if provider := env.get("SYNTHORA_LLM_PROVIDER"):
        config.llm.provider = provider.lower()
    if model := env.get("SYNTHORA_LLM_MODEL"):
        config.llm.model = model
    if output_dir := env.get("GENERATED_APPS_PATH"):
        config.generation.output_dir = Path(output_dir)
    if models_dir := env.get("ML_REGISTRY_PATH"):
        config.ml.models_dir = Path(models_dir)
    return config


def _check(config: SynthoraConfig) -> SynthoraConfig:
    if config.llm.provider not in PROVIDERS:
        raise ConfigError(
            f"Unknown LLM provider '{config.llm.provider}'. Choose one of: {', '.join(PROVIDERS)}"
        )
    if not 0.0 <= config.llm.temperature <= 2.0:
        raise ConfigError(f"LLM temperature {config.llm.temperature} must be between 0 and 2")
    if config.conversation.history_window < 0:
        raise ConfigError("conversation.history_window must not be negative")
    return config


def load_config(
    path: Path | None = None,
    env: dict[str, str] | None = None,
) -> SynthoraConfig:
    """
    Load configuration from a TOML file plus environment overrides.

    Args:
        path: Path to synthora.toml; defaults to ./synthora.toml when present
        env: Environment mapping (defaults to os.environ)

    Returns:
        SynthoraConfig

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    env = dict(os.environ) if env is None else env
    if path is None:
        candidate = Path.cwd() / CONFIG_FILENAME
        path = candidate if candidate.exists() else None

    data: dict[str, Any] = {}
    if path is not None:
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Config file not found: {path}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    return _check(_apply_env(_parse(data), env))
