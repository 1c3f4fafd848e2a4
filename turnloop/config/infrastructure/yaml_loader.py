"""YamlConfigLoader: reads a YAML file into a validated AppConfig."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from turnloop.config.domain.config import AppConfig
from turnloop.config.domain.observer import ConfigObserver
from turnloop.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from turnloop.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)
from turnloop.workflow.domain.markers import APPROVAL_SENTINEL


class YamlConfigLoader:
    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> AppConfig:
        """
        Read path, resolve env references, and validate the result.

        Raises:
            ConfigLoadError: if path is not an existing file.
            MissingEnvVarsError: listing every unset reference without a default.
            ConfigValidationError: if the document is not a mapping or breaks the schema.
            yaml.YAMLError: if the file is not valid YAML.
        """
        document = _read_document(path=path)
        missing = collect_missing_vars(document)
        if missing:
            raise MissingEnvVarsError(missing)
        config = _validate(document=interpolate(document))
        _warn_plan_gating_without_sentinel(config=config, observer=self._observer)
        self._observer.config_loaded(name=config.name, version=config.version)
        return config


def _read_document(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigLoadError(path=path)
    document = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(document, dict):
        raise ConfigValidationError(
            f"top level must be a mapping, got {type(document).__name__}"
        )
    return document


def _validate(document: Any) -> AppConfig:
    try:
        return AppConfig.model_validate(document)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def _warn_plan_gating_without_sentinel(
    config: AppConfig, observer: ConfigObserver
) -> None:
    # Without the sentinel in its instructions the model never pauses for approval.
    conversation = config.conversation
    if not conversation.plan_gating:
        return
    if APPROVAL_SENTINEL not in (conversation.effective_system_instruction() or ""):
        observer.config_plan_gating_without_sentinel(sentinel=APPROVAL_SENTINEL)
