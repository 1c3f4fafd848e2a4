"""Tests for YAML config loading infrastructure."""

from pathlib import Path

import pytest
import yaml

from turnloop.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)
from turnloop.config.infrastructure.yaml_loader import YamlConfigLoader

from tests.config.fake_observer import FakeConfigObserver

_VALID = """\
name: calculator-agent
version: "1"
model:
  model: ${TURNLOOP_MODEL:-openai/gpt-4o-mini}
  api_key: ${TURNLOOP_API_KEY}
  temperature: 0.2
conversation:
  system_instruction: |
    Plan first, then emit [USER_APPROVAL_REQUIRED].
  plan_gating: true
retry:
  max_attempts: 5
tools:
  - calculator
  - long_running_task
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestValidConfigLoading:
    def test_loads_all_sections(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TURNLOOP_API_KEY", "sk-test")
        monkeypatch.delenv("TURNLOOP_MODEL", raising=False)
        observer = FakeConfigObserver()

        cfg = YamlConfigLoader(observer=observer).load(path=_write(tmp_path, _VALID))

        assert cfg.name == "calculator-agent"
        assert cfg.model.model == "openai/gpt-4o-mini"
        assert cfg.model.api_key == "sk-test"
        assert cfg.model.temperature == 0.2
        assert cfg.conversation.plan_gating is True
        assert cfg.retry.max_attempts == 5
        assert cfg.tools == ["calculator", "long_running_task"]

    def test_env_value_overrides_inline_default(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TURNLOOP_API_KEY", "sk-test")
        monkeypatch.setenv("TURNLOOP_MODEL", "anthropic/claude-3-5-haiku")

        cfg = YamlConfigLoader(observer=FakeConfigObserver()).load(
            path=_write(tmp_path, _VALID)
        )

        assert cfg.model.model == "anthropic/claude-3-5-haiku"

    def test_emits_loaded_event_and_no_sentinel_warning(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TURNLOOP_API_KEY", "sk-test")
        observer = FakeConfigObserver()

        YamlConfigLoader(observer=observer).load(path=_write(tmp_path, _VALID))

        assert observer.loaded == [{"name": "calculator-agent", "version": "1"}]
        assert observer.sentinel_warnings == []


class TestWarnings:
    def test_plan_gating_without_sentinel_in_instruction_warns(
        self, tmp_path: Path
    ) -> None:
        content = """\
name: demo
version: "1"
model:
  model: openai/gpt-4o-mini
conversation:
  system_instruction: Answer directly.
  plan_gating: true
"""
        observer = FakeConfigObserver()

        YamlConfigLoader(observer=observer).load(path=_write(tmp_path, content))

        assert observer.sentinel_warnings == ["[USER_APPROVAL_REQUIRED]"]


class TestLoadErrors:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="file not found"):
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=tmp_path / "absent.yaml"
            )

    def test_all_missing_env_vars_are_reported(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("FIRST_MISSING", raising=False)
        monkeypatch.delenv("SECOND_MISSING", raising=False)
        content = """\
name: ${FIRST_MISSING}
version: ${SECOND_MISSING}
model:
  model: openai/gpt-4o-mini
"""
        with pytest.raises(MissingEnvVarsError) as exc_info:
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, content)
            )

        assert exc_info.value.missing_vars == ["FIRST_MISSING", "SECOND_MISSING"]

    def test_schema_violation(self, tmp_path: Path) -> None:
        content = 'name: demo\nversion: "1"\n'
        with pytest.raises(ConfigValidationError) as exc_info:
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, content)
            )

        assert str(exc_info.value).startswith("Failed to validate config")

    def test_empty_file_is_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError) as exc_info:
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, "")
            )

        assert "got NoneType" in str(exc_info.value)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(yaml.YAMLError):
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, "name: [unclosed")
            )
