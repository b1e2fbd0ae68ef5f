"""
Rules loader and startup configuration tests.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from assist_tracker.app_shell.config import (
    ConfigurationError,
    enrollment_config,
    validate_ops_rules,
)
from assist_tracker.rules.loader import load_rules
from assist_tracker.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent.parent

MINIMAL = {
    "project": {"slug": "test-project", "rules_version": "1"},
    "enrollment": {"default_portal_url": "https://portal.test/register"},
}


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(content)
    return path


class TestLoadRules:
    def test_load_actual_rules_file(self) -> None:
        rules = load_rules(PROJECT_ROOT / "rules.yaml")

        assert rules.project.slug == "assist-tracker"
        assert rules.enrollment.default_portal_url == "https://portal.copays.org/#/register"
        assert rules.calendar.fallback_refill_days == 15

    def test_defaults_for_optional_sections(self, tmp_path: Path) -> None:
        rules = load_rules(_write(tmp_path, yaml.dump(MINIMAL)))

        assert rules.enrollment.handoff_requires_logout is True
        assert rules.calendar.fallback_refill_days == 15
        assert rules.ops.required_env == []
        assert rules.ops.log_level == "INFO"

    def test_load_nonexistent_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(Path("/nonexistent/rules.yaml"))

    def test_load_invalid_yaml_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_rules(_write(tmp_path, "invalid: yaml: content: ["))

    def test_missing_section_raises(self, tmp_path: Path) -> None:
        content = yaml.dump({"project": MINIMAL["project"]})
        with pytest.raises(ValueError, match="validation failed"):
            load_rules(_write(tmp_path, content))

    def test_negative_fallback_days_rejected(self, tmp_path: Path) -> None:
        content = yaml.dump({**MINIMAL, "calendar": {"fallback_refill_days": -1}})
        with pytest.raises(ValueError):
            load_rules(_write(tmp_path, content))

    def test_load_strips_markdown_code_fences(self, tmp_path: Path) -> None:
        content = "## rules\n\n```yaml\n" + yaml.dump(MINIMAL) + "```\n\nNotes after.\n"

        rules = load_rules(_write(tmp_path, content))

        assert rules.project.slug == "test-project"


class TestStartupConfig:
    def test_enrollment_config_from_rules(self) -> None:
        rules = Rules.model_validate(
            {
                **MINIMAL,
                "enrollment": {
                    "default_portal_url": "https://portal.test/register",
                    "handoff_requires_logout": False,
                },
                "calendar": {"fallback_refill_days": 7},
            }
        )

        config = enrollment_config(rules)

        assert config.default_portal_url == "https://portal.test/register"
        assert config.handoff_requires_logout is False
        assert config.fallback_refill_days == 7

    def test_missing_env_fails_fast(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ASSIST_TEST_SECRET", raising=False)
        rules = Rules.model_validate({**MINIMAL, "ops": {"required_env": ["ASSIST_TEST_SECRET"]}})

        with pytest.raises(ConfigurationError, match="ASSIST_TEST_SECRET"):
            validate_ops_rules(rules)

    def test_present_env_passes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ASSIST_TEST_SECRET", "x")
        rules = Rules.model_validate({**MINIMAL, "ops": {"required_env": ["ASSIST_TEST_SECRET"]}})

        validate_ops_rules(rules)
