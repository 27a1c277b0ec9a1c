# tests/core/config/test_settings.py
"""
Testes de Settings: snapshot imutável dos settings efetivos.

Settings é um valor explícito, passado na construção de steps e
contextos e gravado junto com o contexto serializado; nunca é obtido de
um singleton global.
"""

from pathlib import Path

import pytest

from seqflow.core.config.errors import ConfigTypeConflictError
from seqflow.core.config.settings import DEFAULT_SETTINGS, Settings, load_settings


def test_defaults():
    s = Settings.from_mapping()
    assert s.fail_fast is False
    assert s.max_workers == 1
    assert s.task_log_level == "INFO"
    assert "%(message)s" in s.task_log_format


def test_from_mapping_merges_over_defaults():
    s = Settings.from_mapping({"engine": {"max_workers": 4}})
    assert s.max_workers == 4
    assert s.fail_fast is False
    assert s.get("logging.task_level") == "INFO"


def test_get_dotted_path_and_default():
    s = Settings.from_mapping({"steps": {"mapreads": {"threads": 8}}})
    assert s.get("steps.mapreads.threads") == 8
    assert s.get("steps.count.threads", 1) == 1
    assert s.get("engine.max_workers.nested", "x") == "x"


def test_settings_are_not_mutated_through_accessors():
    s = Settings.from_mapping({"steps": {"enabled": ["mapreads"]}})
    s.get("steps.enabled").append("count")
    s.to_dict()["steps"]["enabled"].append("count")
    assert s.get("steps.enabled") == ["mapreads"]


def test_equality_follows_hash():
    a = Settings.from_mapping({"engine": {"max_workers": 2}})
    b = Settings.from_dict(a.to_dict())
    assert a == b
    assert hash(a) == hash(b)
    assert a != Settings.from_mapping()
    assert len(a.hash) == 64


@pytest.mark.parametrize(
    "overrides",
    [
        {"engine": {"max_workers": 0}},
        {"engine": {"max_workers": True}},
        {"engine": {"fail_fast": None}},
    ],
)
def test_invalid_engine_values_raise(overrides):
    with pytest.raises(ConfigTypeConflictError):
        Settings.from_mapping(overrides)


def test_load_settings_without_files():
    assert load_settings() == Settings.from_mapping()
    assert DEFAULT_SETTINGS["engine"]["max_workers"] == 1


def test_load_settings_from_files(tmp_path: Path, settings_defaults_yaml, settings_local_yaml):
    defaults = tmp_path / "defaults.yaml"
    local = tmp_path / "local.yaml"
    defaults.write_text(settings_defaults_yaml, encoding="utf-8")
    local.write_text(settings_local_yaml, encoding="utf-8")

    s = load_settings(defaults_path=defaults, local_path=local)
    assert s.fail_fast is True
    assert s.max_workers == 1
    assert s.task_log_level == "DEBUG"
    assert s.get("steps.mapreads.threads") == 4


def test_load_settings_local_only(tmp_path: Path):
    local = tmp_path / "local.yaml"
    local.write_text("engine:\n  fail_fast: true\n", encoding="utf-8")
    s = load_settings(local_path=local)
    assert s.fail_fast is True
    assert s.max_workers == 1
