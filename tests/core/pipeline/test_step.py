# tests/core/pipeline/test_step.py
"""
Testes de WorkflowStep e StepRegistry.

WorkflowStep associa um id de step a uma fábrica de módulos e a seus
diretórios; configura o módulo uma vez e decide, por tarefa, se reutiliza
a instância configurada ou cria uma nova.
"""

from pathlib import Path

import pytest

from seqflow.core.exceptions import (
    ConfigurationError,
    IncompatibleVersionError,
    MissingRequirementError,
    ModuleNotConfiguredError,
    StepAlreadyConfiguredError,
)
from seqflow.core.pipeline.registry import DuplicateStepIdError, StepRegistry
from seqflow.core.pipeline.step import StepType, TokenCollector, WorkflowStep
from tests.fixtures.modules.dummy_modules import (
    FutureModule,
    MapReadsModule,
    MissingToolModule,
    NoPortModule,
    OptionalToolModule,
    make_counting_module,
)


def test_invalid_step_id(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        WorkflowStep("Map-Reads", MapReadsModule, working_dir=tmp_path)
    with pytest.raises(ConfigurationError):
        WorkflowStep("mapreads", None, working_dir=tmp_path)


def test_directories_default_to_working_dir(tmp_path: Path):
    step = WorkflowStep("mapreads", MapReadsModule, working_dir=tmp_path)
    assert step.output_dir == tmp_path
    assert step.task_dir == tmp_path
    assert step.type is StepType.STANDARD
    assert isinstance(step.token_sink, TokenCollector)


def test_module_requires_configuration(tmp_path: Path):
    step = WorkflowStep("mapreads", MapReadsModule, working_dir=tmp_path)
    assert not step.is_configured
    with pytest.raises(ModuleNotConfiguredError):
        step.module
    with pytest.raises(ModuleNotConfiguredError):
        step.output_ports()


def test_configure_once(make_step):
    step = make_step("mapreads", MapReadsModule, {"threads": 2})
    assert step.is_configured
    assert step.module.threads == 2
    assert step.input_ports().names() == ["reads"]
    assert [p.value for p in step.parameters] == ["2"]

    with pytest.raises(StepAlreadyConfiguredError):
        step.configure()


def test_module_for_task_creates_new_configured_instances(make_step):
    module_cls = make_counting_module(reuse_instance=False)
    step = make_step("counting", module_cls)

    first = step.module_for_task()
    second = step.module_for_task()
    assert first is not second
    assert first is not step.module
    assert first.is_configured
    assert module_cls.created == 3


def test_module_for_task_reuses_instance(make_step):
    module_cls = make_counting_module(reuse_instance=True)
    step = make_step("counting", module_cls)

    assert step.module_for_task() is step.module
    assert step.module_for_task() is step.module
    assert module_cls.created == 1


def test_incompatible_version(tmp_path: Path):
    step = WorkflowStep("future", FutureModule, working_dir=tmp_path)
    with pytest.raises(IncompatibleVersionError):
        step.configure()
    assert not step.is_configured


def test_missing_requirement(tmp_path: Path):
    with pytest.raises(MissingRequirementError):
        WorkflowStep("tool", MissingToolModule, working_dir=tmp_path).configure()


def test_optional_requirement_only_warns(tmp_path: Path, caplog):
    step = WorkflowStep("tool", OptionalToolModule, working_dir=tmp_path).configure()
    assert step.is_configured
    assert "seqflow-missing-tool-0x1f" in caplog.text


def test_to_dict(tmp_path: Path):
    step = WorkflowStep("noport", NoPortModule, working_dir=tmp_path, step_type=StepType.DESIGN)
    assert step.to_dict()["module"] is None
    step.configure()
    d = step.to_dict()
    assert d["id"] == "noport"
    assert d["type"] == "design"
    assert d["module"] == "noport"


def test_registry_preserves_order_and_rejects_duplicates(tmp_path: Path):
    registry = StepRegistry()
    a = registry.add(WorkflowStep("mapreads", MapReadsModule, working_dir=tmp_path))
    b = registry.add(WorkflowStep("count", NoPortModule, working_dir=tmp_path))

    assert [s.id for s in registry] == ["mapreads", "count"]
    assert registry.get("count") is b
    assert "mapreads" in registry
    assert len(registry) == 2

    with pytest.raises(DuplicateStepIdError):
        registry.add(WorkflowStep("mapreads", NoPortModule, working_dir=tmp_path))
    assert registry.get("mapreads") is a

    with pytest.raises(ConfigurationError):
        registry.get("unknown")
