# tests/core/engine/test_executor_concurrency.py
"""
Testes de concorrência do executor.

- Tarefas concorrentes sobre a mesma instância reutilizável de um módulo
  não observam o estado intermediário umas das outras
- Módulos com paralelização própria executam uma tarefa por vez
"""

from seqflow.core.config.settings import Settings
from seqflow.core.engine.executor import LocalTaskExecutor
from seqflow.core.pipeline.context import TaskContext
from tests.fixtures.modules.dummy_modules import (
    make_barrier_module,
    make_own_parallelization_module,
)


def test_reused_instance_does_not_leak_state(make_step, make_reads):
    step = make_step("barrier", make_barrier_module(parties=2), {"threads": 2})
    contexts = [
        TaskContext(step, {"reads": make_reads("sampleA", files=1)}),
        TaskContext(step, {"reads": make_reads("sampleB", files=2)}),
    ]

    report = LocalTaskExecutor(Settings.from_mapping({"engine": {"max_workers": 2}})).execute(contexts)

    assert report.success
    a = report.results[contexts[0].id]
    b = report.results[contexts[1].id]
    assert a.counters == {"files": 1, "threads": 2}
    assert b.counters == {"files": 2, "threads": 2}
    assert a.description == "mapping sampleA"
    assert b.description == "mapping sampleB"
    assert a.context_name == "sampleA"
    assert b.context_name == "sampleB"

    names = {t.context_id: t.data.name for t in step.token_sink.tokens}
    assert names == {contexts[0].id: "sampleA", contexts[1].id: "sampleB"}
    for context in contexts:
        out = context.bound_output("alignments").files[0]
        assert out.read_text(encoding="utf-8").startswith(f"@{context.name}\t")


def test_own_parallelization_runs_one_task_at_a_time(make_step):
    module_cls = make_own_parallelization_module()
    step = make_step("ownparallel", module_cls)
    contexts = [TaskContext(step) for _ in range(4)]

    report = LocalTaskExecutor(Settings.from_mapping({"engine": {"max_workers": 4}})).execute(contexts)

    assert report.success
    assert module_cls.stats["max_active"] == 1
