# tests/core/traceability/test_manifest_task_updates.py
"""
Testes das atualizações incrementais de tarefas no Manifest.

O estado de cada tarefa é indexado pelo id do contexto e evolui por
eventos explícitos: `task_started` → `task_finished` (sucesso ou falha),
`task_skipped` e `tokens_sent`.
"""

from datetime import datetime, timezone

from seqflow.core.pipeline.context import TaskContext
from seqflow.core.pipeline.status import TaskStatus
from seqflow.core.traceability.manifest import (
    create_manifest,
    task_finished,
    task_skipped,
    task_started,
    tokens_sent,
)
from tests.fixtures.modules.dummy_modules import NoPortModule

T0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)
T1 = datetime(2026, 1, 16, 12, 0, 5, tzinfo=timezone.utc)


def _manifest():
    return create_manifest(run_id="run-003", seqflow_version="2.0.0", settings_hash="c" * 64)


def test_incremental_task_update_records_status_and_timestamps(make_step):
    context = TaskContext(make_step("noport", NoPortModule), name="task1")
    status = TaskStatus(context)
    status.increment_counter("reads", 3)
    result = status.create_result()

    m = _manifest()
    task_started(m, context, ts=T0)
    assert m.task(context.id)["status"] == "running"

    task_finished(m, result, ts=T1)
    tokens_sent(m, step_id="noport", context_id=context.id, ports=[], ts=T1)

    task = m.task(context.id)
    assert task["status"] == "success"
    assert task["context_name"] == "task1"
    assert task["started_at"] == "2026-01-16T12:00:00+00:00"
    assert task["finished_at"] == "2026-01-16T12:00:05+00:00"
    assert task["counters"] == {"reads": 3}
    assert task["tokens"] == []
    assert "error" not in task
    assert [e["event_type"] for e in m.events] == ["task_started", "task_finished", "tokens_sent"]
    assert list(m.to_dict()["tasks"]) == [str(context.id)]


def test_failed_task_is_recorded(make_step):
    context = TaskContext(make_step("noport", NoPortModule))
    result = TaskStatus(context).create_failure(RuntimeError("boom"))

    m = _manifest()
    task_started(m, context, ts=T0)
    task_finished(m, result, ts=T1)

    task = m.task(context.id)
    assert task["status"] == "failed"
    assert task["error"]["message"] == "boom"
    event = m.events_of("task_failed")[0]
    assert event["payload"]["status"] == "failed"
    assert event["payload"]["error_type"] == "TASK_EXECUTION_ERROR"


def test_skipped_task_is_recorded(make_step):
    context = TaskContext(make_step("noport", NoPortModule))
    m = _manifest()
    task_skipped(m, context, reason="fail_fast", ts=T0)

    assert m.task(context.id)["status"] == "skipped"
    assert m.events[0]["payload"] == {"reason": "fail_fast"}
