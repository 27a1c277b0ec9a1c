# src/seqflow/core/traceability/manifest.py
"""
Manifest v1 — registro auditável das tarefas de uma execução.

O Manifest consolida:
    - metadados da execução (run_id, started_at, versão do seqflow)
    - hash dos settings efetivos
    - estado incremental de cada tarefa, indexado pelo id do contexto
    - Event Log ordenado de eventos explícitos

Decisões arquiteturais:
    - UTC é o timezone canônico; timestamps em ISO-8601
    - Persistência em JSON determinístico (`sort_keys=True`)
    - O Manifest não executa nada nem decide políticas; quem registra é o
      executor (ou qualquer scheduler externo)

Invariantes:
    - `tasks` é indexado por `str(context_id)` (chaves JSON)
    - `events` preserva a ordem de chamada
    - O round-trip `save_manifest` → `load_manifest` é exato
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

if TYPE_CHECKING:
    from seqflow.core.pipeline.context import TaskContext
    from seqflow.core.pipeline.status import TaskResult


def _ensure_utc(dt: Optional[datetime]) -> datetime:
    if dt is None:
        return datetime.now(timezone.utc)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_utc(dt).isoformat()


@dataclass
class WorkflowManifest:
    """
    Manifest v1 de uma execução.

    Campos:
        - run: run_id, started_at, seqflow_version
        - inputs: settings_hash
        - tasks: estado por contexto (step, nome, status, duração, erro)
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    tasks: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return json.loads(json.dumps({
            "run": self.run,
            "inputs": self.inputs,
            "tasks": self.tasks,
            "events": self.events,
        }))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkflowManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            tasks={str(k): dict(v) for k, v in (data.get("tasks", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )

    def task(self, context_id: int) -> Optional[Dict[str, Any]]:
        return self.tasks.get(str(context_id))

    def events_of(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("event_type") == event_type]


def create_manifest(
    *,
    run_id: str,
    seqflow_version: str,
    settings_hash: str,
    started_at: Optional[datetime] = None,
) -> WorkflowManifest:
    """Cria o Manifest inicial. Nenhum evento é registrado aqui."""
    return WorkflowManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(_ensure_utc(started_at)),
            "seqflow_version": seqflow_version,
        },
        inputs={"settings_hash": settings_hash},
    )


def add_event(
    manifest: WorkflowManifest,
    *,
    event_type: str,
    ts: Optional[datetime] = None,
    step_id: Optional[str] = None,
    context_id: Optional[int] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(_ensure_utc(ts))}
    if step_id is not None:
        ev["step_id"] = step_id
    if context_id is not None:
        ev["context_id"] = context_id
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)
    return ev


def task_started(
    manifest: WorkflowManifest,
    context: "TaskContext",
    *,
    ts: Optional[datetime] = None,
) -> None:
    ts = _ensure_utc(ts)
    state = manifest.tasks.setdefault(str(context.id), {})
    state.update(
        {
            "context_id": context.id,
            "context_name": context.name,
            "step_id": context.step.id,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="task_started", ts=ts, step_id=context.step.id, context_id=context.id)


def task_finished(
    manifest: WorkflowManifest,
    result: "TaskResult",
    *,
    ts: Optional[datetime] = None,
) -> None:
    ts = _ensure_utc(ts)
    status = "success" if result.success else "failed"
    state = manifest.tasks.setdefault(str(result.context_id), {})
    state.update(
        {
            "context_id": result.context_id,
            "context_name": result.context_name,
            "step_id": result.step_id,
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": result.duration_ms,
            "counters": dict(result.counters),
            "description": result.description,
        }
    )
    if result.error is not None:
        state["error"] = result.error.to_dict()

    payload: Dict[str, Any] = {"status": status, "duration_ms": result.duration_ms}
    if result.error is not None:
        payload["error_type"] = result.error.type
    add_event(
        manifest,
        event_type="task_finished" if result.success else "task_failed",
        ts=ts,
        step_id=result.step_id,
        context_id=result.context_id,
        payload=payload,
    )


def task_skipped(
    manifest: WorkflowManifest,
    context: "TaskContext",
    *,
    reason: str,
    ts: Optional[datetime] = None,
) -> None:
    ts = _ensure_utc(ts)
    state = manifest.tasks.setdefault(str(context.id), {})
    state.update(
        {
            "context_id": context.id,
            "context_name": context.name,
            "step_id": context.step.id,
            "status": "skipped",
            "reason": reason,
        }
    )
    add_event(
        manifest,
        event_type="task_skipped",
        ts=ts,
        step_id=context.step.id,
        context_id=context.id,
        payload={"reason": reason},
    )


def tokens_sent(
    manifest: WorkflowManifest,
    *,
    step_id: str,
    context_id: int,
    ports: Iterable[str],
    ts: Optional[datetime] = None,
) -> None:
    ports = list(ports)
    state = manifest.tasks.setdefault(str(context_id), {"context_id": context_id, "step_id": step_id})
    state["tokens"] = ports
    add_event(
        manifest,
        event_type="tokens_sent",
        ts=ts,
        step_id=step_id,
        context_id=context_id,
        payload={"ports": ports},
    )


def save_manifest(manifest: WorkflowManifest, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )
    return path


def load_manifest(path: Union[str, Path]) -> WorkflowManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return WorkflowManifest.from_dict(data)
