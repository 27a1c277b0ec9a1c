# src/seqflow/core/traceability/__init__.py
"""
Rastreabilidade de tarefas do seqflow — Manifest v1.

API pública:
    - WorkflowManifest → estrutura do Manifest
    - create_manifest  → criação explícita
    - add_event        → evento explícito no Event Log
    - task_started     → tarefa iniciada
    - task_finished    → tarefa concluída (a partir do TaskResult)
    - task_skipped     → tarefa não executada (fail-fast)
    - tokens_sent      → tokens emitidos por uma tarefa
    - save_manifest / load_manifest → persistência JSON determinística

Nenhum evento é emitido implicitamente e a ordem do Event Log reflete a
ordem das chamadas.
"""

from .manifest import (
    WorkflowManifest,
    create_manifest,
    add_event,
    task_started,
    task_finished,
    task_skipped,
    tokens_sent,
    save_manifest,
    load_manifest,
)

__all__ = [
    "WorkflowManifest",
    "create_manifest",
    "add_event",
    "task_started",
    "task_finished",
    "task_skipped",
    "tokens_sent",
    "save_manifest",
    "load_manifest",
]
