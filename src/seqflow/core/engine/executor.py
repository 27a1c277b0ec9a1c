# src/seqflow/core/engine/executor.py
"""
LocalTaskExecutor — scheduler local de referência.

Executa um lote de TaskContexts em um pool de threads, um TaskRunner por
contexto. É o uso mínimo do protocolo de execução: quem quiser outro
escalonamento (cluster, fila distribuída) só precisa respeitar o mesmo
contrato de `TaskRunner.run()`.

Políticas (via Settings):
    - engine.max_workers: tamanho do pool
    - engine.fail_fast: após a primeira falha, contextos ainda não
      iniciados não são executados e são reportados como pulados

Decisões arquiteturais:
    - Módulos com ParallelizationMode.OWN_PARALLELIZATION executam uma
      tarefa por vez (lock por step)
    - Eventos do Manifest são registrados sob lock, na ordem real
    - ProgrammingError de um runner interrompe o lote (fail-fast)

Limites explícitos:
    - Sem retry e sem timeout
    - Não resolve dependências entre steps
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from seqflow.core.config.settings import Settings
from seqflow.core.exceptions import ProgrammingError
from seqflow.core.pipeline.context import TaskContext
from seqflow.core.pipeline.module import ParallelizationMode
from seqflow.core.pipeline.status import TaskResult
from seqflow.core.traceability.manifest import (
    WorkflowManifest,
    task_finished,
    task_skipped,
    task_started,
    tokens_sent,
)
from .runner import TaskRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionReport:
    """Resultado agregado de um lote de tarefas."""

    results: Dict[int, TaskResult] = field(default_factory=dict)
    skipped: Tuple[int, ...] = ()

    @property
    def success(self) -> bool:
        return not self.skipped and all(r.success for r in self.results.values())

    @property
    def failed(self) -> List[TaskResult]:
        return [r for r in self.results.values() if not r.success]


class LocalTaskExecutor:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        manifest: Optional[WorkflowManifest] = None,
    ) -> None:
        self._settings = settings if settings is not None else Settings.from_mapping()
        self._manifest = manifest
        self._manifest_lock = threading.Lock()
        self._step_locks: Dict[str, threading.Lock] = {}
        self._step_locks_guard = threading.Lock()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def manifest(self) -> Optional[WorkflowManifest]:
        return self._manifest

    def execute(self, contexts: Iterable[TaskContext]) -> ExecutionReport:
        contexts = list(contexts)
        halt = threading.Event()
        fail_fast = self._settings.fail_fast

        logger.info(
            "Executing %d task(s) with %d worker(s), fail_fast=%s",
            len(contexts), self._settings.max_workers, fail_fast,
        )

        def job(context: TaskContext) -> Optional[TaskResult]:
            if fail_fast and halt.is_set():
                self._record_skipped(context)
                return None
            result = self._run_one(context)
            if fail_fast and not result.success:
                halt.set()
            return result

        results: Dict[int, TaskResult] = {}
        skipped: List[int] = []

        with ThreadPoolExecutor(
            max_workers=self._settings.max_workers,
            thread_name_prefix="seqflow-executor",
        ) as pool:
            futures = [(ctx, pool.submit(job, ctx)) for ctx in contexts]
            try:
                for ctx, future in futures:
                    result = future.result()
                    if result is None:
                        skipped.append(ctx.id)
                    else:
                        results[ctx.id] = result
            except BaseException:
                halt.set()
                for _, future in futures:
                    future.cancel()
                raise

        report = ExecutionReport(results=results, skipped=tuple(skipped))
        if not report.success:
            logger.warning(
                "%d task(s) failed, %d skipped", len(report.failed), len(report.skipped)
            )
        return report

    def _run_one(self, context: TaskContext) -> TaskResult:
        started = threading.Event()

        def on_start(ctx: TaskContext) -> None:
            self._record(task_started, ctx)
            started.set()

        runner = TaskRunner(context, on_start=on_start)
        lock = self._lock_for(context)

        with lock if lock is not None else nullcontext():
            try:
                result = runner.run()
            except ProgrammingError as e:
                # só fecha no manifest a tarefa que este runner abriu
                if started.is_set():
                    self._record(task_finished, TaskRunner.create_failed_result(context, e))
                raise

        self._record(task_finished, result)
        if runner.tokens:
            with self._manifest_lock:
                if self._manifest is not None:
                    tokens_sent(
                        self._manifest,
                        step_id=context.step.id,
                        context_id=context.id,
                        ports=[t.port.name for t in runner.tokens],
                    )
        return result

    def _lock_for(self, context: TaskContext) -> Optional[threading.Lock]:
        if context.step.module.parallelization_mode is not ParallelizationMode.OWN_PARALLELIZATION:
            return None
        with self._step_locks_guard:
            return self._step_locks.setdefault(context.step.id, threading.Lock())

    def _record(self, fn, arg) -> None:
        with self._manifest_lock:
            if self._manifest is not None:
                fn(self._manifest, arg)

    def _record_skipped(self, context: TaskContext) -> None:
        logger.info("Skipping task %s of step %s after a failure", context.name, context.step.id)
        with self._manifest_lock:
            if self._manifest is not None:
                task_skipped(self._manifest, context, reason="fail_fast")
