# src/seqflow/core/engine/runner.py
"""
TaskRunner — execução isolada de um TaskContext e propagação de tokens.

Protocolo de `run()`:
    1. reservar o contexto (já executado ou em execução → ContextAlreadyRunError)
       e avisar `on_start`, se houver
    2. abrir o log da tarefa, se o módulo pedir (falha → log desabilitado)
    3. iniciar o relógio do status
    4. executar `module.execute(context, status)` em uma thread dedicada
       (`TaskRunner_<stepId>_#<contextId>`) e aguardar; qualquer exceção que
       escape do módulo vira um TaskResult de falha
    5. fechar o log da tarefa, sempre
    6. retorno None → NoResultFailure; retorno que não é o TaskResult deste
       contexto → InvalidResultFailure
    7. `send_tokens()`

`send_tokens()` é protegido no próprio contexto (segunda chamada →
TokensAlreadySentError), não faz nada em caso de falha e, em caso de
sucesso, para cada porta de saída declarada: cria os links simbólicos do
diretório de trabalho para o diretório de saída e envia um Token ao step.

Política de falhas de recursos: falha ao abrir o log da tarefa ou ao criar
um link simbólico é registrada e absorvida; a execução prossegue.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from seqflow.core.data.data import Data
from seqflow.core.exceptions import (
    InvalidResultFailure,
    NoResultFailure,
    ResultNotAvailableError,
    SymlinkFailure,
)
from seqflow.core.pipeline.context import TaskContext
from seqflow.core.pipeline.status import ProgressCallback, TaskResult, TaskStatus
from seqflow.core.pipeline.step import StepType
from seqflow.core.pipeline.token import Token
from .task_logging import TaskLogSink, open_task_log, task_file_prefix

logger = logging.getLogger(__name__)


def _same_directory(a: Path, b: Path) -> bool:
    return a.resolve() == b.resolve()


class TaskRunner:
    def __init__(
        self,
        context: TaskContext,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_start: Optional[Callable[[TaskContext], None]] = None,
    ) -> None:
        if context is None:
            raise TypeError("context cannot be None")
        self._context = context
        self._step = context.step
        self._on_progress = on_progress
        self._on_start = on_start
        self._result: Optional[TaskResult] = None
        self._tokens: List[Token] = []

    @property
    def context(self) -> TaskContext:
        return self._context

    @property
    def thread_name(self) -> str:
        return f"TaskRunner_{self._step.id}_#{self._context.id}"

    @property
    def result(self) -> TaskResult:
        if self._result is None:
            raise ResultNotAvailableError(
                message=f"Context {self._context.id} has not been run",
                details={"context_id": self._context.id, "step": self._step.id},
            )
        return self._result

    @property
    def tokens(self) -> List[Token]:
        return list(self._tokens)

    def cancel(self) -> None:
        self._context.cancel()

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def run(self) -> TaskResult:
        context = self._context
        context.claim_run()
        if self._on_start is not None:
            self._on_start(context)

        try:
            module = self._step.module_for_task()
        except Exception as e:
            module = None
            setup_error: Optional[Exception] = e
        else:
            setup_error = None

        if module is not None and module.create_log_files:
            sink = open_task_log(context, context.settings, self.thread_name)
        else:
            sink = TaskLogSink.disabled(self.thread_name)

        status = TaskStatus(context, self._on_progress, logger=sink.logger)
        status.duration_start()

        outcome: Dict[str, Any] = {}
        try:
            if module is None:
                outcome["error"] = setup_error
            else:
                sink.logger.info("Start of task %s (step %s)", context.name, self._step.id)
                self._execute_isolated(module, status, outcome)
                sink.logger.info("End of task %s (step %s)", context.name, self._step.id)
        finally:
            sink.close()

        self._result = self._resolve_result(status, outcome)

        if self._result.success:
            logger.info(
                "Task %s of step %s succeeded in %d ms",
                context.name, self._step.id, self._result.duration_ms,
            )
        else:
            logger.warning(
                "Task %s of step %s failed: %s",
                context.name, self._step.id, self._result.error_message,
            )

        self.send_tokens()
        return self._result

    def _execute_isolated(self, module: Any, status: TaskStatus, outcome: Dict[str, Any]) -> None:
        context = self._context

        def body() -> None:
            try:
                outcome["value"] = module.execute(context, status)
            except BaseException as e:
                outcome["error"] = e

        thread = threading.Thread(target=body, name=self.thread_name, daemon=True)
        thread.start()
        try:
            thread.join()
        except KeyboardInterrupt:
            context.cancel()
            raise

    def _resolve_result(self, status: TaskStatus, outcome: Dict[str, Any]) -> TaskResult:
        context = self._context

        if "error" in outcome:
            return self._failure(status, outcome["error"])

        value = outcome.get("value")
        if value is None:
            return self._failure(
                status,
                NoResultFailure(
                    message=f"The step {self._step.id} has not generated a result object",
                    details={"step": self._step.id, "context_id": context.id},
                ),
            )

        if not isinstance(value, TaskResult) or value.context_id != context.id:
            received = type(value).__name__
            if isinstance(value, TaskResult):
                received = f"TaskResult of context {value.context_id}"
            return self._failure(
                status,
                InvalidResultFailure(
                    message=f"The step {self._step.id} returned an invalid result: {received}",
                    details={"step": self._step.id, "context_id": context.id, "received": received},
                ),
            )

        return value

    def _failure(self, status: TaskStatus, exception: BaseException) -> TaskResult:
        if status.is_sealed:
            return TaskResult.failure_for(self._context, exception)
        return status.create_failure(exception)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def send_tokens(self) -> List[Token]:
        result = self.result
        self._context.claim_tokens()

        if not result.success:
            return []

        for port in self._step.output_ports():
            data = self._context.bound_output(port.name)
            self._create_symlinks(data)
            token = Token(port, data.read_only(), self._step.id, self._context.id)
            self._step.send_token(token)
            self._tokens.append(token)

        return list(self._tokens)

    def _create_symlinks(self, data: Data) -> None:
        step = self._step
        if step.type is StepType.DESIGN or _same_directory(step.output_dir, step.working_dir):
            return

        for element in data.list_elements():
            for file in element.files:
                target = file.absolute()
                link = step.output_dir / file.name
                if link.absolute() == target:
                    continue
                try:
                    step.output_dir.mkdir(parents=True, exist_ok=True)
                    if link.is_symlink() or link.exists():
                        link.unlink()
                    link.symlink_to(target)
                except OSError as e:
                    failure = SymlinkFailure(
                        message=f"Cannot create symbolic link: {link}",
                        details={"link": str(link), "target": str(target), "error": str(e)},
                    )
                    logger.error("%s (%s)", failure.message, e)

    # ------------------------------------------------------------------
    # Helpers estáticos
    # ------------------------------------------------------------------

    @staticmethod
    def task_file_prefix(context: TaskContext) -> str:
        return task_file_prefix(context)

    @staticmethod
    def create_failed_result(
        context: TaskContext,
        exception: BaseException,
        message: Optional[str] = None,
    ) -> TaskResult:
        """Resultado de falha para um contexto que não chegou a executar."""
        status = TaskStatus(context)
        status.duration_start()
        return status.create_failure(exception, message)

    @classmethod
    def send_tokens_for(cls, context: TaskContext, result: TaskResult) -> List[Token]:
        """Envia os tokens de um resultado serializado (execução fora do processo)."""
        if result is None:
            raise TypeError("result cannot be None")
        if context.id != result.context_id:
            raise ValueError(
                f"Result of context {result.context_id} does not belong to context {context.id}"
            )
        runner = cls(context)
        runner._result = result
        return runner.send_tokens()
