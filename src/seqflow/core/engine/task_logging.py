# src/seqflow/core/engine/task_logging.py
"""
Log dedicado por tarefa.

Cada tarefa cujo módulo pede captura de log recebe um arquivo próprio em
`step.task_dir`, chamado `<stepId>_context#<contextId>.log`, escrito por um
`logging.Logger` exclusivo: criado diretamente (não registrado no
`logging.Manager`) e sem propagação, de modo que tarefas concorrentes nunca
intercalam linhas e o log global da aplicação não é afetado.

O logger é entregue ao módulo de forma explícita (`status.logger`).

Falha ao abrir o arquivo não é fatal: a tarefa segue com um logger
desabilitado e o problema é registrado no logger do seqflow.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from seqflow.core.config.settings import Settings
from seqflow.core.exceptions import LogSinkUnavailable

if TYPE_CHECKING:
    from seqflow.core.pipeline.context import TaskContext

logger = logging.getLogger(__name__)

TASK_LOG_EXTENSION = ".log"


def task_file_prefix(context: "TaskContext") -> str:
    return f"{context.step.id}_context#{context.id}"


def task_log_path(context: "TaskContext") -> Path:
    return context.step.task_dir / (task_file_prefix(context) + TASK_LOG_EXTENSION)


def _level(name: str) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else logging.INFO


class TaskLogSink:
    """Logger exclusivo de uma tarefa e o handler de arquivo associado."""

    def __init__(
        self,
        task_logger: logging.Logger,
        handler: Optional[logging.Handler] = None,
        path: Optional[Path] = None,
    ) -> None:
        self.logger = task_logger
        self.handler = handler
        self.path = path

    @classmethod
    def disabled(cls, name: str = "seqflow.task") -> "TaskLogSink":
        task_logger = logging.Logger(name)
        task_logger.addHandler(logging.NullHandler())
        task_logger.propagate = False
        task_logger.disabled = True
        return cls(task_logger)

    @property
    def enabled(self) -> bool:
        return self.handler is not None

    def close(self) -> None:
        if self.handler is None:
            return
        try:
            self.handler.flush()
            self.handler.close()
        finally:
            self.logger.removeHandler(self.handler)
            self.handler = None


def open_task_log(context: "TaskContext", settings: Settings, name: str) -> TaskLogSink:
    path = task_log_path(context)
    try:
        formatter = logging.Formatter(settings.task_log_format)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        handler.setFormatter(formatter)
    except (OSError, ValueError) as e:
        failure = LogSinkUnavailable(
            message=f"Cannot open task log file: {path}",
            details={"path": str(path), "error": str(e), "context_id": context.id},
        )
        logger.warning("%s; logging disabled for this task (%s)", failure.message, e)
        return TaskLogSink.disabled(name)

    handler.setLevel(_level(settings.task_log_level))

    task_logger = logging.Logger(name, level=logging.DEBUG)
    task_logger.propagate = False
    task_logger.addHandler(handler)
    return TaskLogSink(task_logger, handler, path)
