# src/seqflow/core/pipeline/status.py
"""
TaskStatus (rastreador mutável) e TaskResult (resultado selado).

Um TaskStatus acompanha a execução de um único TaskContext: relógio,
contadores, progresso e descrição. Ele produz exatamente um TaskResult,
por conclusão normal (`create_result`) ou a partir de uma exceção
capturada (`create_failure`).

Decisões arquiteturais:
    - Duração medida com relógio monotônico; timestamps em UTC ISO-8601
    - Falhas são dados: o TaskResult carrega a exceção original (em
      memória) e um ErrorPayload serializável
    - O logger da tarefa é entregue ao módulo por `status.logger`, sem
      registro global por thread

Invariantes:
    - `duration_start()` é idempotente
    - Um TaskStatus sela no máximo um resultado (ResultAlreadySealedError)
    - Um TaskResult nunca é alterado depois de criado
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from seqflow.core.errors import ErrorPayload, payload_from_exception
from seqflow.core.exceptions import ResultAlreadySealedError

if TYPE_CHECKING:
    from .context import TaskContext


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: datetime) -> str:
    return ts.isoformat().replace("+00:00", "Z")


def _null_logger() -> logging.Logger:
    log = logging.Logger("seqflow.task.disabled")
    log.addHandler(logging.NullHandler())
    log.disabled = True
    return log


@dataclass(frozen=True)
class TaskResult:
    """Resultado imutável e autoritativo de uma tarefa."""

    context_id: int
    context_name: str
    step_id: str
    success: bool
    started_at: str
    ended_at: str
    duration_ms: int
    counters: Dict[str, int] = field(default_factory=dict)
    description: str = ""
    error: Optional[ErrorPayload] = None
    error_message: Optional[str] = None
    exception: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @classmethod
    def failure_for(
        cls,
        context: "TaskContext",
        exception: BaseException,
        message: Optional[str] = None,
    ) -> "TaskResult":
        """Falha sintetizada sem TaskStatus (duração zero)."""
        now = _iso(_utc_now())
        return cls(
            context_id=context.id,
            context_name=context.name,
            step_id=context.step.id,
            success=False,
            started_at=now,
            ended_at=now,
            duration_ms=0,
            error=payload_from_exception(exception, message=message, step=context.step.id),
            error_message=message or str(exception) or type(exception).__name__,
            exception=exception,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context_id": self.context_id,
            "context_name": self.context_name,
            "step_id": self.step_id,
            "success": self.success,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
            "duration_ms": self.duration_ms,
            "counters": dict(self.counters),
            "description": self.description,
            "error": self.error.to_dict() if self.error is not None else None,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskResult":
        """Reconstrói um resultado persistido (a exceção original não viaja)."""
        error = data.get("error")
        return cls(
            context_id=int(data["context_id"]),
            context_name=str(data["context_name"]),
            step_id=str(data["step_id"]),
            success=bool(data["success"]),
            started_at=str(data["started_at"]),
            ended_at=str(data["ended_at"]),
            duration_ms=int(data["duration_ms"]),
            counters={str(k): int(v) for k, v in (data.get("counters") or {}).items()},
            description=str(data.get("description", "")),
            error=ErrorPayload.from_dict(error) if error else None,
            error_message=data.get("error_message"),
        )


ProgressCallback = Callable[["TaskContext", float], None]


class TaskStatus:
    """Rastreador mutável de uma tarefa; sela exatamente um TaskResult."""

    def __init__(
        self,
        context: "TaskContext",
        on_progress: Optional[ProgressCallback] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._context = context
        self._on_progress = on_progress
        self._logger = logger if logger is not None else _null_logger()
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}
        self._description = ""
        self._progress = 0.0
        self._started_at: Optional[datetime] = None
        self._start_clock: Optional[float] = None
        self._result: Optional[TaskResult] = None

    @property
    def context(self) -> "TaskContext":
        return self._context

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def duration_start(self) -> None:
        with self._lock:
            if self._start_clock is None:
                self._start_clock = time.monotonic()
                self._started_at = _utc_now()

    @property
    def is_started(self) -> bool:
        return self._start_clock is not None

    # ------------------------------------------------------------------
    # Contadores / progresso
    # ------------------------------------------------------------------

    def increment_counter(self, name: str, value: int = 1) -> None:
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + int(value)

    def set_counter(self, name: str, value: int) -> None:
        with self._lock:
            self._counters[name] = int(value)

    @property
    def counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)

    def set_progress(self, progress: float) -> None:
        progress = float(progress)
        if not 0.0 <= progress <= 1.0:
            raise ValueError(f"Progress must be between 0 and 1, received {progress}")
        with self._lock:
            self._progress = progress
        if self._on_progress is not None:
            self._on_progress(self._context, progress)

    @property
    def progress(self) -> float:
        return self._progress

    def set_description(self, description: str) -> None:
        with self._lock:
            self._description = "" if description is None else str(description)

    @property
    def description(self) -> str:
        return self._description

    def is_cancelled(self) -> bool:
        return self._context.is_cancelled()

    # ------------------------------------------------------------------
    # Selagem
    # ------------------------------------------------------------------

    @property
    def is_sealed(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> Optional[TaskResult]:
        return self._result

    def create_result(self, success: bool = True) -> TaskResult:
        return self._seal(success=bool(success), exception=None, message=None)

    def create_failure(self, exception: BaseException, message: Optional[str] = None) -> TaskResult:
        if exception is None:
            raise TypeError("exception cannot be None")
        return self._seal(success=False, exception=exception, message=message)

    def _seal(
        self,
        *,
        success: bool,
        exception: Optional[BaseException],
        message: Optional[str],
    ) -> TaskResult:
        self.duration_start()

        with self._lock:
            if self._result is not None:
                raise ResultAlreadySealedError(
                    message=f"The result of context {self._context.id} is already sealed",
                    details={"context_id": self._context.id, "step": self._context.step.id},
                )

            ended = _utc_now()
            assert self._start_clock is not None and self._started_at is not None
            duration_ms = int(round((time.monotonic() - self._start_clock) * 1000))

            error = None
            error_message = message
            if exception is not None:
                error = payload_from_exception(exception, message=message, step=self._context.step.id)
                error_message = message or str(exception) or type(exception).__name__

            self._result = TaskResult(
                context_id=self._context.id,
                context_name=self._context.name,
                step_id=self._context.step.id,
                success=success,
                started_at=_iso(self._started_at),
                ended_at=_iso(ended),
                duration_ms=duration_ms,
                counters=dict(self._counters),
                description=self._description,
                error=error,
                error_message=error_message,
                exception=exception,
            )
            return self._result
