"""
seqflow — Canonical Error Structures (v1)

Este módulo define o payload canônico de erro associado a tarefas que
falharam. O TaskResult carrega a exceção original (em memória) e este
payload serializável, usado em Manifest e em resultados persistidos.

Erros devem ser:

- explícitos
- serializáveis
- rastreáveis
- acionáveis
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional

from .exceptions import (
    ConfigurationError,
    InvalidResultFailure,
    NoResultFailure,
    ProgrammingError,
    SeqflowException,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do seqflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorPayload":
        return cls(
            type=str(data.get("type", TASK_EXECUTION_ERROR)),
            message=str(data.get("message", "")),
            details=dict(data.get("details") or {}),
            hint=data.get("hint"),
        )


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

TASK_EXECUTION_ERROR = "TASK_EXECUTION_ERROR"
TASK_NO_RESULT = "TASK_NO_RESULT"
TASK_INVALID_RESULT = "TASK_INVALID_RESULT"
TASK_CONFIGURATION_ERROR = "TASK_CONFIGURATION_ERROR"
TASK_PROGRAMMING_ERROR = "TASK_PROGRAMMING_ERROR"


def _type_for(exc: SeqflowException) -> str:
    if isinstance(exc, NoResultFailure):
        return TASK_NO_RESULT
    if isinstance(exc, InvalidResultFailure):
        return TASK_INVALID_RESULT
    if isinstance(exc, ConfigurationError):
        return TASK_CONFIGURATION_ERROR
    if isinstance(exc, ProgrammingError):
        return TASK_PROGRAMMING_ERROR
    return TASK_EXECUTION_ERROR


def payload_from_exception(
    exc: BaseException,
    *,
    message: Optional[str] = None,
    step: Optional[str] = None,
) -> ErrorPayload:
    """Converte uma exceção em ErrorPayload (serializável, acionável).

    Regras:
    - SeqflowException: já vem com message/details/hint.
    - Outras exceções: encapsular como TASK_EXECUTION_ERROR sem stack trace.
    - `message`, quando informado, tem precedência sobre a mensagem da exceção.
    """
    if isinstance(exc, SeqflowException):
        details = dict(exc.details or {})
        if step is not None:
            details.setdefault("step", step)
        details.setdefault("exception_class", exc.__class__.__name__)
        return ErrorPayload(
            type=_type_for(exc),
            message=message or exc.message or "Erro de execução",
            details=details,
            hint=exc.hint,
        )

    return ErrorPayload(
        type=TASK_EXECUTION_ERROR,
        message=message or str(exc) or "Erro inesperado durante execução da tarefa",
        details={
            "step": step,
            "exception_class": exc.__class__.__name__,
        },
        hint="Verifique o log da tarefa e os parâmetros do step",
    )
