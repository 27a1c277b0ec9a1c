"""
seqflow — Canonical Exceptions (v1)

Este módulo define as exceções tipadas do seqflow.

Objetivo:
- Separar erros de configuração, erros de programação e falhas de tarefa
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos nos guardrails do core

Política de propagação:
- ConfigurationError: levantado de forma síncrona apenas por chamadas de
  configuração ou construção de portas
- ProgrammingError: invariante do chamador/engine violado; falha imediata
- ExecutionFailure: nunca propagado; sempre capturado em um TaskResult
- ResourceFailure: não fatal; apenas registrado em log

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`
- Mensagem curta e humana
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True, eq=False)
class SeqflowException(Exception):
    """Base class para exceções internas do seqflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Configuração (síncronos, vindos de configure/builders)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ConfigurationError(SeqflowException):
    """Configuração inválida de módulo, porta ou formato."""


@dataclass(frozen=True, eq=False)
class InvalidParameterError(ConfigurationError):
    """Parâmetro de módulo ausente ou com valor inválido."""


@dataclass(frozen=True, eq=False)
class InvalidPortNameError(ConfigurationError):
    """Nome de porta vazio ou fora do padrão alfanumérico minúsculo."""


@dataclass(frozen=True, eq=False)
class DuplicatePortNameError(ConfigurationError):
    """Nome de porta repetido dentro do mesmo conjunto de portas."""


@dataclass(frozen=True, eq=False)
class PortNotFoundError(ConfigurationError):
    """Nenhuma porta do conjunto anuncia o formato pedido."""


@dataclass(frozen=True, eq=False)
class AmbiguousFormatError(ConfigurationError):
    """Mais de uma porta do conjunto anuncia o formato pedido."""


@dataclass(frozen=True, eq=False)
class UnknownDataFormatError(ConfigurationError):
    """Formato de dados não registrado."""


@dataclass(frozen=True, eq=False)
class DuplicateDataFormatError(ConfigurationError):
    """Formato de dados (nome ou prefixo) registrado duas vezes."""


@dataclass(frozen=True, eq=False)
class MissingRequirementError(ConfigurationError):
    """Pré-requisito externo obrigatório de um módulo não está disponível."""


@dataclass(frozen=True, eq=False)
class IncompatibleVersionError(ConfigurationError):
    """Módulo exige uma versão do seqflow mais nova que a em execução."""


# ---------------------------------------------------------------------------
# Erros de programação (fatais, fail-fast)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ProgrammingError(SeqflowException):
    """Invariante do chamador ou do engine violado."""


@dataclass(frozen=True, eq=False)
class ContextAlreadyRunError(ProgrammingError):
    """O TaskContext já foi executado (ou está em execução)."""


@dataclass(frozen=True, eq=False)
class TokensAlreadySentError(ProgrammingError):
    """Os tokens do TaskContext já foram enviados."""


@dataclass(frozen=True, eq=False)
class UnknownPortError(ProgrammingError):
    """Porta não declarada pelo módulo."""


@dataclass(frozen=True, eq=False)
class ReadOnlyDataError(ProgrammingError):
    """Tentativa de mutação de um Data somente leitura."""


@dataclass(frozen=True, eq=False)
class ResultAlreadySealedError(ProgrammingError):
    """O TaskStatus já produziu seu TaskResult."""


@dataclass(frozen=True, eq=False)
class ResultNotAvailableError(ProgrammingError):
    """O TaskResult foi pedido antes da execução do contexto."""


@dataclass(frozen=True, eq=False)
class ModuleNotConfiguredError(ProgrammingError):
    """Portas ou execução pedidas a um módulo ainda não configurado."""


@dataclass(frozen=True, eq=False)
class StepAlreadyConfiguredError(ProgrammingError):
    """Um módulo/step só pode ser configurado uma vez."""


@dataclass(frozen=True, eq=False)
class DataBindingError(ProgrammingError):
    """Data vinculado a uma porta de forma incompatível com sua declaração."""


# ---------------------------------------------------------------------------
# Falhas de tarefa (sempre capturadas no TaskResult)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ExecutionFailure(SeqflowException):
    """Falha ocorrida dentro do corpo de execução de um módulo."""


@dataclass(frozen=True, eq=False)
class NoResultFailure(ExecutionFailure):
    """O módulo retornou sem produzir um TaskResult."""


@dataclass(frozen=True, eq=False)
class InvalidResultFailure(ExecutionFailure):
    """O módulo retornou um objeto que não é o TaskResult do seu contexto."""


# ---------------------------------------------------------------------------
# Recursos (não fatais)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ResourceFailure(SeqflowException):
    """Recurso auxiliar indisponível; a execução prossegue."""


@dataclass(frozen=True, eq=False)
class LogSinkUnavailable(ResourceFailure):
    """Arquivo de log da tarefa não pôde ser aberto."""


@dataclass(frozen=True, eq=False)
class SymlinkFailure(ResourceFailure):
    """Link simbólico no diretório de saída não pôde ser criado."""


# ---------------------------------------------------------------------------
# Persistência de contexto
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ContextSerializationError(SeqflowException):
    """Stream de TaskContext ilegível ou incompatível com o step local."""


@dataclass(frozen=True, eq=False)
class ContextVersionMismatchError(ContextSerializationError):
    """Stream de TaskContext gerado por uma versão incompatível do formato."""
