# src/seqflow/core/pipeline/module.py
"""
Contrato canônico de Módulo do seqflow.

Um módulo é a unidade plugável de trabalho de um workflow: declara portas
tipadas de entrada e saída, é configurado uma única vez com parâmetros
`(nome, valor)` e executa tarefas (TaskContext) produzindo um TaskResult.

Máquina de estados:

    Unconfigured → Configured → {Executing(ctx)}* → Sealed(ctx)

Decisões arquiteturais:
    - O engine conhece módulos apenas pelo protocolo `Module`
      (conformidade estrutural, `@runtime_checkable`)
    - `AbstractModule` concentra o ciclo de vida; subclasses implementam
      `_configure` e `execute`
    - Portas só existem após a configuração
    - Falhas de `execute` são capturadas pelo runner; o módulo deve,
      idealmente, devolver `status.create_failure(...)` por conta própria

Invariantes:
    - `configure` muda o estado exatamente uma vez
    - Parâmetro inválido → InvalidParameterError nomeando o parâmetro
    - Módulo com `reuse_instance=True` executa contextos distintos de forma
      concorrente sem vazamento de estado entre tarefas

Limites explícitos:
    - Não conhece o runner, o executor nem o Manifest
    - Não interpreta os valores de parâmetros por conta do core
"""

from __future__ import annotations

import importlib.util
import logging
import re
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import (
    TYPE_CHECKING,
    Any,
    FrozenSet,
    Iterable,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from seqflow.core.config.settings import Settings
from seqflow.core.data.formats import DataFormatRegistry
from seqflow.core.exceptions import (
    InvalidParameterError,
    ModuleNotConfiguredError,
    StepAlreadyConfiguredError,
)
from .ports import InputPorts, OutputPorts, no_input_port, no_output_port

if TYPE_CHECKING:
    from .context import TaskContext
    from .status import TaskResult, TaskStatus

logger = logging.getLogger(__name__)


class ParallelizationMode(str, Enum):
    """
    Declara se invocações concorrentes do módulo são seguras.

    - NOT_NEEDED: execução trivial, sem ganho com paralelismo
    - STANDARD: o scheduler pode executar tarefas em paralelo
    - OWN_PARALLELIZATION: o módulo paraleliza internamente; o scheduler
      deve executá-lo uma tarefa por vez
    """

    NOT_NEEDED = "not_needed"
    STANDARD = "standard"
    OWN_PARALLELIZATION = "own_parallelization"


_VERSION_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:[-+.].*)?$")


@dataclass(frozen=True, order=True)
class Version:
    major: int = 0
    minor: int = 0
    revision: int = 0

    @classmethod
    def parse(cls, text: str) -> "Version":
        if text is None:
            raise TypeError("version cannot be None")
        m = _VERSION_PATTERN.match(str(text).strip())
        if not m:
            raise ValueError(f"Invalid version: {text!r}")
        return cls(*(int(g) if g is not None else 0 for g in m.groups()))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.revision}"


_TRUE_VALUES = {"true", "yes", "y", "1", "on"}
_FALSE_VALUES = {"false", "no", "n", "0", "off"}


@dataclass(frozen=True)
class Parameter:
    """Parâmetro `(nome, valor)` repassado sem interpretação pelo core."""

    name: str
    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidParameterError(message="Parameter name cannot be empty")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "value", "" if self.value is None else str(self.value))

    @property
    def lower_value(self) -> str:
        return self.value.strip().lower()

    def int_value(self) -> int:
        try:
            return int(self.value.strip())
        except ValueError:
            raise self._invalid("an integer") from None

    def float_value(self) -> float:
        try:
            return float(self.value.strip())
        except ValueError:
            raise self._invalid("a number") from None

    def bool_value(self) -> bool:
        v = self.lower_value
        if v in _TRUE_VALUES:
            return True
        if v in _FALSE_VALUES:
            return False
        raise self._invalid("a boolean")

    def _invalid(self, expected: str) -> InvalidParameterError:
        return InvalidParameterError(
            message=f"Invalid value for parameter {self.name}: {self.value!r} is not {expected}",
            details={"parameter": self.name, "value": self.value},
        )


ParametersLike = Union[Mapping[str, Any], Iterable[Union[Parameter, Tuple[str, Any]]], None]


def normalize_parameters(parameters: ParametersLike) -> Tuple[Parameter, ...]:
    """Aceita mapping, pares `(nome, valor)` ou Parameter."""
    if parameters is None:
        return ()
    if isinstance(parameters, Mapping):
        return tuple(Parameter(str(k), v) for k, v in parameters.items())

    result = []
    for p in parameters:
        if isinstance(p, Parameter):
            result.append(p)
        else:
            name, value = p
            result.append(Parameter(str(name), value))
    return tuple(result)


class RequirementKind(str, Enum):
    EXECUTABLE = "executable"
    PYTHON_PACKAGE = "python_package"


@dataclass(frozen=True)
class Requirement:
    """Pré-requisito externo de um módulo."""

    name: str
    kind: RequirementKind = RequirementKind.EXECUTABLE
    optional: bool = False

    def is_available(self) -> bool:
        if self.kind is RequirementKind.EXECUTABLE:
            return shutil.which(self.name) is not None
        return importlib.util.find_spec(self.name) is not None

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.name}"


@dataclass(frozen=True)
class ConfigurationContext:
    """Informações disponíveis a um módulo durante `configure`."""

    step_id: str
    settings: Settings
    working_dir: Path
    registry: Optional[DataFormatRegistry] = None
    logger: logging.Logger = field(default=logger, compare=False, repr=False)


@runtime_checkable
class Module(Protocol):
    """
    Protocolo mínimo que o engine exige de um módulo.

    Atributos:
        - name, description, version, required_version: metadados puros
        - parallelization_mode: segurança de invocações concorrentes
        - reuse_instance: a mesma instância atende várias tarefas
        - create_log_files: pede um log dedicado por tarefa
    """

    name: str
    description: str
    version: Version
    required_version: Version
    parallelization_mode: ParallelizationMode
    reuse_instance: bool
    create_log_files: bool

    def input_ports(self) -> InputPorts:
        ...

    def output_ports(self) -> OutputPorts:
        ...

    def requirements(self) -> FrozenSet[Requirement]:
        ...

    def configure(self, context: ConfigurationContext, parameters: Tuple[Parameter, ...]) -> None:
        ...

    def execute(self, context: "TaskContext", status: "TaskStatus") -> "TaskResult":
        ...


class AbstractModule:
    """
    Base dos módulos concretos.

    Subclasses definem os metadados como atributos de classe, declaram
    portas em `_configure` via `declare_ports` e implementam `execute`.
    """

    name: str = ""
    description: str = ""
    version: Version = Version(1, 0, 0)
    required_version: Version = Version(2, 0, 0)
    parallelization_mode: ParallelizationMode = ParallelizationMode.STANDARD
    reuse_instance: bool = False
    create_log_files: bool = True

    def __init__(self) -> None:
        self._configured = False
        self._input_ports: InputPorts = no_input_port()
        self._output_ports: OutputPorts = no_output_port()

    @property
    def is_configured(self) -> bool:
        return self._configured

    def configure(self, context: ConfigurationContext, parameters: ParametersLike = None) -> None:
        if self._configured:
            raise StepAlreadyConfiguredError(
                message=f"Module {self.name or type(self).__name__} is already configured",
                details={"step": context.step_id},
            )
        self._configure(context, normalize_parameters(parameters))
        self._configured = True

    def _configure(self, context: ConfigurationContext, parameters: Tuple[Parameter, ...]) -> None:
        for p in parameters:
            unknown_parameter(context, p)

    def declare_ports(
        self,
        inputs: Optional[InputPorts] = None,
        outputs: Optional[OutputPorts] = None,
    ) -> None:
        if self._configured:
            raise StepAlreadyConfiguredError(
                message="Ports can only be declared during configuration",
                details={"module": self.name},
            )
        if inputs is not None:
            self._input_ports = inputs
        if outputs is not None:
            self._output_ports = outputs

    def input_ports(self) -> InputPorts:
        self._check_configured()
        return self._input_ports

    def output_ports(self) -> OutputPorts:
        self._check_configured()
        return self._output_ports

    def requirements(self) -> FrozenSet[Requirement]:
        return frozenset()

    def execute(self, context: "TaskContext", status: "TaskStatus") -> "TaskResult":
        raise NotImplementedError

    def _check_configured(self) -> None:
        if not self._configured:
            raise ModuleNotConfiguredError(
                message=f"Module {self.name or type(self).__name__} is not configured",
                hint="Call configure() before asking for ports",
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version})"


# ---------------------------------------------------------------------------
# Helpers de configuração
# ---------------------------------------------------------------------------

def get_parameter(parameters: Iterable[Parameter], name: str) -> Optional[Parameter]:
    for p in parameters:
        if p.name == name:
            return p
    return None


def invalid_configuration(context: ConfigurationContext, message: str) -> None:
    raise InvalidParameterError(
        message=f"Invalid configuration of step {context.step_id}: {message}",
        details={"step": context.step_id},
    )


def bad_parameter_value(context: ConfigurationContext, parameter: Parameter, message: str) -> None:
    raise InvalidParameterError(
        message=(
            f"Invalid value ({parameter.value}) for parameter \"{parameter.name}\" "
            f"in step {context.step_id}: {message}"
        ),
        details={"step": context.step_id, "parameter": parameter.name, "value": parameter.value},
    )


def unknown_parameter(context: ConfigurationContext, parameter: Parameter) -> None:
    raise InvalidParameterError(
        message=f"Unknown parameter for step {context.step_id}: {parameter.name}",
        details={"step": context.step_id, "parameter": parameter.name},
    )
