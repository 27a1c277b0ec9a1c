# src/seqflow/core/pipeline/step.py
"""
WorkflowStep: nó configurado de um workflow.

Um WorkflowStep associa um identificador de step a uma fábrica de módulos,
aos diretórios do step (trabalho, saída compartilhada, logs de tarefas),
aos settings efetivos e ao destino dos tokens emitidos.

Decisões arquiteturais:
    - O módulo é configurado uma vez (protótipo); portas vêm dele
    - `module_for_task()` devolve o protótipo se o módulo é reutilizável,
      senão uma instância nova configurada com os mesmos parâmetros
    - Requisitos e versão mínima do seqflow são verificados antes da
      configuração
    - O destino dos tokens (TokenSink) é o único canal de volta ao scheduler

Invariantes:
    - `id` segue `^[a-z0-9]+$` (participa de nomes de arquivo)
    - `configure` é chamado no máximo uma vez
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from seqflow import __version__
from seqflow.core.config.settings import Settings
from seqflow.core.data.formats import DataFormatRegistry
from seqflow.core.data.naming import FileNaming
from seqflow.core.exceptions import (
    ConfigurationError,
    IncompatibleVersionError,
    MissingRequirementError,
    ModuleNotConfiguredError,
    StepAlreadyConfiguredError,
)
from .module import ConfigurationContext, Module, Parameter, ParametersLike, Version, normalize_parameters
from .ports import InputPorts, OutputPorts
from .token import Token

logger = logging.getLogger(__name__)


class StepType(str, Enum):
    """
    - STANDARD: step comum de processamento
    - DESIGN: step de bootstrap do workflow; suas saídas já estão no lugar
    - GENERATOR: step sem entradas que gera dados de referência
    """

    STANDARD = "standard"
    DESIGN = "design"
    GENERATOR = "generator"


@runtime_checkable
class TokenSink(Protocol):
    def send_token(self, token: Token) -> None:
        ...


class TokenCollector:
    """TokenSink thread-safe que apenas acumula tokens recebidos."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: List[Token] = []

    def send_token(self, token: Token) -> None:
        with self._lock:
            self._tokens.append(token)

    @property
    def tokens(self) -> List[Token]:
        with self._lock:
            return list(self._tokens)

    def tokens_for_context(self, context_id: int) -> List[Token]:
        return [t for t in self.tokens if t.context_id == context_id]

    def tokens_for_port(self, port_name: str) -> List[Token]:
        return [t for t in self.tokens if t.port.name == port_name]

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


ModuleFactory = Callable[[], Module]
PathLike = Union[str, Path]


class WorkflowStep:
    def __init__(
        self,
        step_id: str,
        module_factory: ModuleFactory,
        *,
        working_dir: PathLike,
        output_dir: Optional[PathLike] = None,
        task_dir: Optional[PathLike] = None,
        step_type: StepType = StepType.STANDARD,
        settings: Optional[Settings] = None,
        registry: Optional[DataFormatRegistry] = None,
        token_sink: Optional[TokenSink] = None,
    ) -> None:
        if not FileNaming.is_step_id_valid(step_id):
            raise ConfigurationError(
                message=f"Invalid step id: {step_id!r}",
                details={"step": step_id},
                hint="Use only lowercase ASCII letters and digits",
            )
        if not callable(module_factory):
            raise ConfigurationError(
                message=f"Module factory of step {step_id} is not callable",
                details={"step": step_id},
            )

        self._id = step_id
        self._module_factory = module_factory
        self._type = StepType(step_type)
        self._working_dir = Path(working_dir)
        self._output_dir = Path(output_dir) if output_dir is not None else self._working_dir
        self._task_dir = Path(task_dir) if task_dir is not None else self._working_dir
        self._settings = settings if settings is not None else Settings.from_mapping()
        self._registry = registry
        self._token_sink: TokenSink = token_sink if token_sink is not None else TokenCollector()

        self._lock = threading.Lock()
        self._prototype: Optional[Module] = None
        self._parameters: Tuple[Parameter, ...] = ()

    # ------------------------------------------------------------------
    # Atributos
    # ------------------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def type(self) -> StepType:
        return self._type

    @property
    def working_dir(self) -> Path:
        return self._working_dir

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def task_dir(self) -> Path:
        return self._task_dir

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def registry(self) -> Optional[DataFormatRegistry]:
        return self._registry

    @property
    def token_sink(self) -> TokenSink:
        return self._token_sink

    @property
    def parameters(self) -> Tuple[Parameter, ...]:
        return self._parameters

    @property
    def is_configured(self) -> bool:
        return self._prototype is not None

    # ------------------------------------------------------------------
    # Configuração
    # ------------------------------------------------------------------

    def configure(self, parameters: ParametersLike = None) -> "WorkflowStep":
        with self._lock:
            if self._prototype is not None:
                raise StepAlreadyConfiguredError(
                    message=f"Step {self._id} is already configured",
                    details={"step": self._id},
                )

            params = normalize_parameters(parameters)
            module = self._module_factory()
            self._check_version(module)
            self._check_requirements(module)
            module.configure(self._configuration_context(), params)

            self._parameters = params
            self._prototype = module

        logger.debug("Step %s configured with module %s (%d parameters)", self._id, module.name, len(params))
        return self

    def _configuration_context(self) -> ConfigurationContext:
        return ConfigurationContext(
            step_id=self._id,
            settings=self._settings,
            working_dir=self._working_dir,
            registry=self._registry,
        )

    def _check_version(self, module: Module) -> None:
        required = module.required_version
        if required is None:
            return
        running = Version.parse(__version__)
        if running < required:
            raise IncompatibleVersionError(
                message=(
                    f"Module {module.name} of step {self._id} requires seqflow {required}, "
                    f"running {running}"
                ),
                details={"step": self._id, "required": str(required), "running": str(running)},
            )

    def _check_requirements(self, module: Module) -> None:
        for requirement in sorted(module.requirements(), key=str):
            if requirement.is_available():
                continue
            if requirement.optional:
                logger.warning("Optional requirement %s of step %s is not available", requirement, self._id)
                continue
            raise MissingRequirementError(
                message=f"Requirement {requirement} of step {self._id} is not available",
                details={"step": self._id, "requirement": requirement.name, "kind": requirement.kind.value},
            )

    # ------------------------------------------------------------------
    # Módulo / portas
    # ------------------------------------------------------------------

    @property
    def module(self) -> Module:
        if self._prototype is None:
            raise ModuleNotConfiguredError(
                message=f"Step {self._id} is not configured",
                details={"step": self._id},
            )
        return self._prototype

    def module_for_task(self) -> Module:
        prototype = self.module
        if prototype.reuse_instance:
            return prototype

        module = self._module_factory()
        module.configure(self._configuration_context(), self._parameters)
        return module

    def input_ports(self) -> InputPorts:
        return self.module.input_ports()

    def output_ports(self) -> OutputPorts:
        return self.module.output_ports()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def send_token(self, token: Token) -> None:
        self._token_sink.send_token(token)

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self._id,
            "type": self._type.value,
            "module": self._prototype.name if self._prototype is not None else None,
            "working_dir": str(self._working_dir),
            "output_dir": str(self._output_dir),
            "task_dir": str(self._task_dir),
        }

    def __repr__(self) -> str:
        return f"WorkflowStep(id={self._id!r}, type={self._type.value})"
