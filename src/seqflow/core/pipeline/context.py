# src/seqflow/core/pipeline/context.py
"""
TaskContext: vínculo de dados concretos às portas de um step para uma
única invocação.

Um TaskContext possui:
    - identidade única no processo, atribuída de forma monotônica
    - nome legível, derivado sob demanda (um nome explícito prevalece)
    - vínculo somente leitura de Data a cada porta de entrada
    - vínculo de escrita de Data a cada porta de saída
    - sinal de cancelamento cooperativo
    - snapshot explícito dos Settings

Decisões arquiteturais:
    - O vínculo é validado na construção: porta não declarada, entrada
      ausente, formato ou cardinalidade incompatíveis → DataBindingError
    - Portas de saída sem vínculo recebem um Data novo, com nomes de
      arquivo derivados no diretório de trabalho do step
    - As guardas "executado uma vez" e "tokens enviados uma vez" vivem no
      próprio contexto, protegidas por lock, para que dois runners sobre o
      mesmo contexto falhem imediatamente
    - Persistência em envelope JSON versionado junto com os Settings

Nome padrão (quando nenhum nome explícito foi definido):
    1. nomes explícitos dos Data escalares de entrada, unidos por "-"
    2. senão, nomes base dos arquivos desses Data
    3. senão, nomes dos Data de entrada do tipo lista
    4. senão, "context<id>"
"""

from __future__ import annotations

import itertools
import json
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from seqflow.core.config.errors import ConfigError
from seqflow.core.config.settings import Settings
from seqflow.core.data.data import Data, DataOrigin, ReadOnlyData
from seqflow.core.data.formats import DataFormat, DataFormatRegistry
from seqflow.core.exceptions import (
    ContextAlreadyRunError,
    ContextSerializationError,
    ContextVersionMismatchError,
    DataBindingError,
    TokensAlreadySentError,
    UnknownDataFormatError,
)
from .ports import Port
from .step import WorkflowStep

ENVELOPE_FORMAT = "seqflow.task-context"
ENVELOPE_VERSION = 1

PortRef = Union[str, DataFormat]

_ids = itertools.count(1)
_ids_lock = threading.Lock()


def _next_context_id() -> int:
    with _ids_lock:
        return next(_ids)


class TaskContext:
    def __init__(
        self,
        step: WorkflowStep,
        inputs: Optional[Mapping[str, Data]] = None,
        outputs: Optional[Mapping[str, Data]] = None,
        *,
        settings: Optional[Settings] = None,
        name: Optional[str] = None,
        context_id: Optional[int] = None,
    ) -> None:
        self._step = step
        self._settings = settings if settings is not None else step.settings
        self._id = context_id if context_id is not None else _next_context_id()

        self._name: Optional[str] = None
        if name is not None:
            self.set_name(name)

        self._inputs: Dict[str, ReadOnlyData] = self._bind_inputs(dict(inputs or {}))
        self._outputs: Dict[str, Data] = self._bind_outputs(dict(outputs or {}))

        self._cancel_event = threading.Event()
        self._claims_lock = threading.Lock()
        self._run_claimed = False
        self._tokens_claimed = False

    # ------------------------------------------------------------------
    # Vínculo
    # ------------------------------------------------------------------

    def _bind_inputs(self, inputs: Dict[str, Data]) -> Dict[str, ReadOnlyData]:
        ports = self._step.input_ports()

        for port_name in inputs:
            if port_name not in ports:
                raise DataBindingError(
                    message=f"Step {self._step.id} has no input port named {port_name}",
                    details={"step": self._step.id, "port": port_name, "declared": ports.names()},
                )

        bound: Dict[str, ReadOnlyData] = {}
        for port in ports:
            data = inputs.get(port.name)
            if data is None:
                raise DataBindingError(
                    message=f"No data bound to input port {port.name} of step {self._step.id}",
                    details={"step": self._step.id, "port": port.name},
                )
            self._check_compatible(port, data)
            bound[port.name] = data.read_only()
        return bound

    def _bind_outputs(self, outputs: Dict[str, Data]) -> Dict[str, Data]:
        ports = self._step.output_ports()

        for port_name in outputs:
            if port_name not in ports:
                raise DataBindingError(
                    message=f"Step {self._step.id} has no output port named {port_name}",
                    details={"step": self._step.id, "port": port_name, "declared": ports.names()},
                )

        bound: Dict[str, Data] = {}
        for port in ports:
            data = outputs.get(port.name)
            if data is None:
                data = Data(
                    port.format,
                    is_list=port.is_list,
                    origin=DataOrigin(self._step.id, port.name, self._step.working_dir, port.compression),
                )
            else:
                self._check_compatible(port, data)
                if data.is_read_only:
                    raise DataBindingError(
                        message=f"Output port {port.name} of step {self._step.id} needs writable data",
                        details={"step": self._step.id, "port": port.name},
                    )
            bound[port.name] = data
        return bound

    def _check_compatible(self, port: Port, data: Data) -> None:
        if not isinstance(data, Data):
            raise DataBindingError(
                message=f"Port {port.name} of step {self._step.id} must be bound to a Data",
                details={"port": port.name, "received": type(data).__name__},
            )
        if data.format != port.format:
            raise DataBindingError(
                message=(
                    f"Format mismatch on port {port.name} of step {self._step.id}: "
                    f"expected {port.format.name}, received {data.format.name}"
                ),
                details={"step": self._step.id, "port": port.name, "expected": port.format.name, "received": data.format.name},
            )
        if data.is_list != port.is_list:
            expected = "list" if port.is_list else "scalar"
            raise DataBindingError(
                message=f"Port {port.name} of step {self._step.id} expects {expected} data",
                details={"step": self._step.id, "port": port.name, "expected": expected},
            )

    # ------------------------------------------------------------------
    # Identidade
    # ------------------------------------------------------------------

    @property
    def id(self) -> int:
        return self._id

    @property
    def step(self) -> WorkflowStep:
        return self._step

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def name(self) -> str:
        if self._name is None:
            return self.default_name()
        return self._name

    @property
    def has_explicit_name(self) -> bool:
        return self._name is not None

    def set_name(self, name: str) -> None:
        if name is None:
            raise TypeError("context name cannot be None")
        name = str(name).strip()
        if not name:
            raise ValueError("context name cannot be empty")
        self._name = name

    def default_name(self) -> str:
        named = []
        file_names = []
        list_names = []

        for port in self._step.input_ports():
            data = self._inputs[port.name]
            if data.is_list:
                list_names.append(data.name)
            elif not data.is_default_name:
                named.append(data.name)
            else:
                file_names.extend(f.name for f in data.files)

        for candidates in (named, file_names, list_names):
            if candidates:
                return "-".join(candidates)
        return f"context{self._id}"

    # ------------------------------------------------------------------
    # Dados
    # ------------------------------------------------------------------

    def input_data(self, ref: PortRef) -> ReadOnlyData:
        port = self._step.input_ports().resolve(ref)
        return self._inputs[port.name]

    def output_data(self, ref: PortRef, data_name: Union[str, Data]) -> Data:
        """Data de saída da porta, nomeado com `data_name` (ou o nome do Data de origem)."""
        port = self._step.output_ports().resolve(ref)
        if isinstance(data_name, Data):
            data_name = data_name.name
        data = self._outputs[port.name]
        data.set_name(data_name)
        return data

    def bound_output(self, port_name: str) -> Data:
        """Acesso bruto ao Data de saída, sem renomeá-lo."""
        port = self._step.output_ports().get(port_name)
        return self._outputs[port.name]

    # ------------------------------------------------------------------
    # Cancelamento
    # ------------------------------------------------------------------

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel_event

    def cancel(self) -> None:
        self._cancel_event.set()

    def is_cancelled(self) -> bool:
        return self._cancel_event.is_set()

    # ------------------------------------------------------------------
    # Guardas de execução (reservadas ao runner)
    # ------------------------------------------------------------------

    def claim_run(self) -> None:
        with self._claims_lock:
            if self._run_claimed:
                raise ContextAlreadyRunError(
                    message=f"Context {self._id} of step {self._step.id} has already been run",
                    details={"context_id": self._id, "step": self._step.id},
                )
            self._run_claimed = True

    def claim_tokens(self) -> None:
        with self._claims_lock:
            if self._tokens_claimed:
                raise TokensAlreadySentError(
                    message=f"Tokens of context {self._id} of step {self._step.id} have already been sent",
                    details={"context_id": self._id, "step": self._step.id},
                )
            self._tokens_claimed = True

    @property
    def is_run_claimed(self) -> bool:
        return self._run_claimed

    @property
    def tokens_sent(self) -> bool:
        return self._tokens_claimed

    # ------------------------------------------------------------------
    # Persistência
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self._id,
            "name": self._name,
            "step_id": self._step.id,
            "inputs": {k: v.to_dict() for k, v in self._inputs.items()},
            "outputs": {k: v.to_dict() for k, v in self._outputs.items()},
        }

    def to_bytes(self) -> bytes:
        envelope = {
            "format": ENVELOPE_FORMAT,
            "version": ENVELOPE_VERSION,
            "context": self.to_dict(),
            "settings": self._settings.to_dict(),
        }
        return json.dumps(envelope, sort_keys=True, ensure_ascii=False).encode("utf-8")

    @classmethod
    def from_bytes(
        cls,
        raw: bytes,
        *,
        step: WorkflowStep,
        registry: DataFormatRegistry,
    ) -> "TaskContext":
        """
        Restaura um contexto serializado por `to_bytes`.

        Os Settings do envelope são restaurados no contexto. O id original
        é preservado: o contexto restaurado representa a mesma tarefa.
        """
        try:
            envelope = json.loads(raw.decode("utf-8") if isinstance(raw, (bytes, bytearray)) else raw)
        except (UnicodeDecodeError, ValueError) as e:
            raise ContextSerializationError(
                message=f"Unreadable task context stream: {e}",
                details={"error": str(e)},
            ) from e

        if not isinstance(envelope, dict) or envelope.get("format") != ENVELOPE_FORMAT:
            raise ContextSerializationError(message="Not a seqflow task context stream")

        version = envelope.get("version")
        if version != ENVELOPE_VERSION:
            raise ContextVersionMismatchError(
                message=f"Unsupported task context stream version: {version!r}",
                details={"expected": ENVELOPE_VERSION, "received": version},
                hint="Serialize and deserialize contexts with the same seqflow version",
            )

        try:
            payload = envelope["context"]
            settings = Settings.from_dict(envelope.get("settings") or {})
            step_id = payload["step_id"]
            if step_id != step.id:
                raise ContextSerializationError(
                    message=f"Task context belongs to step {step_id}, not {step.id}",
                    details={"expected": step.id, "received": step_id},
                )
            inputs = {k: Data.from_dict(v, registry) for k, v in payload.get("inputs", {}).items()}
            outputs = {k: Data.from_dict(v, registry) for k, v in payload.get("outputs", {}).items()}
            context_id = int(payload["id"])
            name = payload.get("name")
        except ContextSerializationError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError, UnknownDataFormatError, ConfigError) as e:
            raise ContextSerializationError(
                message=f"Malformed task context stream: {e}",
                details={"error": str(e), "error_type": type(e).__name__},
            ) from e

        return cls(step, inputs, outputs, settings=settings, name=name, context_id=context_id)

    def save(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_bytes())
        return path

    @classmethod
    def load(
        cls,
        path: Union[str, Path],
        *,
        step: WorkflowStep,
        registry: DataFormatRegistry,
    ) -> "TaskContext":
        try:
            raw = Path(path).read_bytes()
        except OSError as e:
            raise ContextSerializationError(
                message=f"Cannot read task context file: {path}",
                details={"path": str(path), "error": str(e)},
            ) from e
        return cls.from_bytes(raw, step=step, registry=registry)

    def __repr__(self) -> str:
        return f"TaskContext(id={self._id}, step={self._step.id!r}, name={self.name!r})"
