# src/seqflow/core/pipeline/ports.py
"""
Modelo de portas (entradas e saídas tipadas de um módulo).

Uma porta é um slot nomeado associado a exatamente um DataFormat, com
cardinalidade (escalar ou lista) e compressão esperada. Portas são
declaradas durante a configuração do módulo, por meio de builders, e são
imutáveis depois disso.

Regras validadas na construção (ConfigurationError):
    - nome não vazio e em `^[a-z0-9]+$`   → InvalidPortNameError
    - nome único dentro do conjunto        → DuplicatePortNameError
    - exatamente um DataFormat por porta   → ConfigurationError

Conjuntos de entrada e de saída são namespaces independentes: um módulo
pode ter uma entrada e uma saída com o mesmo nome.

Resolução por formato (`port_for_format`):
    - exatamente uma porta com o formato → a porta
    - nenhuma                            → PortNotFoundError
    - mais de uma                        → AmbiguousFormatError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Generic, Iterator, List, Optional, Tuple, Type, TypeVar, Union

from seqflow.core.data.formats import CompressionType, DataFormat, DataFormatRegistry
from seqflow.core.data.naming import FileNaming
from seqflow.core.exceptions import (
    AmbiguousFormatError,
    ConfigurationError,
    DuplicatePortNameError,
    InvalidPortNameError,
    PortNotFoundError,
    UnknownPortError,
)

DEFAULT_SINGLE_INPUT_PORT_NAME = "input"
DEFAULT_SINGLE_OUTPUT_PORT_NAME = "output"


@dataclass(frozen=True)
class Port:
    name: str
    format: DataFormat
    is_list: bool = False
    compression: CompressionType = CompressionType.NONE

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class InputPort(Port):
    """Porta de entrada."""


@dataclass(frozen=True)
class OutputPort(Port):
    """Porta de saída."""


P = TypeVar("P", bound=Port)


class PortSet(Generic[P]):
    """Conjunto imutável e ordenado de portas de um mesmo sentido."""

    direction = "port"

    def __init__(self, ports: Tuple[P, ...] = ()) -> None:
        self._ports: Tuple[P, ...] = tuple(ports)
        self._by_name: Dict[str, P] = {p.name: p for p in self._ports}

    def get(self, name: str) -> P:
        port = self._by_name.get(name)
        if port is None:
            raise UnknownPortError(
                message=f"Unknown {self.direction} port: {name}",
                details={"port": name, "declared": self.names()},
            )
        return port

    def names(self) -> List[str]:
        return [p.name for p in self._ports]

    def ports_with_format(self, data_format: DataFormat) -> List[P]:
        return [p for p in self._ports if p.format == data_format]

    def port_for_format(self, data_format: DataFormat) -> P:
        if data_format is None:
            raise ConfigurationError(message="Data format cannot be None")

        candidates = self.ports_with_format(data_format)
        if not candidates:
            raise PortNotFoundError(
                message=f"No {self.direction} port with format: {data_format.name}",
                details={"format": data_format.name, "declared": self.names()},
            )
        if len(candidates) > 1:
            raise AmbiguousFormatError(
                message=f"More than one {self.direction} port with format: {data_format.name}",
                details={"format": data_format.name, "ports": [p.name for p in candidates]},
                hint="Look up the port by name instead",
            )
        return candidates[0]

    def resolve(self, ref: Union[str, DataFormat]) -> P:
        """Porta por nome (str) ou por formato (DataFormat)."""
        if isinstance(ref, DataFormat):
            return self.port_for_format(ref)
        return self.get(ref)

    def first(self) -> Optional[P]:
        return self._ports[0] if self._ports else None

    def is_empty(self) -> bool:
        return not self._ports

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[P]:
        return iter(self._ports)

    def __len__(self) -> int:
        return len(self._ports)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PortSet):
            return NotImplemented
        return type(self) is type(other) and self._ports == other._ports

    def __hash__(self) -> int:
        return hash(self._ports)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.names()})"


class InputPorts(PortSet[InputPort]):
    direction = "input"


class OutputPorts(PortSet[OutputPort]):
    direction = "output"


class _PortsBuilder(Generic[P]):
    port_class: Type[Port] = Port

    def __init__(self, registry: Optional[DataFormatRegistry] = None) -> None:
        self._registry = registry
        self._ports: List[P] = []
        self._names: set = set()

    def add_port(
        self,
        name: str,
        data_format: Union[DataFormat, str],
        is_list: bool = False,
        compression: CompressionType = CompressionType.NONE,
    ) -> "_PortsBuilder[P]":
        if name is None or not isinstance(name, str) or not name:
            raise InvalidPortNameError(message="Port name cannot be empty")
        if not FileNaming.is_port_name_valid(name):
            raise InvalidPortNameError(
                message=f"Invalid port name: {name!r}",
                details={"port": name},
                hint="Use only lowercase ASCII letters and digits",
            )
        if name in self._names:
            raise DuplicatePortNameError(
                message=f"Port name already declared: {name}",
                details={"port": name},
            )

        fmt = self._resolve_format(name, data_format)
        port = self.port_class(name, fmt, bool(is_list), CompressionType(compression))
        self._ports.append(port)  # type: ignore[arg-type]
        self._names.add(name)
        return self

    def _resolve_format(self, name: str, data_format: Union[DataFormat, str, None]) -> DataFormat:
        if isinstance(data_format, DataFormat):
            return data_format
        if isinstance(data_format, str) and data_format:
            if self._registry is None:
                raise ConfigurationError(
                    message=f"Port {name} references format {data_format!r} by name but no registry was given",
                    details={"port": name, "format": data_format},
                )
            return self._registry.lookup(data_format)
        raise ConfigurationError(
            message=f"Port {name} must declare exactly one data format",
            details={"port": name},
        )


class InputPortsBuilder(_PortsBuilder[InputPort]):
    port_class = InputPort

    def create(self) -> InputPorts:
        return InputPorts(tuple(self._ports))


class OutputPortsBuilder(_PortsBuilder[OutputPort]):
    port_class = OutputPort

    def create(self) -> OutputPorts:
        return OutputPorts(tuple(self._ports))


def single_input_port(
    data_format: DataFormat,
    name: str = DEFAULT_SINGLE_INPUT_PORT_NAME,
    is_list: bool = False,
) -> InputPorts:
    return InputPortsBuilder().add_port(name, data_format, is_list).create()


def single_output_port(
    data_format: DataFormat,
    name: str = DEFAULT_SINGLE_OUTPUT_PORT_NAME,
    is_list: bool = False,
) -> OutputPorts:
    return OutputPortsBuilder().add_port(name, data_format, is_list).create()


def no_input_port() -> InputPorts:
    return InputPorts()


def no_output_port() -> OutputPorts:
    return OutputPorts()
