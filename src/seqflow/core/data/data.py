# src/seqflow/core/data/data.py
"""
Data: handle nomeado e tipado para um ou mais arquivos.

Um Data é escalar (um conjunto ordenado de arquivos de um DataFormat) ou
uma lista ordenada de elementos escalares, cada um com nome e metadados
próprios.

Decisões arquiteturais:
    - Um Data de saída é do task que o produz até o envio do token; a
      partir daí circula apenas como ReadOnlyData
    - `ReadOnlyData` é um snapshot: mutações posteriores do produtor não
      aparecem nele e qualquer mutador levanta ReadOnlyDataError
    - O nome do arquivo de um Data de saída é derivado via FileNaming no
      diretório de trabalho do step produtor (`DataOrigin`)

Invariantes:
    - Nomes de dados são alfanuméricos ASCII (`^[A-Za-z0-9]+$`)
    - Um Data escalar nunca tem mais arquivos que `format.max_files`
    - Nomes de elementos são únicos dentro de uma lista
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from seqflow.core.exceptions import DataBindingError, ProgrammingError, ReadOnlyDataError
from .formats import CompressionType, DataFormat, DataFormatRegistry
from .naming import FileNaming

DEFAULT_NAME_PREFIX = "data"

_default_names = itertools.count(1)


@dataclass(frozen=True)
class DataOrigin:
    """Onde e por quem os arquivos de um Data de saída são gerados."""

    step_id: str
    port_name: str
    working_dir: Path
    compression: CompressionType = CompressionType.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "port_name": self.port_name,
            "working_dir": str(self.working_dir),
            "compression": self.compression.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataOrigin":
        return cls(
            step_id=data["step_id"],
            port_name=data["port_name"],
            working_dir=Path(data["working_dir"]),
            compression=CompressionType(data.get("compression", CompressionType.NONE.value)),
        )


class Data:
    """Handle mutável de dados (ver ReadOnlyData para a visão de leitura)."""

    def __init__(
        self,
        data_format: DataFormat,
        name: Optional[str] = None,
        *,
        is_list: bool = False,
        files: Optional[Iterable[Union[str, Path]]] = None,
        metadata: Optional[Mapping[str, str]] = None,
        part: int = -1,
        origin: Optional[DataOrigin] = None,
    ) -> None:
        if not isinstance(data_format, DataFormat):
            raise TypeError(f"Expected DataFormat, received {type(data_format).__name__}")

        self._format = data_format
        self._is_list = bool(is_list)
        self._origin = origin
        self._part = max(-1, int(part))
        self._elements: List[Data] = []
        self._files: List[Path] = []
        self._metadata: Dict[str, str] = {}
        self._read_only = False

        if name is None:
            self._name = f"{DEFAULT_NAME_PREFIX}{next(_default_names)}"
            self._default_name = True
        else:
            self._name = _checked_name(name)
            self._default_name = False

        if files:
            self.set_files(files)
        for key, value in (metadata or {}).items():
            self.set_metadata(key, value)

    # ------------------------------------------------------------------
    # Identidade
    # ------------------------------------------------------------------

    @property
    def format(self) -> DataFormat:
        return self._format

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_default_name(self) -> bool:
        return self._default_name

    @property
    def is_list(self) -> bool:
        return self._is_list

    @property
    def is_read_only(self) -> bool:
        return self._read_only

    @property
    def part(self) -> int:
        return self._part

    @property
    def origin(self) -> Optional[DataOrigin]:
        return self._origin

    def set_name(self, name: str) -> None:
        self._check_writable()
        self._name = _checked_name(name)
        self._default_name = False

    # ------------------------------------------------------------------
    # Lista
    # ------------------------------------------------------------------

    def list_elements(self) -> List["Data"]:
        if not self._is_list:
            return [self]
        return list(self._elements)

    def add_data_to_list(self, name: str, part: int = -1) -> "Data":
        """Cria e retorna um novo elemento escalar desta lista."""
        self._check_writable()
        if not self._is_list:
            raise ProgrammingError(
                message=f"Cannot add an element to the scalar data {self._name}",
                details={"data": self._name, "format": self._format.name},
            )
        checked = _checked_name(name)
        if any(e.name == checked for e in self._elements):
            raise ValueError(f"Data list {self._name} already contains an element named {checked}")

        element = Data(self._format, checked, part=part, origin=self._origin)
        self._elements.append(element)
        return element

    def size(self) -> int:
        return len(self._elements) if self._is_list else len(self._files)

    # ------------------------------------------------------------------
    # Arquivos
    # ------------------------------------------------------------------

    @property
    def files(self) -> List[Path]:
        return list(self._files)

    def set_file(self, path: Union[str, Path]) -> None:
        self.set_files([path])

    def set_files(self, paths: Iterable[Union[str, Path]]) -> None:
        self._check_writable()
        self._check_scalar("set files")
        resolved = [Path(p) for p in paths]
        if len(resolved) > self._format.max_files:
            raise ValueError(
                f"Data {self._name} accepts at most {self._format.max_files} file(s) "
                f"for format {self._format.name}, received {len(resolved)}"
            )
        self._files = resolved

    def get_data_file(self, index: int = -1) -> Path:
        """
        Retorna o arquivo de índice `index`.

        Se o arquivo ainda não estiver vinculado, o nome é derivado via
        FileNaming no diretório de trabalho do step produtor e registrado.
        Formatos multiarquivo exigem `index >= 0`.
        """
        self._check_scalar("get a data file")

        multi = self._format.is_multi_files
        if multi and index < 0:
            raise ValueError(f"Format {self._format.name} is multi-file: a file index is required")
        if index >= self._format.max_files:
            raise ValueError(
                f"File index {index} out of range for format {self._format.name} "
                f"(max_files={self._format.max_files})"
            )

        position = max(index, 0)
        if position < len(self._files):
            return self._files[position]

        if self._origin is None:
            raise DataBindingError(
                message=f"Data {self._name} has no file #{position} and no producing step",
                details={"data": self._name, "index": index},
            )

        self._check_writable()
        naming = FileNaming(
            self._origin.step_id,
            self._origin.port_name,
            self._format,
            self._name,
            file_index=index if multi else -1,
            part=self._part,
            compression=self._origin.compression,
        )
        path = naming.file(self._origin.working_dir)

        while len(self._files) < position:
            self._files.append(self._derived_path(len(self._files)))
        self._files.append(path)
        return path

    def _derived_path(self, index: int) -> Path:
        origin = self._origin
        assert origin is not None
        return FileNaming(
            origin.step_id,
            origin.port_name,
            self._format,
            self._name,
            file_index=index,
            part=self._part,
            compression=origin.compression,
        ).file(origin.working_dir)

    # ------------------------------------------------------------------
    # Metadados
    # ------------------------------------------------------------------

    @property
    def metadata(self) -> Mapping[str, str]:
        return MappingProxyType(self._metadata)

    def set_metadata(self, key: str, value: str) -> None:
        self._check_writable()
        if not isinstance(key, str) or not key:
            raise ValueError("Metadata key must be a non-empty string")
        self._metadata[key] = str(value)

    # ------------------------------------------------------------------
    # Visões
    # ------------------------------------------------------------------

    def read_only(self) -> "ReadOnlyData":
        return ReadOnlyData(self)

    def _check_writable(self) -> None:
        if self._read_only:
            raise ReadOnlyDataError(
                message=f"Data {self._name} is read-only",
                details={"data": self._name},
                hint="Input data and data carried by tokens cannot be modified",
            )

    def _check_scalar(self, action: str) -> None:
        if self._is_list:
            raise ProgrammingError(
                message=f"Cannot {action} on the list data {self._name}",
                details={"data": self._name},
                hint="Use list_elements() or add_data_to_list()",
            )

    # ------------------------------------------------------------------
    # Serialização
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self._format.name,
            "name": self._name,
            "default_name": self._default_name,
            "is_list": self._is_list,
            "part": self._part,
            "files": [str(f) for f in self._files],
            "metadata": dict(self._metadata),
            "origin": self._origin.to_dict() if self._origin is not None else None,
            "elements": [e.to_dict() for e in self._elements],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], registry: DataFormatRegistry) -> "Data":
        origin = data.get("origin")
        result = cls(
            registry.lookup(data["format"]),
            data["name"],
            is_list=bool(data.get("is_list", False)),
            part=int(data.get("part", -1)),
            origin=DataOrigin.from_dict(origin) if origin else None,
        )
        result._default_name = bool(data.get("default_name", False))
        if not result._is_list:
            result._files = [Path(f) for f in data.get("files", [])]
        result._metadata = {str(k): str(v) for k, v in (data.get("metadata") or {}).items()}
        result._elements = [cls.from_dict(e, registry) for e in data.get("elements", [])]
        return result

    def __repr__(self) -> str:
        kind = "list" if self._is_list else "scalar"
        return f"{type(self).__name__}(name={self._name!r}, format={self._format.name!r}, {kind}, size={self.size()})"


class ReadOnlyData(Data):
    """Snapshot somente leitura de um Data."""

    def __init__(self, source: Data) -> None:
        if not isinstance(source, Data):
            raise TypeError(f"Expected Data, received {type(source).__name__}")

        self._format = source._format
        self._is_list = source._is_list
        self._origin = source._origin
        self._part = source._part
        self._name = source._name
        self._default_name = source._default_name
        self._files = list(source._files)
        self._metadata = dict(source._metadata)
        self._elements = [
            e if isinstance(e, ReadOnlyData) else ReadOnlyData(e) for e in source._elements
        ]
        self._read_only = True

    def read_only(self) -> "ReadOnlyData":
        return self


def _checked_name(name: str) -> str:
    if name is None:
        raise TypeError("Data name cannot be None")
    if not FileNaming.is_data_name_valid(name):
        raise ValueError(f"Invalid data name: {name!r} (only ASCII letters and digits allowed)")
    return name
