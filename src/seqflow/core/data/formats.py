# src/seqflow/core/data/formats.py
"""
Formatos de dados (descritores imutáveis) e seu registry.

Um `DataFormat` descreve uma classe de arquivos: prefixo usado nos nomes
de arquivo, extensões aceitas, cardinalidade de arquivos por instância e
chaves de metadados associadas. Os formatos concretos não fazem parte do
core: são declarados em um catálogo YAML/JSON e registrados em um
`DataFormatRegistry` explícito.

Exemplo de catálogo:

    formats:
      - name: reads_fastq
        prefix: reads
        extensions: [".fq", ".fastq"]
        max_files: 2
        sample_metadata_key: reads

Invariantes:
    - `name` e `prefix` são únicos no registry
    - a primeira extensão é a extensão padrão
    - `max_files >= 1`
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from seqflow.core.config.loader import load_mapping
from seqflow.core.exceptions import (
    ConfigurationError,
    DuplicateDataFormatError,
    UnknownDataFormatError,
)

_PREFIX_PATTERN = re.compile(r"^[a-z0-9]+$")


class CompressionType(str, Enum):
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"

    @property
    def extension(self) -> str:
        return _COMPRESSION_EXTENSIONS[self]

    @classmethod
    def from_extension(cls, ext: str) -> "CompressionType":
        for ctype, value in _COMPRESSION_EXTENSIONS.items():
            if value and value == ext.lower():
                return ctype
        return cls.NONE

    @classmethod
    def from_filename(cls, filename: str) -> "CompressionType":
        """Detecta a compressão pela última extensão do nome de arquivo."""
        return cls.from_extension(Path(str(filename)).suffix)

    @staticmethod
    def remove_extension(filename: str) -> str:
        """Remove a extensão de compressão, se houver."""
        name = str(filename)
        ctype = CompressionType.from_filename(name)
        if ctype is CompressionType.NONE:
            return name
        return name[: -len(ctype.extension)]


_COMPRESSION_EXTENSIONS: Dict[CompressionType, str] = {
    CompressionType.NONE: "",
    CompressionType.GZIP: ".gz",
    CompressionType.BZIP2: ".bz2",
}


def _normalize_extension(ext: str) -> str:
    ext = str(ext).strip().lower()
    if not ext:
        return ext
    return ext if ext.startswith(".") else "." + ext


@dataclass(frozen=True)
class DataFormat:
    """
    Descritor imutável de formato de dados.

    Campos:
        - name: identificador único do formato
        - prefix: prefixo usado em FileNaming (`^[a-z0-9]+$`)
        - extensions: extensões aceitas; a primeira é a padrão
        - max_files: 1 = arquivo único; > 1 = multiarquivo (p.ex. pares de reads)
        - one_file_per_analysis: formato não pode ser lista
        - design_metadata_key / sample_metadata_key: chaves de metadados
    """

    name: str
    prefix: str
    extensions: Tuple[str, ...]
    max_files: int = 1
    one_file_per_analysis: bool = False
    design_metadata_key: Optional[str] = None
    sample_metadata_key: Optional[str] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ConfigurationError(message="DataFormat name cannot be empty")

        if not isinstance(self.prefix, str) or not _PREFIX_PATTERN.match(self.prefix):
            raise ConfigurationError(
                message=f"Invalid prefix for data format {self.name}: {self.prefix!r}",
                details={"format": self.name, "prefix": self.prefix},
                hint="Use only lowercase ASCII letters and digits",
            )

        exts = tuple(_normalize_extension(e) for e in (self.extensions or ()))
        exts = tuple(e for e in exts if e)
        if not exts:
            raise ConfigurationError(
                message=f"Data format {self.name} declares no extension",
                details={"format": self.name},
            )
        object.__setattr__(self, "extensions", exts)

        if isinstance(self.max_files, bool) or not isinstance(self.max_files, int) or self.max_files < 1:
            raise ConfigurationError(
                message=f"Invalid max_files for data format {self.name}: {self.max_files!r}",
                details={"format": self.name, "max_files": self.max_files},
            )

    @property
    def default_extension(self) -> str:
        return self.extensions[0]

    @property
    def is_multi_files(self) -> bool:
        return self.max_files > 1

    @property
    def is_list_capable(self) -> bool:
        return not self.one_file_per_analysis

    def __str__(self) -> str:
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "prefix": self.prefix,
            "extensions": list(self.extensions),
            "max_files": self.max_files,
            "one_file_per_analysis": self.one_file_per_analysis,
            "design_metadata_key": self.design_metadata_key,
            "sample_metadata_key": self.sample_metadata_key,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DataFormat":
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                message="Data format entry must be a mapping",
                details={"received": type(data).__name__},
            )
        extensions = data.get("extensions")
        if extensions is None and data.get("extension") is not None:
            extensions = [data["extension"]]
        if isinstance(extensions, str):
            extensions = [extensions]
        return cls(
            name=data.get("name", ""),
            prefix=data.get("prefix", ""),
            extensions=tuple(extensions or ()),
            max_files=data.get("max_files", 1),
            one_file_per_analysis=bool(data.get("one_file_per_analysis", False)),
            design_metadata_key=data.get("design_metadata_key"),
            sample_metadata_key=data.get("sample_metadata_key"),
            description=str(data.get("description", "")),
        )


FormatRef = Union[str, DataFormat]


@dataclass
class DataFormatRegistry:
    """
    Registry explícito de formatos de dados.

    Deve estar completamente populado antes da declaração de portas. As
    consultas são seguras entre threads.
    """

    _by_name: Dict[str, DataFormat] = field(default_factory=dict)
    _by_prefix: Dict[str, DataFormat] = field(default_factory=dict)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(self, fmt: DataFormat) -> DataFormat:
        if not isinstance(fmt, DataFormat):
            raise TypeError(f"Expected DataFormat, received {type(fmt).__name__}")

        with self._lock:
            if fmt.name in self._by_name:
                raise DuplicateDataFormatError(
                    message=f"Data format already registered: {fmt.name}",
                    details={"format": fmt.name},
                )
            if fmt.prefix in self._by_prefix:
                raise DuplicateDataFormatError(
                    message=f"Data format prefix already registered: {fmt.prefix}",
                    details={
                        "format": fmt.name,
                        "prefix": fmt.prefix,
                        "registered_by": self._by_prefix[fmt.prefix].name,
                    },
                )
            self._by_name[fmt.name] = fmt
            self._by_prefix[fmt.prefix] = fmt
        return fmt

    def register_all(self, formats: Iterable[DataFormat]) -> None:
        for fmt in formats:
            self.register(fmt)

    def lookup(self, name: str) -> DataFormat:
        with self._lock:
            fmt = self._by_name.get(name)
        if fmt is None:
            raise UnknownDataFormatError(
                message=f"Unknown data format: {name}",
                details={"format": name},
            )
        return fmt

    def lookup_by_prefix(self, prefix: str) -> Optional[DataFormat]:
        with self._lock:
            return self._by_prefix.get(prefix)

    def lookup_by_extension(self, ext: str) -> Set[DataFormat]:
        """Formatos que aceitam a extensão (com ou sem ponto, case-insensitive)."""
        wanted = _normalize_extension(ext)
        with self._lock:
            return {f for f in self._by_name.values() if wanted in f.extensions}

    def resolve(self, ref: FormatRef) -> DataFormat:
        """Aceita um DataFormat registrado ou o nome de um."""
        if isinstance(ref, DataFormat):
            registered = self.lookup(ref.name)
            if registered != ref:
                raise UnknownDataFormatError(
                    message=f"Data format {ref.name} differs from the registered one",
                    details={"format": ref.name},
                )
            return registered
        return self.lookup(ref)

    def all_formats(self) -> List[DataFormat]:
        with self._lock:
            return sorted(self._by_name.values(), key=lambda f: f.name)

    def __contains__(self, item: object) -> bool:
        name = item.name if isinstance(item, DataFormat) else item
        with self._lock:
            return name in self._by_name

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_name)


def load_data_formats(
    path: Union[str, Path],
    registry: Optional[DataFormatRegistry] = None,
) -> DataFormatRegistry:
    """
    Popula (ou cria) um registry a partir de um catálogo YAML/JSON.

    O catálogo deve conter a chave `formats` com uma lista de mapeamentos.
    """
    registry = registry if registry is not None else DataFormatRegistry()
    raw = load_mapping(path)

    entries = raw.get("formats", [])
    if not isinstance(entries, list):
        raise ConfigurationError(
            message="The 'formats' key of a data format catalog must be a list",
            details={"path": str(path)},
        )

    for entry in entries:
        registry.register(DataFormat.from_dict(entry))
    return registry
