# src/seqflow/core/data/naming.py
"""
Convenção de nomes dos arquivos produzidos por steps.

Formato:

    <stepid>_<port>_<prefixo do formato>_<nome do dado>[_file<N>][_part<M>]<ext>[<compressão>]

Exemplos:
    filterreads_output_reads_s1_file0.fq
    filterreads_output_reads_s2_file1_part4.fq.bz2
    genericindexgenerator_output_bowtieindex_genome.zip

Regras de validação:
    - step id, nome de porta e prefixo de formato: `^[a-z0-9]+$`
    - nome de dado: `^[A-Za-z0-9]+$`
    - índice de arquivo e parte: -1 significa ausente
    - formatos multiarquivo exigem o índice de arquivo

O nome derivado é determinístico: o mesmo (step, porta, formato, dado,
índice, parte, compressão) produz sempre o mesmo arquivo, o que permite
religar saídas de tarefas já executadas.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Union

from .formats import CompressionType, DataFormat, DataFormatRegistry

_LOWER_ALNUM = re.compile(r"^[a-z0-9]+$")
_ALNUM = re.compile(r"^[A-Za-z0-9]+$")
_FILE_FIELD = re.compile(r"^file(\d+)$")
_PART_FIELD = re.compile(r"^part(\d+)$")

SEPARATOR = "_"


def _check_not_none(value, what: str) -> None:
    if value is None:
        raise TypeError(f"{what} cannot be None")


class FileNaming:
    """Nome de arquivo de saída decomposto em seus campos."""

    def __init__(
        self,
        step_id: str,
        port_name: str,
        data_format: DataFormat,
        data_name: str,
        *,
        file_index: int = -1,
        part: int = -1,
        compression: CompressionType = CompressionType.NONE,
        extension: Optional[str] = None,
    ) -> None:
        self.step_id = step_id
        self.port_name = port_name
        self.format = data_format
        self.data_name = data_name
        self.file_index = file_index
        self.part = part
        self.compression = compression
        if extension is not None:
            self._extension = extension

    # ------------------------------------------------------------------
    # Campos validados
    # ------------------------------------------------------------------

    @property
    def step_id(self) -> str:
        return self._step_id

    @step_id.setter
    def step_id(self, value: str) -> None:
        _check_not_none(value, "step id")
        if not self.is_step_id_valid(value):
            raise ValueError(f"Invalid step id: {value!r}")
        self._step_id = value

    @property
    def port_name(self) -> str:
        return self._port_name

    @port_name.setter
    def port_name(self, value: str) -> None:
        _check_not_none(value, "port name")
        if not self.is_port_name_valid(value):
            raise ValueError(f"Invalid port name: {value!r}")
        self._port_name = value

    @property
    def data_name(self) -> str:
        return self._data_name

    @data_name.setter
    def data_name(self, value: str) -> None:
        _check_not_none(value, "data name")
        if not self.is_data_name_valid(value):
            raise ValueError(f"Invalid data name: {value!r}")
        self._data_name = value

    @property
    def format(self) -> DataFormat:
        return self._format

    @format.setter
    def format(self, value: DataFormat) -> None:
        _check_not_none(value, "data format")
        if not isinstance(value, DataFormat):
            raise TypeError(f"Expected DataFormat, received {type(value).__name__}")
        self._format = value
        self._extension = value.default_extension

    @property
    def file_index(self) -> int:
        return self._file_index

    @file_index.setter
    def file_index(self, value: int) -> None:
        self._file_index = max(-1, int(value))

    @property
    def part(self) -> int:
        return self._part

    @part.setter
    def part(self, value: int) -> None:
        self._part = max(-1, int(value))

    @property
    def compression(self) -> CompressionType:
        return self._compression

    @compression.setter
    def compression(self, value: CompressionType) -> None:
        _check_not_none(value, "compression")
        self._compression = CompressionType(value)

    @property
    def extension(self) -> str:
        return self._extension

    # ------------------------------------------------------------------
    # Composição
    # ------------------------------------------------------------------

    def filename(self) -> str:
        return (
            self.file_prefix(self.step_id, self.port_name, self.format)
            + self.file_middle(self.data_name, self.file_index, self.part)
            + self.file_suffix(self.extension, self.compression.extension)
        )

    def file(self, directory: Union[str, Path]) -> Path:
        return Path(directory) / self.filename()

    def __str__(self) -> str:
        return self.filename()

    def __repr__(self) -> str:
        return f"FileNaming({self.filename()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileNaming):
            return NotImplemented
        return self.filename() == other.filename() and self.format == other.format

    def __hash__(self) -> int:
        return hash(self.filename())

    # ------------------------------------------------------------------
    # Helpers estáticos
    # ------------------------------------------------------------------

    @staticmethod
    def file_prefix(step_id: str, port_name: str, data_format: Union[DataFormat, str]) -> str:
        _check_not_none(step_id, "step id")
        _check_not_none(port_name, "port name")
        _check_not_none(data_format, "data format")
        prefix = data_format.prefix if isinstance(data_format, DataFormat) else data_format
        return f"{step_id}{SEPARATOR}{port_name}{SEPARATOR}{prefix}{SEPARATOR}"

    @staticmethod
    def file_middle(data_name: str, file_index: int, part: int) -> str:
        _check_not_none(data_name, "data name")
        middle = data_name
        if file_index >= 0:
            middle += f"{SEPARATOR}file{file_index}"
        if part >= 0:
            middle += f"{SEPARATOR}part{part}"
        return middle

    @staticmethod
    def file_suffix(
        extension: Union[DataFormat, str],
        compression: Union[CompressionType, str],
    ) -> str:
        _check_not_none(extension, "extension")
        _check_not_none(compression, "compression")
        ext = extension.default_extension if isinstance(extension, DataFormat) else extension
        comp = compression.extension if isinstance(compression, CompressionType) else compression
        return ext + comp

    @staticmethod
    def is_step_id_valid(value: Optional[str]) -> bool:
        return isinstance(value, str) and bool(_LOWER_ALNUM.match(value))

    @staticmethod
    def is_port_name_valid(value: Optional[str]) -> bool:
        return isinstance(value, str) and bool(_LOWER_ALNUM.match(value))

    @staticmethod
    def is_format_prefix_valid(value: Optional[str]) -> bool:
        return isinstance(value, str) and bool(_LOWER_ALNUM.match(value))

    @staticmethod
    def is_data_name_valid(value: Optional[str]) -> bool:
        return isinstance(value, str) and bool(_ALNUM.match(value))

    @staticmethod
    def to_valid_name(value: str) -> str:
        """Remove os caracteres não alfanuméricos ASCII."""
        _check_not_none(value, "name")
        return "".join(c for c in value if c.isascii() and c.isalnum())

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, filename: Union[str, Path], registry: DataFormatRegistry) -> "FileNaming":
        """
        Decompõe um nome de arquivo seguindo a convenção.

        Raises:
            ValueError: se o nome não seguir a convenção ou o prefixo de
                formato não estiver registrado.
        """
        _check_not_none(filename, "filename")
        name = Path(filename).name

        compression = CompressionType.from_filename(name)
        base = CompressionType.remove_extension(name)

        stem, dot, ext = base.rpartition(".")
        if not dot or not stem:
            raise ValueError(f"Filename without extension: {name}")
        extension = "." + ext

        fields = stem.split(SEPARATOR)
        if len(fields) < 4:
            raise ValueError(f"Filename does not follow the naming convention: {name}")

        step_id, port_name, prefix, data_name = fields[:4]
        fmt = registry.lookup_by_prefix(prefix)
        if fmt is None:
            raise ValueError(f"Unknown data format prefix {prefix!r} in filename: {name}")

        file_index = -1
        part = -1
        rest = fields[4:]
        if rest:
            m = _FILE_FIELD.match(rest[0])
            if m:
                file_index = int(m.group(1))
                rest = rest[1:]
        if rest:
            m = _PART_FIELD.match(rest[0])
            if m:
                part = int(m.group(1))
                rest = rest[1:]
        if rest:
            raise ValueError(f"Unexpected fields {rest} in filename: {name}")

        return cls(
            step_id,
            port_name,
            fmt,
            data_name,
            file_index=file_index,
            part=part,
            compression=compression,
            extension=extension,
        )

    @classmethod
    def is_filename_valid(cls, filename: Union[str, Path, None], registry: DataFormatRegistry) -> bool:
        if filename is None:
            return False
        try:
            naming = cls.parse(filename, registry)
        except (TypeError, ValueError):
            return False

        if naming.extension.lower() not in naming.format.extensions:
            return False

        if naming.format.is_multi_files and naming.file_index < 0:
            return False

        return True
