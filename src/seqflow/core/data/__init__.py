# src/seqflow/core/data/__init__.py
"""
Modelo de dados do seqflow.

    - formats → CompressionType, DataFormat, DataFormatRegistry
    - data    → Data (handle nomeado e tipado para arquivos) e ReadOnlyData
    - naming  → FileNaming (convenção de nomes de arquivos de saída)

O registry de formatos é um colaborador externo ao core: é populado uma
vez (tipicamente via `load_data_formats`) antes de qualquer porta ser
declarada e é passado explicitamente a quem precisar dele.
"""

from .formats import CompressionType, DataFormat, DataFormatRegistry, load_data_formats
from .data import Data, ReadOnlyData
from .naming import FileNaming

__all__ = [
    "CompressionType",
    "DataFormat",
    "DataFormatRegistry",
    "load_data_formats",
    "Data",
    "ReadOnlyData",
    "FileNaming",
]
