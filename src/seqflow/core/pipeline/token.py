# src/seqflow/core/pipeline/token.py
"""
Token: par imutável (porta de saída, Data) emitido após uma tarefa bem-sucedida.

O Data carregado é sempre uma visão somente leitura: a partir da emissão
o produtor não é mais dono do dado.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from seqflow.core.data.data import Data, ReadOnlyData
from .ports import OutputPort


@dataclass(frozen=True)
class Token:
    port: OutputPort
    data: ReadOnlyData
    step_id: str
    context_id: int

    def __post_init__(self) -> None:
        if not isinstance(self.data, Data):
            raise TypeError(f"Token data must be a Data, received {type(self.data).__name__}")
        if not isinstance(self.data, ReadOnlyData):
            object.__setattr__(self, "data", self.data.read_only())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "context_id": self.context_id,
            "port": self.port.name,
            "data": self.data.to_dict(),
        }
