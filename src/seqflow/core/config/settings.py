# src/seqflow/core/config/settings.py
"""
Settings efetivos do seqflow (valor explícito, imutável).

`Settings` substitui o acesso a um runtime global: é criado uma vez no
bootstrap do processo, passado para a construção de TaskContext, lido pelo
runner (nível e formato do log de tarefa) e pelo executor (paralelismo,
fail-fast), e viaja junto com o contexto quando este é serializado.

Chaves conhecidas (v1):
    - engine.fail_fast       (bool)  interrompe o lote após a primeira falha
    - engine.max_workers     (int)   tamanho do pool do executor local
    - logging.task_level     (str)   nível do log por tarefa
    - logging.task_format    (str)   formato das linhas do log por tarefa

Chaves desconhecidas são preservadas e acessíveis via `get`.

Invariantes:
    - A estrutura interna nunca é exposta mutável (cópias profundas)
    - `hash` é estável para settings estruturalmente equivalentes
"""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigTypeConflictError
from .hashing import compute_config_hash
from .loader import PathLike, load_config, load_mapping
from .merge import deep_merge

DEFAULT_SETTINGS: Dict[str, Any] = {
    "engine": {
        "fail_fast": False,
        "max_workers": 1,
    },
    "logging": {
        "task_level": "INFO",
        "task_format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
    },
}

_MISSING = object()


class Settings:
    """Snapshot imutável dos settings efetivos."""

    __slots__ = ("_data", "_hash")

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        payload = deepcopy(dict(data)) if data is not None else deepcopy(DEFAULT_SETTINGS)
        _validate(payload)
        self._data: Dict[str, Any] = payload
        self._hash = compute_config_hash(payload)

    @classmethod
    def from_mapping(cls, overrides: Optional[Mapping[str, Any]] = None) -> "Settings":
        """Aplica `overrides` sobre `DEFAULT_SETTINGS`."""
        if not overrides:
            return cls(DEFAULT_SETTINGS)
        return cls(deep_merge(DEFAULT_SETTINGS, dict(overrides)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        return cls.from_mapping(data)

    def get(self, key: str, default: Any = None) -> Any:
        """Acesso por caminho pontuado, p.ex. `settings.get("engine.max_workers")`."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict):
                return default
            node = node.get(part, _MISSING)
            if node is _MISSING:
                return default
        return deepcopy(node)

    @property
    def fail_fast(self) -> bool:
        return bool(self.get("engine.fail_fast", False))

    @property
    def max_workers(self) -> int:
        return int(self.get("engine.max_workers", 1))

    @property
    def task_log_level(self) -> str:
        return str(self.get("logging.task_level", "INFO")).upper()

    @property
    def task_log_format(self) -> str:
        return str(self.get("logging.task_format", DEFAULT_SETTINGS["logging"]["task_format"]))

    @property
    def hash(self) -> str:
        return self._hash

    def to_dict(self) -> Dict[str, Any]:
        return deepcopy(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Settings):
            return NotImplemented
        return self._hash == other._hash

    def __hash__(self) -> int:
        return hash(self._hash)

    def __repr__(self) -> str:
        return f"Settings(hash={self._hash[:12]})"


def _validate(data: Dict[str, Any]) -> None:
    engine = data.get("engine", {})
    if not isinstance(engine, dict):
        raise ConfigTypeConflictError("Chave 'engine' deve ser um mapeamento")

    workers = engine.get("max_workers", 1)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigTypeConflictError(
            f"engine.max_workers deve ser inteiro >= 1, recebido: {workers!r}"
        )

    if not isinstance(engine.get("fail_fast", False), bool):
        raise ConfigTypeConflictError("engine.fail_fast deve ser bool")

    log = data.get("logging", {})
    if not isinstance(log, dict):
        raise ConfigTypeConflictError("Chave 'logging' deve ser um mapeamento")


def load_settings(
    *,
    defaults_path: Optional[PathLike] = None,
    local_path: Optional[PathLike] = None,
) -> Settings:
    """
    Resolve `Settings` a partir de arquivos.

    Sem `defaults_path`, parte de `DEFAULT_SETTINGS` embutido; o arquivo de
    defaults, quando informado, é mesclado sobre ele, e o override local
    sobre o resultado.
    """
    if defaults_path is None:
        merged = deepcopy(DEFAULT_SETTINGS)
        if local_path is not None and Path(local_path).exists():
            merged = deep_merge(merged, load_mapping(local_path))
        return Settings(merged)

    resolved = load_config(defaults_path=defaults_path, local_path=local_path)
    return Settings.from_mapping(resolved)
