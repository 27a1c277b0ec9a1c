# src/seqflow/core/config/loader.py
"""
Loader de settings do seqflow.

Os settings efetivos são resolvidos a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional; ignorado se não existir)

O mesmo leitor de arquivos (`load_mapping`) é reutilizado pelo catálogo de
formatos de dados (`seqflow.core.data.formats.load_data_formats`).

Decisões arquiteturais:
    - YAML via PyYAML (`safe_load`) e JSON via stdlib
    - Arquivo vazio equivale a `{}`
    - Raiz diferente de mapeamento é erro fatal
    - Overrides nunca mutam os defaults

Limites explícitos:
    - Não valida semântica das chaves (isso é papel de `Settings`)
    - Não persiste settings nem hash
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_mapping(path: PathLike) -> Dict[str, Any]:
    """
    Lê um arquivo YAML/JSON e retorna seu conteúdo como dict.

    Raises:
        DefaultsNotFoundError: arquivo inexistente.
        UnsupportedConfigFormatError: extensão não suportada.
        InvalidConfigRootTypeError: raiz não é um mapeamento.
    """
    path = Path(path)
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo de configuração não encontrado: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Raiz da configuração deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: PathLike,
    local_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    """
    Carrega os defaults e aplica o override local, se existir.

    Returns:
        Dict[str, Any]: configuração resolvida (dict novo).
    """
    effective = load_mapping(defaults_path)

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(effective, load_mapping(local_file))
        else:
            logger.debug("Override local ausente, usando apenas defaults: %s", local_file)

    return effective
