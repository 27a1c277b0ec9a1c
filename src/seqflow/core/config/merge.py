# src/seqflow/core/config/merge.py
"""
Deep-merge determinístico de settings.

Política (v1):
    - dict + dict → merge recursivo por chave
    - list        → substitui o valor inteiro
    - escalar     → substitui se o tipo for o mesmo
    - tipos diferentes → ConfigTypeConflictError

Nenhum dos argumentos é mutado; o resultado é sempre um dict novo.
"""

from copy import deepcopy
from typing import Any, Dict, List

from .errors import ConfigTypeConflictError


def _merge_into(result: Dict[str, Any], override: Dict[str, Any], path: List[str]) -> None:
    for key, value in override.items():
        here = path + [str(key)]

        if key not in result:
            result[key] = deepcopy(value)
            continue

        current = result[key]

        if isinstance(current, dict) and isinstance(value, dict):
            merged = deepcopy(current)
            _merge_into(merged, value, here)
            result[key] = merged
            continue

        if isinstance(value, list):
            result[key] = deepcopy(value)
            continue

        # int e float são intercambiáveis; bool não
        numeric = (int, float)
        same_kind = type(current) is type(value) or (
            isinstance(current, numeric)
            and isinstance(value, numeric)
            and not isinstance(current, bool)
            and not isinstance(value, bool)
        )
        if current is not None and value is not None and not same_kind:
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{'.'.join(here)}': "
                f"{type(current).__name__} vs {type(value).__name__}"
            )

        result[key] = deepcopy(value)


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Mescla `override` sobre `base` e retorna um novo dicionário.

    Raises:
        ConfigTypeConflictError: se algum dos argumentos não for dict, ou se
            uma chave mudar de tipo entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    result: Dict[str, Any] = deepcopy(base)
    _merge_into(result, override, [])
    return result
