# src/seqflow/core/config/hashing.py
"""
Hash canônico dos settings efetivos.

O hash identifica estruturalmente os settings usados por uma execução e é
gravado no Manifest (`settings_hash`). Dois conjuntos de settings
equivalentes, independentemente da ordem das chaves, produzem o mesmo
valor.

Política (v1):
    - JSON canônico (chaves ordenadas, separadores compactos, UTF-8)
    - SHA-256, 64 caracteres hexadecimais
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Calcula o SHA-256 do JSON canônico de `config`.

    Raises:
        TypeError: se `config` não for um dict.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Settings para hashing devem ser dict, recebido: {type(config).__name__}"
        )

    canonical = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
