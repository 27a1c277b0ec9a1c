# src/seqflow/core/config/__init__.py

"""
Camada de settings do seqflow.

Este pacote carrega, mescla e identifica os settings efetivos de um
processo seqflow. Os settings são um valor explícito (`Settings`) criado
uma vez no bootstrap e repassado à construção de contextos, ao runner e à
(de)serialização de TaskContext. Não existe singleton global.

Responsabilidades:
    - Carregamento de YAML/JSON (defaults + overrides locais)
    - Deep-merge determinístico
    - Hash canônico para rastreabilidade no Manifest
    - Valor imutável `Settings` com acesso por caminho pontuado

Limites explícitos:
    - Não conhece módulos concretos nem formatos de dados
    - Não executa tarefas
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import load_config, load_mapping
from .merge import deep_merge
from .settings import DEFAULT_SETTINGS, Settings, load_settings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "compute_config_hash",
    "load_config",
    "load_mapping",
    "deep_merge",
    "DEFAULT_SETTINGS",
    "Settings",
    "load_settings",
]
