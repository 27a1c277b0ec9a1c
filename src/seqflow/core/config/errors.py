# src/seqflow/core/config/errors.py
"""
Exceções da camada de settings do seqflow.

Estas exceções representam falhas estruturais ao carregar ou mesclar
arquivos de settings e de formatos de dados. São fatais: o processo não
deve seguir com settings parcialmente resolvidos.

Invariantes:
    - Todas herdam de `ConfigError`
    - Nenhuma representa falha de execução de tarefa
"""


class ConfigError(Exception):
    """Base para erros de carregamento e resolução de settings."""


class DefaultsNotFoundError(ConfigError):
    """
    O arquivo obrigatório (defaults ou catálogo de formatos) não existe.

    O loader não cria nem infere arquivos ausentes.
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Extensão de arquivo não suportada.

    Aceitos: `.yaml`, `.yml`, `.json`. O formato nunca é inferido pelo
    conteúdo.
    """


class InvalidConfigRootTypeError(ConfigError):
    """O conteúdo raiz do arquivo não é um mapeamento."""


class ConfigTypeConflictError(ConfigError):
    """
    Tipos incompatíveis para a mesma chave durante o deep-merge.

    Exemplo:
        - base:     {"engine": {"max_workers": 4}}
        - override: {"engine": "serial"}

    Nenhum merge parcial é produzido.
    """
