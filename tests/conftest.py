# tests/conftest.py
"""
Fixtures compartilhados para testes do seqflow.

Este módulo define fixtures reutilizáveis que fornecem:
- arquivos de settings (defaults e override local) em YAML
- um registry de formatos de dados pequeno e determinístico
- fábrica de WorkflowSteps configurados dentro de `tmp_path`
- fábrica de Data de entrada com arquivos reais

Decisões arquiteturais:
    - Cada step recebe diretórios próprios (trabalho, saída, logs)
      dentro do `tmp_path` do teste
    - Módulos dummy vivem em `tests/fixtures/modules/`
    - Imports do core são feitos no topo: falhas de import aparecem
      como erro de coleta, com a mensagem original

Invariantes:
    - Nenhuma fixture executa tarefas
    - Todo I/O acontece dentro de `tmp_path`

Limites explícitos:
    - Não substituir testes de integração com schedulers reais
"""

from pathlib import Path

import pytest

from seqflow.core.config.settings import Settings
from seqflow.core.data.data import Data
from seqflow.core.pipeline.step import StepType, TokenCollector, WorkflowStep
from tests.fixtures.formats import READS, build_registry


# =====================================================
# Settings
# =====================================================

@pytest.fixture
def settings_defaults_yaml() -> str:
    """
    YAML de settings padrão semelhante ao uso real.

    Inclui uma seção extra (`steps`) para validar que chaves
    desconhecidas do core atravessam o loader sem alteração.
    """
    return """
engine:
  fail_fast: true
  max_workers: 2
logging:
  task_level: INFO
steps:
  mapreads:
    threads: 4
    enabled: true
  count:
    enabled: true
"""


@pytest.fixture
def settings_local_yaml() -> str:
    """Override local: reduz workers, desliga um step e muda o nível de log."""
    return """
engine:
  max_workers: 1
logging:
  task_level: DEBUG
steps:
  count:
    enabled: false
"""


@pytest.fixture
def settings() -> Settings:
    return Settings.from_mapping()


# =====================================================
# Formatos / dados
# =====================================================

@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    path = tmp_path / "input"
    path.mkdir()
    return path


@pytest.fixture
def make_reads(input_dir: Path):
    """
    Fábrica de Data de reads com arquivos reais em `input_dir`.

    `make_reads("s1", files=2)` cria `s1_R1.fq` e `s1_R2.fq` e retorna
    um Data escalar nomeado `s1`. Com `name=None` o Data recebe um nome
    padrão, e os arquivos usam `stem`.
    """

    def _make(name="s1", files=2, stem=None):
        base = stem or name or "reads"
        paths = []
        for i in range(1, files + 1):
            p = input_dir / f"{base}_R{i}.fq"
            p.write_text(f"@{base}/{i}\nACGT\n+\nIIII\n", encoding="utf-8")
            paths.append(p)
        return Data(READS, name, files=paths)

    return _make


# =====================================================
# Steps
# =====================================================

@pytest.fixture
def make_step(tmp_path: Path, registry, settings):
    """
    Fábrica de WorkflowStep já configurado.

    Diretórios padrão:
        - trabalho: tmp_path/work/<step_id>
        - saída compartilhada: tmp_path/output
        - logs de tarefas: tmp_path/logs

    Returns:
        Callable que aceita `(step_id, module_cls, parameters=None, **kwargs)`;
        `kwargs` sobrescreve os argumentos de WorkflowStep.
    """

    def _make(step_id, module_cls, parameters=None, **kwargs):
        options = {
            "working_dir": tmp_path / "work" / step_id,
            "output_dir": tmp_path / "output",
            "task_dir": tmp_path / "logs",
            "step_type": StepType.STANDARD,
            "settings": settings,
            "registry": registry,
            "token_sink": TokenCollector(),
        }
        options.update(kwargs)
        step = WorkflowStep(step_id, module_cls, **options)
        return step.configure(parameters)

    return _make
