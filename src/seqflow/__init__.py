# src/seqflow/__init__.py
"""
seqflow — núcleo de execução de pipelines de processamento de dados.

Este pacote raiz define o namespace público do seqflow, um motor de
workflows em que cada etapa (módulo) declara portas tipadas de entrada e
saída, é executada de forma isolada sobre um contexto de tarefa e propaga
seus resultados como tokens para as etapas seguintes.

Arquitetura em alto nível:
    - core.config       → carregamento, merge e hashing de settings
    - core.data         → formatos de dados, Data e convenção de nomes
    - core.pipeline     → módulos, portas, contexto de tarefa e resultados
    - core.engine       → execução isolada de tarefas e emissão de tokens
    - core.traceability → Manifest de tarefas para auditoria

Limites explícitos:
    - Não implementa algoritmos científicos de módulos concretos
    - Não interpreta planilhas de design ou metadados de amostras
    - Não contém CLI nem bootstrap de processo
    - Não faz escalonamento distribuído, retry ou timeout
"""

__version__ = "2.0.0"

__all__ = ["__version__"]
