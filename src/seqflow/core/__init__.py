# src/seqflow/core/__init__.py
"""
Core do seqflow.

Este pacote reúne a implementação canônica do contrato de execução de
tarefas: o contrato de módulo, o modelo de portas e formatos de dados,
e o motor que executa um contexto de tarefa de forma isolada, sela o
resultado e emite tokens.

O core é projetado para ser:
    - determinístico na nomeação de contextos e arquivos
    - testável de forma isolada
    - livre de estado global (settings e registries são valores explícitos)

Subpacotes:
    - config        → settings efetivos (YAML/JSON + deep-merge)
    - data          → DataFormat, Data, FileNaming
    - pipeline      → Module, portas, WorkflowStep, TaskContext, TaskStatus
    - engine        → TaskRunner e executor local de referência
    - traceability  → Manifest e Event Log de tarefas

Invariantes:
    - Um TaskContext é executado no máximo uma vez
    - Tokens de um contexto são enviados no máximo uma vez e só após sucesso
    - Falhas de execução de tarefas viram dados (TaskResult), nunca exceções
"""
