# src/seqflow/core/engine/__init__.py
"""
Engine de execução de tarefas do seqflow.

Componentes:
    - task_logging → log dedicado por tarefa (`<stepId>_context#<id>.log`)
    - runner       → TaskRunner: executa um TaskContext isolado, sela o
                     resultado e emite tokens
    - executor     → LocalTaskExecutor: scheduler local de referência que
                     executa lotes de contextos em um pool de threads

Princípios:
    - Falhas de tarefa viram dados (TaskResult), nunca exceções
    - Apenas ConfigurationError e ProgrammingError escapam
    - Sem retry e sem timeout; cancelamento é cooperativo

Limites explícitos:
    - Não planeja a ordem de steps de um workflow
    - Não distribui tarefas entre máquinas
"""
