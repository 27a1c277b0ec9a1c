# src/seqflow/core/pipeline/__init__.py
"""
# Pipeline Core — seqflow

Contratos e estruturas que ligam um módulo aos dados de uma tarefa.

## Componentes

- **ports**: `InputPort`/`OutputPort`, conjuntos imutáveis e builders
- **module**: `Module` (Protocol), `AbstractModule`, `Parameter`,
  `Requirement`, `Version`, `ParallelizationMode`
- **step**: `WorkflowStep`, `StepType`, `TokenSink`, `TokenCollector`
- **registry**: `StepRegistry` (ids únicos e válidos)
- **context**: `TaskContext` (vínculo de dados + persistência)
- **status**: `TaskStatus` (rastreador) e `TaskResult` (resultado selado)
- **token**: `Token` (porta de saída + Data somente leitura)

## Invariantes

- Nomes de porta são únicos dentro do seu conjunto
- Um TaskContext é executado no máximo uma vez
- Tokens só existem a partir de um TaskResult de sucesso
"""
