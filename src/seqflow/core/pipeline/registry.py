# src/seqflow/core/pipeline/registry.py
"""
Registro de WorkflowSteps por identificador.

O registry garante, antes de qualquer execução, que cada step tenha um id
válido e único, e preserva a ordem de declaração. Também é o ponto de
resolução de `step_id → WorkflowStep` usado ao desserializar contextos.

Limites explícitos:
    - Não planeja ordem de execução
    - Não executa tarefas
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List

from seqflow.core.data.naming import FileNaming
from seqflow.core.exceptions import ConfigurationError
from .step import WorkflowStep


@dataclass(frozen=True, eq=False)
class DuplicateStepIdError(ConfigurationError):
    """Dois steps registrados com o mesmo id."""


@dataclass
class StepRegistry:
    _steps: Dict[str, WorkflowStep] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def add(self, step: WorkflowStep) -> WorkflowStep:
        step_id = getattr(step, "id", None)
        if not FileNaming.is_step_id_valid(step_id):
            raise ConfigurationError(
                message=f"Invalid step id: {step_id!r}",
                details={"step": step_id},
            )

        if step_id in self._steps:
            raise DuplicateStepIdError(
                message=f"Duplicate step id: {step_id}",
                details={"step": step_id},
            )

        self._steps[step_id] = step
        self._order.append(step_id)
        return step

    def get(self, step_id: str) -> WorkflowStep:
        try:
            return self._steps[step_id]
        except KeyError:
            raise ConfigurationError(
                message=f"Unknown step id: {step_id}",
                details={"step": step_id, "registered": list(self._order)},
            ) from None

    def list(self) -> List[WorkflowStep]:
        return [self._steps[sid] for sid in self._order]

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._steps

    def __iter__(self) -> Iterator[WorkflowStep]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._order)
