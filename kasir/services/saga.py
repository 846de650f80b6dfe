"""
Ordered multi-step operations with compensation.

A Saga runs its steps in order. When a step fails, the compensations of the
steps that already completed run in reverse order and the original exception
is re-raised. A failing compensation does not stop the unwind; once every
compensation has been attempted a CompensationError is raised, chained from
the original failure.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from kasir.core.exceptions import CompensationError

logger = logging.getLogger(__name__)

Action = Callable[[Dict[str, Any]], Any]
Compensation = Callable[[Dict[str, Any]], None]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensation: Optional[Compensation] = None


class Saga:
    """
    Builder and runner for a sequence of (action, compensation) steps.

    Each action receives the shared context dict; its return value is stored
    in the context under the step name so later steps and compensations can
    use it.

    Example:
        result = (
            Saga("create_staff")
            .step("account", create_account, delete_account)
            .step("user", create_user, delete_user)
            .run()
        )
    """

    def __init__(self, name: str):
        self.name = name
        self.steps: List[SagaStep] = []

    def step(self, name: str, action: Action, compensation: Optional[Compensation] = None) -> "Saga":
        self.steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    def run(self, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        context = {} if context is None else context
        completed: List[SagaStep] = []

        for step in self.steps:
            try:
                context[step.name] = step.action(context)
            except Exception as exc:
                logger.warning("Saga %s failed at step %s: %s", self.name, step.name, exc)
                self._unwind(completed, context, exc)
                raise
            completed.append(step)

        return context

    def _unwind(self, completed: List[SagaStep], context: Dict[str, Any], cause: Exception) -> None:
        failures = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation(context)
            except Exception as comp_exc:
                logger.error(
                    "Saga %s could not compensate step %s: %s",
                    self.name, step.name, comp_exc,
                    exc_info=True,
                )
                failures.append(step.name)

        if failures:
            raise CompensationError(
                f"Rollback of {self.name} failed, manual cleanup required",
                error={"failed_compensations": failures, "cause": str(cause)},
            ) from cause
