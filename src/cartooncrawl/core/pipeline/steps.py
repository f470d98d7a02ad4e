"""Étapes du crawl : contrat Step et résultat typé StepResult."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from cartooncrawl.core.pipeline.context import PipelineContext

CANCELLED_MESSAGE = "Cancelled"

ProgressCallback = Callable[[str, float, str], None]  # step_name, percent, message
LogCallback = Callable[[str, str], None]  # level, message
ErrorCallback = Callable[[str, Exception], None]  # step_name, error


@dataclass
class StepResult:
    """Issue d'une étape : succès, échec (avec l'erreur qui l'a causé) ou annulation."""

    success: bool
    message: str = ""
    data: dict[str, Any] | None = None
    error: Exception | None = None
    cancelled: bool = False

    @classmethod
    def ok(cls, message: str, **data: Any) -> StepResult:
        return cls(True, message, data)

    @classmethod
    def failure(cls, error: Exception, message: str | None = None) -> StepResult:
        return cls(False, message or str(error), error=error)

    @classmethod
    def interrupted(cls) -> StepResult:
        return cls(False, CANCELLED_MESSAGE, cancelled=True)


class Step(ABC):
    """Étape du crawl ; lit et complète context["state"]."""

    name: str = ""

    @abstractmethod
    def run(
        self,
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> StepResult:
        ...
