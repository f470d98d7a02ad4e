"""Exécution séquentielle des étapes du crawl, avec annulation coopérative."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable

from cartooncrawl.core.pipeline.context import PipelineContext
from cartooncrawl.core.pipeline.steps import (
    ErrorCallback,
    LogCallback,
    ProgressCallback,
    Step,
    StepResult,
)

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Enchaîne les étapes ; s'arrête à la première étape en échec ou annulée.

    cancel() peut venir d'un autre thread (callback on_show, signal). Les étapes
    le voient via context["is_cancelled"], et la session HTTP du crawl avant
    chaque requête. L'annulation reste acquise, y compris si elle précède run() :
    appeler reset() pour réutiliser le runner.
    """

    def __init__(self):
        self._cancel = threading.Event()

    def cancel(self) -> None:
        self._cancel.set()

    def reset(self) -> None:
        self._cancel.clear()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def run(
        self,
        steps: Iterable[Step],
        context: PipelineContext,
        *,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
        on_error: ErrorCallback | None = None,
        on_cancelled: Callable[[], None] | None = None,
    ) -> list[StepResult]:
        """
        Exécute les étapes dans l'ordre.

        on_error reçoit (nom d'étape, erreur) pour l'étape qui arrête le crawl ;
        une étape qui lève est traitée comme un échec avec cette exception.
        on_progress reçoit un pourcentage global, monotone, borné à [0, 1].
        """
        steps = list(steps)
        ctx: PipelineContext = {**context, "is_cancelled": self._cancel.is_set}  # type: ignore[typeddict-item]
        results: list[StepResult] = []

        for i, step in enumerate(steps):
            if self.cancelled:
                self._stopped(on_cancelled, on_log)
                break
            self._log(on_log, "info", f"Running step: {step.name}")
            progress = self._step_progress(on_progress, i, len(steps))
            progress(step.name, 0.0, f"Starting: {step.name}")
            try:
                result = step.run(ctx, on_progress=progress, on_log=on_log)
            except Exception as e:
                logger.exception("Step %s raised", step.name)
                result = StepResult.failure(e)
            result.data = {"step_name": step.name, **(result.data or {})}
            results.append(result)

            if result.cancelled:
                self._stopped(on_cancelled, on_log)
                break
            if not result.success:
                if on_error:
                    on_error(step.name, result.error or RuntimeError(result.message))
                self._log(on_log, "error", f"{step.name}: {result.message}")
                break
            progress(step.name, 1.0, result.message or f"Done: {step.name}")
        return results

    @staticmethod
    def _log(on_log: LogCallback | None, level: str, msg: str) -> None:
        if on_log:
            on_log(level, msg)
        else:
            getattr(logger, level.lower(), logger.info)(msg)

    def _stopped(self, on_cancelled: Callable[[], None] | None, on_log: LogCallback | None) -> None:
        if on_cancelled:
            on_cancelled()
        self._log(on_log, "warning", "Crawl cancelled")

    @staticmethod
    def _step_progress(on_progress: ProgressCallback | None, index: int, total: int) -> ProgressCallback:
        """Convertit la progression locale d'une étape en progression globale."""

        def emit(step_name: str, percent: float, message: str) -> None:
            if not on_progress:
                return
            local = max(0.0, min(1.0, float(percent or 0.0)))
            on_progress(step_name, (index + local) / total if total > 0 else local, message)

        return emit
