"""Abstract base class for pipeline phases."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

import structlog

from src.observability.metrics import STAGE_DURATION
from src.orchestration.context import PipelineContext

T = TypeVar("T")


class PipelinePhase(ABC, Generic[T]):
    """Abstract base class for pipeline phases.

    Each phase handles one stage of the curation workflow. Phases receive a
    shared context for accessing services and state.

    Type parameter T represents the return type of the execute method.
    """

    def __init__(self, context: PipelineContext) -> None:
        self.context = context
        self.logger = structlog.get_logger().bind(
            phase=self.name, run_id=context.run_id
        )

    @property
    @abstractmethod
    def name(self) -> str:
        """Phase name for logging, metrics and error records."""
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def execute(self) -> T:
        """Execute the phase and return results.

        Raises:
            Exception: If phase execution fails
        """
        pass  # pragma: no cover - abstract method

    def is_enabled(self) -> bool:
        """Check if phase should run.

        Override in subclasses for conditional execution.
        """
        return True

    async def run(self) -> T:
        """Run the phase with logging, timing and error recording.

        A failure is recorded in the context and re-raised.
        """
        if not self.is_enabled():
            self.logger.info("phase_skipped", reason="disabled")
            return self._get_default_result()

        self.logger.info("phase_starting")

        try:
            with STAGE_DURATION.labels(stage=self.name).time():
                result = await self.execute()
            self.logger.info("phase_completed")
            return result
        except Exception as e:
            self.logger.exception("phase_failed", error=str(e))
            self.context.add_error(self.name, str(e))
            raise

    def _get_default_result(self) -> T:
        """Get default result when phase is skipped."""
        return None  # type: ignore
