"""Background workers for non-blocking generation runs using Qt threading."""

from typing import TYPE_CHECKING, Any, Callable

from PySide6.QtCore import QObject, QRunnable, Signal, Slot

if TYPE_CHECKING:
    from vocab_forge.coordinators.processing_scheduler import ProcessingScheduler


class WorkerSignals(QObject):
    """Signal carrier for the runnables below (QRunnable is not a QObject)."""
    finished = Signal()
    error = Signal(str)
    result = Signal(object)


class SchedulerWorker(QRunnable):
    """
    Worker that drains the pending queue of the scheduler's active context.

    Emits ``result`` with the (completed, failed) counts of the run.
    """

    def __init__(self, scheduler: "ProcessingScheduler"):
        super().__init__()
        self.scheduler = scheduler
        self.signals = WorkerSignals()
        self.setAutoDelete(True)

    @Slot()
    def run(self):
        """Run the scheduler loop in a background thread."""
        try:
            self.signals.result.emit(self.scheduler.run_until_idle())
        except Exception as e:
            # Item failures are recorded by the scheduler; this is anything else.
            self.signals.error.emit(f"Unexpected processing error: {str(e)}")
        finally:
            self.signals.finished.emit()


class RegenerationWorker(QRunnable):
    """
    Worker that runs one single-item regeneration (text, image or audio).

    ``task`` is a bound regeneration call; its return value (the updated item
    or None) is emitted through ``result``.
    """

    def __init__(self, task: Callable[[], Any], label: str):
        super().__init__()
        self.task = task
        self.label = label
        self.signals = WorkerSignals()
        self.setAutoDelete(True)

    @Slot()
    def run(self):
        """Execute the regeneration in a background thread."""
        try:
            self.signals.result.emit(self.task())
        except Exception as e:
            self.signals.error.emit(f"{self.label} failed: {str(e)}")
        finally:
            self.signals.finished.emit()
