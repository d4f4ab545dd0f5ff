"""Task boundary: run one action and convert every outcome to a TaskResult."""
from __future__ import annotations

import logging
import time

from provision.core.exceptions import ProvisionError, TaskCancelledError, TaskFailureError

from .models import Task, TaskResult, TaskStatus
from .runtime import Runtime

logger = logging.getLogger(__name__)


class TaskRunner:
    """Executes Tasks. Exceptions never escape ``run``."""

    def run(self, task: Task, runtime: Runtime) -> TaskResult:
        start = time.monotonic()
        try:
            runtime.cancel.raise_if_cancelled(f"task {task.id}")
            logger.info("%s", task.start_message or f"Starting {task.description}")
            outcome = task.action.run(runtime)
        except TaskCancelledError as exc:
            result = TaskResult(TaskStatus.FAILURE, str(exc), error_kind=exc.kind)
        except TaskFailureError as exc:
            message = task.failure_message or str(exc)
            if task.failure_message and str(exc):
                message = f"{task.failure_message}: {exc}"
            result = TaskResult(
                TaskStatus.FAILURE,
                message,
                exit_code=exc.exit_code,
                error_kind=exc.kind,
                output=exc.output,
            )
            if exc.output:
                logger.debug("Task %s output:\n%s", task.id, exc.output)
        except ProvisionError as exc:
            result = TaskResult(TaskStatus.FAILURE, str(exc), error_kind=exc.kind)
        except Exception as exc:  # noqa: BLE001 - converted into a failed result
            logger.exception("Task %s raised unexpectedly", task.id)
            result = TaskResult(
                TaskStatus.FAILURE,
                f"{type(exc).__name__}: {exc}",
                error_kind=TaskFailureError.kind,
            )
        else:
            if outcome.ok:
                message = task.success_message or outcome.message
                if task.success_message and outcome.message:
                    message = f"{task.success_message} ({outcome.message})"
                result = TaskResult(
                    TaskStatus.SUCCESS,
                    message,
                    exit_code=outcome.exit_code,
                    output=outcome.output,
                )
            else:
                result = TaskResult(
                    TaskStatus.FAILURE,
                    task.failure_message or outcome.message,
                    exit_code=outcome.exit_code,
                    output=outcome.output,
                    error_kind=outcome.error_kind or TaskFailureError.kind,
                )

        result.duration = time.monotonic() - start
        task.result = result
        if result.ok:
            logger.info("Task %s succeeded: %s", task.id, result.message)
        else:
            logger.warning("Task %s failed [%s]: %s", task.id, result.error_kind, result.message)
        return result


__all__ = ["TaskRunner"]
