"""Sequential, fail-fast execution of a deployment's steps.

A run moves through PENDING -> RUNNING -> SUCCEEDED | FAILED. Steps execute
strictly in declared order, one at a time; the first failing step stops the
run and no later step is started. There is no retry and no rollback: the
recovery path is to fix the cause and trigger the webhook again.

Notifications are sent at fixed points (start, before each step, success,
failure) and are never part of the run's outcome.
"""

import os
import signal
import subprocess
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from enum import Enum

from src.deployhook.errors import StepExecutionError
from src.deployhook.logging import bind_app, get_logger
from src.deployhook.models import DeploymentConfig, Step
from src.deployhook.notify import Notifier

logger = get_logger(__name__)

# (step, working directory, timeout seconds or None) -> None, raises StepExecutionError
StepExecutor = Callable[[Step, str, float | None], None]


class DeploymentState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class DeploymentResult:
    """Outcome of one run.

    ``step_index`` is the step currently running (RUNNING) or the one that
    failed (FAILED); it is None before the first step and after success.
    """

    app_name: str
    state: DeploymentState = DeploymentState.PENDING
    step_index: int | None = None
    completed_steps: list[str] = field(default_factory=list)
    error: StepExecutionError | None = None

    @property
    def detail(self) -> str | None:
        return self.error.detail if self.error is not None else None


def _tail(text: str, limit: int = 4000) -> str:
    text = text.strip()
    return text if len(text) <= limit else "..." + text[-limit:]


def run_shell_step(step: Step, cwd: str, timeout: float | None = None) -> None:
    """Run a step's command line through the shell and wait for it.

    stdout and stderr are captured and logged, not returned. The command runs
    in its own process group so a timeout also kills anything it spawned.

    Raises:
        StepExecutionError: On non-zero exit, launch failure, or timeout.
    """
    try:
        proc = subprocess.Popen(
            step.run,
            shell=True,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            start_new_session=True,
        )
    except OSError as e:
        raise StepExecutionError(step.name, f"could not start: {e}") from e

    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired as e:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass  # exited between the timeout and the kill
        stdout, stderr = proc.communicate()
        logger.warning(
            "step_timed_out",
            step=step.name,
            timeout=timeout,
            stdout=_tail(stdout),
            stderr=_tail(stderr),
        )
        raise StepExecutionError(step.name, f"timed out after {timeout:g}s") from e

    logger.info(
        "step_output",
        step=step.name,
        returncode=proc.returncode,
        stdout=_tail(stdout),
        stderr=_tail(stderr),
    )
    if proc.returncode != 0:
        raise StepExecutionError(
            step.name, f"exited with status {proc.returncode}"
        )


class DeploymentLocks:
    """Per-application locks so two runs of the same app never overlap.

    Runs for different applications are not serialized.
    """

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def lock_for(self, app_name: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(app_name, threading.Lock())

    @contextmanager
    def hold(self, app_name: str) -> Iterator[None]:
        lock = self.lock_for(app_name)
        if not lock.acquire(blocking=False):
            logger.info("deployment_waiting", app=app_name)
            lock.acquire()
        try:
            yield
        finally:
            lock.release()


class DeploymentRunner:
    """Runs deployments and reports their progress through a Notifier."""

    def __init__(
        self,
        notifier: Notifier,
        step_timeout: float | None = None,
        locks: DeploymentLocks | None = None,
        execute: StepExecutor = run_shell_step,
    ) -> None:
        """Initialize DeploymentRunner.

        Args:
            notifier: Receives the lifecycle messages.
            step_timeout: Default timeout for steps that don't set their own.
            locks: When given, runs of the same app are serialized.
            execute: Step executor; replaced in tests to avoid spawning.
        """
        self.notifier = notifier
        self.step_timeout = step_timeout
        self.locks = locks
        self.execute = execute

    def _guard(self, app_name: str):
        if self.locks is None:
            return nullcontext()
        return self.locks.hold(app_name)

    def run_steps(self, app_name: str, deployment: DeploymentConfig) -> DeploymentResult:
        """Drive the state machine to completion without raising step errors.

        The failure notification has already been sent when this returns a
        FAILED result.
        """
        result = DeploymentResult(app_name=app_name)
        with bind_app(app_name), self._guard(app_name):
            logger.info(
                "deployment_started", path=deployment.path, steps=len(deployment.steps)
            )
            self.notifier.notify(f"🚀 Starting deployment of *{app_name}*")
            result.state = DeploymentState.RUNNING

            for index, step in enumerate(deployment.steps):
                result.step_index = index
                logger.info("step_started", step=step.name, index=index)
                self.notifier.notify(f"⚙️ Executing: {step.name}")

                timeout = step.timeout if step.timeout is not None else self.step_timeout
                try:
                    self.execute(step, deployment.path, timeout)
                except StepExecutionError as e:
                    result.state = DeploymentState.FAILED
                    result.error = e
                    logger.error("deployment_failed", step=step.name, error=e.detail)
                    self.notifier.notify(
                        f"🚨 Deployment of *{app_name}* failed: {e}"
                    )
                    return result
                result.completed_steps.append(step.name)

            result.state = DeploymentState.SUCCEEDED
            result.step_index = None
            logger.info("deployment_succeeded", steps=len(result.completed_steps))
            self.notifier.notify(f"✅ Successfully deployed *{app_name}*")
        return result

    def run(self, app_name: str, deployment: DeploymentConfig) -> DeploymentResult:
        """Run a deployment, raising if any step fails.

        Raises:
            StepExecutionError: After the failure notification has been sent.
        """
        result = self.run_steps(app_name, deployment)
        if result.error is not None:
            raise result.error
        return result
