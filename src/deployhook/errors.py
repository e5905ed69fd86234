"""Error hierarchy for webhook handling and deployment runs.

Each error class maps to exactly one outcome at the HTTP boundary, so the
request handler can classify failures without inspecting messages:

    ConfigurationError / UnknownApplicationError -> 404 (or startup abort)
    AuthenticationError                          -> 401
    DeploymentError / StepExecutionError         -> 500
    NotificationDeliveryError                    -> logged, never escalated
"""


class DeployHookError(Exception):
    """Base exception for all deploy webhook errors."""

    pass


class ConfigurationError(DeployHookError):
    """The deployment configuration could not be loaded or validated."""

    pass


class UnknownApplicationError(ConfigurationError):
    """No deployment is configured under the requested application name."""

    def __init__(self, app_name: str) -> None:
        self.app_name = app_name
        super().__init__(f"Deployment not configured: {app_name}")


class AuthenticationError(DeployHookError):
    """Request signature is missing or does not match the shared secret."""

    pass


class DeploymentError(DeployHookError):
    """A deployment run did not complete."""

    pass


class StepExecutionError(DeploymentError):
    """A step exited non-zero, failed to launch, or timed out.

    Carries the step name and the underlying failure detail. The message is
    what ends up in the failure notification, so it stays short.
    """

    def __init__(self, step: str, detail: str) -> None:
        self.step = step
        self.detail = detail
        super().__init__(f'Step "{step}" failed: {detail}')


class NotificationDeliveryError(DeployHookError):
    """A notification channel could not deliver a message.

    Raised inside a channel and swallowed by the Notifier.
    """

    def __init__(self, channel: str, detail: str) -> None:
        self.channel = channel
        self.detail = detail
        super().__init__(f"{channel} notification failed: {detail}")
