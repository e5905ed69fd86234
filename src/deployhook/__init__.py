"""Deploy webhook receiver.

Verifies signed webhook calls, runs the configured shell steps for the
target application in order, and reports progress to chat channels.
"""

from src.deployhook.auth import sign, verify
from src.deployhook.models import AppConfig, DeploymentConfig, Step
from src.deployhook.notify import Notifier
from src.deployhook.runner import DeploymentResult, DeploymentRunner, DeploymentState

__all__ = [
    "AppConfig",
    "DeploymentConfig",
    "Step",
    "sign",
    "verify",
    "Notifier",
    "DeploymentRunner",
    "DeploymentResult",
    "DeploymentState",
]
