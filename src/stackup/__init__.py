"""
stackup - CloudFormation stack lifecycle management.
"""

__version__ = "1.0.0"

from .config import StackupConfig, load_config
from .errors import StackNotFoundError, StackupError, StackWaitTimeoutError, UpdateError
from .provider import StackStatusProvider
from .stack import Stack
from .watcher import StackEventWatcher

__all__ = [
    "Stack",
    "StackEventWatcher",
    "StackNotFoundError",
    "StackStatusProvider",
    "StackWaitTimeoutError",
    "StackupConfig",
    "StackupError",
    "UpdateError",
    "load_config",
]
