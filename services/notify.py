"""User-visible notifications."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass
class Notification:
    """A message shown to the user, like an entry in the editor's message log."""
    message: str
    level: str = INFO
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_error(self) -> bool:
        return self.level == ERROR


# Receives (message, level)
Notifier = Callable[[str, str], None]


def log_notifier(message: str, level: str = INFO) -> None:
    """Default notifier: write the message to the log."""
    if level == ERROR:
        logger.error(message)
    elif level == WARNING:
        logger.warning(message)
    else:
        logger.info(message)
