"""
BadgeWatch - State Persistence
Keeps the badge tree across restarts in a JSON file
"""

from pathlib import Path
from typing import Optional, Union
import os
import threading
import logging

from pydantic import ValidationError as PydanticValidationError

from badgewatch.schemas.notifications import NotificationState
from badgewatch.services.store import NotificationStore

logger = logging.getLogger(__name__)


class StateFile:
    """
    JSON snapshot of a ``NotificationState``.

    A missing or unreadable file loads as nothing, so the store starts from
    its zeroed tree. Writes go through a temporary file and are swapped in
    whole.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> Optional[NotificationState]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error(f"Error loading notifications from {self.path}: {e}")
            return None

        try:
            return NotificationState.model_validate_json(raw)
        except PydanticValidationError as e:
            logger.error(f"Error loading notifications from {self.path}: {e}")
            return None

    def save(self, state: NotificationState) -> None:
        payload = state.model_dump_json(indent=2)
        tmp = self.path.with_name(f"{self.path.name}.tmp")
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                tmp.write_text(payload, encoding="utf-8")
                os.replace(tmp, self.path)
            except OSError as e:
                logger.error(f"Error saving notifications to {self.path}: {e}")

    def restore_into(self, store: NotificationStore) -> bool:
        """Load the saved tree into ``store``; False if there was nothing usable."""
        saved = self.load()
        if saved is None:
            return False
        store.restore(saved)
        logger.info(f"Restored notifications from {self.path}")
        return True
