"""
Base service class.

Every gamification handler shares the database, the policy, a clock and a
logger through this class.
"""

import logging
from abc import ABC
from datetime import datetime
from typing import Callable, Optional

from ..db.database import GamificationDatabase
from ..exceptions import ValidationError
from ..metrics.calendar import DEFAULT_TIMEZONE, utc_now
from ..policy import DEFAULT_POLICY, GamificationPolicy


Clock = Callable[[], datetime]


class BaseService(ABC):
    """
    Abstract base class for all gamification services.

    Provides common functionality:
    - Logging setup
    - Injected policy and clock
    - Input validation helpers
    """

    def __init__(
        self,
        db: GamificationDatabase,
        policy: Optional[GamificationPolicy] = None,
        clock: Optional[Clock] = None,
        default_timezone: str = DEFAULT_TIMEZONE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.db = db
        self.policy = policy or DEFAULT_POLICY
        self.default_timezone = default_timezone
        self._clock = clock or utc_now
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    def now(self) -> datetime:
        """Current instant (aware, UTC)."""
        return self._clock()

    @staticmethod
    def _require(value: Optional[str], field: str) -> str:
        if not value or not str(value).strip():
            raise ValidationError(f"{field} is required", field=field)
        return value
