from __future__ import annotations

from datetime import date
from typing import Optional, Protocol

from .model import WorkerPaySetting


class WorkerPaySettingRepository(Protocol):
    def get_effective(self, user_id: int, as_of: date) -> Optional[WorkerPaySetting]:
        raise NotImplementedError
