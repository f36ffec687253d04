"""Business rules shared by every reconciliation workflow.

The values are loaded once at startup and handed to the services explicitly,
so tests can exercise the engine with other house ranges.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import optional_int_env
from .errors import ConfigurationError

DEFAULT_MIN_HOUSE_NUMBER: Final[int] = 1
DEFAULT_MAX_HOUSE_NUMBER: Final[int] = 66
DEFAULT_SYSTEM_USER_ID: Final[str] = "00000000-0000-0000-0000-000000000000"


@dataclass(frozen=True, slots=True)
class BusinessRules:
    """Valid house range and the user that owns automatically created houses."""

    min_house_number: int = DEFAULT_MIN_HOUSE_NUMBER
    max_house_number: int = DEFAULT_MAX_HOUSE_NUMBER
    system_user_id: str = DEFAULT_SYSTEM_USER_ID

    def __post_init__(self) -> None:
        if self.min_house_number > self.max_house_number:
            raise ConfigurationError(
                f"Invalid house range: {self.min_house_number} > {self.max_house_number}"
            )

    def is_valid_house_number(self, house_number: int | None) -> bool:
        if house_number is None:
            return False
        return self.min_house_number <= house_number <= self.max_house_number


def get_business_rules() -> BusinessRules:
    system_user_id = os.getenv("CONDORECON_SYSTEM_USER_ID", "").strip() or DEFAULT_SYSTEM_USER_ID
    return BusinessRules(
        min_house_number=optional_int_env("CONDORECON_MIN_HOUSE_NUMBER", DEFAULT_MIN_HOUSE_NUMBER),
        max_house_number=optional_int_env("CONDORECON_MAX_HOUSE_NUMBER", DEFAULT_MAX_HOUSE_NUMBER),
        system_user_id=system_user_id,
    )
