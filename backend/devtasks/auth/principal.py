"""
Roles and the authenticated caller.

Roles form a closed set; comparisons go through the enum, never through
raw strings.
"""

import enum
from dataclasses import dataclass, field
from typing import FrozenSet, Optional


class Role(str, enum.Enum):
    CEO = "CEO"
    PROJECT_MANAGER = "PROJECT_MANAGER"
    ASSISTANT_PROJECT_MANAGER = "ASSISTANT_PROJECT_MANAGER"
    TEAM_LEADER = "TEAM_LEADER"
    SOFTWARE_ENGINEER = "SOFTWARE_ENGINEER"


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller, as resolved by the Authentication Gate.

    subordinate_ids is the inverse of each subordinate's reports_to_id;
    the user store maintains that pairing.
    """

    id: str
    role: Role
    is_active: bool = True
    reports_to_id: Optional[str] = None
    subordinate_ids: FrozenSet[str] = field(default_factory=frozenset)
    email: str = ""
    first_name: str = ""
    last_name: str = ""

    @classmethod
    def from_user(cls, user) -> "Principal":
        """Build a Principal from a User row with direct_reports loaded."""
        return cls(
            id=user.id,
            role=Role(user.role),
            is_active=bool(user.is_active),
            reports_to_id=user.reports_to_id,
            subordinate_ids=frozenset(report.id for report in user.direct_reports),
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )
