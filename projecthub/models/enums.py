"""Canonical enum values for roles and workflow statuses."""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    ADMIN = "Admin"
    CEO = "CEO"
    TEAM_LEAD = "Team Lead"
    DEVELOPER = "Developer"
    FINANCE = "Finance"

    @classmethod
    def parse(cls, value) -> "Role | None":
        """Return the Role for a claim/body value, or None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


class ProjectStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


class ModuleStatus(str, enum.Enum):
    PENDING = "Pending"
    STARTED = "Started"
    COMPLETE = "Complete"


class PaymentStatus(str, enum.Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REJECTED = "Rejected"


def values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]
