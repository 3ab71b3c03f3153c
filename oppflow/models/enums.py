"""Canonical enum values for the tenant-aware schema."""

from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    SUPERADMIN = "SUPERADMIN"
    OWNER = "OWNER"
    MANAGER = "MANAGER"
    INFLUENCER = "INFLUENCER"
    CLIENT = "CLIENT"


class TaskStatus(str, enum.Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "REVIEW"
    DONE = "DONE"


# Board lanes render left to right in this order.
LANE_RANK: dict[TaskStatus, int] = {
    TaskStatus.TODO: 0,
    TaskStatus.IN_PROGRESS: 1,
    TaskStatus.REVIEW: 2,
    TaskStatus.DONE: 3,
}


class ProposalStatus(str, enum.Enum):
    """Well-known proposal states; the column itself accepts any status string."""

    DRAFT = "DRAFT"
    SENT = "SENT"
    REVIEW = "REVIEW"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class AssigneeKind(str, enum.Enum):
    USER = "user"
    CONTACT = "contact"
    NONE = "none"


class AttachmentOwnerKind(str, enum.Enum):
    COMPANY = "company"
    OPPORTUNITY = "opportunity"
    TASK = "task"
