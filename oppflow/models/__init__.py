"""SQLAlchemy model package for the tenant-aware schema."""

from oppflow.models.attachment import Attachment
from oppflow.models.base import Base
from oppflow.models.company import Company
from oppflow.models.contact import Contact
from oppflow.models.enums import (
    LANE_RANK,
    AssigneeKind,
    AttachmentOwnerKind,
    ProposalStatus,
    TaskStatus,
    UserRole,
)
from oppflow.models.opportunity import Opportunity
from oppflow.models.proposal import Proposal, ProposalItem
from oppflow.models.service import Service
from oppflow.models.task import OpportunityTask
from oppflow.models.tenant import Tenant
from oppflow.models.user import User
from oppflow.models.variants import Assignee, AttachmentOwner

__all__ = [
    "LANE_RANK",
    "Assignee",
    "AssigneeKind",
    "Attachment",
    "AttachmentOwner",
    "AttachmentOwnerKind",
    "Base",
    "Company",
    "Contact",
    "Opportunity",
    "OpportunityTask",
    "Proposal",
    "ProposalItem",
    "ProposalStatus",
    "Service",
    "TaskStatus",
    "Tenant",
    "User",
    "UserRole",
]
