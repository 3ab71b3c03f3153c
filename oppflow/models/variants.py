"""Tagged variants for polymorphic task assignees and attachment owners."""

from __future__ import annotations

from dataclasses import dataclass

from oppflow.models.enums import AssigneeKind, AttachmentOwnerKind


@dataclass(frozen=True)
class Assignee:
    kind: AssigneeKind
    id: int | None = None

    def __post_init__(self) -> None:
        if (self.kind is AssigneeKind.NONE) != (self.id is None):
            raise ValueError("Assignee id must be set for user/contact and empty for none.")

    @classmethod
    def none(cls) -> "Assignee":
        return cls(kind=AssigneeKind.NONE)

    @classmethod
    def user(cls, user_id: int) -> "Assignee":
        return cls(kind=AssigneeKind.USER, id=user_id)

    @classmethod
    def contact(cls, contact_id: int) -> "Assignee":
        return cls(kind=AssigneeKind.CONTACT, id=contact_id)

    @property
    def is_assigned(self) -> bool:
        return self.kind is not AssigneeKind.NONE


@dataclass(frozen=True)
class AttachmentOwner:
    kind: AttachmentOwnerKind
    id: int

    @classmethod
    def company(cls, company_id: int) -> "AttachmentOwner":
        return cls(kind=AttachmentOwnerKind.COMPANY, id=company_id)

    @classmethod
    def opportunity(cls, opportunity_id: int) -> "AttachmentOwner":
        return cls(kind=AttachmentOwnerKind.OPPORTUNITY, id=opportunity_id)

    @classmethod
    def task(cls, task_id: int) -> "AttachmentOwner":
        return cls(kind=AttachmentOwnerKind.TASK, id=task_id)
