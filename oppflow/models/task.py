"""Opportunity task model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from oppflow.models.base import Base, TimestampMixin
from oppflow.models.enums import AssigneeKind, TaskStatus
from oppflow.models.variants import Assignee


class OpportunityTask(Base, TimestampMixin):
    """Board card. ``order`` is only meaningful inside its (opportunity, status) lane."""

    __tablename__ = "opportunity_tasks"
    __table_args__ = (
        Index("idx_tasks_lane", "opportunity_id", "status", "order"),
        CheckConstraint(
            "assigned_user_id IS NULL OR assigned_contact_id IS NULL",
            name="ck_tasks_single_assignee",
        ),
        CheckConstraint("priority >= 0 AND priority <= 2", name="ck_tasks_priority_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    opportunity_id: Mapped[int] = mapped_column(
        ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    answer: Mapped[str | None] = mapped_column(Text)
    answered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str | None] = mapped_column(Text)
    status: Mapped[TaskStatus] = mapped_column(Enum(TaskStatus), default=TaskStatus.TODO, nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reminder_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    assigned_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    assigned_contact_id: Mapped[int | None] = mapped_column(ForeignKey("contacts.id", ondelete="SET NULL"))
    email_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    opportunity = relationship("Opportunity", back_populates="tasks")
    assigned_user = relationship("User")
    assigned_contact = relationship("Contact")

    @property
    def assignee(self) -> Assignee:
        if self.assigned_user_id is not None:
            return Assignee.user(self.assigned_user_id)
        if self.assigned_contact_id is not None:
            return Assignee.contact(self.assigned_contact_id)
        return Assignee.none()

    def assign(self, assignee: Assignee) -> None:
        """Store the variant so that at most one foreign key is ever set."""
        self.assigned_user_id = assignee.id if assignee.kind is AssigneeKind.USER else None
        self.assigned_contact_id = assignee.id if assignee.kind is AssigneeKind.CONTACT else None
