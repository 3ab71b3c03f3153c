"""Pydantic schema package for API contracts."""

from oppflow.schemas.attachments import AttachmentResponse
from oppflow.schemas.common import APIEnvelope, ErrorEnvelope
from oppflow.schemas.proposals import (
    ProposalCreateRequest,
    ProposalItemInput,
    ProposalItemResponse,
    ProposalResponse,
    ProposalUpdateRequest,
)
from oppflow.schemas.tasks import (
    AssigneeView,
    QuestionnaireDeliveryView,
    QuestionnaireSendRequest,
    QuestionnaireSendResponse,
    TaskBulkCreateRequest,
    TaskBulkCreateResponse,
    TaskCreateRequest,
    TaskReorderItem,
    TaskReorderRequest,
    TaskReorderResponse,
    TaskResponse,
    TaskUpdateRequest,
)

__all__ = [
    "APIEnvelope",
    "AssigneeView",
    "AttachmentResponse",
    "ErrorEnvelope",
    "ProposalCreateRequest",
    "ProposalItemInput",
    "ProposalItemResponse",
    "ProposalResponse",
    "ProposalUpdateRequest",
    "QuestionnaireDeliveryView",
    "QuestionnaireSendRequest",
    "QuestionnaireSendResponse",
    "TaskBulkCreateRequest",
    "TaskBulkCreateResponse",
    "TaskCreateRequest",
    "TaskReorderItem",
    "TaskReorderRequest",
    "TaskReorderResponse",
    "TaskResponse",
    "TaskUpdateRequest",
]
