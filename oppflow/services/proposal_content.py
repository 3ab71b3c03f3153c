"""Proposal body text: prompt construction and the deterministic fallback."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from oppflow.core.exceptions import ConfigurationError, UpstreamUnavailableError

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class ContentLine:
    code: str
    description: str
    quantity: int
    price: Decimal
    total: Decimal


@dataclass(frozen=True)
class ProposalPromptContext:
    title: str
    company_name: str
    short_description: str | None
    total_amount: Decimal
    lines: list[ContentLine] = field(default_factory=list)


def format_money(amount: Decimal) -> str:
    return f"${amount.quantize(Decimal('0.01')):,}"


def _services_block(context: ProposalPromptContext) -> str:
    return "\n".join(
        f"- {line.description} (Code: {line.code}, Qty: {line.quantity}, "
        f"Unit: {format_money(line.price)}, Line total: {format_money(line.total)})"
        for line in context.lines
    )


def build_prompt(context: ProposalPromptContext) -> str:
    return (
        f'Create a professional business proposal for the client "{context.company_name}".\n\n'
        f"Proposal Title: {context.title}\n"
        f"Context/Description: {context.short_description or 'N/A'}\n\n"
        f"Services Included:\n{_services_block(context)}\n\n"
        f"Total Value: {format_money(context.total_amount)}\n\n"
        "Please write a comprehensive proposal including:\n"
        "1. Executive Summary\n"
        "2. Project Scope & Deliverables\n"
        "3. Timeline & Implementation Strategy\n"
        "4. Investment Breakdown (referencing the items)\n"
        "5. Conclusion\n\n"
        "Tone: Professional, persuasive, and tailored to the services listed.\n"
        "Format: Markdown."
    )


def build_fallback_content(context: ProposalPromptContext) -> str:
    """Plain summary used whenever the generator cannot produce text."""
    return (
        f"# Proposal: {context.title}\n"
        f"**Client:** {context.company_name}\n\n"
        "## Executive Summary\n"
        f"{context.short_description or 'N/A'}\n\n"
        "## Services\n"
        f"{_services_block(context)}\n\n"
        "## Investment\n"
        f"Total: {format_money(context.total_amount)}\n"
    )


@dataclass(frozen=True)
class BoardAnswer:
    question: str
    answer: str | None


@dataclass(frozen=True)
class BoardPromptContext:
    """Finished task board of one opportunity."""

    title: str
    company_name: str
    description: str | None
    answers: list[BoardAnswer] = field(default_factory=list)


def _answers_block(context: BoardPromptContext) -> str:
    return "\n\n".join(
        f"{index}. {entry.question}\n   Answer: {entry.answer or 'No answer provided'}"
        for index, entry in enumerate(context.answers, start=1)
    )


def build_board_prompt(context: BoardPromptContext) -> str:
    return (
        "Based on the following opportunity information and customer responses, "
        "generate a comprehensive, professional proposal.\n\n"
        "OPPORTUNITY DETAILS:\n"
        f"Title: {context.title}\n"
        f"Company: {context.company_name}\n"
        f"Description: {context.description or 'No description'}\n\n"
        f"ANSWERS TO CLARIFICATION QUESTIONS:\n{_answers_block(context)}\n\n"
        "Please include:\n"
        "1. Executive Summary\n"
        "2. Scope of Work\n"
        "3. Deliverables\n"
        "4. Pricing\n"
        "5. Timeline\n"
        "6. Terms and Conditions\n\n"
        "Format: Markdown."
    )


def build_board_fallback(context: BoardPromptContext) -> str:
    return (
        f"# Proposal: {context.title}\n"
        f"**Client:** {context.company_name}\n\n"
        "## Executive Summary\n"
        f"{context.description or 'N/A'}\n\n"
        "## Clarifications\n"
        f"{_answers_block(context)}\n"
    )


def _generate(prompt: str, fallback: str, generator: TextGenerator | None) -> str:
    """Ask the generator for a body; any failure or empty answer yields ``fallback``."""
    if generator is None:
        return fallback
    try:
        text = generator.generate(prompt)
    except (UpstreamUnavailableError, ConfigurationError) as exc:
        logger.warning(
            "proposal.content.fallback",
            extra={"event": "proposal.content.fallback", "reason": str(exc)},
        )
        return fallback
    except Exception as exc:
        # Injected generators may fail in ways the HTTP client never does.
        logger.exception(
            "proposal.content.fallback",
            extra={"event": "proposal.content.fallback", "reason": f"{type(exc).__name__}: {exc}"},
        )
        return fallback
    if not text or not text.strip():
        logger.warning(
            "proposal.content.fallback",
            extra={"event": "proposal.content.fallback", "reason": "empty generation"},
        )
        return fallback
    return text.strip()


def generate_content(context: ProposalPromptContext, generator: TextGenerator | None) -> str:
    return _generate(build_prompt(context), build_fallback_content(context), generator)


def generate_board_content(context: BoardPromptContext, generator: TextGenerator | None) -> str:
    return _generate(build_board_prompt(context), build_board_fallback(context), generator)
