from __future__ import annotations

import logging
from decimal import Decimal

from oppflow.services.proposal_content import (
    BoardAnswer,
    BoardPromptContext,
    ContentLine,
    ProposalPromptContext,
    build_board_prompt,
    build_fallback_content,
    build_prompt,
    format_money,
    generate_board_content,
    generate_content,
)


def _context():
    return ProposalPromptContext(
        title="Relaunch",
        company_name="Acme Industries",
        short_description=None,
        total_amount=Decimal("1250"),
        lines=[ContentLine("DSN", "Design sprint", 2, Decimal("625"), Decimal("1250"))],
    )


def test_format_money_groups_thousands():
    assert format_money(Decimal("1250")) == "$1,250.00"


def test_prompt_lists_services_and_total():
    prompt = build_prompt(_context())
    assert 'client "Acme Industries"' in prompt
    assert "Design sprint (Code: DSN, Qty: 2" in prompt
    assert "Total Value: $1,250.00" in prompt
    assert "Context/Description: N/A" in prompt


def test_fallback_is_deterministic():
    assert build_fallback_content(_context()) == build_fallback_content(_context())


def test_blank_generation_falls_back():
    class _Blank:
        def generate(self, prompt):
            return "   "

    assert generate_content(_context(), _Blank()).startswith("# Proposal: Relaunch")


def test_generated_text_is_trimmed(text_generator):
    text_generator.text = "  # Tailored  \n"
    assert generate_content(_context(), text_generator) == "# Tailored"


def test_unexpected_generator_error_falls_back(caplog):
    class _SocketClosed:
        def generate(self, prompt):
            raise RuntimeError("socket closed")

    with caplog.at_level(logging.WARNING):
        content = generate_content(_context(), _SocketClosed())

    assert content == build_fallback_content(_context())
    assert any(record.getMessage() == "proposal.content.fallback" for record in caplog.records)


def test_board_prompt_numbers_answers():
    context = BoardPromptContext(
        title="Relaunch",
        company_name="Acme Industries",
        description=None,
        answers=[BoardAnswer("Budget?", "20k"), BoardAnswer("Deadline?", None)],
    )
    prompt = build_board_prompt(context)
    assert "1. Budget?\n   Answer: 20k" in prompt
    assert "2. Deadline?\n   Answer: No answer provided" in prompt
    assert generate_board_content(context, None).startswith("# Proposal: Relaunch")
