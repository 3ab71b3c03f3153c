"""Render a proposal to a PDF document."""

from __future__ import annotations

import html
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from oppflow.models import Proposal
from oppflow.services.proposal_content import format_money


def _markdown_flowables(text: str, styles) -> list:
    """Tiny markdown subset: ``#`` headings, ``-``/``*`` bullets, plain paragraphs."""
    flowables: list = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            flowables.append(Spacer(1, 0.08 * inch))
            continue
        escaped = html.escape(line)
        if line.startswith("### "):
            flowables.append(Paragraph(html.escape(line[4:]), styles["Heading3"]))
        elif line.startswith("## "):
            flowables.append(Paragraph(html.escape(line[3:]), styles["Heading2"]))
        elif line.startswith("# "):
            flowables.append(Paragraph(html.escape(line[2:]), styles["Heading1"]))
        elif line.startswith(("- ", "* ")):
            flowables.append(Paragraph(f"&bull; {html.escape(line[2:])}", styles["Normal"]))
        else:
            flowables.append(Paragraph(escaped, styles["Normal"]))
    return flowables


def render_proposal_pdf(proposal: Proposal) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=inch,
        leftMargin=inch,
        topMargin=inch,
        bottomMargin=inch,
        title=proposal.title,
    )
    styles = getSampleStyleSheet()
    elements: list = [
        Paragraph(html.escape(proposal.title), styles["Title"]),
        Paragraph(
            f"Client: {html.escape(proposal.company.name)} | Status: {html.escape(proposal.status)} "
            f"| Version: {proposal.version}",
            styles["Normal"],
        ),
        Spacer(1, 0.3 * inch),
    ]

    rows = [["Code", "Description", "Qty", "Unit Price", "Total"]]
    for item in proposal.items:
        rows.append(
            [
                item.service.code,
                Paragraph(html.escape(item.service.description), styles["Normal"]),
                str(item.quantity),
                format_money(item.price),
                format_money(item.total),
            ]
        )
    rows.append(["", "", "", "Total:", format_money(proposal.total_amount)])

    table = Table(rows, colWidths=[0.9 * inch, 2.6 * inch, 0.5 * inch, 1.1 * inch, 1.1 * inch])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#3498DB")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -2), 0.5, colors.grey),
                ("FONTNAME", (3, -1), (-1, -1), "Helvetica-Bold"),
                ("LINEABOVE", (3, -1), (-1, -1), 1, colors.HexColor("#2C3E50")),
                ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    elements.append(table)
    elements.append(Spacer(1, 0.4 * inch))
    elements.extend(_markdown_flowables(proposal.content or "", styles))

    doc.build(elements)
    return buffer.getvalue()
