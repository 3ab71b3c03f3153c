"""SMTP mail sender with a small set of transactional templates."""

from __future__ import annotations

import html
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from oppflow.core.config import Config, get_config
from oppflow.core.exceptions import DeliveryError, ValidationError

logger = logging.getLogger(__name__)

TASK_QUESTION = "task_question"
QUESTIONNAIRE = "questionnaire"


@dataclass(frozen=True)
class RenderedMail:
    to_email: str
    subject: str
    body: str


def _render_task_question(payload: dict[str, Any]) -> RenderedMail:
    esc = {key: html.escape(str(value)) for key, value in payload.items()}
    body = (
        f"<p>Hello {esc['contact_name']},</p>"
        f"<p>For the opportunity <strong>{esc['opportunity_title']}</strong> of "
        f"<strong>{esc['company_name']}</strong> we need your answer to the question below.</p>"
        f"<h3>{esc['question_title']}</h3>"
        f"<p>{esc['question']}</p>"
        f"<p><a href=\"{esc['task_url']}\">Answer the question</a></p>"
        f"<p>{esc['task_url']}</p>"
    )
    return RenderedMail(
        to_email=str(payload["email"]),
        subject=f"Question about opportunity: {payload['opportunity_title']}",
        body=body,
    )


def _render_questionnaire(payload: dict[str, Any]) -> RenderedMail:
    questions = payload["questions"]
    items = "".join(
        f"<li><strong>{html.escape(str(entry['title']))}</strong>"
        f"<p>{html.escape(str(entry['question']))}</p>"
        + (f"<p><em>{html.escape(str(entry['description']))}</em></p>" if entry.get("description") else "")
        + f"<p><a href=\"{html.escape(str(entry['task_url']))}\">Answer</a></p></li>"
        for entry in questions
    )
    custom = payload.get("custom_content")
    intro = (
        f"<p>{html.escape(str(custom))}</p>"
        if custom
        else (
            f"<p>For the opportunity <strong>{html.escape(str(payload['opportunity_title']))}</strong> of "
            f"<strong>{html.escape(str(payload['company_name']))}</strong> we need your answers "
            f"to {len(questions)} question(s).</p>"
        )
    )
    body = (
        f"<p>Hello {html.escape(str(payload['contact_name']))},</p>"
        f"{intro}<ol>{items}</ol>"
        f"<p><a href=\"{html.escape(str(payload['opportunity_url']))}\">Open the opportunity</a></p>"
    )
    return RenderedMail(
        to_email=str(payload["email"]),
        subject=f"Questions about opportunity: {payload['opportunity_title']}",
        body=body,
    )


TEMPLATES = {
    TASK_QUESTION: _render_task_question,
    QUESTIONNAIRE: _render_questionnaire,
}


def render(template_kind: str, payload: dict[str, Any]) -> RenderedMail:
    renderer = TEMPLATES.get(template_kind)
    if renderer is None:
        raise ValidationError(f"Unknown mail template: {template_kind}", field="template_kind")
    try:
        return renderer(payload)
    except KeyError as exc:
        raise ValidationError(f"Mail payload is missing {exc.args[0]}", field=str(exc.args[0])) from exc


class Mailer:
    """Service for sending transactional emails via SMTP."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    def send(self, template_kind: str, payload: dict[str, Any]) -> None:
        """Render and deliver one message; raises ``DeliveryError`` on failure."""
        mail = render(template_kind, payload)
        if not self.config.SMTP_SERVER:
            logger.warning("email.smtp_not_configured", extra={"event": "email.smtp_not_configured"})
            raise DeliveryError("Mail sender is not configured.")

        message = MIMEMultipart("alternative")
        message["Subject"] = mail.subject
        message["From"] = self.config.MAIL_FROM
        message["To"] = mail.to_email
        message.attach(MIMEText(mail.body, "html"))

        try:
            with smtplib.SMTP(self.config.SMTP_SERVER, self.config.SMTP_PORT, timeout=30) as server:
                server.starttls()
                if self.config.SMTP_USERNAME:
                    server.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD or "")
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.exception(
                "email.send_failed",
                extra={"event": "email.send_failed", "template": template_kind},
            )
            raise DeliveryError("Failed to send email.") from exc

        logger.info("email.sent", extra={"event": "email.sent", "template": template_kind})

    def notify(self, template_kind: str, payload: dict[str, Any]) -> bool:
        """Batch delivery: failures are logged and reported as ``False``."""
        try:
            self.send(template_kind, payload)
        except DeliveryError:
            logger.warning("email.notify_skipped", extra={"event": "email.notify_skipped", "template": template_kind})
            return False
        return True
