"""Task assignment e-mails.

Mail is only sent when MAIL_HOST, MAIL_USER and MAIL_PASSWORD are configured;
otherwise the notification is logged and skipped. Delivery problems never
reach the request that triggered them.
"""
import logging
import smtplib
import ssl
from email.message import EmailMessage

import config

logger = logging.getLogger(__name__)


def mail_configured() -> bool:
    return bool(config.MAIL_HOST and config.MAIL_USER and config.MAIL_PASSWORD)


def build_task_assignment_message(recipient_name: str, recipient_email: str, task_id: int,
                                  task_title: str, task_description: str = None,
                                  due_date=None) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = f"New task assigned: {task_title}"
    message["From"] = config.MAIL_FROM or config.MAIL_USER
    message["To"] = recipient_email

    lines = [
        f"Hello {recipient_name},",
        "",
        "You have been assigned a new task.",
        "",
        f"Task: {task_title}",
    ]
    if task_description:
        lines.append(f"Description: {task_description}")
    if due_date:
        lines.append(f"Due: {due_date:%Y-%m-%d %H:%M}")
    lines += ["", f"View it at {config.BASE_URL}{config.API_PREFIX}/tasks/{task_id}"]
    message.set_content("\n".join(lines))
    return message


def send_task_assignment_notification(recipient_name: str, recipient_email: str, task_id: int,
                                      task_title: str, task_description: str = None,
                                      due_date=None) -> bool:
    """Send the assignment e-mail. Returns True when the message was handed to the SMTP server."""
    if not mail_configured():
        logger.info(f"Mail not configured; skipping assignment notification for task {task_id} to {recipient_email}")
        return False

    message = build_task_assignment_message(
        recipient_name, recipient_email, task_id, task_title, task_description, due_date
    )
    try:
        if config.MAIL_SECURE:
            with smtplib.SMTP_SSL(config.MAIL_HOST, config.MAIL_PORT, context=ssl.create_default_context(), timeout=10) as server:
                server.login(config.MAIL_USER, config.MAIL_PASSWORD)
                server.send_message(message)
        else:
            with smtplib.SMTP(config.MAIL_HOST, config.MAIL_PORT, timeout=10) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(config.MAIL_USER, config.MAIL_PASSWORD)
                server.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send assignment notification for task {task_id}: {str(e)}", exc_info=True)
        return False

    logger.info(f"Assignment notification for task {task_id} sent to {recipient_email}")
    return True
