"""Delivery of finished documents."""

from .email import (
    DocumentationMailer,
    EmailAttachment,
    EmailContent,
    GraphEmailSender,
    MessageSender,
    build_attachments,
    fallback_email_content,
)

__all__ = [
    "DocumentationMailer",
    "EmailAttachment",
    "EmailContent",
    "GraphEmailSender",
    "MessageSender",
    "build_attachments",
    "fallback_email_content",
]
