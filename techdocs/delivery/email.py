"""
Email delivery of generated documentation via Microsoft Graph.

The sender authenticates with the client-credentials flow and posts to
``/users/{from}/sendMail``. The mailer drafts the message with the LLM and
falls back to a fixed template when drafting fails.
"""

import base64
import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Protocol

import httpx

from techdocs.ai import prompts
from techdocs.ai.client import TextGenerator
from techdocs.config import Settings
from techdocs.errors import DeliveryFailure
from techdocs.models import AnalysisMetadata

logger = logging.getLogger(__name__)

GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
TOKEN_URL_TEMPLATE = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
EMAIL_MAX_TOKENS = 1000


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: str
    mime_type: str


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html: str
    text: str


class MessageSender(Protocol):
    async def send(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        text_body: str,
        attachments: List[EmailAttachment],
    ) -> bool:
        ...


# =============================================================================
# Graph transport
# =============================================================================

class GraphEmailSender:
    """
    Sends mail from a fixed mailbox through Microsoft Graph.

    Usage:
        sender = GraphEmailSender.from_settings(settings)
        await sender.send("team@example.com", "Docs", html, text, attachments)
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        from_email: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.tenant_id = tenant_id
        self.from_email = from_email
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "GraphEmailSender":
        return cls(
            client_id=settings.microsoft_client_id or "",
            client_secret=settings.microsoft_client_secret or "",
            tenant_id=settings.microsoft_tenant_id or "",
            from_email=settings.email_from or "",
            timeout=settings.http_timeout,
            client=client,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def get_access_token(self) -> str:
        """Acquire an app-only token with the client-credentials grant."""
        client = await self._get_client()
        response = await client.post(
            TOKEN_URL_TEMPLATE.format(tenant=self.tenant_id),
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
            headers={"Accept": "application/json"},
        )
        if response.status_code != 200:
            raise DeliveryFailure(f"Token request failed ({response.status_code}): {response.text}")

        token = response.json().get("access_token")
        if not token:
            raise DeliveryFailure("Token response did not contain an access token")
        return token

    @staticmethod
    def build_message(
        recipient: str,
        subject: str,
        html_body: str,
        attachments: List[EmailAttachment],
    ) -> Dict[str, Any]:
        return {
            "message": {
                "subject": subject,
                "body": {"contentType": "HTML", "content": html_body},
                "toRecipients": [{"emailAddress": {"address": recipient}}],
                "attachments": [
                    {
                        "@odata.type": "#microsoft.graph.fileAttachment",
                        "name": attachment.filename,
                        "contentType": attachment.mime_type,
                        "contentBytes": base64.b64encode(
                            attachment.content.encode("utf-8")
                        ).decode("ascii"),
                    }
                    for attachment in attachments
                ],
            },
            "saveToSentItems": True,
        }

    async def send(
        self,
        recipient: str,
        subject: str,
        html_body: str,
        text_body: str,
        attachments: List[EmailAttachment],
    ) -> bool:
        """
        Send one message. Graph takes a single body, so the HTML body is sent
        and the text body is only used for logging.

        Raises:
            DeliveryFailure: on any non-success response
        """
        token = await self.get_access_token()
        client = await self._get_client()
        response = await client.post(
            f"{GRAPH_API_BASE}/users/{self.from_email}/sendMail",
            json=self.build_message(recipient, subject, html_body, attachments),
            headers={"Authorization": f"Bearer {token}"},
        )
        if response.status_code not in (200, 202):
            raise DeliveryFailure(f"sendMail failed ({response.status_code}): {response.text}")

        logger.info(
            f"Email sent to {recipient} with {len(attachments)} attachments "
            f"({len(text_body)} chars plain text)"
        )
        return True

    async def test_connection(self) -> bool:
        try:
            token = await self.get_access_token()
            client = await self._get_client()
            response = await client.get(
                f"{GRAPH_API_BASE}/users/{self.from_email}",
                headers={"Authorization": f"Bearer {token}"},
            )
            response.raise_for_status()
        except (DeliveryFailure, httpx.HTTPError) as e:
            logger.error(f"Microsoft Graph connection failed: {e}")
            return False
        logger.info("Microsoft Graph connection successful")
        return True


# =============================================================================
# Documentation mailer
# =============================================================================

def sanitize_filename(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name)


def build_attachments(project_name: str, technical_spec: str, functional_spec: str) -> List[EmailAttachment]:
    stem = sanitize_filename(project_name)
    return [
        EmailAttachment(
            filename=f"{stem}_technical_spec.md",
            content=technical_spec,
            mime_type="text/markdown",
        ),
        EmailAttachment(
            filename=f"{stem}_functional_spec.html",
            content=functional_spec,
            mime_type="text/html",
        ),
    ]


def fallback_email_content(project_name: str) -> EmailContent:
    subject = f"Technical Documentation - {project_name}"

    html = f"""
      <h2>Technical Documentation Delivery</h2>
      <p>Dear Team,</p>

      <p>Please find attached the technical documentation for <strong>{project_name}</strong>.</p>

      <h3>Attached Documents:</h3>
      <ul>
        <li><strong>Technical Specification (MD)</strong> - Technical architecture and implementation details</li>
        <li><strong>Functional Specification (HTML)</strong> - Business requirements and functional overview</li>
      </ul>

      <p>These documents cover the system architecture, technology stack, component structure and implementation recommendations.</p>

      <p>Please review the documents and reach out if you have any questions.</p>

      <p>Best regards,<br>TechDocs Generator</p>
    """

    text = f"""Technical Documentation Delivery

Dear Team,

Please find attached the technical documentation for {project_name}.

Attached Documents:
- Technical Specification (MD) - Technical architecture and implementation details
- Functional Specification (HTML) - Business requirements and functional overview

These documents cover the system architecture, technology stack, component structure and implementation recommendations.

Please review the documents and reach out if you have any questions.

Best regards,
TechDocs Generator"""

    return EmailContent(subject=subject, html=html, text=text)


def parse_email_content(response: str) -> Optional[EmailContent]:
    """Parse the drafted JSON, tolerating a fenced code block around it."""
    text = response.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL)
    if fenced:
        text = fenced.group(1)
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    subject = data.get("subject")
    html = data.get("htmlContent")
    plain = data.get("textContent")
    if not (subject and html and plain):
        return None
    return EmailContent(subject=subject, html=html, text=plain)


class DocumentationMailer:
    """Drafts and sends the documentation email."""

    def __init__(self, sender: MessageSender, generator: Optional[TextGenerator] = None):
        self.sender = sender
        self.generator = generator

    async def compose(self, project_name: str, metadata: Optional[AnalysisMetadata] = None) -> EmailContent:
        if self.generator is None:
            return fallback_email_content(project_name)

        context = (
            json.dumps(asdict(metadata), indent=2)
            if metadata else "No additional metadata provided"
        )
        prompt = prompts.EMAIL_TEMPLATE.format(project_name=project_name, context=context)

        try:
            response = await self.generator.generate(prompts.EMAIL_SYSTEM, prompt, EMAIL_MAX_TOKENS)
        except Exception as e:
            logger.warning(f"Email drafting failed, using template: {e}")
            return fallback_email_content(project_name)

        content = parse_email_content(response)
        if content is None:
            logger.warning("Drafted email was not valid JSON, using template")
            return fallback_email_content(project_name)
        return content

    async def send_documentation(
        self,
        recipient: str,
        project_name: str,
        technical_spec: str,
        functional_spec: str,
        metadata: Optional[AnalysisMetadata] = None,
    ) -> bool:
        """
        Email both documents as attachments.

        Returns:
            True when sent, False when the transport failed (logged)
        """
        content = await self.compose(project_name, metadata)
        attachments = build_attachments(project_name, technical_spec, functional_spec)

        try:
            return await self.sender.send(
                recipient,
                content.subject,
                content.html,
                content.text,
                attachments,
            )
        except (DeliveryFailure, httpx.HTTPError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}")
            return False
