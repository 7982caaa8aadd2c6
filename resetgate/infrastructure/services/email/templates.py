"""Jinja2 rendering of the password reset email."""

from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from resetgate.core.exceptions import TemplateRenderError
from resetgate.domain.interfaces.services import EmailMessage, IPasswordResetEmailComposer

logger = structlog.get_logger(__name__)

RESET_SUBJECT = "Reset your password"
TEXT_TEMPLATE = "password_reset.txt"
HTML_TEMPLATE = "password_reset.html"


class PasswordResetEmailComposer(IPasswordResetEmailComposer):
    """Renders the text and HTML bodies of the reset email.

    HTML templates are auto-escaped; the plain text template is not, so the
    link survives verbatim.

    Args:
        templates_dir: Directory containing ``password_reset.txt`` and ``password_reset.html``.
        app_name: Product name shown in the email.
    """

    def __init__(self, templates_dir: str, app_name: str = "resetgate"):
        self.app_name = app_name
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(Path(templates_dir))),
            autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def compose(self, reset_url: str, expires_in_minutes: int) -> EmailMessage:
        context = {
            "app_name": self.app_name,
            "reset_url": reset_url,
            "expires_in_minutes": expires_in_minutes,
        }
        try:
            body = self.jinja_env.get_template(TEXT_TEMPLATE).render(**context)
            html = self.jinja_env.get_template(HTML_TEMPLATE).render(**context)
        except TemplateError as exc:
            logger.error("Failed to render password reset email", error=str(exc))
            raise TemplateRenderError(f"Failed to render password reset email: {exc}") from exc
        return EmailMessage(subject=RESET_SUBJECT, body=body, html=html)
