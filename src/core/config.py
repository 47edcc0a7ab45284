"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

BODY_PLACEHOLDER = "$$IMBODY$$"

KEY_SHOW_EMAIL = "plugin.emailonaway.showemail"
KEY_SUBJECT = "plugin.emailonaway.email.subject"
KEY_BODY_PLAIN = "plugin.emailonaway.email.body.plain"
KEY_BODY_HTML = "plugin.emailonaway.email.body.html"
KEY_USE_ADDRESS_AS_EMAIL = "plugin.emailonaway.use_xmpp_as_email_address"
KEY_DEFAULT_EMAIL_ADDRESS = "plugin.emailonaway.email.default_mail_address"


def default_email_for(server_domain: str) -> str:
    return f"no-reply@{server_domain}"


@dataclass(frozen=True)
class ForwardingConfig:
    """Effective forwarding settings, read once per interception."""

    default_email_address: str
    show_email: bool = True
    subject: str = "IM"
    body_plain: str = BODY_PLACEHOLDER
    body_html: str = ""
    use_address_as_email: bool = True

    @classmethod
    def defaults(cls, server_domain: str) -> "ForwardingConfig":
        return cls(default_email_address=default_email_for(server_domain))
