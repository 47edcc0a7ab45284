from __future__ import annotations

from typing import Optional

import pytest

from adapters.interceptor_registry import InterceptorRegistry
from adapters.smtp_mailer import SMTPMailer
from core.addresses import parse_address
from core.config import ForwardingConfig
from core.errors import MailError, UserNotFound
from core.gate import FORWARD, PASSTHROUGH, AwayMailGate, is_away
from core.models import CHAT, Message, UserIdentity
from core.resolver import IdentityResolver


class FakeDirectory:
    def __init__(self) -> None:
        self.users: dict[str, UserIdentity] = {}
        self.profiles: dict[str, dict[str, str]] = {}
        self.presence: dict[str, str] = {}

    def add_user(
        self,
        username: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        presence: Optional[str] = None,
        profile: Optional[dict[str, str]] = None,
    ) -> None:
        self.users[username] = UserIdentity(username=username, name=name, email=email)
        self.profiles[username] = dict(profile or {})
        if presence is not None:
            self.presence[username] = presence

    def is_local(self, address) -> bool:
        return address.domain == "example.com"

    def get_user(self, username: str) -> UserIdentity:
        if username not in self.users:
            raise UserNotFound(username)
        return self.users[username]

    def get_presence(self, user: UserIdentity) -> Optional[str]:
        return self.presence.get(user.username)

    def get_profile_field(self, username: str, field: str) -> Optional[str]:
        return self.profiles.get(username, {}).get(field)


class FakeMailer:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.sent: list[tuple] = []
        self._error = error

    def send_message(self, *args) -> None:
        if self._error is not None:
            raise self._error
        self.sent.append(args)


class FakeRouter:
    def __init__(self) -> None:
        self.routed: list[Message] = []

    def route(self, message: Message) -> None:
        self.routed.append(message)


class StaticConfig:
    def __init__(self, config: ForwardingConfig) -> None:
        self.config = config

    def snapshot(self) -> ForwardingConfig:
        return self.config


def _setup(mailer=None, **config_overrides):
    directory = FakeDirectory()
    directory.add_user(
        "alice",
        name="Alice",
        presence="away",
        profile={"EMAIL": "alice.personal@mail.com"},
    )
    directory.add_user("bob", name="Bob", presence="available", profile={"FN": "Bob Jones"})
    mailer = mailer or FakeMailer()
    router = FakeRouter()
    config = ForwardingConfig(default_email_address="no-reply@example.com", **config_overrides)
    gate = AwayMailGate(
        host=directory,
        users=directory,
        presence=directory,
        resolver=IdentityResolver(host=directory, users=directory, profiles=directory),
        mailer=mailer,
        router=router,
        config=StaticConfig(config),
    )
    return gate, directory, mailer, router


def _chat(body: Optional[str] = "hello", **overrides) -> Message:
    fields = {
        "sender": parse_address("bob@example.com/laptop"),
        "recipient": parse_address("alice@example.com"),
        "message_type": CHAT,
        "body": body,
    }
    fields.update(overrides)
    return Message(**fields)


def test_away_recipient_gets_email_and_sender_gets_confirmation() -> None:
    gate, _, mailer, router = _setup()

    assert gate.evaluate(_chat(), processed=False, read=False) == FORWARD

    assert mailer.sent == [
        ("Alice", "alice.personal@mail.com", "Bob Jones", "bob@example.com", "IM", "hello", None),
    ]
    assert len(router.routed) == 1
    confirmation = router.routed[0]
    assert str(confirmation.recipient) == "bob@example.com"
    assert str(confirmation.sender) == "alice@example.com"
    assert "alice.personal@mail.com" in confirmation.body


def test_recipient_without_any_email_falls_back_to_address() -> None:
    gate, directory, mailer, router = _setup()
    directory.profiles["alice"] = {}

    assert gate.evaluate(_chat(), processed=False, read=False) == FORWARD

    assert mailer.sent[0][1] == "alice@example.com"
    assert "alice@example.com" in router.routed[0].body


def test_templates_and_subject_come_from_config() -> None:
    gate, _, mailer, _ = _setup(
        subject="Missed chat",
        body_plain="You missed: $$IMBODY$$",
        body_html="<b>$$IMBODY$$</b>",
    )

    gate.evaluate(_chat(), processed=False, read=False)

    assert mailer.sent[0][4:] == ("Missed chat", "You missed: hello", "<b>hello</b>")


def test_empty_plain_template_is_not_sent() -> None:
    gate, _, mailer, _ = _setup(body_plain="", body_html="<p>$$IMBODY$$</p>")

    gate.evaluate(_chat(), processed=False, read=False)

    assert mailer.sent[0][5:] == (None, "<p>hello</p>")


def test_confirmation_hides_email_when_configured() -> None:
    gate, _, _, router = _setup(show_email=False)

    gate.evaluate(_chat(), processed=False, read=False)

    assert "alice.personal@mail.com" not in router.routed[0].body


@pytest.mark.parametrize(
    ("message", "processed", "read"),
    [
        (_chat(), True, False),
        (_chat(), False, True),
        (_chat(recipient=None), False, False),
        (_chat(sender=None), False, False),
        (_chat(message_type="groupchat"), False, False),
        (_chat(message_type="normal"), False, False),
        (_chat(message_type="headline"), False, False),
        (_chat(message_type="error"), False, False),
        (_chat(recipient=parse_address("alice@elsewhere.org")), False, False),
        (_chat(recipient=parse_address("ghost@example.com")), False, False),
        (_chat(recipient=parse_address("bob@example.com")), False, False),
        (_chat(body=None), False, False),
        (_chat(body=""), False, False),
    ],
)
def test_unqualified_messages_have_no_side_effects(message: Message, processed: bool, read: bool) -> None:
    gate, _, mailer, router = _setup()

    assert gate.evaluate(message, processed=processed, read=read) == PASSTHROUGH

    assert mailer.sent == []
    assert router.routed == []


@pytest.mark.parametrize("status", ["dnd", "available", "chat"])
def test_present_recipient_is_passed_through(status: str) -> None:
    gate, directory, mailer, router = _setup()
    directory.presence["alice"] = status

    assert gate.evaluate(_chat(), processed=False, read=False) == PASSTHROUGH
    assert not mailer.sent and not router.routed


def test_offline_recipient_is_passed_through() -> None:
    gate, directory, mailer, _ = _setup()
    del directory.presence["alice"]

    assert gate.evaluate(_chat(), processed=False, read=False) == PASSTHROUGH
    assert not mailer.sent


def test_presence_match_is_case_insensitive_substring() -> None:
    assert is_away("<presence><show>AWAY</show></presence>")
    assert is_away("Extended Away")
    assert not is_away("xa")
    assert not is_away(None)


def test_mail_failure_skips_confirmation() -> None:
    gate, _, _, router = _setup(mailer=FakeMailer(error=MailError("relay down")))

    assert gate.evaluate(_chat(), processed=False, read=False) == PASSTHROUGH
    assert router.routed == []


def test_unexpected_errors_never_reach_the_caller() -> None:
    gate, directory, mailer, _ = _setup()

    def broken(user):
        raise RuntimeError("presence store offline")

    directory.get_presence = broken

    assert gate.evaluate(_chat(), processed=False, read=False) == PASSTHROUGH
    assert not mailer.sent


def test_attach_and_detach_with_registry() -> None:
    gate, _, mailer, _ = _setup()
    registry = InterceptorRegistry()

    gate.attach(registry)
    assert registry.dispatch(_chat()) == [FORWARD]

    gate.detach(registry)
    assert registry.dispatch(_chat()) == []
    assert len(mailer.sent) == 1


def test_no_confirmation_when_both_templates_are_empty() -> None:
    gate, _, _, router = _setup(mailer=SMTPMailer("relay.invalid"), body_plain="", body_html="")

    assert gate.evaluate(_chat(), processed=False, read=False) == PASSTHROUGH
    assert router.routed == []
