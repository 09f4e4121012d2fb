"""WS-Security UsernameToken headers (PasswordText or PasswordDigest).

Every header carries a Timestamp valid for five minutes from ``now``.  In
digest mode a 16-byte random nonce is generated and

    digest = base64(sha1(nonce + created + password))

where ``created`` is the RFC 3339 UTC timestamp sent alongside the token.
Plaintext mode sends the password as-is; transport confidentiality is left to
the caller.
"""

from __future__ import annotations

import base64
import hashlib
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

NS_WSSE = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
NS_WSU = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd"
PASSWORD_TEXT = (
    "http://docs.oasis-open.org/wss/2004/01/"
    "oasis-200401-wss-username-token-profile-1.0#PasswordText"
)
PASSWORD_DIGEST = (
    "http://docs.oasis-open.org/wss/2004/01/"
    "oasis-200401-wss-username-token-profile-1.0#PasswordDigest"
)
BASE64_ENCODING = (
    "http://docs.oasis-open.org/wss/2004/01/"
    "oasis-200401-wss-soap-message-security-1.0#Base64Binary"
)

TIMESTAMP_WINDOW = timedelta(minutes=5)
NONCE_SIZE = 16


class Mode(str, Enum):
    PLAINTEXT = "plaintext"
    DIGEST = "digest"


@dataclass(frozen=True)
class Credential:
    """Username/password supplied per call; never persisted."""

    username: str
    password: str = field(repr=False)
    mode: Mode = Mode.PLAINTEXT

    def __post_init__(self) -> None:
        object.__setattr__(self, "mode", Mode(self.mode))


@dataclass(frozen=True)
class SecurityHeader:
    created: str
    expires: str
    username: str = ""
    password: str = field(default="", repr=False)
    password_type: str = ""
    nonce: str = ""

    @property
    def is_digest(self) -> bool:
        return self.password_type == PASSWORD_DIGEST

    def to_element(self) -> ET.Element:
        security = ET.Element("wsse:Security", {
            "xmlns:wsse": NS_WSSE,
            "xmlns:wsu": NS_WSU,
        })
        timestamp = ET.SubElement(security, "wsu:Timestamp")
        ET.SubElement(timestamp, "wsu:Created").text = self.created
        ET.SubElement(timestamp, "wsu:Expires").text = self.expires

        if self.username:
            token = ET.SubElement(security, "wsse:UsernameToken")
            ET.SubElement(token, "wsse:Username").text = self.username
            password = ET.SubElement(token, "wsse:Password", {"Type": self.password_type})
            password.text = self.password
            if self.is_digest:
                nonce = ET.SubElement(token, "wsse:Nonce", {"EncodingType": BASE64_ENCODING})
                nonce.text = self.nonce
                ET.SubElement(token, "wsu:Created").text = self.created
        return security


def format_timestamp(moment: datetime) -> str:
    """RFC 3339 in UTC with second precision, e.g. 2024-05-01T12:00:00Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def generate_nonce() -> bytes:
    return os.urandom(NONCE_SIZE)


def password_digest(nonce: bytes, created: str, password: str) -> str:
    digest = hashlib.sha1(nonce + created.encode("utf-8") + password.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def build_security_header(
    credential: Credential,
    now: datetime | None = None,
    nonce: bytes | None = None,
) -> SecurityHeader:
    """Build a Timestamp + UsernameToken header for ``credential``.

    ``now`` and ``nonce`` default to the current time and fresh random bytes;
    pass them explicitly for reproducible output.
    """
    now = now or datetime.now(timezone.utc)
    created = format_timestamp(now)
    expires = format_timestamp(now + TIMESTAMP_WINDOW)

    if not credential.username:
        return SecurityHeader(created=created, expires=expires)

    if credential.mode is Mode.DIGEST:
        nonce = nonce if nonce is not None else generate_nonce()
        return SecurityHeader(
            created=created,
            expires=expires,
            username=credential.username,
            password=password_digest(nonce, created, credential.password),
            password_type=PASSWORD_DIGEST,
            nonce=base64.b64encode(nonce).decode("ascii"),
        )

    return SecurityHeader(
        created=created,
        expires=expires,
        username=credential.username,
        password=credential.password,
        password_type=PASSWORD_TEXT,
    )
