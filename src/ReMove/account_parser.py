"""Parsing of user-entered destination accounts."""

from __future__ import annotations

import re
from urllib.parse import urlparse

# GitHub logins: alphanumerics and single hyphens, no leading/trailing hyphen.
_LOGIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


class AccountParseError(Exception):
    """Raised when input cannot name an account."""


def is_valid_login(name: str) -> bool:
    return bool(_LOGIN_RE.match(name))


def parse_account_input(raw: str, host: str = "github.com") -> str:
    """Extract an account login from what the user typed.

    Supported formats:
      - octocat
      - @octocat
      - https://github.com/octocat
      - github.com/octocat
    """
    value = raw.strip()
    if not value:
        raise AccountParseError("Account name is empty.")

    if value.startswith("@"):
        value = value[1:]
    elif "/" in value:
        value = _login_from_url(value, host)

    if not is_valid_login(value):
        raise AccountParseError(f"Not a valid account name: {value}")
    return value


def _login_from_url(value: str, host: str) -> str:
    if "://" not in value:
        value = f"https://{value}"
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https"):
        raise AccountParseError(f"Unsupported scheme: {parsed.scheme}")
    if (parsed.hostname or "") not in (host, f"www.{host}"):
        raise AccountParseError(f"Unsupported host: {parsed.hostname}")

    parts = [p for p in parsed.path.split("/") if p]
    if not parts:
        raise AccountParseError(f"URL does not include an account: {value}")
    if parts[0] == "orgs" and len(parts) >= 2:
        return parts[1]
    return parts[0]
