import re

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.\w+")
_IPV4_RE = re.compile(r"\b(\d{1,3}\.\d{1,3}\.\d{1,3}\.)\d{1,3}\b")
# International numbers: optional +, 9-20 digits and separators.
_PHONE_RE = re.compile(r"(?<![\w.\-])\+?\d[\d\s\-()]{7,18}\d\b")
_SECRET_RE = re.compile(
    r'(password|passwd|pwd|secret|token)["\']?\s*[:=]\s*["\']?[^"\'&\s]+',
    flags=re.IGNORECASE,
)


def _mask_email(match: re.Match) -> str:
    value = match.group()
    return value[0] + "***@" + value.split("@")[1]


def redact_pii(message: str) -> str:
    """Redact personally identifiable information from log messages.

    Contact submissions carry names, emails, phone numbers and client
    addresses; none of those should reach the log sinks in clear text.
    """
    if not isinstance(message, str):
        return str(message)

    # Emails: user@example.com -> u***@example.com
    message = _EMAIL_RE.sub(_mask_email, message)

    # IPs (IPv4): 192.168.1.100 -> 192.168.1.***
    message = _IPV4_RE.sub(r"\1***", message)

    # Phone numbers: +1 (555) 123-4567 -> [PHONE_REDACTED]
    message = _PHONE_RE.sub("[PHONE_REDACTED]", message)

    message = _SECRET_RE.sub(r"\1=[REDACTED]", message)

    return message
