import logging
import re

_HEALTH_PATHS = ("/healthz", "/readyz")

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9_\-]+", re.IGNORECASE)
_TOKEN_FIELD_RE = re.compile(r"""(["']?token["']?\s*[:=]\s*["']?)[A-Za-z0-9_\-]{16,}""", re.IGNORECASE)


class HealthEndpointFilter(logging.Filter):
    """Drop successful probe requests from access logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if any(path in message for path in _HEALTH_PATHS):
            return " 200 " not in message
        return True


class SessionTokenRedactionFilter(logging.Filter):
    """Mask session tokens that end up in formatted log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _TOKEN_FIELD_RE.sub(r"\1[redacted]", _BEARER_RE.sub(r"\1[redacted]", message))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True
