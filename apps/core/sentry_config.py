"""
Sentry initialization with data scrubbing.

Bills carry customer names, phone numbers and emails; none of that may leave
the shop in an error report.
"""

import re
from typing import Any, Dict, Optional

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration
from sentry_sdk.integrations.redis import RedisIntegration

# Sensitive field patterns to scrub
SENSITIVE_KEYS = {
    "password",
    "secret",
    "token",
    "access",
    "refresh",
    "authorization",
    "cookie",
    "csrf",
    "session",
    "customer_name",
    "customer_phone",
    "customer_email",
    "phone",
    "email",
}

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"\+?\d[\d\s-]{6,}\d")


def scrub_sensitive_data(data: Any) -> Any:
    """
    Recursively scrub sensitive data from dictionaries, lists, and strings.
    """
    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if _is_sensitive_key(key) else scrub_sensitive_data(value)
            for key, value in data.items()
        }
    elif isinstance(data, list):
        return [scrub_sensitive_data(item) for item in data]
    elif isinstance(data, str):
        return scrub_string(data)
    else:
        return data


def _is_sensitive_key(key) -> bool:
    key_lower = str(key).lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)


def scrub_string(text: str) -> str:
    """Mask emails entirely and phone numbers down to their last 4 digits."""
    text = EMAIL_PATTERN.sub("[EMAIL]", text)
    return PHONE_PATTERN.sub(lambda m: f"XXXXXX{re.sub(r'[^0-9]', '', m.group(0))[-4:]}", text)


def before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Sentry before_send hook to scrub sensitive data from events.
    """
    if "request" in event:
        request = event["request"]

        if "headers" in request:
            request["headers"] = scrub_sensitive_data(request["headers"])

        if "cookies" in request:
            request["cookies"] = {k: "[REDACTED]" for k in request["cookies"]}

        if "query_string" in request:
            request["query_string"] = scrub_sensitive_data(request["query_string"])

        if "data" in request:
            request["data"] = scrub_sensitive_data(request["data"])

    if "extra" in event:
        event["extra"] = scrub_sensitive_data(event["extra"])

    # Keep operator id and username only
    if "user" in event:
        event["user"] = {k: v for k, v in event["user"].items() if k in ("id", "username")}

    if "exception" in event and "values" in event["exception"]:
        for exception in event["exception"]["values"]:
            if "value" in exception:
                exception["value"] = scrub_string(exception["value"])

    if "breadcrumbs" in event and "values" in event["breadcrumbs"]:
        for breadcrumb in event["breadcrumbs"]["values"]:
            if "data" in breadcrumb:
                breadcrumb["data"] = scrub_sensitive_data(breadcrumb["data"])
            if "message" in breadcrumb:
                breadcrumb["message"] = scrub_string(breadcrumb["message"])

    return event


def initialize_sentry(
    dsn: Optional[str],
    environment: str = "development",
    traces_sample_rate: float = 0.1,
    release: Optional[str] = None,
) -> None:
    """
    Initialize Sentry SDK with Django, Celery, and Redis integrations.

    Args:
        dsn: Sentry DSN. If None, Sentry is not initialized.
        environment: Environment name (development, production)
        traces_sample_rate: Percentage of transactions to trace (0.0 to 1.0)
        release: Release version string
    """
    if not dsn:
        return

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        traces_sample_rate=traces_sample_rate,
        integrations=[
            DjangoIntegration(transaction_style="url"),
            CeleryIntegration(),
            RedisIntegration(),
        ],
        before_send=before_send,
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
    )
