"""Environment Validation: pure rules over the injected environment mapping.

Invariants:
    - validate_environment() never logs, never exits: it only returns a report
    - A key that is absent or empty counts as missing
    - Secret and URI checks only look at values that are present, so a missing
      DATABASE_URI is reported once (as missing) and never dereferenced
    - redact_database_uri() output never contains the credentials before '@'

Design Decisions:
    - Report dataclass instead of print-and-exit: the exit policy is a thin
      wrapper in startup.py, tests assert on the report (ADR: functional core)
    - Issues carry the env var name so logs can attach it as an extra field
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from authapi.config import Settings

REQUIRED_ENV_VARS = (
    "DATABASE_URI",
    "ACCESS_TOKEN_SECRET",
    "REFRESH_TOKEN_SECRET",
    "ACCESS_TOKEN_EXPIRY",
    "REFRESH_TOKEN_EXPIRY",
)

OPTIONAL_ENV_VARS = (
    "PORT",
    "CORS_ORIGIN",
    "CLIENT_SSR_BASE_URL",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
)

TOKEN_SECRET_VARS = ("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET")

# Marker used by every secret in .env.example
PLACEHOLDER_SECRET_MARKER = "your_super_secret"

DATABASE_URI_SCHEMES = ("mongodb://", "mongodb+srv://")

REDACTED_CREDENTIALS = "//***:***@"
_CREDENTIALS_RE = re.compile(r"//.*@")


class IssueKind(str, Enum):
    MISSING_REQUIRED = "missing_required"
    MISSING_OPTIONAL = "missing_optional"
    PLACEHOLDER_SECRET = "placeholder_secret"
    INVALID_DATABASE_URI = "invalid_database_uri"


@dataclass(frozen=True)
class ValidationIssue:
    kind: IssueKind
    env_var: str
    message: str

    @property
    def fatal(self) -> bool:
        return self.kind is not IssueKind.MISSING_OPTIONAL


@dataclass
class ValidationReport:
    """Outcome of validate_environment: issues in rule order."""
    issues: list[ValidationIssue] = field(default_factory=list)

    def of_kind(self, kind: IssueKind) -> list[ValidationIssue]:
        return [i for i in self.issues if i.kind is kind]

    @property
    def missing_required(self) -> list[str]:
        return [i.env_var for i in self.of_kind(IssueKind.MISSING_REQUIRED)]

    @property
    def missing_optional(self) -> list[str]:
        return [i.env_var for i in self.of_kind(IssueKind.MISSING_OPTIONAL)]

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.fatal]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if not i.fatal]

    @property
    def ok(self) -> bool:
        return not self.errors


def _is_missing(env: Mapping[str, str], key: str) -> bool:
    return not env.get(key)


def validate_environment(env: Mapping[str, str]) -> ValidationReport:
    """Check env against the required/optional key sets and value rules."""
    report = ValidationReport()

    for key in REQUIRED_ENV_VARS:
        if _is_missing(env, key):
            report.issues.append(ValidationIssue(
                IssueKind.MISSING_REQUIRED, key,
                f"Missing required environment variable {key}",
            ))

    for key in OPTIONAL_ENV_VARS:
        if _is_missing(env, key):
            report.issues.append(ValidationIssue(
                IssueKind.MISSING_OPTIONAL, key,
                f"Missing optional environment variable {key}",
            ))

    for key in TOKEN_SECRET_VARS:
        if PLACEHOLDER_SECRET_MARKER in env.get(key, ""):
            report.issues.append(ValidationIssue(
                IssueKind.PLACEHOLDER_SECRET, key,
                f"{key} is still using the default value from .env.example",
            ))

    uri = env.get("DATABASE_URI")
    if uri and not uri.startswith(DATABASE_URI_SCHEMES):
        report.issues.append(ValidationIssue(
            IssueKind.INVALID_DATABASE_URI, "DATABASE_URI",
            "Invalid DATABASE_URI format. Must start with "
            + " or ".join(DATABASE_URI_SCHEMES),
        ))

    return report


def redact_database_uri(uri: str) -> str:
    """Mask everything between '//' and the last '@' of a connection string."""
    return _CREDENTIALS_RE.sub(REDACTED_CREDENTIALS, uri, count=1)


def build_configuration_summary(settings: Settings) -> list[tuple[str, str]]:
    """Label/value pairs safe to log: no secrets, credentials masked."""
    return [
        ("Port", str(settings.port)),
        ("Database", redact_database_uri(settings.database_uri)),
        ("CORS Origins", ", ".join(settings.cors_origin)),
        ("Email Host", settings.smtp_host or "Not configured"),
        ("Client URL", settings.client_ssr_base_url),
    ]
