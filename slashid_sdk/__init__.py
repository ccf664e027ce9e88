"""Public SDK exports."""

from slashid_sdk.cache import CachedKeySet, InMemoryKeyCache, KeyCache
from slashid_sdk.client import SlashIdClient
from slashid_sdk.exceptions import (
    AccessDeniedError,
    ApiError,
    ApiResponseError,
    BadRequestError,
    ConflictError,
    ErrorKind,
    IdNotFoundError,
    InvalidEndpointError,
    InvalidEnvironmentError,
    MalformedTokenError,
    SDKError,
    UnauthorizedError,
    WebhookNotFoundError,
    WebhookVerificationError,
)
from slashid_sdk.migration import MigrationExporter
from slashid_sdk.person import Bucket, Person, PersonLike
from slashid_sdk.token import TokenVerifier
from slashid_sdk.types import Environment, TriggerType
from slashid_sdk.verification import WebhookCallVerifier
from slashid_sdk.webhook import WebhookRegistry

__all__ = [
    "AccessDeniedError",
    "ApiError",
    "ApiResponseError",
    "BadRequestError",
    "Bucket",
    "CachedKeySet",
    "ConflictError",
    "Environment",
    "ErrorKind",
    "IdNotFoundError",
    "InMemoryKeyCache",
    "InvalidEndpointError",
    "InvalidEnvironmentError",
    "KeyCache",
    "MalformedTokenError",
    "MigrationExporter",
    "Person",
    "PersonLike",
    "SDKError",
    "SlashIdClient",
    "TokenVerifier",
    "TriggerType",
    "UnauthorizedError",
    "WebhookCallVerifier",
    "WebhookNotFoundError",
    "WebhookRegistry",
    "WebhookVerificationError",
]
