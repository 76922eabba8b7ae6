"""Transport options and DSN parsing."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from messenger_core.exceptions import TransportConfigurationError

DSN_SCHEMES = ("mongodb", "mongodb+srv")
DEFAULT_COLLECTION = "messenger_messages"
LEGACY_OPTION_NAMES = {"enable_writeConcern_majority": "enable_write_majority"}


def normalise_option_names(options: Mapping[str, Any]) -> dict[str, Any]:
    """Return *options* with legacy names renamed; the current name wins."""
    data = dict(options)
    for legacy, current in LEGACY_OPTION_NAMES.items():
        if legacy in data:
            value = data.pop(legacy)
            data.setdefault(current, value)
    return data


class MongoTransportOptions(BaseModel):
    """Options recognised by ``MongoTransport``.

    ``redeliver_timeout`` is expressed in seconds. ``queue=None`` disables
    the queue filter on claims.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    queue: str | None = "default"
    redeliver_timeout: float = Field(default=3600, gt=0)
    enable_write_majority: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "enable_write_majority", "enable_writeConcern_majority"
        ),
    )
    database: str | None = None
    collection: str = Field(default=DEFAULT_COLLECTION, min_length=1)
    count_queue_only: bool = False

    @field_validator("queue", "database", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def redeliver_delta(self) -> timedelta:
        return timedelta(seconds=self.redeliver_timeout)

    @classmethod
    def build(
        cls,
        options: MongoTransportOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> MongoTransportOptions:
        """Validate *options* merged with *overrides*; *overrides* win.

        Legacy option names are accepted in both.

        Raises:
            TransportConfigurationError: unknown option or invalid value.
        """
        if isinstance(options, cls):
            if not overrides:
                return options
            data: dict[str, Any] = options.model_dump()
        else:
            data = normalise_option_names(options or {})
        data.update(normalise_option_names(overrides))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise TransportConfigurationError(str(e)) from e


TRANSPORT_OPTION_KEYS = frozenset(
    {*MongoTransportOptions.model_fields, *LEGACY_OPTION_NAMES}
)


def parse_dsn(dsn: str) -> tuple[str, dict[str, str]]:
    """Split *dsn* into a client URL and transport options.

    Transport options are taken from the query string; all other query
    parameters stay on the client URL. The URL path, when present, becomes the
    ``database`` option unless the query sets one explicitly.
    """
    parts = urlsplit(dsn)
    if parts.scheme not in DSN_SCHEMES:
        raise TransportConfigurationError(
            f"Unsupported DSN scheme {parts.scheme!r}; expected one of {DSN_SCHEMES}"
        )
    if not parts.netloc:
        raise TransportConfigurationError(f"DSN {dsn!r} has no host")

    options: dict[str, str] = {}
    client_query: list[tuple[str, str]] = []
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key in TRANSPORT_OPTION_KEYS:
            options[LEGACY_OPTION_NAMES.get(key, key)] = value
        else:
            client_query.append((key, value))

    database = parts.path.lstrip("/")
    if database and "database" not in options:
        options["database"] = database

    client_url = urlunsplit(
        (parts.scheme, parts.netloc, parts.path, urlencode(client_query), "")
    )
    return client_url, options
