"""
Client configuration.

ClientOptions is an immutable Pydantic model holding everything the session
manager needs: where to connect, how to authenticate, and the timing of the
decode, keepalive and reconnect schedules. All durations are in seconds.

Example:
    >>> options = ClientOptions(host="pbx.example.net", user="admin", password="secret")
    >>> options.port
    5038
    >>> options.model_copy(update={"keep_alive": False}).keep_alive
    False
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from amiconnect.protocol.constants import ProtocolConstants


class ClientOptions(BaseModel):
    """
    Connection and session settings.

    Attributes:
        host: Manager server host name or address.
        port: Manager server TCP port.
        user: Username sent with Login.
        password: Secret sent with Login.
        auto_reconnect: Reconnect after the authenticated connection drops.
        keep_alive: Send periodic Ping actions while authenticated.
        keep_alive_interval: Seconds between pings (0 disables them).
        read_interval: Seconds between decode passes over received bytes.
        connection_timeout: Seconds allowed for the TCP connect.
        reconnect_delay: First delay between reconnect attempts.
        reconnect_max_delay: Upper bound for the doubling reconnect delay.
        reconnect_attempts: Reconnect attempts before giving up.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(default=ProtocolConstants.DEFAULT_HOST, min_length=1)
    port: int = Field(default=ProtocolConstants.DEFAULT_PORT, ge=1, le=65535)
    user: str = ""
    password: str = Field(default="", repr=False)

    auto_reconnect: bool = True
    keep_alive: bool = True
    keep_alive_interval: float = Field(
        default=ProtocolConstants.DEFAULT_KEEP_ALIVE_INTERVAL,
        ge=0,
    )
    read_interval: float = Field(default=ProtocolConstants.DEFAULT_READ_INTERVAL, gt=0)
    connection_timeout: float = Field(
        default=ProtocolConstants.DEFAULT_CONNECTION_TIMEOUT,
        gt=0,
    )

    reconnect_delay: float = Field(default=ProtocolConstants.DEFAULT_RECONNECT_DELAY, gt=0)
    reconnect_max_delay: float = Field(
        default=ProtocolConstants.DEFAULT_RECONNECT_MAX_DELAY,
        gt=0,
    )
    reconnect_attempts: int = Field(default=ProtocolConstants.DEFAULT_RECONNECT_ATTEMPTS, ge=1)

    @model_validator(mode="after")
    def check_reconnect_bounds(self) -> ClientOptions:
        """Ensure the backoff ceiling is not below the first delay."""
        if self.reconnect_max_delay < self.reconnect_delay:
            raise ValueError("reconnect_max_delay must be >= reconnect_delay")
        return self

    @property
    def keep_alive_enabled(self) -> bool:
        return self.keep_alive and self.keep_alive_interval > 0

    def reconnect_delays(self) -> list[float]:
        """
        Delays to wait before each reconnect attempt.

        Exponential backoff starting at reconnect_delay, doubling up to
        reconnect_max_delay, one entry per attempt.

        Example:
            >>> ClientOptions(reconnect_delay=1, reconnect_max_delay=5, reconnect_attempts=5).reconnect_delays()
            [1.0, 2.0, 4.0, 5.0, 5.0]
        """
        delays: list[float] = []
        delay = float(self.reconnect_delay)
        for _ in range(self.reconnect_attempts):
            delays.append(min(delay, self.reconnect_max_delay))
            delay *= 2
        return delays

    @classmethod
    def from_env(
        cls,
        prefix: str = "AMI_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> ClientOptions:
        """
        Build options from environment variables.

        Reads {prefix}HOST, {prefix}PORT, {prefix}USERNAME and
        {prefix}PASSWORD. Unset variables keep their defaults; keyword
        overrides win over the environment.

        Raises:
            pydantic.ValidationError: If a value is invalid (e.g. a
                non-numeric port).
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for name, key in (
            ("host", "HOST"),
            ("port", "PORT"),
            ("user", "USERNAME"),
            ("password", "PASSWORD"),
        ):
            raw = env.get(f"{prefix}{key}")
            if raw is not None and raw.strip():
                values[name] = raw.strip()

        values.update(overrides)
        return cls(**values)

    def __repr__(self) -> str:
        return f"ClientOptions(host={self.host!r}, port={self.port}, user={self.user!r})"
