# ==============================================================================
#  Copyright 2025 Matthew Pounsett <matt@conundrum.com>
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# ==============================================================================
"""Error taxonomy and the tagged result returned across component seams."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Kinds of failure the gateway and the catalog view distinguish."""

    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    MALFORMED = "malformed"
    NETWORK = "network"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying its value."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying its kind, a user-facing message and raw payload."""

    kind: ErrorKind
    message: str
    payload: dict[str, Any] = field(default_factory=dict)


Result = Ok[T] | Err


class StorefrontError(Exception):
    """Base class for every failure raised inside the storefront layers."""

    kind: ErrorKind = ErrorKind.NETWORK

    def __init__(self, message: str, *, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_err(self) -> Err:
        """Convert the exception into a tagged ``Err`` result."""
        return Err(kind=self.kind, message=self.message, payload=self.payload)


class ConfigurationError(StorefrontError):
    """Required upstream credentials are missing."""

    kind = ErrorKind.CONFIGURATION


class UpstreamError(StorefrontError):
    """The remote API answered with a non-success HTTP status."""

    kind = ErrorKind.UPSTREAM

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, payload=payload)
        self.status_code = status_code


class MalformedResponseError(StorefrontError):
    """A successful response did not carry the expected shape."""

    kind = ErrorKind.MALFORMED


class NetworkError(StorefrontError):
    """The request never produced an HTTP response."""

    kind = ErrorKind.NETWORK
