"""
Storage types and interfaces for oauthredis.

This module provides the OAuth2 entity records persisted by the storage
(clients, authorization codes and access grants) together with the abstract
storage interface consumed by the authorization server.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from ..common.utils import (
    format_timestamp,
    get_current_time,
    get_current_time_like,
    parse_iso_timestamp,
)


JSONValue = Union[None, bool, int, float, str, List[Any], Dict[str, Any]]


@dataclass
class Client:
    """
    A registered OAuth2 client.

    ``user_data`` holds arbitrary application data and must be JSON
    serializable.
    """

    client_id: str
    secret: str = ""
    redirect_uri: str = ""
    user_data: Dict[str, JSONValue] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert client to dictionary."""
        return {
            "client_id": self.client_id,
            "secret": self.secret,
            "redirect_uri": self.redirect_uri,
            "user_data": dict(self.user_data),
        }

    def to_reference(self) -> Dict[str, Any]:
        """Reference form embedded in other records."""
        return {"client_id": self.client_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Client':
        """Create Client from dictionary."""
        return cls(
            client_id=data["client_id"],
            secret=data.get("secret", ""),
            redirect_uri=data.get("redirect_uri", ""),
            user_data=dict(data.get("user_data") or {}),
        )


@dataclass
class AuthorizeData:
    """
    Authorization code data.

    The client is persisted by reference only and re-resolved from the
    client records whenever the authorization is loaded. It is None when
    the client has since been deleted.
    """

    client: Optional[Client]
    code: str
    expires_in: int
    created_at: datetime = field(default_factory=get_current_time)
    scope: str = ""
    redirect_uri: str = ""
    state: str = ""
    user_data: JSONValue = None
    code_challenge: str = ""
    code_challenge_method: str = ""

    def expire_at(self) -> datetime:
        """Get the instant the code expires."""
        return self.created_at + timedelta(seconds=self.expires_in)

    def is_expired(self) -> bool:
        """Check if the code is expired."""
        return self.expire_at() < get_current_time_like(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert authorization data to dictionary.

        Returns:
            Dictionary representation with the client as a reference
        """
        return {
            "client": self.client.to_reference() if self.client else None,
            "code": self.code,
            "expires_in": self.expires_in,
            "created_at": format_timestamp(self.created_at),
            "scope": self.scope,
            "redirect_uri": self.redirect_uri,
            "state": self.state,
            "user_data": self.user_data,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuthorizeData':
        """
        Create AuthorizeData from dictionary.

        The returned client only carries its identifier until resolved.
        """
        return cls(
            client=Client.from_dict(data["client"]) if data.get("client") else None,
            code=data["code"],
            expires_in=int(data["expires_in"]),
            created_at=parse_iso_timestamp(data["created_at"]),
            scope=data.get("scope", ""),
            redirect_uri=data.get("redirect_uri", ""),
            state=data.get("state", ""),
            user_data=data.get("user_data"),
            code_challenge=data.get("code_challenge", ""),
            code_challenge_method=data.get("code_challenge_method", ""),
        )


@dataclass
class AccessData:
    """
    An issued access token and its optional refresh token.

    ``authorize_data`` is the originating authorization code, if any, and
    ``access_data`` the previous grant when the token was refreshed.
    """

    client: Optional[Client]
    access_token: str
    expires_in: int
    refresh_token: str = ""
    authorize_data: Optional[AuthorizeData] = None
    access_data: Optional['AccessData'] = None
    created_at: datetime = field(default_factory=get_current_time)
    scope: str = ""
    redirect_uri: str = ""
    user_data: JSONValue = None

    def expire_at(self) -> datetime:
        """Get the instant the access token expires."""
        return self.created_at + timedelta(seconds=self.expires_in)

    def is_expired(self) -> bool:
        """Check if the access token is expired."""
        return self.expire_at() < get_current_time_like(self.created_at)

    def to_dict(self) -> Dict[str, Any]:
        """Convert access data to dictionary."""
        return {
            "client": self.client.to_reference() if self.client else None,
            "authorize_data": self.authorize_data.to_dict() if self.authorize_data else None,
            "access_data": self.access_data.to_dict() if self.access_data else None,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
            "created_at": format_timestamp(self.created_at),
            "scope": self.scope,
            "redirect_uri": self.redirect_uri,
            "user_data": self.user_data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AccessData':
        """Create AccessData from dictionary."""
        authorize_data = data.get("authorize_data")
        previous = data.get("access_data")

        return cls(
            client=Client.from_dict(data["client"]) if data.get("client") else None,
            authorize_data=AuthorizeData.from_dict(authorize_data) if authorize_data else None,
            access_data=cls.from_dict(previous) if previous else None,
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token", ""),
            expires_in=int(data["expires_in"]),
            created_at=parse_iso_timestamp(data["created_at"]),
            scope=data.get("scope", ""),
            redirect_uri=data.get("redirect_uri", ""),
            user_data=data.get("user_data"),
        )


class Storage(ABC):
    """
    Abstract base class for authorization server storage.

    Implementations must be safe for concurrent use. Lookups of missing
    records return ``None`` rather than raising.
    """

    def clone(self) -> 'Storage':
        """
        Return a storage instance for a single request.

        Stateless implementations return themselves.
        """
        return self

    async def close(self) -> None:
        """Release resources acquired by ``clone``."""
        pass

    @abstractmethod
    async def create_client(self, client: Client) -> None:
        """
        Store a client, replacing any client with the same identifier.

        Args:
            client: Client to store
        """
        pass

    @abstractmethod
    async def get_client(self, client_id: str) -> Optional[Client]:
        """
        Retrieve a client by identifier.

        Args:
            client_id: Client identifier

        Returns:
            Client if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_client(self, client: Client) -> None:
        """Replace a stored client."""
        pass

    @abstractmethod
    async def delete_client(self, client: Client) -> None:
        """Delete a client. Deleting an unknown client succeeds."""
        pass

    @abstractmethod
    async def save_authorize(self, data: AuthorizeData) -> None:
        """Save authorization data until it expires."""
        pass

    @abstractmethod
    async def load_authorize(self, code: str) -> Optional[AuthorizeData]:
        """
        Look up authorization data by code.

        The client must be loaded together with the authorization.

        Args:
            code: Authorization code

        Returns:
            AuthorizeData if found, None otherwise
        """
        pass

    @abstractmethod
    async def remove_authorize(self, code: str) -> None:
        """Revoke or delete an authorization code."""
        pass

    @abstractmethod
    async def save_access(self, data: AccessData) -> None:
        """Save access data, indexed by access and refresh token."""
        pass

    @abstractmethod
    async def load_access(self, token: str) -> Optional[AccessData]:
        """
        Look up access data by access token.

        Args:
            token: Access token

        Returns:
            AccessData if found, None otherwise
        """
        pass

    @abstractmethod
    async def remove_access(self, token: str) -> None:
        """Revoke the grant owning the given access token."""
        pass

    @abstractmethod
    async def load_refresh(self, token: str) -> Optional[AccessData]:
        """
        Look up access data by refresh token.

        Args:
            token: Refresh token

        Returns:
            AccessData if found, None otherwise
        """
        pass

    @abstractmethod
    async def remove_refresh(self, token: str) -> None:
        """Revoke the grant owning the given refresh token."""
        pass
