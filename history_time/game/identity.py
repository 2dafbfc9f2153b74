"""Resolve who is making a request: an account holder or a guest."""

from dataclasses import dataclass
from typing import Optional, Union

from history_time.auth.tokens import decode_token
from history_time.game.errors import IdentityError
from history_time.models import Player


@dataclass(frozen=True)
class AuthenticatedActor:
    user_id: str
    display_name: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        return self.display_name


@dataclass(frozen=True)
class GuestActor:
    username: str
    guest_id: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        return self.username


Actor = Union[AuthenticatedActor, GuestActor]

# Width of Player.username; guest names are never truncated
USERNAME_MAX_LENGTH = 50


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_actor(
    token: Optional[str] = None,
    guest_username: Optional[str] = None,
    guest_user_id: Optional[str] = None,
    required: bool = True,
) -> Optional[Actor]:
    """
    Build the request's actor.

    A valid bearer token always wins. An invalid or expired token is
    ignored and the guest fields are tried next.

    Raises:
        IdentityError: if ``required`` and neither a valid token nor a
            usable guest username was supplied, or if the guest username
            is longer than USERNAME_MAX_LENGTH.
    """
    if token:
        claims = decode_token(token)
        if claims:
            return AuthenticatedActor(
                user_id=str(claims["sub"]),
                display_name=claims.get("name") or claims.get("username"),
            )

    username = _clean(guest_username)
    if username:
        if len(username) > USERNAME_MAX_LENGTH:
            raise IdentityError(f"Guest username must be at most {USERNAME_MAX_LENGTH} characters")
        return GuestActor(username=username, guest_id=_clean(guest_user_id))

    if required:
        raise IdentityError()
    return None


def matches(player: Player, actor: Actor) -> bool:
    """True if ``player`` is the seat held by ``actor`` (active or not)."""
    if isinstance(actor, AuthenticatedActor):
        return player.user_id is not None and player.user_id == actor.user_id
    # Guests are identified by username alone; guest_id is informational
    return player.user_id is None and player.username == actor.username
