from dataclasses import dataclass, field
from urllib.parse import unquote
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status

from app.scopes import BookingScope


@dataclass
class CurrentUser:
    id: UUID
    username: str
    scopes: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return BookingScope.ADMIN in self.scopes


def get_current_user(
    x_user_id: str = Header(...),
    x_username: str = Header(...),
    x_user_scopes: str = Header(default=""),
) -> CurrentUser:
    """
    Reads the headers injected by the gateway after it authenticated the caller.
    Credentials are never seen here; we just trust these headers.
    """
    try:
        user_id = UUID(x_user_id)
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user identity from gateway",
        ) from None

    scopes = x_user_scopes.split(" ") if x_user_scopes else []

    return CurrentUser(id=user_id, username=unquote(x_username), scopes=scopes)


async def can_read_consolidated(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Passes with either the full admin scope or the read-only admin scope."""
    if not (current_user.is_admin or BookingScope.ADMIN_READ in current_user.scopes):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=(
                f"Requires '{BookingScope.ADMIN}' or '{BookingScope.ADMIN_READ}'."
            ),
        )
    return current_user
