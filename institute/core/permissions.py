from enum import Enum

from fastapi import Depends, Header, HTTPException

from institute.core.security import decode_access_token


class Role(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class UserContext:
    """
    Authenticated caller, built from the token payload
    """
    def __init__(self, payload: dict):
        self.user_id = payload.get("user_id")
        self.email = payload.get("email")
        self.role = Role(payload.get("role"))
        self.payload = payload

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == Role.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == Role.STUDENT


async def get_current_user(authorization: str = Header(None)) -> UserContext:
    """
    Dependency: validates the Bearer token and returns the caller context

    Raises:
        401: Missing, invalid or expired token
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization.split(" ")[1]
    payload = decode_access_token(token)

    if not payload.get("user_id"):
        raise HTTPException(status_code=401, detail="Invalid token: missing user_id")

    try:
        return UserContext(payload)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: unknown role")


def require_roles(*roles: Role):
    """
    Dependency factory: allows only callers whose role is listed

    Raises:
        403: Role not allowed
    """
    async def checker(user: UserContext = Depends(get_current_user)) -> UserContext:
        if user.role not in roles:
            allowed = ", ".join(r.value for r in roles)
            raise HTTPException(
                status_code=403,
                detail=f"Access denied. Required role: {allowed}"
            )
        return user

    return checker


def ensure_self_or_staff(user: UserContext, student_id: str):
    """Students may only read their own records"""
    if user.is_student and user.user_id != student_id:
        raise HTTPException(status_code=403, detail="Access denied. Students can only view their own records")
