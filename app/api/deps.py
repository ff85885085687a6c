"""
FastAPI dependencies (DB session, authentication)
"""
from fastapi import Request, HTTPException, status

from app.infrastructure.db.session import get_db as _get_db


# Re-export get_db для удобства
get_db = _get_db


def get_current_user_id(request: Request) -> str:
    """
    ID текущего пользователя из session

    Аутентификация - внешняя: провайдер кладёт user_id в session.

    Raises:
        HTTPException(401): если не залогинен
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return str(user_id)
