"""共通依存関数: ログインユーザー解決"""
from typing import Optional
from fastapi import Request, HTTPException, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.redis import get_redis
from app.core.session import get_session_user_id
from app.models.user import User


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    r=Depends(get_redis),
) -> Optional[User]:
    """session_id Cookie から有効ユーザーを引く。未ログインならNone"""
    user_id = await get_session_user_id(r, request.cookies.get("session_id"))
    if user_id is None:
        return None
    return db.get(User, user_id)


async def require_login(user: Optional[User] = Depends(get_current_user)) -> User:
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Unauthorized: No user session found")
    return user
