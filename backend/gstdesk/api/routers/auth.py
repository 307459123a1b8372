from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from ...dependencies import get_db
from ...security.auth import authenticate, issue_token, get_current_user
from ...domain.models import User
from ...infrastructure.unit_of_work import UnitOfWork

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    OAuth2 password flow. Outside production the configured admin is created
    on first login.
    """
    user = authenticate(UnitOfWork(db), form_data.username, form_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token, expires_in = issue_token(user)
    return {"access_token": token, "token_type": "bearer", "expires_in": expires_in}


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {"id": current_user.id, "username": current_user.username, "is_admin": current_user.is_admin}
