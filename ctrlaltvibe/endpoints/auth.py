from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ctrlaltvibe.models.user import User
from ctrlaltvibe.schemas.response import APIResponse
from ctrlaltvibe.schemas.user import AuthResult, GoogleLogin, User as UserSchema, UserCreate, UserLogin
from ctrlaltvibe.services.auth import auth_service
from ctrlaltvibe.utils import deps

router = APIRouter()

@router.post("/register", response_model=APIResponse[AuthResult], status_code=status.HTTP_201_CREATED)
def register(user_in: UserCreate, db: Session = Depends(deps.get_db)):
    result = auth_service.register(db, obj_in=user_in)
    return APIResponse(message="Registration successful", data=result)

@router.post("/login", response_model=APIResponse[AuthResult])
def login(login_in: UserLogin, db: Session = Depends(deps.get_db)):
    result = auth_service.login(db, login=login_in.username, password=login_in.password)
    return APIResponse(message="Login successful", data=result)

@router.post("/auth/google", response_model=APIResponse[AuthResult])
async def google_login(payload: GoogleLogin, db: Session = Depends(deps.get_db)):
    result = await auth_service.google_login(db, id_token=payload.id_token)
    return APIResponse(message="Login successful", data=result)

@router.get("/user", response_model=APIResponse[UserSchema])
def read_current_user(current_user: User = Depends(deps.get_current_user)):
    return APIResponse(message="User fetched successfully", data=UserSchema.model_validate(current_user))
