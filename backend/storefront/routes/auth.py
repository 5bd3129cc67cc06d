from fastapi import APIRouter, Depends, HTTPException, Request, Response

from storefront import schemas
from storefront.auth import (
    authenticate,
    end_session,
    get_storage,
    register_user,
    require_user,
    start_session,
)
from storefront.storage import Storage
from storefront.telemetry import logins_total

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/register", response_model=schemas.UserPublic, status_code=201)
def register(payload: schemas.RegisterRequest, response: Response, storage: Storage = Depends(get_storage)):
    user = register_user(storage, payload)
    # Registration logs the new user straight in
    start_session(storage, response, user)
    return user


@router.post("/login", response_model=schemas.UserPublic)
def login(payload: schemas.LoginRequest, response: Response, storage: Storage = Depends(get_storage)):
    user = authenticate(storage, payload.username, payload.password)
    if user is None:
        logins_total.labels(outcome="failed").inc()
        raise HTTPException(status_code=401, detail="Invalid username or password")
    logins_total.labels(outcome="success").inc()
    start_session(storage, response, user)
    return user


@router.post("/logout", status_code=204)
def logout(request: Request, storage: Storage = Depends(get_storage)):
    response = Response(status_code=204)
    end_session(storage, request, response)
    return response


@router.get("/user", response_model=schemas.UserPublic)
def current_user(user: schemas.User = Depends(require_user)):
    return user
