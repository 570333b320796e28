"""Remote session endpoints."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.schemas.remote_session import RemoteSessionCreate, RemoteSessionRead
from app.services.connection_service import ConnectionService
from app.services.remote_session_service import RemoteSessionService
from app.utils.errors import SessionAccessDenied, SessionNotFoundError
from app.utils.helpers import get_client_ip

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("", response_model=List[RemoteSessionRead])
def list_sessions(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RemoteSessionService.get_sessions_by_user(db, current_user["user_id"])


@router.get("/active", response_model=List[RemoteSessionRead])
def list_active_sessions(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return RemoteSessionService.get_active_sessions(db, user_id=current_user["user_id"])


@router.post("", response_model=RemoteSessionRead, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: RemoteSessionCreate,
    request: Request,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user_id = current_user["user_id"]
    connection = ConnectionService.get_connection(db, payload.connection_id)
    if not connection or connection.user_id != user_id:
        raise HTTPException(status_code=400, detail="Connection not found")

    client_info = (
        payload.client_info.model_dump(by_alias=True, exclude_none=True)
        if payload.client_info
        else {"ip": get_client_ip(request), "userAgent": request.headers.get("user-agent", "")}
    )
    try:
        return RemoteSessionService.create_session(
            db,
            user_id=user_id,
            connection_id=connection.id,
            protocol=payload.protocol,
            client_info=client_info,
        )
    except (ValueError, SQLAlchemyError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{session_id}", response_model=RemoteSessionRead)
def get_session(
    session_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    remote_session = RemoteSessionService.get_joined_session(db, session_id)
    if not remote_session:
        raise SessionNotFoundError("Session not found")
    if remote_session.user_id != current_user["user_id"]:
        raise SessionAccessDenied("Unauthorized access to session")
    return remote_session


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def terminate_session(
    session_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Terminate a session owned by the caller; unknown ids are a no-op."""
    remote_session = RemoteSessionService.get_session(db, session_id)
    if remote_session and remote_session.user_id != current_user["user_id"]:
        raise SessionAccessDenied("Unauthorized access to session")
    try:
        RemoteSessionService.terminate_session(db, session_id)
    except (ValueError, SQLAlchemyError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
