"""Connection endpoints (owner-scoped)."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.dependencies.auth import get_current_user
from app.schemas.connection import ConnectionCreate, ConnectionRead, ConnectionUpdate
from app.services.connection_service import ConnectionService

router = APIRouter(prefix="/api/connections", tags=["connections"])


@router.get("", response_model=List[ConnectionRead])
def list_connections(
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ConnectionService.get_connections_by_user(db, current_user["user_id"])


@router.post("", response_model=ConnectionRead, status_code=status.HTTP_201_CREATED)
def create_connection(
    payload: ConnectionCreate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Owner and status come from the server, whatever the body says
    fields = payload.model_dump(exclude={"credentials"})
    if payload.credentials is not None:
        fields["credentials"] = payload.credentials.model_dump(by_alias=True, exclude_none=True)
    try:
        return ConnectionService.create_connection(db, user_id=current_user["user_id"], payload=fields)
    except (ValueError, SQLAlchemyError) as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{connection_id}", response_model=ConnectionRead)
def get_connection(
    connection_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ConnectionService.get_owned_connection(db, connection_id, current_user["user_id"])


@router.patch("/{connection_id}", response_model=ConnectionRead)
def update_connection(
    connection_id: int,
    payload: ConnectionUpdate,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ConnectionService.get_owned_connection(db, connection_id, current_user["user_id"])
    fields = payload.model_dump(exclude_unset=True, exclude={"credentials"})
    if "credentials" in payload.model_fields_set:
        fields["credentials"] = (
            payload.credentials.model_dump(by_alias=True, exclude_none=True)
            if payload.credentials is not None
            else None
        )
    try:
        return ConnectionService.update_connection(db, connection_id, fields)
    except (ValueError, SQLAlchemyError) as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_connection(
    connection_id: int,
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ConnectionService.get_owned_connection(db, connection_id, current_user["user_id"])
    try:
        ConnectionService.delete_connection(db, connection_id)
    except SQLAlchemyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
