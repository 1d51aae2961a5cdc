# objsync/app/api/endpoints/objects.py
from fastapi import APIRouter, Depends, HTTPException, Query, status

from objsync.app.api import deps
from objsync.app.db.store import ObjectStore, ObjectWrite
from objsync.app.models.user import User
from objsync.app.schemas.objects import (
    ObjectListResponse,
    ObjectOut,
    ObjectsSaveRequest,
    SaveObjectsResponse,
)

# Largest value a signed 64-bit INTEGER column can hold
MAX_TIMESTAMP = 2**63 - 1

router = APIRouter()


# 1. INCREMENTAL SYNC (GET) - everything newer than the client's cursor
@router.get("", response_model=ObjectListResponse)
async def read_objects(
        since: int = Query(0, ge=0, le=MAX_TIMESTAMP),
        store: ObjectStore = Depends(deps.get_store),
        current_user: User = Depends(deps.get_current_user),
):
    objects = await store.get_objects_by_owner(current_user.username, since)
    return ObjectListResponse(objects=[ObjectOut.from_stored(obj) for obj in objects])


# 2. SINGLE OBJECT (GET)
@router.get("/{object_id}", response_model=ObjectOut)
async def read_object(
        object_id: str,
        store: ObjectStore = Depends(deps.get_store),
        current_user: User = Depends(deps.get_current_user),
):
    obj = await store.get_object(current_user.username, object_id)
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")

    return ObjectOut.from_stored(obj)


# 3. BATCH UPSERT (PUT) - returns the caller's new cursor
@router.put("", response_model=SaveObjectsResponse, status_code=status.HTTP_201_CREATED)
async def save_objects(
        body: ObjectsSaveRequest,
        store: ObjectStore = Depends(deps.get_store),
        current_user: User = Depends(deps.get_current_user),
):
    batch = [ObjectWrite(id=obj.id, data=obj.encoded_data()) for obj in body.objects]
    watermark = await store.save_objects(current_user.username, batch)
    return SaveObjectsResponse(modified_at=watermark)
