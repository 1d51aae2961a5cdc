# objsync/app/schemas/objects.py
"""
Request/response schemas for object sync.

``data`` is any JSON value. It is stored as JSON text and decoded again on
the way out, so clients get back exactly what they sent.
"""
import json
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field

from objsync.app.models.stored_object import StoredObject


class ObjectIn(BaseModel):
    id: str = Field(..., min_length=1, max_length=255)
    data: Any = None

    def encoded_data(self) -> str:
        return json.dumps(self.data, separators=(",", ":"))


class ObjectsSaveRequest(BaseModel):
    objects: List[ObjectIn]


class ObjectOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    data: Any
    modified_at: int = Field(..., alias="modifiedAt")

    @classmethod
    def from_stored(cls, obj: StoredObject) -> "ObjectOut":
        return cls(id=obj.id, data=json.loads(obj.data), modified_at=obj.modified_at)


class ObjectListResponse(BaseModel):
    objects: List[ObjectOut]


class SaveObjectsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # New sync cursor for the caller
    modified_at: int = Field(..., alias="modifiedAt")
