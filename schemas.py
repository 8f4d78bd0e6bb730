"""
Request Schemas

Stored documents are schemaless; these models only describe the request
bodies that need specific fields to be present.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class UpdateName(BaseModel):
    email: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class DeleteUser(BaseModel):
    email: str = Field(..., min_length=1)


class UpdateItem(BaseModel):
    """Fields a post item can be updated with. Only fields sent are $set."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id", min_length=1)
    NIM_ID: Optional[Any] = None
    image: Optional[Any] = None
    item: Optional[Any] = None
    subcategory: Optional[Any] = None
    shortDescrip: Optional[Any] = None
    price: Optional[Any] = None
    rating: Optional[Any] = None
    time: Optional[Any] = None

    def changes(self) -> dict:
        return self.model_dump(exclude={"id"}, exclude_unset=True)
