import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    nickname: str = Field(min_length=1, max_length=200)
    product_code: str = Field(min_length=1, max_length=100)


class ProductResponse(BaseModel):
    id: uuid.UUID
    nickname: str
    product_code: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
