from pydantic import BaseModel, Field


class ContextRequest(BaseModel):
    query: str = Field(..., min_length=1)
