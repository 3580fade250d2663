from pydantic import BaseModel


class ErrorResponse(BaseModel):
    kind: str
    detail: str
