from pydantic import BaseModel


class UploadOut(BaseModel):
    url: str
    path: str


class ErrorOut(BaseModel):
    error: str
