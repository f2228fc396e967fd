"""
Pydantic schemas for API request/response validation.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class FileUpdate(BaseModel):
    """
    Body of PUT /api/files/{file_id}.

    Every field is optional; hierarchy fields are names (S1, cours, subject
    name, year label) and re-classify the file through the same
    get-or-create chain as an upload.
    """
    originalName: Optional[str] = Field(None, min_length=1, max_length=255)
    semester: Optional[str] = Field(None, description="Semester name (S1..S5)")
    type: Optional[str] = Field(None, description="Type name (cours, tp, ...)")
    subject: Optional[str] = Field(None, min_length=1, max_length=200)
    year: Optional[str] = Field(None, description="YYYY or YYYY-YYYY")

    @field_validator("originalName", "semester", "type", "subject", "year")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    def hierarchy_changes(self) -> dict:
        return {
            k: v
            for k, v in self.model_dump(include={"semester", "type", "subject", "year"}).items()
            if v is not None
        }


class UploadResponse(BaseModel):
    message: str
    file: dict


class MessageResponse(BaseModel):
    message: str
