from pydantic import BaseModel
from typing import Optional


class UpstreamErrorResponse(BaseModel):
    """Structured description of a failed call to the job store or runner."""

    title: str
    status: int
    detail: str
    url: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.status} {self.title}: {self.detail}"
