"""
Upstream call models.

Standardizes what goes to TMDB and what comes back.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class UpstreamRequest(BaseModel):
    """One outbound call. Built fresh for every attempt."""

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = 10.0


class UpstreamResult(BaseModel):
    """Upstream response with its body fully read."""

    status_code: int
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        lowered = name.lower()
        for k, v in self.headers:
            if k.lower() == lowered:
                return v
        return default


class AttemptRecord(BaseModel):
    """Outcome of a single fetch attempt."""

    number: int
    timeout: float
    status_code: Optional[int] = None
    error: Optional[str] = None

    def describe(self) -> str:
        outcome = self.status_code if self.status_code is not None else self.error
        return f"#{self.number}:{outcome}"
