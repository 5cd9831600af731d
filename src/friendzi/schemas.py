"""Response envelope shared by every endpoint.

Successful responses carry ``success: true`` next to their payload; failures
are rendered by friendzi.middleware.error_handler as
``{"success": false, "message": ...}``.
"""

from __future__ import annotations

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    success: bool = True
    message: str | None = None


class PaginatedResponse(SuccessResponse):
    total_count: int
    current_page: int
    total_pages: int
