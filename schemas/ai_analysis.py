from __future__ import annotations

from uuid import UUID

from schemas.user import CamelModel


class PortfolioAnalysisRequest(CamelModel):
    user_id: UUID
