"""
Router: GET /history/{scope}
Ostatnie rzuty użytkownika lub kanału, od najstarszego.
"""
from fastapi import APIRouter, Depends, Query

from api.dependencies import get_commands
from api.schemas import HistoryResponse

router = APIRouter(prefix="/history", tags=["history"])


@router.get("/{scope}", response_model=HistoryResponse)
async def get_history(
    scope: str,
    limit: int = Query(50, ge=1, le=1000),
    commands=Depends(get_commands),
) -> HistoryResponse:
    return HistoryResponse(scope=scope, records=commands.history(scope, limit))
