from fastapi import APIRouter, Depends
from loguru import logger

from app.cache import get_consolidated_cache, set_consolidated_cache
from app.consolidated import consolidated_view
from app.deps import CurrentUser, can_read_consolidated
from app.schemas import ConsolidatedRow

router = APIRouter(tags=["admin"])


@router.get("/admin", response_model=list[ConsolidatedRow])
async def list_consolidated(
    current_user: CurrentUser = Depends(can_read_consolidated),
) -> list[ConsolidatedRow]:
    """
    Every booking joined with its customer and payment, newest first.
    Access is decided by the gateway headers; this handler only reads.
    """
    cached, generation = await get_consolidated_cache()
    if cached is not None:
        logger.debug("Cache hit for consolidated view ({})", current_user.username)
        return [ConsolidatedRow(**row) for row in cached]

    logger.debug("Cache miss for consolidated view ({})", current_user.username)
    rows = await consolidated_view.list_consolidated()
    await set_consolidated_cache(
        [r.model_dump(mode="json") for r in rows], generation
    )
    return rows
