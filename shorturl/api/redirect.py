from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from ..exceptions import UrlNotFoundError
from ..observability import REDIRECT_TOTAL, REDIRECT_404_TOTAL
from ..services.manager import ShortUrlManager
from .deps import get_manager

router = APIRouter()

@router.get("/{code}", include_in_schema=False)
async def redirect_to_url(code: str, manager: ShortUrlManager = Depends(get_manager)):
    # Lookup and click accounting happen in one statement
    try:
        record = await manager.record_click(code)
    except UrlNotFoundError:
        REDIRECT_404_TOTAL.inc()
        raise

    REDIRECT_TOTAL.inc()
    return RedirectResponse(url=record.original_url, status_code=status.HTTP_302_FOUND)
