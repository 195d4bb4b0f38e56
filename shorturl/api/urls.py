from fastapi import APIRouter, Depends, Response, status
from typing import List

from ..config import settings
from ..models import ShortUrl
from ..schemas import UrlCreate, UrlUpdate, UrlResponse, UrlStats, ErrorResponse
from ..services.manager import ShortUrlManager
from .deps import get_manager

router = APIRouter(tags=["urls"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Short URL not found"}}
CONFLICT = {409: {"model": ErrorResponse, "description": "Code already in use"}}
INVALID = {400: {"model": ErrorResponse, "description": "Invalid input"}}

def to_response(record: ShortUrl) -> UrlResponse:
    return UrlResponse(
        id=record.id,
        code=record.code,
        short_url=f"{settings.BASE_URL.rstrip('/')}/{record.code}",
        original_url=record.original_url,
        owner_id=record.owner_id,
        click_count=record.click_count,
        is_active=record.is_active,
        created_at=record.created_at,
        updated_at=record.updated_at,
        expires_at=record.expires_at,
        last_click_at=record.last_click_at,
    )

@router.post("/urls", response_model=UrlResponse, status_code=status.HTTP_201_CREATED, responses={**INVALID, **CONFLICT})
async def create_url(url_in: UrlCreate, manager: ShortUrlManager = Depends(get_manager)):
    record = await manager.create(url_in.original_url, custom_code=url_in.custom_code)
    return to_response(record)

@router.get("/urls", response_model=List[UrlResponse])
async def list_urls(manager: ShortUrlManager = Depends(get_manager)):
    return [to_response(record) for record in await manager.list()]

@router.get("/urls/{code}", response_model=UrlResponse, responses=NOT_FOUND)
async def get_url(code: str, manager: ShortUrlManager = Depends(get_manager)):
    return to_response(await manager.find_any(code))

@router.get("/urls/{code}/stats", response_model=UrlStats, responses=NOT_FOUND)
async def get_url_stats(code: str, manager: ShortUrlManager = Depends(get_manager)):
    return UrlStats.model_validate(await manager.find_any(code))

@router.put("/urls/{code}", response_model=UrlResponse, responses={**INVALID, **NOT_FOUND, **CONFLICT})
async def update_url(code: str, url_in: UrlUpdate, manager: ShortUrlManager = Depends(get_manager)):
    record = await manager.update(
        code,
        original_url=url_in.original_url,
        expires_at=url_in.expires_at,
        custom_code=url_in.custom_code,
    )
    return to_response(record)

@router.patch("/urls/{code}/toggle", response_model=UrlResponse, responses=NOT_FOUND)
async def toggle_url(code: str, manager: ShortUrlManager = Depends(get_manager)):
    return to_response(await manager.toggle_active(code))

@router.delete("/urls/{code}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_url(code: str, manager: ShortUrlManager = Depends(get_manager)):
    await manager.delete(code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
