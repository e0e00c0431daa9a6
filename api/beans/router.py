"""
Beans API endpoints.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Response, status

from core.db import Database, get_database

from . import schemas, service

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"description": "Invalid input"},
    404: {"description": "Bean not found"},
    409: {"description": "Update would create duplicate data"},
    500: {"description": "Internal server error"},
}

CACHE_CONTROL = "public, max-age=3600"

# `dry_beans.id` is a Postgres integer column.
MAX_BEAN_ID = 2**31 - 1
MAX_PAGE = 2**31 - 1

BeanId = Annotated[int, Path(ge=1, le=MAX_BEAN_ID, description="Bean id")]


@router.get("/beans", response_model=list[schemas.Bean])
async def list_beans(
    bean_class: schemas.BeanClass | None = Query(default=None, description="Only beans of this class"),
    page: int | None = Query(default=None, ge=1, le=MAX_PAGE, description="1-indexed page; needs `limit`"),
    limit: int | None = Query(default=None, ge=1, le=1000, description="Page size; needs `page`"),
    database: Database = Depends(get_database),
) -> list[dict]:
    """
    List beans ordered by id, optionally filtered by class and paginated.
    """
    return await service.list_beans(
        database,
        bean_class=bean_class.value if bean_class is not None else None,
        page=page,
        limit=limit,
    )


@router.get(
    "/beans/{bean_id}",
    response_model=schemas.Bean,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 404, 500)},
)
async def get_bean(
    bean_id: BeanId,
    response: Response,
    database: Database = Depends(get_database),
) -> dict:
    row = await service.get_bean(database, bean_id)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return row


@router.post(
    "/beans",
    status_code=status.HTTP_201_CREATED,
    response_model=schemas.Bean,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 409, 500)},
)
async def create_bean(
    payload: schemas.BeanCreate,
    database: Database = Depends(get_database),
) -> dict:
    return await service.create_bean(database, payload)


@router.put("/beans/{bean_id}", response_model=schemas.Bean, responses=_ERROR_RESPONSES)
async def update_bean(
    bean_id: BeanId,
    payload: schemas.BeanUpdate,
    database: Database = Depends(get_database),
) -> dict:
    """
    Partially update a bean. `id`, `created_at` and `updated_at` in the body are ignored.
    """
    return await service.update_bean(database, bean_id, payload)


@router.delete(
    "/beans/{bean_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={k: _ERROR_RESPONSES[k] for k in (400, 404, 500)},
)
async def delete_bean(
    bean_id: BeanId,
    database: Database = Depends(get_database),
) -> Response:
    await service.delete_bean(database, bean_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
