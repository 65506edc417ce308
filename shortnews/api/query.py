"""JSON query endpoint (POST /graphql).

The request body names one operation and its variables:

  {"operationName": "news", "variables": {"category": "Sports"}}

Queries are answered through QueryCache.resolve, so a repeated query
with equal variables (in any key order) is served from the cache without
running its resolver.  Mutations write through content_service, clear
the affected cache namespaces, then answer.  Results come back as
{"data": {<operationName>: ...}}; failures as {"errors": [{"message"}]}.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shortnews.core.config import SETTINGS
from shortnews.middleware.response_cache import is_bypass
from shortnews.repos.content_repo import content_repo
from shortnews.services import content_service
from shortnews.services.cache import cache_invalidator, query_cache
from shortnews.services.cache_policy import Resource
from shortnews.services.content_service import (
    ContentNotFoundError,
    ContentValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["query"])


class QueryIn(BaseModel):
    operationName: str  # noqa: N815
    variables: dict[str, Any] | None = None


Resolver = Callable[[dict[str, Any]], Any]


def _errors(message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errors": [{"message": message}]})


def _input_errors(exc: ValidationError) -> JSONResponse:
    messages = [
        {"message": "input." + ".".join(str(p) for p in err["loc"]) + ": " + err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"errors": messages})


def _require_id(variables: dict[str, Any]) -> str:
    item_id = variables.get("id")
    if not isinstance(item_id, str) or not item_id:
        raise ContentValidationError("variable 'id' is required")
    return item_id


# --- queries ---------------------------------------------------------------

QUERIES: dict[str, Resolver] = {
    "news": lambda v: content_service.public_news(
        content_repo,
        media_type=v.get("mediaType"),
        category=v.get("category"),
        location=v.get("location"),
    ),
    "newsById": lambda v: content_service.public_news_item(content_repo, _require_id(v)),
    "categories": lambda _v: content_service.public_categories(content_repo),
    "locations": lambda _v: content_service.public_locations(content_repo),
    "ads": lambda _v: content_service.public_ads(content_repo),
    "adById": lambda v: content_service.public_ad(content_repo, _require_id(v)),
    "viralVideos": lambda _v: content_service.public_viral_videos(content_repo),
    "viralVideoById": lambda v: content_service.public_viral_video(
        content_repo, _require_id(v)
    ),
}


# --- mutations -------------------------------------------------------------


class NewsPatchInput(BaseModel):
    """camelCase news fields as a client sends them; every one optional."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    content: str | None = None
    category: str | None = None
    author: str | None = None
    location: str | None = None
    media_url: str | None = Field(default=None, alias="mediaUrl")
    media_type: Literal["image", "video"] | None = Field(default=None, alias="mediaType")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    is_active: bool | None = Field(default=None, alias="isActive")
    read_full_link: str | None = Field(default=None, alias="readFullLink")
    epaper_link: str | None = Field(default=None, alias="ePaperLink")


class NewsInput(NewsPatchInput):
    title: str
    content: str
    category: str
    author: str


def _news_input(variables: dict[str, Any], model: type[NewsPatchInput]) -> dict[str, Any]:
    raw = variables.get("input")
    if not isinstance(raw, dict):
        raise ContentValidationError("variable 'input' must be an object")
    return model.model_validate(raw).model_dump(exclude_none=True)


def _create_news(variables: dict[str, Any]) -> dict[str, Any]:
    fields = _news_input(variables, NewsInput)
    return content_service.create_news(content_repo, **fields).to_public()


def _update_news(variables: dict[str, Any]) -> dict[str, Any]:
    news_id = _require_id(variables)
    return content_service.update_news(
        content_repo, news_id, **_news_input(variables, NewsPatchInput)
    ).to_public()


def _delete_news(variables: dict[str, Any]) -> bool:
    content_service.delete_news(content_repo, _require_id(variables))
    return True


MUTATIONS: dict[str, tuple[Resolver, Resource]] = {
    "createNews": (_create_news, Resource.NEWS),
    "updateNews": (_update_news, Resource.NEWS),
    "deleteNews": (_delete_news, Resource.NEWS),
}


@router.post("/graphql")
async def run_query(body: QueryIn, request: Request) -> JSONResponse:
    op = body.operationName
    variables = body.variables or {}

    try:
        if op in QUERIES:
            resolver = QUERIES[op]
            result = await query_cache.resolve(
                op,
                variables,
                lambda: resolver(variables),
                bypass=is_bypass(request, SETTINGS.cache_bypass_header),
            )
        elif op in MUTATIONS:
            resolver, resource = MUTATIONS[op]
            result = resolver(variables)
            await cache_invalidator.invalidate_resource(resource)
        else:
            logger.warning("Unknown query operation %r", op)
            return _errors(f"Unknown operation '{op}'", status_code=400)
    except ValidationError as e:
        return _input_errors(e)
    except ContentValidationError as e:
        return _errors(str(e), status_code=400)
    except ContentNotFoundError:
        return _errors(f"{op}: not found")

    return JSONResponse(content={"data": {op: result}})
