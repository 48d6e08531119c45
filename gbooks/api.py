"""
FastAPI surface for gbooks.
Exposes the search operations as REST endpoints returning the raw page bodies.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Query
from typing import Any, Awaitable, List, Optional
import httpx
import logging

from gbooks.api_clients.books import get_books_client
from gbooks.errors import BooksError
from gbooks.logger import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("gbooks API starting")
    yield


app = FastAPI(title="gbooks API", version="0.1.0", lifespan=lifespan)


async def _run(request: Awaitable[List[Any]]) -> List[Any]:
    try:
        return await request
    except BooksError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except httpx.HTTPStatusError as e:
        logger.error(f"Google Books returned {e.response.status_code} for {e.request.url}")
        raise HTTPException(status_code=502, detail=f"Google Books returned {e.response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"Google Books request failed: {e}")
        raise HTTPException(status_code=502, detail="Google Books request failed")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/search")
async def search(
    q: str = Query("", description="Search text, or id:<volume id>"),
    sets: Optional[int] = Query(None, description="Number of 40-result pages"),
    start_index: int = Query(0),
):
    return await _run(get_books_client().search(q, start_index=start_index, sets=sets))


@app.get("/search/{field}")
async def search_by(field: str, q: str = Query("", description="Value to search the field for")):
    return await _run(get_books_client().search_by(q, field))
