"""FastAPI application for the Bookmark Sorter backend."""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, RootModel

from bookmark_store import BookmarkStore, BookmarkStoreError
from classifier import ClassificationError
from database import init_db
from extraction import ExtractionAgent
from messaging import MessageBus
from orchestrator import OrchestrationError, Orchestrator
from path_resolver import FolderResolutionError, PathResolver
from settings import S
from snapshot_cache import SnapshotCache


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ClassificationRequest(_CamelModel):
    action: Literal["getAiClassification"]
    page_id: Optional[str] = Field(None, alias="pageId")
    title: Optional[str] = None
    url: Optional[str] = None


class SaveBookmarkRequest(_CamelModel):
    action: Literal["saveBookmark"]
    title: Optional[str] = None
    url: Optional[str] = None
    category_path: Optional[str] = Field(None, alias="categoryPath")


class BookmarkTreeRequest(_CamelModel):
    action: Literal["getBookmarkTree"]


class MessageRequest(RootModel):
    root: Annotated[
        Union[ClassificationRequest, SaveBookmarkRequest, BookmarkTreeRequest],
        Field(discriminator="action"),
    ]


class ErrorResponse(_CamelModel):
    status: Literal["error"] = "error"
    message: str


class TabModel(_CamelModel):
    title: str
    url: str


class PageAnalysisModel(_CamelModel):
    description: str = ""
    keywords: List[str] = Field(default_factory=list)
    headings: List[str] = Field(default_factory=list)
    paragraphs: List[str] = Field(default_factory=list)


class ClassificationResponse(_CamelModel):
    status: Literal["success"] = "success"
    category_path: str = Field(..., alias="categoryPath")
    tab: TabModel
    analysis: Optional[PageAnalysisModel] = None


class SaveBookmarkResponse(_CamelModel):
    status: Literal["success"] = "success"
    category: str
    folder_id: str = Field(..., alias="folderId")
    bookmark_id: str = Field(..., alias="bookmarkId")
    created_folders: List[str] = Field(default_factory=list, alias="createdFolders")


class BookmarkTreeResponse(_CamelModel):
    status: Literal["success"] = "success"
    tree: List[Dict[str, Any]]


class FolderOptionModel(_CamelModel):
    id: str
    path: str


MessageResponse = Union[ClassificationResponse, SaveBookmarkResponse, BookmarkTreeResponse, ErrorResponse]

EXPECTED_ERRORS = (ClassificationError, OrchestrationError, FolderResolutionError, BookmarkStoreError)


def build_orchestrator() -> Orchestrator:
    bus = MessageBus()
    store = BookmarkStore()
    snapshot_cache = SnapshotCache(bus, ExtractionAgent(bus))
    return Orchestrator(store, snapshot_cache, PathResolver(store))


app = FastAPI(title="Bookmark Sorter")
app.add_middleware(
    CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"]
)

logger = logging.getLogger(__name__)

orchestrator = build_orchestrator()


@app.on_event("startup")
async def _startup() -> None:
    init_db()


@app.get("/healthz")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


async def _classification(request: ClassificationRequest) -> ClassificationResponse:
    outcome = await orchestrator.classify_page(request.page_id, request.title, request.url)
    analysis = None
    if outcome.analysis is not None:
        analysis = PageAnalysisModel(
            description=outcome.analysis.description,
            keywords=outcome.analysis.keywords,
            headings=outcome.analysis.headings,
            paragraphs=outcome.analysis.paragraphs,
        )
    return ClassificationResponse(
        category_path=outcome.category_path,
        tab=TabModel(title=outcome.page.title, url=outcome.page.url),
        analysis=analysis,
    )


async def _save_bookmark(request: SaveBookmarkRequest) -> SaveBookmarkResponse:
    outcome = await orchestrator.save_bookmark(request.title, request.url, request.category_path)
    return SaveBookmarkResponse(
        category=outcome.category,
        folder_id=outcome.folder_id,
        bookmark_id=outcome.bookmark_id,
        created_folders=outcome.created_folders,
    )


async def _bookmark_tree() -> BookmarkTreeResponse:
    tree = await orchestrator.bookmark_tree()
    return BookmarkTreeResponse(tree=[node.as_dict() for node in tree])


@app.post("/api/messages", response_model=MessageResponse)
async def api_messages(payload: MessageRequest) -> MessageResponse:
    request = payload.root
    try:
        if isinstance(request, ClassificationRequest):
            return await _classification(request)
        if isinstance(request, SaveBookmarkRequest):
            return await _save_bookmark(request)
        return await _bookmark_tree()
    except EXPECTED_ERRORS as exc:
        logger.warning("%s failed: %s", request.action, exc)
        return ErrorResponse(message=str(exc))
    except Exception as exc:
        logger.exception("%s failed unexpectedly", request.action)
        return ErrorResponse(message=str(exc) or exc.__class__.__name__)


@app.get("/api/folders", response_model=List[FolderOptionModel])
async def api_folders() -> List[FolderOptionModel]:
    options = await orchestrator.folder_options()
    return [FolderOptionModel(id=option.id, path=option.path) for option in options]


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=getattr(logging, S.LOG_LEVEL.upper(), logging.INFO))
    uvicorn.run(app, host="0.0.0.0", port=8000)
