from __future__ import annotations

import logging
import os
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy import func
from sqlmodel import Session, SQLModel, create_engine, select

from models import BookmarkNode
from settings import S


os.makedirs("data", exist_ok=True)


logger = logging.getLogger(__name__)


ROOT_NODE_ID = 0
ROOT_CONTAINERS = ((1, "Bookmarks Bar"), (2, "Other Bookmarks"))


def _make_engine():
    connect_args = {"check_same_thread": False} if S.DATABASE_URL.startswith("sqlite") else {}
    return create_engine(S.DATABASE_URL, echo=False, connect_args=connect_args)


engine = _make_engine()


_schema_lock = threading.Lock()
_schema_ready = False
_write_lock = threading.Lock()


def _seed_root_containers() -> None:
    with Session(engine) as ses:
        if ses.get(BookmarkNode, ROOT_NODE_ID) is None:
            ses.add(BookmarkNode(id=ROOT_NODE_ID, parent_id=None, title=""))
        for position, (node_id, title) in enumerate(ROOT_CONTAINERS):
            if ses.get(BookmarkNode, node_id) is None:
                ses.add(BookmarkNode(id=node_id, parent_id=ROOT_NODE_ID, title=title, position=position))
        ses.commit()


def _ensure_schema() -> None:
    global _schema_ready
    if _schema_ready:
        return
    with _schema_lock:
        if _schema_ready:
            return
        SQLModel.metadata.create_all(engine)
        _seed_root_containers()
        _schema_ready = True


def _reset_sqlite_file() -> None:
    if not S.DATABASE_URL.startswith("sqlite:///"):
        return
    path = S.DATABASE_URL.replace("sqlite:///", "", 1)
    if not path:
        return
    try:
        engine.dispose()
    except Exception:
        logger.debug("Failed to dispose engine before reset", exc_info=True)
    if os.path.exists(path):
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Could not delete SQLite file %s: %s", path, exc)


def init_db() -> None:
    global _schema_ready
    with _schema_lock:
        if S.INIT_RUN:
            logger.info("INIT_RUN active - resetting bookmark database")
            SQLModel.metadata.drop_all(engine)
            _schema_ready = False
            if S.DATABASE_URL.startswith("sqlite:///"):
                _reset_sqlite_file()
        SQLModel.metadata.create_all(engine)
        _seed_root_containers()
        _schema_ready = True


@contextmanager
def get_session() -> Iterator[Session]:
    _ensure_schema()
    with Session(engine) as session:
        yield session


def list_nodes() -> List[BookmarkNode]:
    with get_session() as ses:
        stmt = select(BookmarkNode).order_by(BookmarkNode.parent_id, BookmarkNode.position, BookmarkNode.id)
        return list(ses.exec(stmt).all())


def get_node(node_id: int) -> Optional[BookmarkNode]:
    with get_session() as ses:
        return ses.get(BookmarkNode, node_id)


def search_nodes_by_title(title: str) -> List[BookmarkNode]:
    with get_session() as ses:
        stmt = select(BookmarkNode).where(BookmarkNode.title == title).order_by(BookmarkNode.id)
        return list(ses.exec(stmt).all())


def count_nodes(*, folders_only: bool = False) -> int:
    with get_session() as ses:
        stmt = select(func.count()).select_from(BookmarkNode)
        if folders_only:
            stmt = stmt.where(BookmarkNode.url.is_(None))
        return int(ses.exec(stmt).one() or 0)


def create_node(parent_id: int, title: str, url: Optional[str] = None) -> BookmarkNode:
    """Append a folder (``url`` is None) or bookmark below ``parent_id``."""

    with _write_lock, get_session() as ses:
        parent = ses.get(BookmarkNode, parent_id)
        if parent is None:
            raise LookupError(f"parent folder {parent_id} does not exist")
        if parent.url is not None:
            raise ValueError(f"node {parent_id} is a bookmark and cannot hold children")
        siblings = ses.exec(
            select(func.count()).select_from(BookmarkNode).where(BookmarkNode.parent_id == parent_id)
        ).one()
        node = BookmarkNode(parent_id=parent_id, title=title, url=url, position=int(siblings or 0))
        ses.add(node)
        ses.commit()
        ses.refresh(node)
        return node
