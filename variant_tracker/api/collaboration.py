"""Users, saved analyses, history, splicing results, comment threads and share links."""

from __future__ import annotations

import logging
import secrets
import string
import time

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from variant_tracker.models.database import get_db
from variant_tracker.models.social import Analysis, Comment, HistoryRecord, SharedAccess, SplicingAnalysis, User
from variant_tracker.schemas.api import (
    AnalysisCreate,
    AnalysisDetail,
    AnalysisResponse,
    CommentCreate,
    CommentResponse,
    HistoryCreate,
    HistoryResponse,
    ShareCreate,
    SharedAccessResponse,
    SplicingCreate,
    SplicingResponse,
    UserCreate,
    UserDetail,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

HISTORY_LIMIT = 50
_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def new_share_token() -> str:
    """share_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(9))
    return f"share_{int(time.time() * 1000)}_{suffix}"


def _get_analysis(db: Session, analysis_id: str) -> Analysis:
    analysis = db.get(Analysis, analysis_id)
    if not analysis:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return analysis


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    user = User(email=payload.email, name=payload.name)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    db.refresh(user)
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}", response_model=UserDetail)
def get_user(user_id: str, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return UserDetail.model_validate(user)


# ---------------------------------------------------------------------------
# Analyses
# ---------------------------------------------------------------------------

@router.post("/analyses", response_model=AnalysisResponse, status_code=201)
def create_analysis(payload: AnalysisCreate, db: Session = Depends(get_db)):
    if payload.user_id and db.get(User, payload.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    analysis = Analysis(**payload.model_dump())
    db.add(analysis)
    db.commit()
    db.refresh(analysis)
    return AnalysisResponse.model_validate(analysis)


@router.get("/analyses", response_model=list[AnalysisResponse])
def list_analyses(
    user_id: str | None = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    query = db.query(Analysis)
    if user_id:
        query = query.filter(Analysis.user_id == user_id)
    rows = query.order_by(Analysis.created_at.desc()).all()
    return [AnalysisResponse.model_validate(r) for r in rows]


@router.get("/analyses/{analysis_id}", response_model=AnalysisDetail)
def get_analysis(analysis_id: str, db: Session = Depends(get_db)):
    return AnalysisDetail.model_validate(_get_analysis(db, analysis_id))


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

@router.post("/history", response_model=HistoryResponse, status_code=201)
def create_history_record(payload: HistoryCreate, db: Session = Depends(get_db)):
    if db.get(User, payload.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    if payload.analysis_id:
        _get_analysis(db, payload.analysis_id)
    record = HistoryRecord(**payload.model_dump())
    db.add(record)
    db.commit()
    db.refresh(record)
    return HistoryResponse.model_validate(record)


@router.get("/history/{user_id}", response_model=list[HistoryResponse])
def list_history(user_id: str, db: Session = Depends(get_db)):
    """The user's most recent history records."""
    rows = (
        db.query(HistoryRecord)
        .filter(HistoryRecord.user_id == user_id)
        .order_by(HistoryRecord.timestamp.desc())
        .limit(HISTORY_LIMIT)
        .all()
    )
    return [HistoryResponse.model_validate(r) for r in rows]


# ---------------------------------------------------------------------------
# Splicing analyses
# ---------------------------------------------------------------------------

@router.post("/splicing", response_model=SplicingResponse, status_code=201)
def create_splicing_analysis(payload: SplicingCreate, db: Session = Depends(get_db)):
    """Save a splicing prediction; unrecognised fields are stored as its results."""
    if payload.user_id and db.get(User, payload.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    if payload.analysis_id:
        _get_analysis(db, payload.analysis_id)

    splicing = SplicingAnalysis(
        **payload.model_dump(exclude=set(payload.model_extra or {})),
        results=payload.model_extra or None,
    )
    db.add(splicing)
    db.commit()
    db.refresh(splicing)
    return SplicingResponse.model_validate(splicing)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@router.post("/comments", response_model=CommentResponse, status_code=201)
def create_comment(payload: CommentCreate, db: Session = Depends(get_db)):
    _get_analysis(db, payload.analysis_id)
    if db.get(User, payload.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    if payload.parent_id:
        parent = db.get(Comment, payload.parent_id)
        if parent is None or parent.analysis_id != payload.analysis_id:
            raise HTTPException(status_code=404, detail="Parent comment not found")

    comment = Comment(**payload.model_dump())
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return CommentResponse.model_validate(comment)


@router.get("/comments/{analysis_id}", response_model=list[CommentResponse])
def list_comments(analysis_id: str, db: Session = Depends(get_db)):
    """Top-level comments in posting order, each with its replies nested."""
    rows = (
        db.query(Comment)
        .filter(Comment.analysis_id == analysis_id, Comment.parent_id.is_(None))
        .order_by(Comment.created_at.asc())
        .all()
    )
    return [CommentResponse.model_validate(r) for r in rows]


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

@router.post("/share", response_model=SharedAccessResponse, status_code=201)
def share_analysis(payload: ShareCreate, db: Session = Depends(get_db)):
    _get_analysis(db, payload.analysis_id)
    shared = SharedAccess(
        analysis_id=payload.analysis_id,
        # TODO: take the sharer from the authenticated principal once auth exists
        shared_by_id=payload.user_id,
        shared_with_id=payload.shared_with_id,
        share_token=new_share_token(),
        permission_type=payload.permission_type,
        is_public=payload.is_public,
    )
    db.add(shared)
    db.commit()
    db.refresh(shared)
    logger.info("Analysis %s shared (%s)", payload.analysis_id, payload.permission_type)
    return SharedAccessResponse.model_validate(shared)


@router.get("/share/{share_token}", response_model=AnalysisDetail)
def open_shared_analysis(share_token: str, db: Session = Depends(get_db)):
    shared = db.query(SharedAccess).filter(SharedAccess.share_token == share_token).first()
    if not shared:
        raise HTTPException(status_code=404, detail="Share link not found")
    return AnalysisDetail.model_validate(_get_analysis(db, shared.analysis_id))
