# File: civic_portal/routers/community.py
# Project: civic-portal

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from civic_portal.core.ratelimit import limiter, VOTE_LIMIT, COMMENT_LIMIT
from civic_portal.core.security import PortalSession, get_session
from civic_portal.gateway.base import EntityGateway, DEFAULT_SORT
from civic_portal.gateway.session import get_gateway
from civic_portal.schemas.issue import CommentIn
from civic_portal.services.aggregation import search_issues

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/community", tags=["community"])


def _community_view(gateway: EntityGateway, search: Optional[str] = None) -> dict:
    issues = gateway.issues.list(DEFAULT_SORT)
    comments = gateway.comments.list(DEFAULT_SORT)
    matching = search_issues(issues, search)
    by_issue: dict[str, list] = {}
    for c in comments:
        by_issue.setdefault(str(c.issue_id), []).append(c)
    return {
        "search": search or "",
        "total": len(issues),
        "showing": len(matching),
        "issues": matching,
        "comments": {str(i.id): by_issue.get(str(i.id), []) for i in matching},
    }


@router.get("/issues")
def list_issues(
    search: Optional[str] = Query(default=None, max_length=200),
    gateway: EntityGateway = Depends(get_gateway),
):
    return _community_view(gateway, search)


@router.get("/issues/{issue_id}/comments")
def list_comments(issue_id: str, gateway: EntityGateway = Depends(get_gateway)):
    return gateway.comments.filter({"issue_id": issue_id}, DEFAULT_SORT)


@router.post("/issues/{issue_id}/upvote")
@limiter.limit(VOTE_LIMIT)
def upvote(
    request: Request,
    issue_id: str,
    search: Optional[str] = Query(default=None, max_length=200),
    gateway: EntityGateway = Depends(get_gateway),
):
    # read-modify-write against the last fetched value, then one full reload
    issue = gateway.issues.get(issue_id)
    gateway.issues.update(issue.id, {"upvotes": (issue.upvotes or 0) + 1})
    return _community_view(gateway, search)


@router.post("/issues/{issue_id}/comments", status_code=201)
@limiter.limit(COMMENT_LIMIT)
def add_comment(
    request: Request,
    issue_id: str,
    body: CommentIn,
    search: Optional[str] = Query(default=None, max_length=200),
    gateway: EntityGateway = Depends(get_gateway),
    session: PortalSession = Depends(get_session),
):
    content = body.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Empty comment")
    issue = gateway.issues.get(issue_id)
    gateway.comments.create({
        "issue_id": issue.id,
        "content": content,
        "user_name": session.display_name,
    })
    # counter is kept by increment, not transactionally; a reload from the
    # gateway is the source of truth if it drifts
    gateway.issues.update(issue.id, {"comments_count": (issue.comments_count or 0) + 1})
    logger.info(f"Comment added to issue {issue.id}")
    return _community_view(gateway, search)
