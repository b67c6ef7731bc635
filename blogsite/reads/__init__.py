"""
Blog Post Read Tracking

Records blog post reads and aggregates them for the blog pages: total
reads, number of distinct readers, and per-team read rankings.

Signed-in readers are counted by user; everyone else by the anonymous
client-identity cookie, which this router issues on first read.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from blogsite.auth.dependencies import get_session_service, optional_user
from blogsite.auth.session import SessionService
from blogsite.db import get_session
from blogsite.models.post_read import PostRead
from blogsite.models.user import Team, User

router = APIRouter()
logger = logging.getLogger(__name__)

RANKED_TEAMS = [Team.BLUE, Team.RED, Team.YELLOW]


class ReadRanking(SQLModel):
    """Reads credited to one team."""
    team: Team
    total_reads: int
    percent: float


class ReadStats(SQLModel):
    """
    Aggregated read statistics.

    ``total_reads`` and ``rankings`` are limited to ``slug`` when one is
    given. ``reader_count`` always covers the whole site.
    """
    slug: Optional[str] = None
    total_reads: int
    reader_count: int
    rankings: List[ReadRanking]
    leading_team: Optional[Team] = None


async def record_post_read(
    db: AsyncSession,
    slug: str,
    user: Optional[User] = None,
    client_id: Optional[str] = None,
) -> PostRead:
    """
    Store one read of ``slug``.

    The read is attributed to ``user`` when given, otherwise to ``client_id``.
    """
    if user is None and not client_id:
        raise ValueError("A post read needs either a user or a client id")

    read = PostRead(
        post_slug=slug,
        user_id=user.id if user is not None else None,
        client_id=None if user is not None else client_id,
    )
    db.add(read)
    await db.commit()
    await db.refresh(read)
    return read


async def get_total_post_reads(db: AsyncSession, slug: Optional[str] = None) -> int:
    stmt = select(func.count(PostRead.id))
    if slug:
        stmt = stmt.where(PostRead.post_slug == slug)
    return (await db.execute(stmt)).scalar_one()


async def get_reader_count(db: AsyncSession) -> int:
    """Distinct signed-in readers plus distinct anonymous clients."""
    users = (await db.execute(select(func.count(PostRead.user_id.distinct())))).scalar_one()
    clients = (await db.execute(select(func.count(PostRead.client_id.distinct())))).scalar_one()
    return users + clients


async def get_read_rankings(db: AsyncSession, slug: Optional[str] = None) -> List[ReadRanking]:
    """Reads per team, highest first. Readers without a team are not ranked."""
    stmt = (
        select(User.team, func.count(PostRead.id))
        .join(User, PostRead.user_id == User.id)
        .where(User.team.in_(RANKED_TEAMS))
        .group_by(User.team)
    )
    if slug:
        stmt = stmt.where(PostRead.post_slug == slug)

    counts = {team: 0 for team in RANKED_TEAMS}
    for team, count in (await db.execute(stmt)).all():
        counts[team] = count

    total = sum(counts.values())
    rankings = [
        ReadRanking(
            team=team,
            total_reads=count,
            percent=round(count / total * 100, 1) if total else 0.0,
        )
        for team, count in counts.items()
    ]
    return sorted(rankings, key=lambda r: r.total_reads, reverse=True)


def get_ranking_leader(rankings: List[ReadRanking]) -> Optional[Team]:
    """The team with the most reads, or None when nobody leads."""
    if not rankings:
        return None
    leader = rankings[0]
    if leader.total_reads == 0:
        return None
    if len(rankings) > 1 and rankings[1].total_reads == leader.total_reads:
        return None
    return leader.team


@router.post("/blog/{slug}/read")
async def mark_post_read(
    slug: str,
    request: Request,
    user: Optional[User] = Depends(optional_user),
    sessions: SessionService = Depends(get_session_service),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    """Record a read of ``slug`` for the current user or anonymous client."""
    client_session = sessions.get_client_session(request)

    await record_post_read(
        db,
        slug,
        user=user,
        client_id=None if user else client_session.get_client_id(),
    )
    logger.info("Read of %s recorded (signed in: %s)", slug, user is not None)

    return JSONResponse(
        {"message": "Read recorded", "slug": slug},
        headers=client_session.get_headers(),
    )


@router.get("/blog/reads", response_model=ReadStats)
async def read_stats(
    slug: Optional[str] = None,
    db: AsyncSession = Depends(get_session),
) -> ReadStats:
    """
    Total reads and team rankings, optionally for one post, plus the
    site-wide reader count.
    """
    rankings = await get_read_rankings(db, slug)
    return ReadStats(
        slug=slug,
        total_reads=await get_total_post_reads(db, slug),
        reader_count=await get_reader_count(db),
        rankings=rankings,
        leading_team=get_ranking_leader(rankings),
    )
