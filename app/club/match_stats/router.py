"""
Match Statistics API Router
"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import ClubUserContext, get_current_user, require_coach
from ..models import MatchStatsRecord, MatchStatsResponse, PlayerMatchSummary
from ..players.service import player_service
from .service import match_stats_service

router = APIRouter(prefix="/match-stats", tags=["Match Statistics"])


async def _check_player_access(player_id: str, user: ClubUserContext):
    """Guardians see only their own players"""
    if user.is_coach():
        return
    try:
        player = await player_service.get_player(player_id)
    except LookupError:
        raise HTTPException(status_code=404, detail="Player not found")
    if user.guardian_id not in player["guardian_ids"]:
        raise HTTPException(status_code=403, detail="You can only view your own players")


@router.post("", response_model=MatchStatsResponse)
async def record_stats(
    data: MatchStatsRecord,
    user: ClubUserContext = Depends(require_coach)
):
    """Record (or replace) a player's figures for a match"""
    return await match_stats_service.record(data.model_dump(), user.guardian_id)


@router.get("/events/{event_id}", response_model=List[MatchStatsResponse])
async def event_stats(
    event_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Figures for every player in a match"""
    return await match_stats_service.list_for_event(event_id)


@router.get("/players/{player_id}", response_model=List[MatchStatsResponse])
async def player_stats(
    player_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """A player's match figures"""
    await _check_player_access(player_id, user)
    return await match_stats_service.list_for_player(player_id)


@router.get("/players/{player_id}/summary", response_model=PlayerMatchSummary)
async def player_summary(
    player_id: str,
    user: ClubUserContext = Depends(get_current_user)
):
    """A player's totals across matches"""
    await _check_player_access(player_id, user)
    return await match_stats_service.player_summary(player_id)


@router.delete("/{stats_id}")
async def delete_stats(
    stats_id: str,
    user: ClubUserContext = Depends(require_coach)
):
    """Delete one match statistics row"""
    try:
        await match_stats_service.delete(stats_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"message": "Match statistics deleted", "id": stats_id}
