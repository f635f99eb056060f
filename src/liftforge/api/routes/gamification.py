"""Gamification API routes for XP, levels, PRs, streaks and badges.

All routes require authentication. A caller may only target their own
userId unless they hold a service token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..deps import (
    CurrentUser,
    get_badge_service,
    get_current_user,
    get_level_service,
    get_pipeline,
    get_pr_service,
    get_rust_service,
    get_weekly_service,
    get_xp_service,
)
from ...models.gamification import (
    AwardXpRequest,
    AwardXpResult,
    DetectPrsRequest,
    DetectPrsResult,
    LevelInfo,
    PolishBadgeRequest,
    PolishBadgeResult,
    ProcessWorkoutRequest,
    RustCheckResult,
    TrackWeeklyActivityRequest,
    UnlockBadgesResult,
    UserProgress,
    UserRequest,
    WeeklyActivityResult,
    WorkoutGamificationSummary,
)
from ...services.badge_service import BadgeService
from ...services.level_service import LevelService
from ...services.pipeline import GamificationPipeline
from ...services.pr_detection_service import PRDetectionService
from ...services.rust_service import BadgeRustService
from ...services.weekly_activity_service import WeeklyActivityService
from ...services.xp_service import XpLedgerService


router = APIRouter()


# =============================================================================
# XP & Levels
# =============================================================================


@router.post("/xp/award", response_model=AwardXpResult)
def award_xp(
    request: AwardXpRequest,
    current_user: CurrentUser = Depends(get_current_user),
    xp_service: XpLedgerService = Depends(get_xp_service),
):
    """
    Award XP for completed sets.

    10 XP per set and a 50 XP bonus once the workout is finished, capped at
    200 set XP per workout and 500 XP per local day. Replaying the same
    sets grants nothing.
    """
    current_user.ensure_can_act_for(request.user_id)
    return xp_service.award_xp(request.user_id, request.set_ids)


@router.post("/level/calculate", response_model=LevelInfo)
def calculate_level(
    request: UserRequest,
    current_user: CurrentUser = Depends(get_current_user),
    level_service: LevelService = Depends(get_level_service),
):
    """Recompute the user's level from the XP ledger."""
    current_user.ensure_can_act_for(request.user_id)
    return level_service.calculate_level(request.user_id)


# =============================================================================
# Personal Records
# =============================================================================


@router.post("/prs/detect", response_model=DetectPrsResult)
def detect_prs(
    request: DetectPrsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    pr_service: PRDetectionService = Depends(get_pr_service),
):
    """Flag the sets of a workout that beat the user's estimated 1RM history."""
    owner = None if current_user.is_service else current_user.user_id
    return pr_service.detect_prs(request.workout_id, user_id=owner)


# =============================================================================
# Weekly Activity
# =============================================================================


@router.post("/activity/weekly", response_model=WeeklyActivityResult)
def track_weekly_activity(
    request: TrackWeeklyActivityRequest,
    current_user: CurrentUser = Depends(get_current_user),
    weekly_service: WeeklyActivityService = Depends(get_weekly_service),
):
    """Fold a finished workout into its local week and update streaks."""
    current_user.ensure_can_act_for(request.user_id)
    return weekly_service.track(request.user_id, request.workout_id, request.timezone)


# =============================================================================
# Badges
# =============================================================================


@router.post("/badges/unlock", response_model=UnlockBadgesResult)
def unlock_badges(
    request: UserRequest,
    current_user: CurrentUser = Depends(get_current_user),
    badge_service: BadgeService = Depends(get_badge_service),
):
    """Unlock every badge the user now qualifies for."""
    current_user.ensure_can_act_for(request.user_id)
    return badge_service.unlock_badges(request.user_id)


@router.post("/badges/rust-check", response_model=RustCheckResult)
def check_badge_rust(
    request: UserRequest,
    current_user: CurrentUser = Depends(get_current_user),
    rust_service: BadgeRustService = Depends(get_rust_service),
):
    """Re-evaluate the rust flag of the user's badges."""
    current_user.ensure_can_act_for(request.user_id)
    return rust_service.check_rust(request.user_id)


@router.post("/badges/polish", response_model=PolishBadgeResult)
def polish_badge(
    request: PolishBadgeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    rust_service: BadgeRustService = Depends(get_rust_service),
):
    """Clear a badge's rust and restart its timer."""
    current_user.ensure_can_act_for(request.user_id)
    return rust_service.polish_badge(request.user_id, request.achievement_code)


# =============================================================================
# Pipeline & Progress
# =============================================================================


@router.post("/workouts/process", response_model=WorkoutGamificationSummary)
def process_workout(
    request: ProcessWorkoutRequest,
    current_user: CurrentUser = Depends(get_current_user),
    pipeline: GamificationPipeline = Depends(get_pipeline),
):
    """
    Run every gamification stage for a finished workout.

    Stages are best-effort; failures are listed under `errors` and do not
    undo earlier stages.
    """
    current_user.ensure_can_act_for(request.user_id)
    return pipeline.process_workout(request.user_id, request.workout_id, request.timezone)


@router.get("/progress", response_model=UserProgress)
def get_progress(
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: CurrentUser = Depends(get_current_user),
    level_service: LevelService = Depends(get_level_service),
    weekly_service: WeeklyActivityService = Depends(get_weekly_service),
    badge_service: BadgeService = Depends(get_badge_service),
):
    """Level, active streaks, badges and recent weeks for a user (default: caller)."""
    target = user_id or current_user.user_id
    current_user.ensure_can_act_for(target)
    return UserProgress(
        level=level_service.get_level(target),
        active_streaks=weekly_service.get_active_streaks(target),
        badges=badge_service.get_badges(target),
        recent_weeks=weekly_service.get_weeks(target, limit=8),
    )
