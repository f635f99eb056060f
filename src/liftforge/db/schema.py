"""Database schema for workouts and gamification state."""

SCHEMA = """
-- Exercise library (muscle_group drives muscle badges)
CREATE TABLE IF NOT EXISTS exercises (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    muscle_group TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    deleted_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_exercises_muscle_group
    ON exercises(muscle_group) WHERE deleted_at IS NULL;

-- Training sessions, written by the recording/sync flow
CREATE TABLE IF NOT EXISTS workouts (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT,
    started_at TEXT NOT NULL,
    ended_at TEXT,
    local_timezone TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    deleted_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_workouts_user_started
    ON workouts(user_id, started_at) WHERE deleted_at IS NULL;

CREATE TABLE IF NOT EXISTS workout_sets (
    id TEXT PRIMARY KEY,
    workout_id TEXT NOT NULL REFERENCES workouts(id) ON DELETE CASCADE,
    user_id TEXT NOT NULL,
    exercise_id TEXT NOT NULL REFERENCES exercises(id),
    weight_kg REAL,
    reps INTEGER,
    is_pr INTEGER NOT NULL DEFAULT 0,
    set_order_index INTEGER NOT NULL DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    deleted_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_workout_sets_workout
    ON workout_sets(workout_id) WHERE deleted_at IS NULL;
CREATE INDEX IF NOT EXISTS idx_workout_sets_user_exercise
    ON workout_sets(user_id, exercise_id, weight_kg DESC) WHERE deleted_at IS NULL;

-- XP ledger (append-only, one grant per source)
CREATE TABLE IF NOT EXISTS user_xp_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    source_type TEXT NOT NULL CHECK (source_type IN ('SET', 'WORKOUT', 'BONUS')),
    source_id TEXT NOT NULL,
    xp_amount INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE(user_id, source_type, source_id)
);

CREATE INDEX IF NOT EXISTS idx_user_xp_logs_user_created
    ON user_xp_logs(user_id, created_at DESC);

-- Level cache (derived from the ledger, safe to regenerate)
CREATE TABLE IF NOT EXISTS user_levels (
    user_id TEXT PRIMARY KEY,
    total_xp INTEGER NOT NULL DEFAULT 0,
    level INTEGER NOT NULL DEFAULT 1,
    xp_to_next_level INTEGER NOT NULL DEFAULT 100,
    updated_at TEXT NOT NULL
);

-- Badge definitions (seed data)
CREATE TABLE IF NOT EXISTS achievements (
    code TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    icon_url TEXT,
    threshold_value INTEGER,
    relevant_muscle_group TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS user_badges (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    achievement_code TEXT NOT NULL REFERENCES achievements(code),
    earned_at TEXT NOT NULL,
    is_rusty INTEGER NOT NULL DEFAULT 0,
    last_maintained_at TEXT,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    deleted_at TEXT,
    UNIQUE(user_id, achievement_code)
);

CREATE INDEX IF NOT EXISTS idx_user_badges_user
    ON user_badges(user_id) WHERE deleted_at IS NULL;

-- Weekly activity (week_start is the local Monday, YYYY-MM-DD)
CREATE TABLE IF NOT EXISTS user_activity_weeks (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    week_start TEXT NOT NULL,
    active_days INTEGER NOT NULL DEFAULT 0 CHECK (active_days >= 0 AND active_days <= 7),
    workouts_completed INTEGER NOT NULL DEFAULT 0 CHECK (workouts_completed >= 0),
    total_sets INTEGER NOT NULL DEFAULT 0 CHECK (total_sets >= 0),
    total_volume_kg REAL NOT NULL DEFAULT 0 CHECK (total_volume_kg >= 0),
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    UNIQUE(user_id, week_start)
);

CREATE INDEX IF NOT EXISTS idx_activity_weeks_user_week
    ON user_activity_weeks(user_id, week_start DESC);

-- Workouts already folded into a weekly aggregate
CREATE TABLE IF NOT EXISTS user_activity_week_workouts (
    user_id TEXT NOT NULL,
    workout_id TEXT NOT NULL,
    week_start TEXT NOT NULL,
    counted_at TEXT NOT NULL,
    PRIMARY KEY (user_id, workout_id)
);

CREATE TABLE IF NOT EXISTS user_streak_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    streak_type TEXT NOT NULL,
    streak_length INTEGER NOT NULL DEFAULT 1 CHECK (streak_length >= 1),
    week_ended TEXT NOT NULL,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Only one active streak per type per user
CREATE UNIQUE INDEX IF NOT EXISTS idx_streak_logs_unique_active
    ON user_streak_logs(user_id, streak_type) WHERE is_active = 1;

-- Notification records consumed by the push dispatcher
CREATE TABLE IF NOT EXISTS notifications (
    id TEXT PRIMARY KEY,
    recipient_id TEXT NOT NULL,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    body TEXT,
    metadata TEXT NOT NULL DEFAULT '{}',
    read_at TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    deleted_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_notifications_recipient
    ON notifications(recipient_id, created_at DESC) WHERE deleted_at IS NULL;
"""
