"""Default achievement definitions seeded into the achievements table."""

from typing import Any, Dict, List


DEFAULT_ACHIEVEMENTS: List[Dict[str, Any]] = [
    # Workout count
    {
        "code": "FIRST_WORKOUT",
        "title": "First Rep",
        "description": "Finish your first workout",
        "icon_url": "/badges/first_workout.png",
        "threshold_value": 1,
        "relevant_muscle_group": None,
    },
    {
        "code": "WORKOUT_10",
        "title": "Getting Serious",
        "description": "Finish 10 workouts",
        "icon_url": "/badges/workout_10.png",
        "threshold_value": 10,
        "relevant_muscle_group": None,
    },
    {
        "code": "WORKOUT_50",
        "title": "Gym Regular",
        "description": "Finish 50 workouts",
        "icon_url": "/badges/workout_50.png",
        "threshold_value": 50,
        "relevant_muscle_group": None,
    },
    {
        "code": "WORKOUT_100",
        "title": "Centurion",
        "description": "Finish 100 workouts",
        "icon_url": "/badges/workout_100.png",
        "threshold_value": 100,
        "relevant_muscle_group": None,
    },
    {
        "code": "WORKOUT_500",
        "title": "Iron Veteran",
        "description": "Finish 500 workouts",
        "icon_url": "/badges/workout_500.png",
        "threshold_value": 500,
        "relevant_muscle_group": None,
    },
    # Personal records
    {
        "code": "FIRST_PR",
        "title": "New Personal Best",
        "description": "Set your first personal record",
        "icon_url": "/badges/first_pr.png",
        "threshold_value": 1,
        "relevant_muscle_group": None,
    },
    {
        "code": "PR_COUNT_10",
        "title": "Record Breaker",
        "description": "Set 10 personal records",
        "icon_url": "/badges/pr_10.png",
        "threshold_value": 10,
        "relevant_muscle_group": None,
    },
    {
        "code": "PR_COUNT_50",
        "title": "Limit Pusher",
        "description": "Set 50 personal records",
        "icon_url": "/badges/pr_50.png",
        "threshold_value": 50,
        "relevant_muscle_group": None,
    },
    # Levels
    {
        "code": "LEVEL_5",
        "title": "Rising Lifter",
        "description": "Reach level 5",
        "icon_url": "/badges/level_5.png",
        "threshold_value": 5,
        "relevant_muscle_group": None,
    },
    {
        "code": "LEVEL_10",
        "title": "Seasoned Lifter",
        "description": "Reach level 10",
        "icon_url": "/badges/level_10.png",
        "threshold_value": 10,
        "relevant_muscle_group": None,
    },
    # Weekly consistency
    {
        "code": "WEEKLY_3_x4",
        "title": "Consistent Starter",
        "description": "Work out 3+ days per week for 4 consecutive weeks",
        "icon_url": "/badges/weekly_3_4.png",
        "threshold_value": 4,
        "relevant_muscle_group": None,
    },
    {
        "code": "WEEKLY_3_x8",
        "title": "Habit Builder",
        "description": "Work out 3+ days per week for 8 consecutive weeks",
        "icon_url": "/badges/weekly_3_8.png",
        "threshold_value": 8,
        "relevant_muscle_group": None,
    },
    {
        "code": "WEEKLY_3_x12",
        "title": "Quarter Champion",
        "description": "Work out 3+ days per week for 12 consecutive weeks",
        "icon_url": "/badges/weekly_3_12.png",
        "threshold_value": 12,
        "relevant_muscle_group": None,
    },
    {
        "code": "WEEKLY_4_x4",
        "title": "Dedicated Lifter",
        "description": "Work out 4+ days per week for 4 consecutive weeks",
        "icon_url": "/badges/weekly_4_4.png",
        "threshold_value": 4,
        "relevant_muscle_group": None,
    },
    {
        "code": "WEEKLY_4_x8",
        "title": "Iron Regular",
        "description": "Work out 4+ days per week for 8 consecutive weeks",
        "icon_url": "/badges/weekly_4_8.png",
        "threshold_value": 8,
        "relevant_muscle_group": None,
    },
    {
        "code": "CONSISTENCY_26",
        "title": "Half Year Hero",
        "description": "Complete at least 1 workout every week for 26 weeks",
        "icon_url": "/badges/consistency_26.png",
        "threshold_value": 26,
        "relevant_muscle_group": None,
    },
    {
        "code": "CONSISTENCY_52",
        "title": "Year-Round Athlete",
        "description": "Complete at least 1 workout every week for 52 weeks",
        "icon_url": "/badges/consistency_52.png",
        "threshold_value": 52,
        "relevant_muscle_group": None,
    },
    # Single week
    {
        "code": "PERFECT_WEEK_5",
        "title": "Perfect Week",
        "description": "Complete 5+ workouts in a single week",
        "icon_url": "/badges/perfect_week.png",
        "threshold_value": 5,
        "relevant_muscle_group": None,
    },
    {
        "code": "PERFECT_WEEK_6",
        "title": "Beast Mode Week",
        "description": "Complete 6+ workouts in a single week",
        "icon_url": "/badges/beast_week.png",
        "threshold_value": 6,
        "relevant_muscle_group": None,
    },
    # Cumulative volume
    {
        "code": "VOLUME_10000KG",
        "title": "Ten Tonnes",
        "description": "Lift 10,000 kg in total",
        "icon_url": "/badges/volume_10000.png",
        "threshold_value": 10000,
        "relevant_muscle_group": None,
    },
    {
        "code": "VOLUME_100000KG",
        "title": "Hundred Tonnes",
        "description": "Lift 100,000 kg in total",
        "icon_url": "/badges/volume_100000.png",
        "threshold_value": 100000,
        "relevant_muscle_group": None,
    },
    # Muscle groups
    {
        "code": "CHEST_MASTER",
        "title": "Chest Master",
        "description": "Complete 50 chest sets",
        "icon_url": "/badges/chest_master.png",
        "threshold_value": 50,
        "relevant_muscle_group": "CHEST",
    },
    {
        "code": "BACK_MASTER",
        "title": "Back Master",
        "description": "Complete 50 back sets",
        "icon_url": "/badges/back_master.png",
        "threshold_value": 50,
        "relevant_muscle_group": "BACK",
    },
    {
        "code": "LEG_MASTER",
        "title": "Leg Master",
        "description": "Complete 50 leg sets",
        "icon_url": "/badges/leg_master.png",
        "threshold_value": 50,
        "relevant_muscle_group": "LEGS",
    },
]
