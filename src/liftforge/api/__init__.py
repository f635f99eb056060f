"""HTTP API for the LiftForge gamification engine."""
