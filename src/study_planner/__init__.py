"""Personal study planner: review scheduling, mastery tracking and study analytics."""
