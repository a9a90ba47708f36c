from .scheduled_task_routes import router as scheduled_task_routes
from .skill_demand_routes import router as skill_demand_routes

__all__ = [
    "scheduled_task_routes",
    "skill_demand_routes",
]
