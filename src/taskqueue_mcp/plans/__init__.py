"""Project plan models and loader exports."""

from .loader import PlanLoadError, PlanLoader, load_plan
from .models import PlanDocument, PlanTask

__all__ = [
    "PlanDocument",
    "PlanLoadError",
    "PlanLoader",
    "PlanTask",
    "load_plan",
]
