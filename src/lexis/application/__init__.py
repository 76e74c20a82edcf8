# Application Package
from .service import AssessmentResult, SchedulerService

__all__ = ["SchedulerService", "AssessmentResult"]
