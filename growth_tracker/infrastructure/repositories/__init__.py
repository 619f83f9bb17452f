from growth_tracker.infrastructure.repositories.assessment_store import (
    AssessmentStore,
    SqlAssessmentStore,
)

__all__ = ["AssessmentStore", "SqlAssessmentStore"]
