from growth_tracker.domain.models import Area, Assessment, User
from growth_tracker.domain.reference_data import AREA_DEFINITIONS, AreaDefinition

__all__ = ["AREA_DEFINITIONS", "Area", "AreaDefinition", "Assessment", "User"]
