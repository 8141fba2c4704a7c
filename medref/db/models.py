from medref.db.base import Base, HistoryBase

# Import all models here
from medref.models.medication import CategoryModel, MedicationGroupModel, MedicationItemModel
from medref.models.plan_history import PlanHistory

__all__ = [
    "Base",
    "HistoryBase",
    "CategoryModel",
    "MedicationGroupModel",
    "MedicationItemModel",
    "PlanHistory",
]
