"""ORM models for the carcass kernel."""

from carcass_kernel.models.business import BusinessCutModel, BusinessModel
from carcass_kernel.models.catalog import CostItemModel, CutModel
from carcass_kernel.models.quotation import (
    QuotationCutCostModel,
    QuotationCutModel,
    QuotationModel,
)

__all__ = [
    "BusinessCutModel",
    "BusinessModel",
    "CostItemModel",
    "CutModel",
    "QuotationCutCostModel",
    "QuotationCutModel",
    "QuotationModel",
]
