"""Services for the carcass kernel (persistence side)."""

from carcass_kernel.services.business_service import BusinessService
from carcass_kernel.services.catalog_service import CatalogService
from carcass_kernel.services.quotation_service import QuotationService

__all__ = [
    "BusinessService",
    "CatalogService",
    "QuotationService",
]
