"""
carcass_services -- Package init and public API.

Responsibility:
    Stateful orchestration that composes the pure calculation engines
    (carcass_engines/) with database sessions.  This is the **only** layer
    that holds a database session and engine evaluation at the same time.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        carcass_services/ -> carcass_engines/  (allowed)
        carcass_services/ -> carcass_kernel/   (allowed)
        carcass_engines/  -> carcass_services/ (FORBIDDEN)
        carcass_kernel/   -> carcass_services/ (FORBIDDEN)

Invariants enforced:
    - Layer isolation: carcass_kernel and carcass_engines never import
      from this package.
    - DI transparency: sessions and settings are passed in; nothing here
      constructs its own engine or reads configuration.
"""

from carcass_kernel.logging_config import get_logger

logger = get_logger("services")

from carcass_services.workbench import CostUsageReport, QuotationWorkbench

__all__ = [
    "CostUsageReport",
    "QuotationWorkbench",
]
