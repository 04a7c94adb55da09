"""
Typed Exception Hierarchy for the Carcass Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the quotation engine (the surrounding application, API layers,
scripts) must be able to react to failures without parsing message strings.
Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE attribute (machine-readable, API-safe)
  3. Structured DATA (cut names, ids, amounts) rather than just a message

Example - RIGHT way:
    try:
        workbench.save()
    except QuotationIncompleteError as e:
        render_missing(e.missing_price_cut_names, e.missing_costs)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from CarcassKernelError:

    CarcassKernelError (base)
    |
    +-- PricingError
    |   +-- InvalidPriceError
    |   +-- InvalidCurrencyError
    |
    +-- CatalogError
    |   +-- CutNotFoundError
    |   +-- CostItemNotFoundError
    |
    +-- CostRowError
    |   +-- CostRowNotFoundError
    |
    +-- BusinessError
    |   +-- BusinessNotFoundError
    |   +-- BusinessReferencedError
    |   +-- InvalidBusinessNameError
    |
    +-- QuotationError
        +-- QuotationNotFoundError
        +-- QuotationIncompleteError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                   | When Raised
-----------|------------------------|----------------------------------------------
Pricing    | INVALID_PRICE          | Negative price, weight or USD/kg entered
           | INVALID_CURRENCY       | Currency label is not USD / ARS / ARS + IVA
-----------|------------------------|----------------------------------------------
Catalog    | CUT_NOT_FOUND          | Cut id missing from the catalog (services only)
           | COST_ITEM_NOT_FOUND    | Cost item id missing from the catalog
-----------|------------------------|----------------------------------------------
Cost row   | COST_ROW_NOT_FOUND     | No row for the (cut, cost item) pair
-----------|------------------------|----------------------------------------------
Business   | BUSINESS_NOT_FOUND     | Business id doesn't exist
           | BUSINESS_REFERENCED    | Delete blocked, quotations reference it
           | INVALID_BUSINESS_NAME  | Blank business name
-----------|------------------------|----------------------------------------------
Quotation  | QUOTATION_NOT_FOUND    | Quotation id doesn't exist
           | QUOTATION_INCOMPLETE   | Save gate failed (missing prices / costs)

===============================================================================
WHAT IS *NOT* AN EXCEPTION
===============================================================================

- Missing prices or cost assignments while editing: reported as a
  ValidationOutcome, never raised. Only an attempted save raises
  QuotationIncompleteError.
- A stale cut or macro reference during display resolution or valuation:
  logged and skipped by the engines.
- A missing exchange rate: ARS amounts normalize to zero.
"""


class CarcassKernelError(Exception):
    """
    Base exception for all carcass kernel errors.

    All subclasses must have a `code` class attribute
    for machine-readable error identification.
    """

    code: str = "CARCASS_KERNEL_ERROR"


# Pricing-related exceptions


class PricingError(CarcassKernelError):
    """Base exception for pricing input errors."""

    code: str = "PRICING_ERROR"


class InvalidPriceError(PricingError):
    """A monetary or weight input is negative or not a number."""

    code: str = "INVALID_PRICE"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = str(value)
        super().__init__(f"Invalid value for {field}: {value}")


class InvalidCurrencyError(PricingError):
    """Currency is not one of the supported denominations."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Unsupported currency: {currency}")


# Catalog-related exceptions


class CatalogError(CarcassKernelError):
    """Base exception for catalog lookups."""

    code: str = "CATALOG_ERROR"


class CutNotFoundError(CatalogError):
    """Cut was not found in the catalog."""

    code: str = "CUT_NOT_FOUND"

    def __init__(self, cut_id: str):
        self.cut_id = cut_id
        super().__init__(f"Cut not found: {cut_id}")


class CostItemNotFoundError(CatalogError):
    """Cost item was not found in the catalog."""

    code: str = "COST_ITEM_NOT_FOUND"

    def __init__(self, cost_item_id: str):
        self.cost_item_id = cost_item_id
        super().__init__(f"Cost item not found: {cost_item_id}")


# Cost row exceptions


class CostRowError(CarcassKernelError):
    """Base exception for cost assignment errors."""

    code: str = "COST_ROW_ERROR"


class CostRowNotFoundError(CostRowError):
    """No cost row exists for the given (cut, cost item) pair."""

    code: str = "COST_ROW_NOT_FOUND"

    def __init__(self, cut_id: str, cost_item_id: str):
        self.cut_id = cut_id
        self.cost_item_id = cost_item_id
        super().__init__(
            f"No cost row for cut {cut_id} and cost item {cost_item_id}"
        )


# Business-related exceptions


class BusinessError(CarcassKernelError):
    """Base exception for business profile errors."""

    code: str = "BUSINESS_ERROR"


class BusinessNotFoundError(BusinessError):
    """Business was not found."""

    code: str = "BUSINESS_NOT_FOUND"

    def __init__(self, business_id: str):
        self.business_id = business_id
        super().__init__(f"Business not found: {business_id}")


class BusinessReferencedError(BusinessError):
    """Business cannot be deleted because quotations reference it."""

    code: str = "BUSINESS_REFERENCED"

    def __init__(self, business_id: str, quotation_count: int):
        self.business_id = business_id
        self.quotation_count = quotation_count
        super().__init__(
            f"Business {business_id} cannot be deleted: "
            f"referenced by {quotation_count} quotation(s)"
        )


class InvalidBusinessNameError(BusinessError):
    """Business name is blank."""

    code: str = "INVALID_BUSINESS_NAME"

    def __init__(self, name: str):
        self.name = name
        super().__init__("Business name is required")


# Quotation-related exceptions


class QuotationError(CarcassKernelError):
    """Base exception for quotation errors."""

    code: str = "QUOTATION_ERROR"


class QuotationNotFoundError(QuotationError):
    """Quotation was not found."""

    code: str = "QUOTATION_NOT_FOUND"

    def __init__(self, quotation_id: str):
        self.quotation_id = quotation_id
        super().__init__(f"Quotation not found: {quotation_id}")


class QuotationIncompleteError(QuotationError):
    """The save gate failed: prices or cost assignments are missing."""

    code: str = "QUOTATION_INCOMPLETE"

    def __init__(
        self,
        missing_price_cut_names: list[str],
        missing_costs: bool,
    ):
        self.missing_price_cut_names = list(missing_price_cut_names)
        self.missing_costs = missing_costs
        reasons = []
        if self.missing_price_cut_names:
            reasons.append(
                "missing prices for: " + ", ".join(self.missing_price_cut_names)
            )
        if missing_costs:
            reasons.append("each cut requires at least one assigned cost")
        super().__init__("Quotation cannot be saved: " + "; ".join(reasons))
