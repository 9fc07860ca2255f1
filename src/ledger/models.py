"""Pydantic models for ledger transactions and business tax configuration.

This module defines the input schema consumed by every engine component:
- Transaction / CustomerRef: Externally supplied money-movement records
- CategoryRule / CategoryRuleSet: Business-scoped tax treatment overrides
- TaxProfile: Entity type, filing status and state settings
- PayrollRun: Optional payroll totals used by the tax report

Inputs are never rejected for bad values. Each validator normalizes instead:
unparseable or non-finite amounts become 0, empty categories become
"Uncategorized", unknown enum values fall back to documented defaults, and
rates and percentages are clamped into their valid interval.

All monetary fields use Decimal for precision.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

UNCATEGORIZED = "Uncategorized"

ZERO = Decimal("0")
ONE = Decimal("1")

TRUE_STRINGS = frozenset({"true", "t", "yes", "y", "on", "1"})
FALSE_STRINGS = frozenset({"false", "f", "no", "n", "off", "0"})


# =============================================================================
# Enumerations
# =============================================================================


class TransactionKind(str, Enum):
    """Optional caller-supplied hint about what a transaction represents."""

    INCOME = "income"
    EXPENSE = "expense"
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    TRANSFER = "transfer"


class TaxCategoryOverride(str, Enum):
    """Explicit per-transaction tax category set by the user."""

    TAXABLE = "taxable"
    NON_TAXABLE = "non_taxable"
    NON_TAXABLE_INCOME = "non_taxable_income"
    DEDUCTIBLE = "deductible"
    PARTIAL_DEDUCTIBLE = "partial_deductible"
    NON_DEDUCTIBLE = "non_deductible"
    CAPITALIZED = "capitalized"
    REVIEW = "review"


class TaxStatus(str, Enum):
    """Whether tax has already been paid/withheld on a transaction."""

    TAXED = "taxed"
    NOT_TAXED = "not_taxed"


class TaxTreatment(str, Enum):
    """Category-level tax treatment configured by the business."""

    DEDUCTIBLE = "deductible"
    PARTIAL_50 = "partial_50"
    NON_DEDUCTIBLE = "non_deductible"
    CAPITALIZED = "capitalized"
    NON_TAXABLE_INCOME = "non_taxable_income"
    REVIEW = "review"


class EntityType(str, Enum):
    """Legal structure of the business."""

    SOLE_PROP = "sole_prop"
    LLC_SINGLE = "llc_single"
    LLC_MULTI = "llc_multi"
    PARTNERSHIP = "partnership"
    S_CORP = "s_corp"
    C_CORP = "c_corp"


class FilingStatus(str, Enum):
    """Owner's federal filing status."""

    SINGLE = "single"
    MARRIED_JOINT = "married_joint"
    MARRIED_SEPARATE = "married_separate"
    HEAD_OF_HOUSEHOLD = "head_of_household"


# Default deduction percentage implied by each treatment
TREATMENT_DEDUCTION_PCT: dict[TaxTreatment, Decimal] = {
    TaxTreatment.DEDUCTIBLE: Decimal("1"),
    TaxTreatment.PARTIAL_50: Decimal("0.5"),
    TaxTreatment.NON_DEDUCTIBLE: Decimal("0"),
    TaxTreatment.CAPITALIZED: Decimal("0"),
    TaxTreatment.NON_TAXABLE_INCOME: Decimal("0"),
    TaxTreatment.REVIEW: Decimal("0"),
}


# =============================================================================
# Coercion helpers
# =============================================================================


def to_decimal(value: object) -> Decimal:
    """Convert a loosely typed amount to a finite Decimal.

    Args:
        value: int, float, Decimal, str (commas and "$" allowed) or None.

    Returns:
        Decimal representation. Returns Decimal('0') for None, empty,
        unparseable, NaN, infinite or out-of-float-range values.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return ZERO
        result = Decimal(str(value))
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace("$", "")
        if not cleaned or cleaned == "-":
            return ZERO
        try:
            result = Decimal(cleaned)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not result.is_finite():
        return ZERO
    # Magnitudes beyond float range overflow later arithmetic
    if math.isinf(float(result)):
        return ZERO
    return result


def clamp_decimal(value: Decimal, low: Decimal = ZERO, high: Decimal = ONE) -> Decimal:
    """Clamp a Decimal into [low, high]."""
    return max(low, min(high, value))


def to_date(value: object) -> dt.date | None:
    """Parse a calendar date, returning None when the value is unusable.

    Only the leading YYYY-MM-DD part of strings is read, so timestamps keep
    their own calendar day rather than being shifted through UTC.
    """
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()[:10]
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            return None
    return None


def _enum_or_none(enum_cls: type[Enum], value: object) -> Any:
    """Return the enum member for a loosely typed value, or None when unknown."""
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower().replace(" ", "_").replace("-", "_")
    if not text:
        return None
    try:
        return enum_cls(text)
    except ValueError:
        return None


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_flag(value: object, default: bool) -> bool:
    """Parse a loosely typed boolean; unrecognized values keep the default.

    Accepts the same spellings as pydantic's bool parsing ("true", "0",
    "off", ...) without raising on anything else.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    return default


def _optional_text(value: object) -> str | None:
    """Collapse blank strings to None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# =============================================================================
# Transaction
# =============================================================================


class CustomerRef(BaseModel):
    """Customer attribution for a revenue transaction.

    The denormalized name comes from a join in the upstream store and is only
    trusted when its business scope matches the transaction's.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = Field(default=None, description="External customer id")
    name: str | None = Field(default=None, description="Denormalized display name")
    business_id: str | None = Field(
        default=None, description="Business that owns the joined customer row"
    )

    @field_validator("id", "name", "business_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> str | None:
        """Treat blank strings as missing."""
        return _optional_text(v)


class Transaction(BaseModel):
    """Single money-movement record (positive = inflow, negative = outflow)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default="", description="Transaction id")
    date: dt.date | None = Field(default=None, description="Calendar date (no time)")
    amount: Decimal = Field(default=ZERO, description="Signed amount")
    category: str = Field(default=UNCATEGORIZED, description="Free-text category")
    description: str = Field(default="", description="Bank description or memo")
    vendor: str | None = Field(
        default=None,
        validation_alias=AliasChoices("vendor", "vendor_name", "merchant", "payee"),
        description="Explicit vendor/merchant/payee field",
    )
    business_id: str | None = Field(default=None, description="Owning business")
    type: TransactionKind | None = Field(default=None, description="Kind hint")
    customer_ref: CustomerRef | None = Field(default=None)
    tax_category: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tax_category", "tax_category_override"),
        description="Stored tax category, as tagged upstream",
    )
    tax_status_override: TaxStatus | None = Field(
        default=None, validation_alias=AliasChoices("tax_status_override", "tax_status")
    )
    confidence_score: float | None = Field(default=None)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: object) -> str:
        """Accept numeric ids from the upstream store."""
        return "" if v is None else str(v)

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: object) -> dt.date | None:
        """Parse ISO dates; unparseable values become None."""
        return to_date(v)

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: object) -> Decimal:
        """Non-finite or unparseable amounts are treated as 0."""
        return to_decimal(v)

    @field_validator("category", mode="before")
    @classmethod
    def default_category(cls, v: object) -> str:
        """Empty or missing categories become 'Uncategorized'."""
        text = _optional_text(v)
        return text if text is not None else UNCATEGORIZED

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: object) -> str:
        """Missing descriptions become empty strings."""
        return "" if v is None else str(v)

    @field_validator("vendor", "business_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> str | None:
        """Treat blank strings as missing."""
        return _optional_text(v)

    @field_validator("type", mode="before")
    @classmethod
    def coerce_kind(cls, v: object) -> TransactionKind | None:
        """Unknown kind hints are dropped."""
        return _enum_or_none(TransactionKind, v)

    @field_validator("tax_category", mode="before")
    @classmethod
    def coerce_tax_category(cls, v: object) -> str | None:
        """Blank tax categories are missing."""
        return _optional_text(v)

    @field_validator("tax_status_override", mode="before")
    @classmethod
    def coerce_tax_status(cls, v: object) -> TaxStatus | None:
        """Unknown tax statuses are dropped."""
        return _enum_or_none(TaxStatus, v)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def coerce_confidence(cls, v: object) -> float | None:
        """Clamp confidence into 0..1; non-numeric values are dropped."""
        if v is None or isinstance(v, bool):
            return None
        try:
            score = float(v)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(score):
            return None
        return max(0.0, min(1.0, score))

    @property
    def tax_category_override(self) -> TaxCategoryOverride | None:
        """The stored tax category when it is an explicit override value."""
        return _enum_or_none(TaxCategoryOverride, self.tax_category)

    @property
    def has_tax_category(self) -> bool:
        """True when any tax category was stored, override or tag."""
        return self.tax_category is not None

    @property
    def customer_id(self) -> str | None:
        """External customer id, if the transaction is attributed."""
        return self.customer_ref.id if self.customer_ref else None

    @property
    def is_inflow(self) -> bool:
        """True for money in."""
        return self.amount > ZERO

    @property
    def is_outflow(self) -> bool:
        """True for money out."""
        return self.amount < ZERO


# =============================================================================
# Category rules
# =============================================================================


class CategoryRule(BaseModel):
    """Business-scoped tax treatment for a canonical category."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(description="Canonical category label")
    treatment: TaxTreatment = Field(default=TaxTreatment.REVIEW)
    deduction_pct: Decimal | None = Field(
        default=None, description="Explicit deduction share (0..1) for expenses"
    )

    @field_validator("treatment", mode="before")
    @classmethod
    def coerce_treatment(cls, v: object) -> TaxTreatment:
        """Unknown treatments fall back to review."""
        return _enum_or_none(TaxTreatment, v) or TaxTreatment.REVIEW

    @field_validator("deduction_pct", mode="before")
    @classmethod
    def coerce_pct(cls, v: object) -> Decimal | None:
        """Clamp explicit percentages into 0..1."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return clamp_decimal(to_decimal(v))

    @property
    def effective_pct(self) -> Decimal:
        """Deduction share, derived from the treatment when not explicit."""
        if self.deduction_pct is not None:
            return self.deduction_pct
        return TREATMENT_DEDUCTION_PCT[self.treatment]


class CategoryRuleSet:
    """Lookup of category rules keyed case-insensitively by canonical category."""

    def __init__(self, rules: Iterable[CategoryRule] = ()) -> None:
        self._rules: dict[str, CategoryRule] = {}
        for rule in rules:
            self._rules[rule.category.strip().lower()] = rule

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Mapping[str, object]]) -> CategoryRuleSet:
        """Build from {category: {"treatment": ..., "deduction_pct": ...}}."""
        return cls(
            CategoryRule(category=category, **dict(values))
            for category, values in raw.items()
        )

    def get(self, category: str) -> CategoryRule | None:
        """Return the rule for a canonical category, if any."""
        return self._rules.get(category.strip().lower())

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[CategoryRule]:
        return iter(self._rules.values())


# =============================================================================
# Tax profile
# =============================================================================

# Request override keys (camelCase from the HTTP API, snake_case from storage)
PROFILE_OVERRIDE_KEYS: dict[str, str] = {
    "entityType": "entity_type",
    "entity_type": "entity_type",
    "legalStructure": "entity_type",
    "legal_structure": "entity_type",
    "filingStatus": "filing_status",
    "filing_status": "filing_status",
    "stateRate": "state_rate",
    "state_rate": "state_rate",
    "includeSelfEmployment": "include_self_employment",
    "include_self_employment": "include_self_employment",
    "stateCode": "state_code",
    "state_code": "state_code",
    "hasPayroll": "has_payroll",
    "has_payroll": "has_payroll",
    "sellsTaxableGoodsServices": "sells_taxable_goods_services",
    "sells_taxable_goods_services": "sells_taxable_goods_services",
}


class TaxProfile(BaseModel):
    """Business tax settings; every field has a documented default."""

    model_config = ConfigDict(frozen=True)

    entity_type: EntityType = Field(default=EntityType.SOLE_PROP)
    filing_status: FilingStatus = Field(default=FilingStatus.SINGLE)
    state_rate: Decimal = Field(default=ZERO, description="State income tax rate 0..1")
    include_self_employment: bool = Field(default=True)
    state_code: str | None = Field(default=None)
    has_payroll: bool = Field(default=False)
    sells_taxable_goods_services: bool = Field(default=False)

    @field_validator("entity_type", mode="before")
    @classmethod
    def coerce_entity_type(cls, v: object) -> EntityType:
        """Unknown entity types fall back to sole proprietorship."""
        return _enum_or_none(EntityType, v) or EntityType.SOLE_PROP

    @field_validator("filing_status", mode="before")
    @classmethod
    def coerce_filing_status(cls, v: object) -> FilingStatus:
        """Unknown filing statuses fall back to single."""
        return _enum_or_none(FilingStatus, v) or FilingStatus.SINGLE

    @field_validator("state_rate", mode="before")
    @classmethod
    def coerce_state_rate(cls, v: object) -> Decimal:
        """Clamp the state rate into [0, 1]."""
        return clamp_decimal(to_decimal(v))

    @field_validator("include_self_employment", mode="before")
    @classmethod
    def default_include_se(cls, v: object) -> bool:
        """Missing means self-employment tax is included."""
        return _to_flag(v, default=True)

    @field_validator("has_payroll", "sells_taxable_goods_services", mode="before")
    @classmethod
    def default_false(cls, v: object) -> bool:
        """Missing flags are off."""
        return _to_flag(v, default=False)

    @field_validator("state_code", mode="before")
    @classmethod
    def upper_state_code(cls, v: object) -> str | None:
        """Normalize state codes to upper case."""
        text = _optional_text(v)
        return text.upper() if text else None

    def merged(self, overrides: Mapping[str, object] | None) -> TaxProfile:
        """Return a copy with request-level overrides applied.

        Accepts both snake_case and the camelCase keys used by the HTTP API.
        ``legalStructure`` takes precedence over ``entityType``. None and
        blank string values are ignored.
        """
        if not overrides:
            return self
        data = self.model_dump()
        for key, value in overrides.items():
            field_name = PROFILE_OVERRIDE_KEYS.get(key)
            if field_name is None or _is_blank(value):
                continue
            if field_name == "entity_type" and key in ("entityType", "entity_type"):
                if not _is_blank(overrides.get("legalStructure")) or not _is_blank(
                    overrides.get("legal_structure")
                ):
                    continue
            data[field_name] = value
        return TaxProfile.model_validate(data)


# =============================================================================
# Payroll
# =============================================================================


class PayrollRun(BaseModel):
    """Totals from a single payroll run."""

    model_config = ConfigDict(frozen=True)

    run_date: dt.date | None = Field(default=None)
    gross_wages: Decimal = Field(default=ZERO)
    employee_withholding: Decimal = Field(default=ZERO)
    employer_payroll_tax: Decimal = Field(default=ZERO)

    @field_validator("run_date", mode="before")
    @classmethod
    def coerce_date(cls, v: object) -> dt.date | None:
        """Parse ISO dates; unparseable values become None."""
        return to_date(v)

    @field_validator(
        "gross_wages", "employee_withholding", "employer_payroll_tax", mode="before"
    )
    @classmethod
    def coerce_amount(cls, v: object) -> Decimal:
        """Non-finite or unparseable amounts are treated as 0."""
        return to_decimal(v)
