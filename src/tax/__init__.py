"""Tax classification, estimation and reporting."""

from src.tax.accuracy import AccuracyReport, score_accuracy
from src.tax.calculator import (
    SelfEmploymentTax,
    TaxEstimate,
    calculate_progressive_tax,
    calculate_self_employment_tax,
    compute_tax_estimate,
    get_standard_deduction,
)
from src.tax.classifier import (
    TaxClassification,
    TaxSummaryReport,
    build_tax_summary,
    classify_transaction_tax,
)
from src.tax.report import TaxPeriod, TaxReport, build_tax_report
from src.tax.tagger import TaxTag, TaxTagCategory, classify_tax_tag
from src.tax.year_config import (
    TAX_YEAR_2024,
    TAX_YEAR_2025,
    TAX_YEAR_CONFIGS,
    TaxYearConfig,
    get_tax_year_config,
    resolve_tax_year_config,
)

__all__ = [
    "AccuracyReport",
    "SelfEmploymentTax",
    "TAX_YEAR_2024",
    "TAX_YEAR_2025",
    "TAX_YEAR_CONFIGS",
    "TaxClassification",
    "TaxEstimate",
    "TaxPeriod",
    "TaxReport",
    "TaxSummaryReport",
    "TaxTag",
    "TaxTagCategory",
    "TaxYearConfig",
    "build_tax_report",
    "build_tax_summary",
    "calculate_progressive_tax",
    "calculate_self_employment_tax",
    "classify_tax_tag",
    "classify_transaction_tax",
    "compute_tax_estimate",
    "get_standard_deduction",
    "get_tax_year_config",
    "resolve_tax_year_config",
    "score_accuracy",
]
