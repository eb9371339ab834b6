"""
Capital Cost Allowance (tax depreciation).
"""

from typing import Optional

from backoffice.calculations.models import DepreciationSetting

# Half-year rule: only half of the year's additions enter the UCC base.
HALF_YEAR_FACTOR = 0.5


def calculate_ucc_base(setting: DepreciationSetting) -> float:
    """Undepreciated capital cost available for this year's claim."""
    return max(
        0.0,
        setting.opening_ucc + setting.additions * HALF_YEAR_FACTOR - setting.dispositions,
    )


def calculate_cca(
    setting: Optional[DepreciationSetting], net_income_before_cca: float
) -> float:
    """
    Calculate the CCA claim for a property.

    The claim is capped at net income before CCA so it never creates a
    rental loss.

    Args:
        setting: Depreciation class settings (None means no claim)
        net_income_before_cca: Income - expenses - mortgage interest

    Returns:
        CCA amount (unrounded)
    """
    if setting is None or setting.cca_rate <= 0:
        return 0.0

    cca_max = calculate_ucc_base(setting) * setting.cca_rate
    if cca_max <= 0 or net_income_before_cca <= 0:
        return 0.0

    return min(cca_max, net_income_before_cca)
