from typing import NamedTuple

from photo_ledger.exceptions import InvalidAmountException, InvalidCommissionRateException

BPS_DENOMINATOR = 10000


class CommissionSplit(NamedTuple):
    price: int
    platform_commission: int
    photographer_amount: int
    commission_bps: int


def compute_split(price: int, commission_bps: int) -> CommissionSplit:
    """Split a sale price between platform and photographer.

    The platform share is rounded half up in integer arithmetic; the
    photographer gets the remainder, so both parts always add up to price.
    """
    if price <= 0:
        raise InvalidAmountException("price", price)
    if not 0 <= commission_bps <= BPS_DENOMINATOR:
        raise InvalidCommissionRateException(commission_bps)

    platform_commission = (
        price * commission_bps + BPS_DENOMINATOR // 2
    ) // BPS_DENOMINATOR
    return CommissionSplit(
        price=price,
        platform_commission=platform_commission,
        photographer_amount=price - platform_commission,
        commission_bps=commission_bps,
    )
