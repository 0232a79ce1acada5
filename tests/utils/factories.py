from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4


class OrderFactory:
    @staticmethod
    def create_order_data(
        photographer_id: str = "pht_test",
        prices: tuple[int, ...] = (10000,),
        tax: int = 0,
        discount: int = 0,
        currency: str = "XOF",
        license_type: str = "standard",
    ) -> dict:
        subtotal = sum(prices)
        return {
            "buyer_id": f"usr_{uuid4().hex[:8]}",
            "currency": currency,
            "subtotal": subtotal,
            "tax": tax,
            "discount": discount,
            "total": subtotal + tax - discount,
            "items": [
                {
                    "photo_id": f"pho_{uuid4().hex[:8]}",
                    "photographer_id": photographer_id,
                    "license_type": license_type,
                    "price": price,
                }
                for price in prices
            ],
        }


class NotificationFactory:
    @staticmethod
    def create_notification(
        order_id: str,
        status: str = "completed",
        notification_id: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ) -> dict:
        return {
            "notification_id": notification_id or f"ntf_{uuid4().hex[:12]}",
            "order_id": order_id,
            "status": status,
            "occurred_at": (occurred_at or datetime.now(timezone.utc)).isoformat(),
            "provider_reference": f"txn_{uuid4().hex[:10]}",
        }


class PhotographerFactory:
    @staticmethod
    def create_photographer_id(suffix: Optional[str] = None) -> str:
        if suffix:
            return f"pht_{suffix}"
        return f"pht_{uuid4().hex[:8]}"

    @staticmethod
    def create_photographer_data(
        photographer_id: str, commission_bps: Optional[int] = None
    ) -> dict:
        data = {"id": photographer_id, "display_name": f"Studio {photographer_id}"}
        if commission_bps is not None:
            data["commission_bps"] = commission_bps
        return data


class WithdrawalFactory:
    @staticmethod
    def create_withdrawal_data(
        amount: int = 10000,
        payment_method: str = "mobile_money",
        currency: str = "XOF",
    ) -> dict:
        details = (
            {"phone": "+22990000000", "provider": "mtn"}
            if payment_method == "mobile_money"
            else {"iban": "BJ0000000000000000000000", "bank": "Test Bank"}
        )
        return {
            "amount": amount,
            "currency": currency,
            "payment_method": payment_method,
            "payment_details": details,
        }
