import logging
import random
import string
import time
from typing import Dict
from ..config import settings
from ..errors import PaymentError
from ..models import PaymentOrder
from .results import ResultStore

logger = logging.getLogger("udan_bangla")

# Plan prices in rupees.
PLAN_PRICES: Dict[str, int] = {"Free": 0, "Pro": 499, "Elite": 999}
SINGLE_TEST_PRICE = 99

def _token(length: int = 9) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))

def create_order(amount_rupees: int) -> PaymentOrder:
    if amount_rupees <= 0:
        raise PaymentError(f"amount must be positive, got {amount_rupees}")
    order = PaymentOrder(
        id=f"order_{_token()}",
        amount=amount_rupees * 100,
        currency="INR",
        receipt=f"receipt_{_token()}",
    )
    logger.debug({"event": "payment_order_created", "order_id": order.id, "amount_paise": order.amount})
    return order

def verify_payment(payment_id: str, order_id: str, signature: str) -> bool:
    """Simulated gateway check: waits the configured delay and always accepts."""
    logger.debug({"event": "payment_verify", "order_id": order_id, "payment_id": payment_id})
    if settings.payment_delay_seconds > 0:
        time.sleep(settings.payment_delay_seconds)
    return True

def subscribe(results: ResultStore, user_id: str, plan: str) -> PaymentOrder:
    price = PLAN_PRICES.get(plan)
    if price is None:
        raise PaymentError(f"unknown plan {plan!r}")
    if price == 0:
        raise PaymentError("the Free plan needs no payment")
    order = create_order(price)
    if not verify_payment(f"pay_{_token()}", order.id, _token(16)):
        raise PaymentError("payment_not_verified")
    results.set_subscription(user_id, plan)
    return order
