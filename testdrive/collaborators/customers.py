"""
Customer directory keyed by phone number.

In production, this would be the identity service's user table; walk-in
and web customers are created on the fly from the contact details they
submit with a booking.
"""

import logging
import threading
import uuid
from typing import Optional, Protocol

from testdrive.schemas.customer_schema import Customer, CustomerInfo
from testdrive.utils import normalize_phone

logger = logging.getLogger(__name__)


class CustomerDirectory(Protocol):
    def get_customer(self, customer_id: str) -> Optional[Customer]: ...

    def upsert_customer(self, info: CustomerInfo) -> Customer: ...


class InMemoryCustomers:
    def __init__(self) -> None:
        self._by_id: dict[str, Customer] = {}
        self._by_phone: dict[str, str] = {}
        self._lock = threading.Lock()

    def get_customer(self, customer_id: str) -> Optional[Customer]:
        return self._by_id.get(customer_id)

    def lookup_customer(self, phone: str) -> Optional[Customer]:
        """Look up a customer by phone number. Returns None if not found."""
        customer_id = self._by_phone.get(normalize_phone(phone))
        return self._by_id.get(customer_id) if customer_id else None

    def upsert_customer(self, info: CustomerInfo) -> Customer:
        """Create a customer, or refresh name/email of the one with this phone."""
        phone = normalize_phone(info.phone)
        with self._lock:
            existing_id = self._by_phone.get(phone)
            if existing_id is not None:
                customer = self._by_id[existing_id]
                customer.first_name = info.first_name
                customer.last_name = info.last_name
                if info.email:
                    customer.email = info.email
                logger.debug("Returning customer updated: %s", customer.id)
                return customer

            customer = Customer(
                id=uuid.uuid4().hex,
                phone=phone,
                first_name=info.first_name,
                last_name=info.last_name,
                email=info.email,
            )
            self._by_id[customer.id] = customer
            self._by_phone[phone] = customer.id
        logger.info("New customer created: %s (%s)", customer.full_name, phone)
        return customer
