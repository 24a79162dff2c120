from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from instabill.domain.errors import NotFoundError, ValidationError
from instabill.domain.models import Customer

log = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 10


@dataclass(frozen=True)
class SignupRequest:
    phone: str


def _validate_phone(phone: str) -> str:
    cleaned = (phone or "").strip()
    if len(cleaned) < MIN_PHONE_LENGTH:
        raise ValidationError("Please enter a valid phone number.")
    return cleaned


class CustomerRegistry:
    """Known customers, keyed by id with phone as the natural lookup key.

    Customers are never deleted by normal flows.
    """

    def __init__(self, repo=None, customers: Iterable[Customer] = ()):
        self.repo = repo
        self._customers: list[Customer] = list(customers)

    def list_customers(self) -> list[Customer]:
        return list(self._customers)

    def get(self, customer_id: Optional[str]) -> Optional[Customer]:
        if not customer_id:
            return None
        return next((c for c in self._customers if c.id == customer_id), None)

    def find_by_phone(self, phone: str) -> Optional[Customer]:
        cleaned = (phone or "").strip()
        return next((c for c in self._customers if c.phone == cleaned), None)

    def create(self, phone: str, name: str, address: str = "") -> Customer:
        phone = _validate_phone(phone)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required.")
        if self.find_by_phone(phone) is not None:
            raise ValidationError("A customer with this phone already exists.")

        customer = Customer(id=uuid.uuid4().hex, name=name, phone=phone, address=(address or "").strip())
        self._customers.append(customer)
        if self.repo is not None:
            self.repo.save_customers(self._customers)
        log.info("customer_created id=%s", customer.id)
        return customer


class Session:
    """Guest / Identified(customer_id) state for the running bill."""

    def __init__(self, registry: CustomerRegistry, repo=None, selected_customer_id: Optional[str] = None):
        self.registry = registry
        self.repo = repo
        # a stale id (customer no longer known) starts the session as guest
        self.selected_customer_id = selected_customer_id if registry.get(selected_customer_id) else None

    @property
    def is_identified(self) -> bool:
        return self.selected_customer_id is not None

    @property
    def customer(self) -> Optional[Customer]:
        return self.registry.get(self.selected_customer_id)

    def _select(self, customer_id: Optional[str]) -> None:
        self.selected_customer_id = customer_id
        if self.repo is not None:
            self.repo.save_selected_customer_id(customer_id)

    def login_by_phone(self, phone: str) -> Customer | SignupRequest:
        """Identify an existing customer or ask the caller to run signup."""
        phone = _validate_phone(phone)
        existing = self.registry.find_by_phone(phone)
        if existing is None:
            return SignupRequest(phone=phone)
        self._select(existing.id)
        log.info("customer_login id=%s", existing.id)
        return existing

    def complete_signup(self, request: SignupRequest, name: str, address: str = "") -> Customer:
        customer = self.registry.create(request.phone, name, address)
        self._select(customer.id)
        return customer

    def select(self, customer_id: str) -> Customer:
        customer = self.registry.get(customer_id)
        if customer is None:
            raise NotFoundError("Customer not found.")
        self._select(customer.id)
        return customer

    def clear(self) -> None:
        self._select(None)
