"""
Order Builder

Turns cart contents and the checkout form into an OrderRequest.
"""

import re

from pydantic import BaseModel, EmailStr, ValidationError, field_validator

from ..errors import EmptyCartError, FieldError, OrderValidationError
from ..models.checkout import (
    INDIAN_STATES,
    BuyerContact,
    CheckoutForm,
    OrderRequest,
    PaymentMethod,
    ShippingAddress,
)
from .cart_store import CartStore

# Messages shown next to each field on the checkout form
FIELD_MESSAGES = {
    "name": "Name must be at least 2 characters.",
    "email": "Please enter a valid email address.",
    "phone": "Please enter a valid 10 digit Indian mobile number.",
    "address": "Address must be at least 10 characters.",
    "city": "City is required.",
    "state": "Please select a valid state.",
    "pincode": "Please enter a valid 6 digit pincode.",
    "payment_method": "Please select a payment method.",
}


class _ValidatedForm(BaseModel):
    name: str
    email: EmailStr
    phone: str
    address: str
    city: str
    state: str
    pincode: str
    payment_method: PaymentMethod

    @field_validator("name", "email", "phone", "address", "city", "state", "pincode", mode="before")
    @classmethod
    def strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("too short")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        if not re.fullmatch(r"[6-9]\d{9}", value):
            raise ValueError("not a mobile number")
        return value

    @field_validator("address")
    @classmethod
    def check_address(cls, value: str) -> str:
        if len(value) < 10:
            raise ValueError("too short")
        return value

    @field_validator("city")
    @classmethod
    def check_city(cls, value: str) -> str:
        if len(value) < 2:
            raise ValueError("required")
        return value

    @field_validator("state")
    @classmethod
    def check_state(cls, value: str) -> str:
        if value not in INDIAN_STATES:
            raise ValueError("unknown state")
        return value

    @field_validator("pincode")
    @classmethod
    def check_pincode(cls, value: str) -> str:
        if not re.fullmatch(r"[1-9][0-9]{5}", value):
            raise ValueError("not a pincode")
        return value


def validate_form(form: CheckoutForm) -> _ValidatedForm:
    """Check every field, collecting all problems instead of stopping at the first"""
    try:
        return _ValidatedForm.model_validate(form.model_dump())
    except ValidationError as exc:
        errors = []
        seen = set()
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "form"
            if field in seen:
                continue
            seen.add(field)
            errors.append(FieldError(field=field, reason=FIELD_MESSAGES.get(field, err["msg"])))
        raise OrderValidationError(errors) from exc


def build_order_request(cart: CartStore, form: CheckoutForm, currency: str = "INR") -> OrderRequest:
    """
    Build an OrderRequest from the cart and checkout form.

    Raises:
        EmptyCartError: cart has no items, whatever the form contains
        OrderValidationError: one entry per invalid field
    """
    if cart.is_empty:
        raise EmptyCartError("Your cart is empty. Add some items before checkout.")

    valid = validate_form(form)
    items = tuple(cart.items)

    return OrderRequest(
        buyer=BuyerContact(name=valid.name, email=valid.email, phone=valid.phone),
        shipping_address=ShippingAddress(
            street=valid.address,
            city=valid.city,
            state=valid.state,
            postal_code=valid.pincode,
        ),
        payment_method=valid.payment_method,
        items=items,
        total_amount=sum(item.line_total for item in items),
        currency=currency,
    )
