"""External collaborators used by the store web app."""

from .admin_auth import AdminAuthenticator, AuthError
from .payment_gateway import PaymentGatewayError, RazorpayGateway, cash_on_delivery_outcome

__all__ = [
    "AdminAuthenticator",
    "AuthError",
    "PaymentGatewayError",
    "RazorpayGateway",
    "cash_on_delivery_outcome",
]
