class RentalError(Exception):
    """Base class for errors raised by the portal's services."""


class AuthenticationFailure(RentalError):
    pass


class NotFound(RentalError):
    pass


class RecipientNotFound(NotFound):
    def __init__(self, email):
        super().__init__(f"No user found with email {email}")
        self.email = email


class ExternalServiceFailure(RentalError):
    pass


class PaymentError(ExternalServiceFailure):
    pass


class PaymentTimeout(PaymentError):
    pass


class MailDeliveryError(ExternalServiceFailure):
    pass


class InvalidDecision(RentalError):
    pass


class ConfigurationError(RentalError):
    pass
