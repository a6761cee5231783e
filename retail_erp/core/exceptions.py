"""Business-rule errors raised by service functions and mapped to HTTP responses by views"""
from rest_framework import status


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class TransferTransitionError(ServiceError):
    """Transfer is not in a state that allows the requested transition"""
    status_code = status.HTTP_409_CONFLICT


class TransferPermissionError(ServiceError):
    """Acting user may not perform the transition on this transfer"""
    status_code = status.HTTP_403_FORBIDDEN


class CheckoutError(ServiceError):
    """POS cart failed validation"""


class BootstrapError(ServiceError):
    """General manager bootstrap or user provisioning refused"""
