"""
API exceptions for the budget CRUD endpoints.
"""
from rest_framework.exceptions import APIException


class LinkedTransferError(APIException):
    """Row is one side of a linked transfer and cannot be deleted on its own."""
    status_code = 409
    default_detail = 'Transaction is part of a linked transfer; unlink it first.'
    default_code = 'linked_transfer'
