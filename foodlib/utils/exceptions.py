__all__ = ["NotAuthorizedException", "AccessDenied", "RecordNotFound", "NumberOfRetriesExceeded",
           "MandatoryFieldsAreNotFilled", "ValidationException", "InvalidCredentials", "DuplicateRecord",
           "SomeItemsAreNotAvailable", "OrderNotFound", "OrderCannotBeCancelled", "InvalidStatusTransition",
           "FeatureDisabled"]


class NotAuthorizedException(Exception):
    pass


class InvalidCredentials(Exception):
    LEVEL = 'warning'


# Generic Exceptions
class AccessDenied(Exception):
    LEVEL = 'warning'


class MandatoryFieldsAreNotFilled(Exception):
    pass


class FeatureDisabled(Exception):
    pass


# DynamoDB exceptions
class RecordNotFound(Exception):
    LEVEL = 'warning'


class DuplicateRecord(Exception):
    LEVEL = 'warning'


# DB Performance Exception
class NumberOfRetriesExceeded(Exception):
    pass


# Validations exceptions
class ValidationException(Exception):
    LEVEL = 'warning'


class SomeItemsAreNotAvailable(Exception):
    LEVEL = 'warning'


class OrderNotFound(RecordNotFound):
    pass


class OrderCannotBeCancelled(Exception):
    LEVEL = 'warning'


class InvalidStatusTransition(Exception):
    LEVEL = 'warning'
