# Overview: Error taxonomy shared by services and routes.

"""
Every recoverable condition is an AppError subclass.

error_type is the short code the browser switches on (sent back as
data.error_type); message is shown to the user verbatim.
"""


class AppError(Exception):
    """Base for all errors surfaced to the client as a 400 envelope."""

    error_type = "error"
    default_message = "An error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# =============================================================================
# INPUT
# =============================================================================

class MissingField(AppError):
    error_type = "missingInput"
    default_message = "A required value was not provided."

    def __init__(self, which: str, message: str | None = None):
        self.which = which
        super().__init__(message or f"You did not provide the {which}.")


class BadAmount(AppError):
    error_type = "badAmount"
    default_message = "The amount could not be converted into cents. Please check the amount and try again."


class BadID(AppError):
    error_type = "badId"
    default_message = "The id provided is not valid."


class AmountBelowMinimum(AppError):
    error_type = "amountLessThanMinCharge"


class PasswordsDoNotMatch(AppError):
    error_type = "passwordsDoNotMatch"
    default_message = "The passwords you provided do not match."


class PasswordTooShort(AppError):
    error_type = "passwordTooShort"


class PasswordTooLong(AppError):
    error_type = "passwordTooLong"
    default_message = "The password you provided is too long. It must be at most 72 bytes."


class InvalidRefundReason(AppError):
    error_type = "invalidRefundReason"
    default_message = "The refund reason is not one of the accepted values."


# =============================================================================
# AUTH
# =============================================================================

class SessionExpired(AppError):
    error_type = "sessionExpired"
    default_message = "Your session has expired. Please log back in or contact an administrator if this problem persists."


class NotAuthorized(AppError):
    error_type = "notAuthorized"
    default_message = "You do not have permission to do this."


class Unauthorized(AppError):
    """Bad or missing api key on the auto-charge endpoint."""
    error_type = "missingInput"
    default_message = "The api key provided in the request is not correct."


class UserInactive(AppError):
    error_type = "userInactive"
    default_message = "Your user account is inactive. Please contact an administrator."


class InvalidCredentials(AppError):
    error_type = "invalidCredentials"
    default_message = "The password you provided is invalid."


class UserNotFound(AppError):
    error_type = "userDoesNotExist"
    default_message = "The username you provided does not exist."


class CannotUpdateSelf(AppError):
    error_type = "cannotUpdateSelf"
    default_message = "You cannot edit your own permissions. Please contact another administrator."


class CannotUpdateSuperAdmin(AppError):
    error_type = "cannotUpdateSuperAdmin"
    default_message = "You cannot update the 'administrator' user. The account is locked."


class AdminAlreadyExists(AppError):
    error_type = "adminAlreadyExists"
    default_message = "The admin user already exists."


# =============================================================================
# DATA
# =============================================================================

class CustomerNotFound(AppError):
    error_type = "customerNotFound"
    default_message = "Could not find this customer's data."


class DuplicateCustomerID(AppError):
    error_type = "customerIdAlreadyExists"
    default_message = (
        "This customer ID is already in use. Please double check your records "
        "or remove the customer with this customer ID first."
    )


class DuplicateUsername(AppError):
    error_type = "userAlreadyExists"
    default_message = "This username already exists. Please choose a different username."


class NameMismatch(AppError):
    error_type = "customerNameMismatch"
    default_message = (
        "The customer name does not match the card on file. "
        "Please reload the page and choose the customer again."
    )


class StoreError(AppError):
    error_type = "storeError"
    default_message = "A database error occurred. Please try again."


class ChargeNotFound(AppError):
    error_type = "chargeNotFound"
    default_message = "This charge could not be found."


# =============================================================================
# EXTERNAL
# =============================================================================

class ProcessorError(AppError):
    error_type = "processorError"


class ChargeTimeout(AppError):
    error_type = "chargeTimeout"
    default_message = (
        "Charging this card timed out. The charge may have succeeded anyway. "
        "Please check the Report to see if this charge was successful."
    )


class UnknownProcessorFailure(AppError):
    error_type = "unknownProcessorFailure"
    default_message = (
        "There was an error processing this charge. "
        "Please check the Report to see if this charge was successful."
    )


# =============================================================================
# CONFIG
# =============================================================================

class MissingStatementDescriptor(AppError):
    error_type = "missingStatementDescriptor"
    default_message = "Your company does not have a statement descriptor set. Please ask an admin to set one."


class InvalidSecretKey(AppError):
    error_type = "invalidSecretKey"
    default_message = "The Stripe secret key is invalid."


class InvalidSessionKey(AppError):
    error_type = "invalidSessionKey"
    default_message = "The session keys are invalid."
