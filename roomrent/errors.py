"""Error types raised by the rental workflows.

Every error carries a message that is safe to show to the user. The app turns
them into the ``{"success": false, "message": ...}`` envelope.
"""


class RentalError(Exception):
    status_code = 400
    default_message = 'Invalid request.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'success': False, 'message': self.message}


class ValidationError(RentalError):
    status_code = 400
    default_message = 'Invalid data submitted.'


class ConflictError(RentalError):
    status_code = 409
    default_message = 'The request conflicts with existing data.'


class StateError(RentalError):
    """Contract or payment is not in the status the operation requires."""
    status_code = 409
    default_message = 'This contract is either invalid or has already been processed.'


class NotFoundError(RentalError):
    status_code = 404
    default_message = 'Not found.'


class ForbiddenError(RentalError):
    status_code = 403
    default_message = 'You are not allowed to do this.'


class PersistenceError(RentalError):
    status_code = 500
    default_message = 'Something went wrong. Please try again later.'
