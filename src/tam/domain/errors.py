class AppError(Exception):
    """Base for every error the console reports to the operator."""


class ValidationError(AppError):
    """Bad input: missing fields, unparseable numbers, wrong ticket state."""


class NotFoundError(AppError):
    """A ticket, booking, user or window id that does not exist."""


class AuthorizationError(AppError):
    """No session, or the session's role lacks the needed permission."""


class LossNotConfirmedError(ValidationError):
    """A sale below purchase price was not confirmed by the operator."""
