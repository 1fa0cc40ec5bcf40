# app/services/errors.py


class NotFoundError(ValueError):
    """A referenced test, question, choice or version does not exist."""


class PreconditionError(ValueError):
    """A request was rejected before any work began (empty bank, bad counts)."""
