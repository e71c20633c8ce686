"""Engine exceptions."""


class NotFoundError(ValueError):
    """A referenced entity does not exist."""
