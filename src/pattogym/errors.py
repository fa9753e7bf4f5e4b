class BrainGymError(Exception):
    """Base class for application errors."""


class FetchError(BrainGymError):
    """The question list could not be read from the store."""


class EmptyResultError(BrainGymError):
    """The store returned no questions."""


class PersistenceError(BrainGymError):
    """A write to the user record store failed."""


class AuthError(BrainGymError):
    """An identity token could not be verified."""


class InvalidTransition(BrainGymError):
    """A workout event arrived in a state that does not accept it."""
