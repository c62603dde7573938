"""Exceptions shared by the Hoohu-bot scripts."""


class WikiBotError(Exception):
    """Base class. Carries the page title (and redirect chain) it concerns."""

    def __init__(self, message, title=None, chain=None):
        super().__init__(message)
        self.title = title
        self.chain = list(chain or [])


class TransportError(WikiBotError):
    """An API call failed after mwclient gave up retrying."""


class AuthError(WikiBotError):
    """Login failed. Fatal for the whole run."""


class NotFoundError(WikiBotError):
    """No live page and no move-log lead."""


class CycleError(WikiBotError):
    """Redirect / move chain revisits a title, or never terminates."""


class SelfReferenceError(WikiBotError):
    """Redirect points back at the page it starts from."""
