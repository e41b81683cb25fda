"""
Error taxonomy for the companion bot
"""


class CompanionError(Exception):
    """Base class for all bot errors"""


class TransportError(CompanionError):
    """Status query or session I/O failed"""


class ServerOffline(TransportError):
    """Server refused the connection; expected while it is asleep"""


class ActionFailure(CompanionError):
    """A single navigation or interaction attempt failed"""


class PermissionDenied(CompanionError):
    """Privileged directive issued by a non-privileged player"""

    def __init__(self, username: str, directive: str):
        super().__init__(f"{username} may not run {directive}")
        self.username = username
        self.directive = directive


class ExhaustedRetries(CompanionError):
    """Retries used up for the current session lifecycle"""


class Cancelled(CompanionError):
    """Goal or loop was superseded or stopped cooperatively"""


class TextGenerationError(CompanionError):
    """Text generation collaborator failed or is not configured"""
