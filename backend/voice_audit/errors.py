class AuditError(Exception):
    """Base class for errors surfaced by the audit engine."""


class DeviceUnavailableError(AuditError):
    """Microphone or playback device could not be opened."""


class CannotStartError(AuditError):
    """The interview could not be started; nothing was left running."""


class ChannelError(AuditError):
    """The live model channel failed or closed unexpectedly."""


class DeliveryError(AuditError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
