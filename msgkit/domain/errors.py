"""Error taxonomy for message processing.

Parse failures and unknown commands are not exceptions: a command that fails
parameter binding is downgraded to plaintext by the parser, and a command
with no registered handler gets a fixed reply from the dispatcher. The
exceptions below are the ones handlers and ports raise; the dispatcher
recovers all of them at the handler boundary.
"""


class MessageKitError(Exception):
    """Base class for all msgkit errors."""


class TransportError(MessageKitError):
    """Network or client-level failure while sending or fetching."""


class PermissionDenied(TransportError):
    """The transport rejected a privileged group mutation (add/remove/rename)."""


class MissingCredential(MessageKitError):
    """A credential required by an external backend is not configured."""


class AttachmentUnavailable(MessageKitError):
    """A remote attachment could not be downloaded or decoded."""


class GenerationError(MessageKitError):
    """The generative backend returned an error or an unusable response."""
