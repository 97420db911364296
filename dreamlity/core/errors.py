"""Exception types raised by Dreamlity services."""


class DreamlityError(Exception):
    """Base class for application errors."""


class NarrationInputError(DreamlityError, ValueError):
    """A caller handed the narration builder something that is not a scene.

    This is a programming error, never a recoverable runtime condition, and is
    kept distinct from synthesis failures.
    """


class SynthesisError(DreamlityError):
    """Text-to-speech request failed (network, quota, disabled, bad voice)."""


class StorageError(DreamlityError):
    """Object store or story repository could not complete an operation."""


class UploadValidationError(DreamlityError, ValueError):
    """Uploaded reference photo failed size, type or content checks."""
