"""Domain-specific exceptions for the composition pipeline."""

from .compose_models import FailureReason


class CompositionError(Exception):
    """Base class for composition-related errors."""

    failure_reason: FailureReason = FailureReason.INTERNAL_ERROR


class CompositionValidationError(CompositionError):
    """Raised when the request payload cannot be turned into a job."""


class NotEnoughImagesError(CompositionValidationError):
    """Raised when fewer than two images were uploaded."""

    failure_reason = FailureReason.NOT_ENOUGH_IMAGES


class MissingVideoError(CompositionValidationError):
    """Raised when video mode is requested without a video upload."""

    failure_reason = FailureReason.MISSING_VIDEO


class MissingAudioError(CompositionValidationError):
    """Raised when no audio source was supplied."""

    failure_reason = FailureReason.MISSING_AUDIO


class UnknownAudioTrackError(CompositionValidationError):
    """Raised when a built-in track name is not in the library."""

    failure_reason = FailureReason.UNKNOWN_AUDIO_TRACK


class InvalidDurationsError(CompositionValidationError):
    """Raised when image durations contain zero, negative or non-finite values."""

    failure_reason = FailureReason.INVALID_DURATIONS


class ConflictingModeError(CompositionValidationError):
    """Raised when an explicit mode contradicts the uploaded fields."""

    failure_reason = FailureReason.CONFLICTING_MODE


class AudioResolutionError(CompositionError):
    """Base class for failures producing a local audio file."""


class RemoteAudioError(AudioResolutionError):
    """Raised when the remote audio download fails."""

    failure_reason = FailureReason.REMOTE_AUDIO_ERROR


class RemoteAudioTimeoutError(RemoteAudioError):
    """Raised when the remote audio server does not answer in time."""

    failure_reason = FailureReason.REMOTE_AUDIO_TIMEOUT


class UploadReadError(AudioResolutionError):
    """Raised when streaming an upload to scratch storage fails."""

    failure_reason = FailureReason.INVALID_UPLOAD


class EncodeError(CompositionError):
    """Raised when the encoder process fails or produces no output."""

    failure_reason = FailureReason.ENCODE_FAILED


class EncodeTimeoutError(EncodeError):
    """Raised when the encoder does not finish before the deadline."""

    failure_reason = FailureReason.ENCODE_TIMEOUT


class EncoderBusyError(EncodeError):
    """Raised when no encode slot frees up within the queue timeout."""

    failure_reason = FailureReason.ENCODER_BUSY

    def __init__(self, message: str, retry_after_seconds: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds
