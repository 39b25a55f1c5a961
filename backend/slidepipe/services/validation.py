"""Input validation for a render request.

Checks run before any engine work so that a bad request never costs an
engine load. Every failure is a recoverable ValidationError.
"""

from slidepipe.config import LimitsConfig
from slidepipe.errors import ValidationError
from slidepipe.schemas.run import AudioInput, ImageInput, RunRequest


def _mb(size: int) -> str:
    return f"{size / 1024 / 1024:.1f}MB"


def validate_audio(audio: AudioInput, limits: LimitsConfig, label: str = "Audio") -> None:
    if not audio.data:
        raise ValidationError(f"{label} file is empty: {audio.name}")
    if audio.extension not in limits.audio_extensions:
        raise ValidationError(
            f"Invalid audio format: {audio.extension or 'unknown'}",
            details=f"Supported formats: {', '.join(limits.audio_extensions).upper()}",
        )
    if len(audio.data) > limits.max_audio_bytes:
        raise ValidationError(
            f"{label} file is too large: {_mb(len(audio.data))}",
            details=f"Maximum allowed size is {limits.max_audio_bytes // 1024 // 1024}MB",
        )


def validate_image(image: ImageInput, limits: LimitsConfig) -> None:
    if not image.data:
        raise ValidationError(f"Image file is empty: {image.name}")
    if image.extension not in limits.image_extensions:
        raise ValidationError(
            f"Invalid image format: {image.extension or 'unknown'}",
            details=f"Supported formats: {', '.join(limits.image_extensions).upper()}",
        )
    if len(image.data) > limits.max_image_bytes:
        raise ValidationError(
            f"Image file is too large: {_mb(len(image.data))}",
            details=(
                f"Maximum allowed size per image is "
                f"{limits.max_image_bytes // 1024 // 1024}MB"
            ),
        )


def validate_request(request: RunRequest, limits: LimitsConfig) -> None:
    """Validate every input of a run.

    Raises:
        ValidationError: On the first constraint that fails
    """
    if not request.images:
        raise ValidationError("At least one image is required")
    if not 0 <= request.gain <= limits.max_gain:
        raise ValidationError(
            f"Background music volume out of range: {request.gain}",
            details=f"Volume must be between 0 and {limits.max_gain}",
        )

    orders = [image.order for image in request.images]
    if len(set(orders)) != len(orders):
        raise ValidationError("Image order values must be unique")

    validate_audio(request.primary_audio, limits, label="Primary audio")
    if request.secondary_audio is not None:
        validate_audio(request.secondary_audio, limits, label="Background music")
    for image in request.images:
        validate_image(image, limits)
