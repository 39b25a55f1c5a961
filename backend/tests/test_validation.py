"""
Unit tests for request validation.
"""
import pytest

from conftest import make_image
from slidepipe.config import LimitsConfig
from slidepipe.errors import ValidationError
from slidepipe.schemas.run import AudioInput, ImageInput, RunRequest
from slidepipe.services.validation import validate_audio, validate_image, validate_request


@pytest.fixture
def limits():
    return LimitsConfig()


class TestValidateRequest:
    def test_valid_request(self, sample_request, secondary_audio, limits):
        validate_request(sample_request(secondary=secondary_audio, gain=50), limits)

    def test_requires_an_image(self, primary_audio, limits):
        request = RunRequest(images=[], primary_audio=primary_audio)

        with pytest.raises(ValidationError, match="At least one image"):
            validate_request(request, limits)

    @pytest.mark.parametrize("gain", [-1, 51])
    def test_gain_out_of_range(self, sample_request, limits, gain):
        with pytest.raises(ValidationError) as exc_info:
            validate_request(sample_request(gain=gain), limits)

        assert exc_info.value.recoverable is True

    def test_duplicate_orders(self, primary_audio, limits):
        request = RunRequest(
            images=[make_image(0, order=1), make_image(1, order=1)],
            primary_audio=primary_audio,
        )

        with pytest.raises(ValidationError, match="unique"):
            validate_request(request, limits)

    def test_bad_background_music(self, sample_request, limits):
        music = AudioInput(data=b"midi", name="theme.mid")

        with pytest.raises(ValidationError, match="Invalid audio format: mid"):
            validate_request(sample_request(secondary=music), limits)


class TestValidateAudio:
    @pytest.mark.parametrize("name", ["a.mp3", "a.WAV", "a.aac", "a.m4a"])
    def test_supported_formats(self, limits, name):
        validate_audio(AudioInput(data=b"x", name=name), limits)

    def test_empty(self, limits):
        with pytest.raises(ValidationError, match="empty"):
            validate_audio(AudioInput(data=b"", name="a.mp3"), limits)

    def test_too_large(self):
        limits = LimitsConfig(max_audio_bytes=4)

        with pytest.raises(ValidationError) as exc_info:
            validate_audio(AudioInput(data=b"12345", name="a.mp3"), limits)

        assert "too large" in exc_info.value.message


class TestValidateImage:
    @pytest.mark.parametrize("name", ["p.jpg", "p.jpeg", "p.png", "p.webp"])
    def test_supported_formats(self, limits, name):
        image = ImageInput(index=0, display_width=1, display_height=1, order=0, data=b"x", name=name)
        validate_image(image, limits)

    def test_unsupported_format(self, limits):
        image = ImageInput(index=0, display_width=1, display_height=1, order=0, data=b"x", name="p.gif")

        with pytest.raises(ValidationError) as exc_info:
            validate_image(image, limits)

        assert exc_info.value.details == "Supported formats: JPG, JPEG, PNG, WEBP"

    def test_too_large(self):
        limits = LimitsConfig(max_image_bytes=1)
        image = ImageInput(index=0, display_width=1, display_height=1, order=0, data=b"xx", name="p.png")

        with pytest.raises(ValidationError, match="too large"):
            validate_image(image, limits)
