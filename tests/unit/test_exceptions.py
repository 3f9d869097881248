"""Unit tests for styleprompt exceptions."""

import pytest

from styleprompt.utils.exceptions import (
    APIError,
    AuthenticationError,
    CancellationError,
    ConfigurationError,
    ImageProcessingError,
    MalformedResponseError,
    MissingInputError,
    ModelUnavailableError,
    NetworkError,
    RequestTimeoutError,
    StylepromptError,
    ValidationError,
)


@pytest.mark.unit
class TestStylepromptError:
    def test_base_is_exception(self):
        assert issubclass(StylepromptError, Exception)

    def test_subclasses_are_styleprompt_error(self):
        for cls in (
            ValidationError,
            MissingInputError,
            APIError,
            AuthenticationError,
            ModelUnavailableError,
            MalformedResponseError,
            NetworkError,
            RequestTimeoutError,
            CancellationError,
            ConfigurationError,
            ImageProcessingError,
        ):
            assert issubclass(cls, StylepromptError)


@pytest.mark.unit
class TestValidationError:
    def test_message_and_field(self):
        e = ValidationError("bad value", field="target_count")
        assert str(e) == "bad value"
        assert e.field == "target_count"

    def test_field_optional(self):
        e = ValidationError("invalid")
        assert e.field == ""

    def test_missing_input_is_validation_error(self):
        e = MissingInputError("Please upload an image first.", field="image")
        assert isinstance(e, ValidationError)
        assert e.field == "image"


@pytest.mark.unit
class TestAPIError:
    def test_message_status_response(self):
        e = APIError("failed", status_code=500, response="body")
        assert e.status_code == 500
        assert e.response == "body"

    @pytest.mark.parametrize(
        "cls", [AuthenticationError, ModelUnavailableError, MalformedResponseError]
    )
    def test_specific_api_errors_keep_status_and_response(self, cls):
        e = cls("nope", status_code=403, response="denied")
        assert isinstance(e, APIError)
        assert e.status_code == 403
        assert e.response == "denied"


@pytest.mark.unit
class TestNetworkError:
    def test_original_error(self):
        inner = ConnectionError("refused")
        e = NetworkError("network failed", original_error=inner)
        assert e.original_error is inner


@pytest.mark.unit
class TestRequestTimeoutError:
    def test_is_network_error(self):
        e = RequestTimeoutError("timed out")
        assert isinstance(e, NetworkError)
        assert e.original_error is None


@pytest.mark.unit
class TestImageProcessingError:
    def test_image_path(self):
        e = ImageProcessingError("decode failed", image_path="/tmp/x.png")
        assert e.image_path == "/tmp/x.png"
