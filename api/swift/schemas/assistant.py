from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.datastructures import FormData, UploadFile

from swift.errors import InvalidRequestError

Language = Literal["en", "el"]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class AudioInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., min_length=1, repr=False)
    filename: str = "audio.wav"
    content_type: str = "audio/wav"


class AssistantRequest(BaseModel):
    """One validated POST /api submission."""

    model_config = ConfigDict(frozen=True)

    input: Union[str, AudioInput]
    message: tuple[Message, ...] = ()
    language: Language

    @property
    def is_audio(self) -> bool:
        return isinstance(self.input, AudioInput)

    @classmethod
    async def from_form(cls, form: FormData, max_upload_bytes: int) -> "AssistantRequest":
        """Validate multipart form fields.

        Raises InvalidRequestError on any schema failure; the reason is kept
        in the exception detail for logging only.
        """
        inputs = form.getlist("input")
        if len(inputs) != 1:
            raise InvalidRequestError(f"expected one input field, got {len(inputs)}")

        raw = inputs[0]
        if isinstance(raw, UploadFile):
            data = await raw.read()
            if len(data) > max_upload_bytes:
                raise InvalidRequestError(
                    f"audio exceeds {max_upload_bytes} bytes ({len(data)})"
                )
            value = {
                "data": data,
                "filename": raw.filename or "audio.wav",
                "content_type": raw.content_type or "audio/wav",
            }
        elif raw.strip():
            value = raw
        else:
            raise InvalidRequestError("input text is empty")

        try:
            messages = tuple(
                Message.model_validate_json(item)
                for item in form.getlist("message")
                if isinstance(item, str)
            )
            if len(messages) != len(form.getlist("message")):
                raise InvalidRequestError("message fields must be text")

            return cls(
                input=value,
                message=messages,
                language=form.get("language"),
            )
        except ValidationError as e:
            raise InvalidRequestError(str(e)) from e


class Latencies(BaseModel):
    """Per-step durations in milliseconds."""

    model_config = ConfigDict(populate_by_name=True)

    transcription: int = Field(default=0, ge=0)
    text_completion: int = Field(default=0, ge=0, alias="textCompletion")
    speech_synthesis: int = Field(default=0, ge=0, alias="speechSynthesis")


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
