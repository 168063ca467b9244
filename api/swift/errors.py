"""Failures a request can end in, with the HTTP status and public message for each."""


class AssistantError(Exception):
    status_code = 500
    message = "An unexpected error occurred"
    kind = "unexpected"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.message)
        self.detail = detail

    def to_body(self) -> dict:
        return {"error": self.message}


class InvalidRequestError(AssistantError):
    status_code = 400
    message = "Invalid request"
    kind = "invalid_request"


class InvalidAudioError(AssistantError):
    status_code = 400
    message = "Invalid audio"
    kind = "invalid_audio"


class MissingCompletionError(AssistantError):
    status_code = 500
    message = "No response generated"
    kind = "missing_completion"


class SynthesisError(AssistantError):
    status_code = 500
    message = "Voice synthesis failed"
    kind = "synthesis_failed"
