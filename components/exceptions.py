# components/exceptions.py
"""Error types raised by the BOQ generation, editing and export layers."""


class BoqError(Exception):
    """Base class for all errors the UI turns into a single user-facing message."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message=None):
        super().__init__(message or self.user_message)


class ConfigurationError(BoqError):
    """A required credential or setting is missing. Fatal at startup."""

    user_message = "The Gemini API key is not configured."


class MalformedResponse(BoqError):
    """The model returned text that is not JSON or not in the BOQ shape."""

    user_message = ("The AI returned a response that could not be read as a Bill of Quantities. "
                    "Please try again or rephrase your requirements.")


class EmptyStateError(BoqError):
    """The requested action needs rooms or project details that are not there yet."""

    user_message = "There is nothing to work with yet. Generate a BOQ first."


class TransportError(BoqError):
    """The call to the generation service itself failed."""

    user_message = "Could not reach the AI service. Please try again in a moment."


class BusyError(BoqError):
    """Another generation or refinement request is still running."""

    user_message = "A request is already in progress. Please wait for it to finish."
