"""Errors raised by the smart chat pipeline, one kind per stage."""


class SmartChatError(Exception):
    """Base class: a failure scoped to a single question."""

    stage = "pipeline"
    prefix = "Smart chat failed"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class InvalidInputError(SmartChatError):
    stage = "input"
    prefix = "Invalid input"


class RoutingError(SmartChatError):
    stage = "route"
    prefix = "Failed to analyze question"


class DataFetchError(SmartChatError):
    stage = "fetch"
    prefix = "Failed to execute database query"


class AnswerSynthesisError(SmartChatError):
    stage = "answer"
    prefix = "Failed to generate response"


class DataAnswerError(AnswerSynthesisError):
    """The final answer over retrieved records could not be generated."""

    prefix = "Failed to generate response with data"
