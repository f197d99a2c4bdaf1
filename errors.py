"""
Poll errors

Every rejected command raises one of these. They are all connection-local:
the dispatcher turns them into an ERROR frame for the sender and nothing else.
"""


class PollError(Exception):
    """Base class for all poll errors"""
    message = "Request rejected."

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


# ============ Envelope ============

class MalformedMessage(PollError):
    message = "Message is not a valid {type, payload} JSON object."


class UnsupportedType(PollError):
    message = "Unsupported message type."

    def __init__(self, message_type=None):
        self.message_type = message_type
        super().__init__(f"Unsupported message type: {message_type}." if message_type else None)


# ============ Session ============

class InvalidJoin(PollError):
    message = "JOIN requires roomId, name and a role of 'host' or 'player'."


class NotJoined(PollError):
    message = "You must JOIN a room first."


class Forbidden(PollError):
    message = "Only the host can set questions."


# ============ Question ============

class InvalidQuestion(PollError):
    message = "Question needs an id, text and 2 to 4 options."


# ============ Vote ============

class NoActiveQuestion(PollError):
    message = "There is no active question."


class QuestionMismatch(PollError):
    message = "questionId does not match the active question."


class InvalidOption(PollError):
    message = "optionIndex is out of range."


class NameRequired(PollError):
    message = "A name is required to vote."


class DuplicateVote(PollError):
    message = "You already voted on this question."
