"""Key Layout — the persisted key scheme for every record kind.

Invariants:
    - Every key is `{tag}:{id}` or `{tag}:{partition}:{id}`
    - Prefix helpers end with ':' so a scan never matches a sibling tag
      (`user:` never matches `user_conversations:`)
"""

USER = "user"
CONVERSATION = "conversation"
MESSAGE = "message"
USER_CONVERSATIONS = "user_conversations"
ASSIGNMENT = "assignment"
SUBMISSION = "submission"
RECIPE = "recipe"
NOTIFICATION = "notification"


def user_key(user_id: str) -> str:
    return f"{USER}:{user_id}"


def conversation_key(conversation_id: str) -> str:
    return f"{CONVERSATION}:{conversation_id}"


def message_key(conversation_id: str, message_id: str) -> str:
    return f"{MESSAGE}:{conversation_id}:{message_id}"


def message_prefix(conversation_id: str) -> str:
    return f"{MESSAGE}:{conversation_id}:"


def user_conversations_key(user_id: str) -> str:
    return f"{USER_CONVERSATIONS}:{user_id}"


def assignment_key(assignment_id: str) -> str:
    return f"{ASSIGNMENT}:{assignment_id}"


def submission_key(submission_id: str) -> str:
    return f"{SUBMISSION}:{submission_id}"


def recipe_key(recipe_id: str) -> str:
    return f"{RECIPE}:{recipe_id}"


def notification_key(user_id: str, notification_id: str) -> str:
    return f"{NOTIFICATION}:{user_id}:{notification_id}"


def notification_prefix(user_id: str) -> str:
    return f"{NOTIFICATION}:{user_id}:"


def tag_prefix(tag: str) -> str:
    """Prefix covering every record of one kind, e.g. `recipe:`."""
    return f"{tag}:"
