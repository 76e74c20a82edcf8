"""Exception taxonomy for lexis.

Validation errors are raised before any state is read or written.
Persistence errors come only from store adapters.
"""


class LexisError(Exception):
    """Base class for all lexis errors."""


class ValidationError(LexisError):
    """Input rejected before any state was touched."""


class InvalidQualityError(ValidationError):
    def __init__(self, quality: object):
        super().__init__(f"Quality must be a number in [0, 5], got {quality!r}")
        self.quality = quality


class UnknownActivityError(ValidationError):
    def __init__(self, activity: str):
        super().__init__(f"Unknown activity kind: {activity!r}")
        self.activity = activity


class InvalidGoalError(ValidationError):
    pass


class GoalNotFoundError(LexisError):
    def __init__(self, goal_id: str):
        super().__init__(f"Learning goal not found: {goal_id}")
        self.goal_id = goal_id


class PersistenceError(LexisError):
    """The record store failed or was unreachable."""


class WriteConflictError(PersistenceError):
    """A compare-and-swap write lost the race for a (user, card) key."""

    def __init__(self, user_id: str, card_id: str, expected_version: int):
        super().__init__(
            f"Concurrent update detected for user={user_id} card={card_id} "
            f"(expected version {expected_version})"
        )
        self.user_id = user_id
        self.card_id = card_id
        self.expected_version = expected_version
