"""Quiz-related constants shared across the engine, services and API layers."""

QUESTION_TYPE_SINGLE: str = "multiple_choice_single"
QUESTION_TYPE_MULTI: str = "multiple_choice_multi"
QUESTION_TYPE_TRUE_FALSE: str = "true_false"
QUESTION_TYPE_SHORT_TEXT: str = "short_text"
QUESTION_TYPES: tuple[str, ...] = (
    QUESTION_TYPE_SINGLE,
    QUESTION_TYPE_MULTI,
    QUESTION_TYPE_TRUE_FALSE,
    QUESTION_TYPE_SHORT_TEXT,
)

VISIBILITY_PRIVATE: str = "private"
VISIBILITY_UNLISTED: str = "unlisted"
VISIBILITY_PUBLIC: str = "public"

STATUS_DRAFT: str = "draft"
STATUS_PUBLISHED: str = "published"

DEFAULT_QUESTION_POINTS: int = 1
MIN_CHOICE_OPTIONS: int = 2
MIN_PASSING_SCORE: int = 0
MAX_PASSING_SCORE: int = 100
