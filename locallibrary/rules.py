"""Field rule tables for every catalog entity, keyed by collection name."""

from locallibrary.models import BOOK_STATUSES, MAX_ID
from locallibrary.validation import rule

GENRE_RULES = {
    "name": [
        rule("trim"),
        rule("min_length", "Genre name must contain at least 3 characters", min=3),
        rule("max_length", "Genre name must not exceed 100 characters", max=100),
        rule("escape"),
    ],
}

AUTHOR_RULES = {
    "first_name": [
        rule("trim"),
        rule("min_length", "First name must be specified.", min=1),
        rule("max_length", "First name must not exceed 100 characters.", max=100),
        rule("escape"),
        rule("alphanumeric", "First name has non-alphanumeric characters."),
    ],
    "family_name": [
        rule("trim"),
        rule("min_length", "Family name must be specified.", min=1),
        rule("max_length", "Family name must not exceed 100 characters.", max=100),
        rule("escape"),
        rule("alphanumeric", "Family name has non-alphanumeric characters."),
    ],
    "date_of_birth": [
        rule("optional"),
        rule("iso_date", "Invalid date of birth"),
    ],
    "date_of_death": [
        rule("optional"),
        rule("iso_date", "Invalid date of death"),
    ],
}

BOOK_RULES = {
    "title": [
        rule("trim"),
        rule("min_length", "Title must not be empty.", min=1),
        rule("max_length", "Title must not exceed 250 characters.", max=250),
        rule("escape"),
    ],
    "author": [
        rule("trim"),
        rule("min_length", "Author must not be empty.", min=1),
        rule("integer", "Author must be a valid author.", min=1, max=MAX_ID),
    ],
    "summary": [
        rule("trim"),
        rule("min_length", "Summary must not be empty.", min=1),
        rule("max_length", "Summary must not exceed 2000 characters.", max=2000),
        rule("clean"),
    ],
    "isbn": [
        rule("trim"),
        rule("min_length", "ISBN must not be empty", min=1),
        rule("max_length", "ISBN must not exceed 40 characters", max=40),
        rule("escape"),
    ],
    "genre": [
        rule("many"),
        rule("trim"),
        rule("integer", "Genre must be a valid genre.", min=1, max=MAX_ID),
    ],
}

BOOKINSTANCE_RULES = {
    "book": [
        rule("trim"),
        rule("min_length", "Book must be specified", min=1),
        rule("integer", "Book must be a valid book.", min=1, max=MAX_ID),
    ],
    "imprint": [
        rule("trim"),
        rule("min_length", "Imprint must be specified", min=1),
        rule("max_length", "Imprint must not exceed 250 characters", max=250),
        rule("escape"),
    ],
    "status": [
        rule("trim"),
        rule("default", value="Maintenance"),
        rule("one_of", "Status must be one of: " + ", ".join(BOOK_STATUSES), choices=BOOK_STATUSES),
    ],
    "due_back": [
        rule("optional"),
        rule("iso_date", "Invalid date"),
    ],
}

RULES = {
    "genre": GENRE_RULES,
    "author": AUTHOR_RULES,
    "book": BOOK_RULES,
    "bookinstance": BOOKINSTANCE_RULES,
}

# Fields that must be unique (case-insensitively) within their collection
UNIQUE_FIELDS = {
    "genre": "name",
}
