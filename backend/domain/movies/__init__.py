from domain.movies.filters import FilterSet
from domain.movies.movie import (
    EDITABLE_FIELDS,
    OPTIONAL_TEXT_FIELDS,
    DueReminder,
    Movie,
    MovieFields,
    MovieOwner,
)

__all__ = [
    "EDITABLE_FIELDS",
    "OPTIONAL_TEXT_FIELDS",
    "DueReminder",
    "FilterSet",
    "Movie",
    "MovieFields",
    "MovieOwner",
]
