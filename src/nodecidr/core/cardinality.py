"""Exactly-one checks shared by every lookup stage."""

from typing import TypeVar

from pydantic import BaseModel

from ..netbox.response_models import ResultSet
from ..utils.exceptions import CardinalityError

RecordT = TypeVar("RecordT", bound=BaseModel)


def expect_one(
    page: ResultSet[RecordT],
    error_type: type[CardinalityError],
    context: str,
    subject: str = "",
) -> RecordT:
    """
    Return the single record of a lookup.

    count is trusted over len(results): NetBox reports the total across all
    pages, so a page of one with count 3 is still ambiguous.

    Args:
        page: Search result
        error_type: CardinalityError subclass to raise
        context: Stage label for the error
        subject: What was searched for, for the error message

    Returns:
        The only record

    Raises:
        error_type: If count != 1 (or the page is unexpectedly empty)
    """
    if page.count != 1 or not page.results:
        raise error_type(context=context, got=page.count, subject=subject)
    return page.results[0]
