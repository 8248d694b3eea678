"""
Lambda resolvers for BookLoan operations.

A loan is active while it has no `returnedAt`. Returning sets `returnedAt`;
nothing ever removes it.
"""

from typing import Any, Dict, List, cast

# Handle both Lambda (absolute) and unit test (relative) imports
try:  # pragma: no cover
    from utils.auth import IdentityContext  # type: ignore[import-not-found]
    from utils.ids import iso_timestamp, new_id  # type: ignore[import-not-found]
    from utils.logging import get_logger  # type: ignore[import-not-found]
    from utils.responses import BookLoanItem  # type: ignore[import-not-found]
    from utils.store import AttributeNotExists, QueryOptions, Store  # type: ignore[import-not-found]
    from utils.update_builder import UpdateBuilder  # type: ignore[import-not-found]
    from utils.validation import require_id, require_input, require_string, validate_limit  # type: ignore[import-not-found]
except ImportError:  # pragma: no cover
    from ..utils.auth import IdentityContext
    from ..utils.ids import iso_timestamp, new_id
    from ..utils.logging import get_logger
    from ..utils.responses import BookLoanItem
    from ..utils.store import AttributeNotExists, QueryOptions, Store
    from ..utils.update_builder import UpdateBuilder
    from ..utils.validation import require_id, require_input, require_string, validate_limit

logger = get_logger(__name__)

RETURNED_AT = "returnedAt"


def my_loans(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[BookLoanItem]:
    """List all of the caller's loans, active and returned."""
    limit = validate_limit(arguments.get("limit"))
    return cast(List[BookLoanItem], store.query(identity.subject, QueryOptions(limit=limit)))


def active_loans(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[BookLoanItem]:
    """
    List the caller's loans that have not been returned.

    The filter runs after the key scan. This query carries no limit; adding
    one would cap the scan before filtering and could under-return.
    """
    items = store.query(identity.subject, QueryOptions(filter=AttributeNotExists(RETURNED_AT)))
    return cast(List[BookLoanItem], items)


def my_loans_for_book(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> List[BookLoanItem]:
    """List the caller's loans of one book via the byBook index."""
    book_id = require_id(arguments, "bookId")
    limit = validate_limit(arguments.get("limit"))
    items = store.query(identity.subject, QueryOptions(index_name="byBook", sort_value=book_id, limit=limit))
    return cast(List[BookLoanItem], items)


def lend_book(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> BookLoanItem:
    """Record that the caller lent a book to borrowerName."""
    input_data = require_input(arguments)
    book_id = require_id(input_data, "bookId")
    borrower_name = require_string(input_data, "borrowerName")
    loan_id = new_id()

    item = store.put(
        {"userId": identity.subject, "loanId": loan_id},
        {"bookId": book_id, "borrowerName": borrower_name, "lentAt": iso_timestamp()},
        if_absent=True,
    )
    logger.info("Lent book", user_id=identity.subject, loan_id=loan_id, book_id=book_id)
    return cast(BookLoanItem, item)


def return_book(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> BookLoanItem:
    """
    Mark a loan returned.

    Returning again overwrites the timestamp; the loan stays returned.
    """
    loan_id = require_id(arguments, "loanId")
    builder = UpdateBuilder().set(RETURNED_AT, iso_timestamp())
    item = store.update({"userId": identity.subject, "loanId": loan_id}, builder.build())
    logger.info("Returned book", user_id=identity.subject, loan_id=loan_id)
    return cast(BookLoanItem, item)


def update_loan(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> BookLoanItem:
    """Change a loan's borrower name."""
    input_data = require_input(arguments)
    loan_id = require_id(input_data, "loanId")
    borrower_name = require_string(input_data, "borrowerName")

    builder = UpdateBuilder().set("borrowerName", borrower_name)
    item = store.update({"userId": identity.subject, "loanId": loan_id}, builder.build())
    logger.info("Updated loan", user_id=identity.subject, loan_id=loan_id)
    return cast(BookLoanItem, item)


def delete_loan(store: Store, identity: IdentityContext, arguments: Dict[str, Any]) -> BookLoanItem:
    """Delete a loan record and return it."""
    loan_id = require_id(arguments, "loanId")
    item = store.delete({"userId": identity.subject, "loanId": loan_id})
    logger.info("Deleted loan", user_id=identity.subject, loan_id=loan_id)
    return cast(BookLoanItem, item)
