"""
Coded fetch errors.

Every failure surfaced by a Task is a FetchError carrying one ErrCode. Errors
coming out of a handler are wrapped exactly once: an error that already is a
FetchError passes through untouched.
"""

from enum import Enum
from typing import Optional

from .logging import CardFetcherError


class ErrCode(Enum):
    INVALID_CREDENTIALS = "invalid credentials"
    FETCH_METADATA = "failed to fetch metadata"
    MALFORMED_METADATA = "malformed metadata response"
    FETCH_CARD_DATA = "failed to fetch card data"
    MALFORMED_CARD_DATA = "malformed card data response"
    FETCH_BOOK_DATA = "failed to fetch book data"
    MALFORMED_BOOK_DATA = "malformed book data response"
    FETCH_AVATAR = "failed to fetch avatar"
    DECODE = "failed to decode card"
    MISSING_CREDENTIAL_PROVIDER = "missing credential provider"
    NONE = ""

    def __str__(self) -> str:
        return self.value


class FetchError(CardFetcherError):
    """A fetch failure tagged with an ErrCode."""

    def __init__(self, code: ErrCode, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.code = code
        self.cause = cause
        text = message or code.value
        if cause is not None:
            text = f"{text}: {cause}"
        super().__init__(text)
        self.__cause__ = cause


def new_error(cause: Optional[BaseException], code: ErrCode) -> FetchError:
    """Creates a FetchError with the given code wrapping ``cause``."""
    return FetchError(code, cause)


def wrap_error(err: BaseException, code: ErrCode) -> FetchError:
    """Wraps ``err`` with ``code`` unless it is already a FetchError."""
    if isinstance(err, FetchError):
        return err
    return new_error(err, code)


def get_err_code(err: Optional[BaseException]) -> ErrCode:
    """Returns the code of a FetchError found in ``err``'s cause chain, else NONE."""
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, FetchError):
            return err.code
        seen.add(id(err))
        err = err.__cause__
    return ErrCode.NONE
