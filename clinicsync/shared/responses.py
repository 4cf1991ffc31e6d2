"""Translate ActionResult failures into HTTP responses for the operator API"""

from fastapi import HTTPException

from ..errors import ErrorKind
from .results import ActionResult

STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_INPUT: 400,
    # Upstream contract drift: the clinic answered something we cannot trust
    ErrorKind.VALIDATION: 502,
    ErrorKind.UPSTREAM_AUTH: 502,
    ErrorKind.UPSTREAM_HTTP: 502,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.INTERNAL: 500,
}


def unwrap(result: ActionResult) -> ActionResult:
    """
    Return the result when it is a success or a benign "nothing to do".

    Any other failure becomes an HTTPException carrying the generic message;
    details stay in the server log.
    """
    if result.success or result.error_kind == ErrorKind.NOTHING_TO_DO:
        return result

    status_code = STATUS_BY_KIND.get(result.error_kind, 500)
    raise HTTPException(status_code=status_code, detail=result.error)
