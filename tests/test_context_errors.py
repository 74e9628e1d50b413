import pytest
from postgrest import APIError

from compassiq.domain.context_errors import (
    AccessDenied,
    Forbidden,
    Misconfigured,
    TransientLookupFailure,
    Unauthenticated,
    context_error_detail,
    context_error_http_status,
)
from compassiq.domain.db_errors import DEFAULT_ERROR_MESSAGE, is_read_only_violation, normalize_db_error


@pytest.mark.parametrize(
    "exc, status_code",
    [
        (Unauthenticated(), 401),
        (AccessDenied(reason="not_a_member"), 404),
        (Forbidden("Admin role required"), 403),
        (Misconfigured("org_id is required"), 400),
        (TransientLookupFailure("membership", RuntimeError("timeout")), 503),
    ],
)
def test_http_status_by_category(exc, status_code):
    assert context_error_http_status(exc) == status_code


def test_denial_detail_never_names_the_reason():
    not_member = context_error_detail(AccessDenied(reason="not_a_member"))
    not_found = context_error_detail(AccessDenied("org-X does not exist", reason="org_not_found"))

    assert not_member == not_found
    assert not_member["message"] == "Organization not found"
    assert not_member["retryable"] is False


def test_transient_detail_hides_cause():
    detail = context_error_detail(TransientLookupFailure("membership", RuntimeError("password=hunter2")))

    assert detail["retryable"] is True
    assert "hunter2" not in detail["message"]


def test_forbidden_keeps_its_message():
    assert context_error_detail(Forbidden("Preview mode is read-only."))["message"] == "Preview mode is read-only."


def test_normalize_db_error():
    assert normalize_db_error(None) == DEFAULT_ERROR_MESSAGE
    assert normalize_db_error("plain text") == "plain text"
    assert normalize_db_error({"code": "23503"}).startswith("Cannot delete")
    assert normalize_db_error({"code": "P0001", "message": "Demo org is read-only"}) == "Demo org is read-only"
    assert normalize_db_error({"code": "99999"}) == "Error: 99999"
    assert normalize_db_error(APIError({"code": "23505", "message": "dup"})).startswith("This record already exists")


def test_is_read_only_violation():
    assert is_read_only_violation({"code": "42501"})
    assert is_read_only_violation(APIError({"code": "P0001", "message": "Cannot modify demo organization"}))
    assert is_read_only_violation({"message": "org is read-only"})
    assert not is_read_only_violation({"code": "23505", "message": "duplicate key"})
    assert not is_read_only_violation(None)
