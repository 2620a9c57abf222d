from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError

from complaintdesk.core.exceptions import (
    InsufficientStock,
    StoreUnavailable,
    ValidationError,
    translate_db_error,
)


def test_integrity_error_becomes_validation_error():
    error = translate_db_error(
        IntegrityError("INSERT INTO spare_parts", {}, Exception("UNIQUE constraint failed: spare_parts.code")),
        "creating spare part",
    )

    assert isinstance(error, ValidationError)
    assert error.status_code == 400
    assert error.detail["code"] == "validation_error"
    assert "UNIQUE constraint failed" in error.message


def test_connection_errors_become_store_unavailable():
    for exc_cls in (OperationalError, InterfaceError, DBAPIError):
        error = translate_db_error(exc_cls("SELECT 1", {}, Exception("database is locked")), "listing complaints")

        assert isinstance(error, StoreUnavailable)
        assert error.status_code == 503
        assert error.detail == {"code": "store_unavailable", "message": "Store unavailable while listing complaints"}


def test_other_sqlalchemy_errors_become_store_unavailable():
    error = translate_db_error(SQLAlchemyError("session closed"), "deleting complaint")
    assert isinstance(error, StoreUnavailable)


def test_insufficient_stock_carries_quantities():
    error = InsufficientStock("not enough", spare_part_id=3, requested=2, available=1)

    assert error.status_code == 409
    assert (error.spare_part_id, error.requested, error.available) == (3, 2, 1)
    assert str(error) == "not enough"
