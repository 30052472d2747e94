"""Capability checks shared by every entry point."""
import pytest

from marketplace.core.access import Caller, Role, check_capability
from marketplace.core.errors import Unauthorized

CUSTOMER = Caller(1, Role.CUSTOMER)
COOK = Caller(2, Role.COOK)
ADMIN = Caller(3, Role.ADMIN)


def test_role_outside_allowed_set_is_rejected():
    with pytest.raises(Unauthorized):
        check_capability(CUSTOMER, [Role.COOK, Role.ADMIN])


def test_customer_must_own_the_resource():
    check_capability(CUSTOMER, list(Role), customer_id=1, operator_id=2)
    with pytest.raises(Unauthorized):
        check_capability(CUSTOMER, list(Role), customer_id=99, operator_id=2)


def test_cook_must_operate_the_restaurant():
    check_capability(COOK, [Role.COOK], operator_id=2)
    with pytest.raises(Unauthorized, match="not yours"):
        check_capability(COOK, [Role.COOK], operator_id=42, message="not yours")


def test_admin_passes_ownership_checks():
    check_capability(ADMIN, [Role.COOK, Role.ADMIN], customer_id=1, operator_id=2)


def test_unauthorized_renders_as_403():
    err = Unauthorized("nope")
    assert err.status_code == 403
    assert err.to_dict() == {"detail": "nope", "error": "unauthorized"}
