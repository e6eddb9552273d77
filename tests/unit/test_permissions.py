import pytest

from silver_admin.core.permissions import (
    ROLE_PERMISSIONS,
    AdminRole,
    has_all_permissions,
    has_permission,
    permissions_for,
)


@pytest.mark.parametrize("role", list(AdminRole))
def test_every_role_has_permissions(role):
    perms = permissions_for(role)
    assert perms
    assert perms == permissions_for(role.value)


def test_role_table_contents():
    assert permissions_for(AdminRole.SUPER_ADMIN) == ["*"]
    assert permissions_for("manager") == [
        "products.view",
        "products.edit",
        "orders.view",
        "orders.edit",
        "categories.view",
    ]
    assert permissions_for("staff") == ["products.view", "orders.view"]
    assert "coupons.*" in permissions_for("admin")


def test_role_table_is_read_only():
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS["staff"] = ("*",)

    perms = permissions_for("staff")
    perms.append("orders.edit")
    assert permissions_for("staff") == ["products.view", "orders.view"]


def test_unknown_role_raises():
    with pytest.raises(ValueError):
        permissions_for("owner")


@pytest.mark.parametrize("held, required, expected", [
    (["*"], "orders.delete", True),
    (["products.*"], "products.delete", True),
    (["products.*"], "orders.view", False),
    (["orders.view"], "orders.view", True),
    (["orders.view"], "orders.edit", False),
    (["Orders.view"], "orders.view", False),
    ([], "orders.view", False),
    (None, "orders.view", False),
])
def test_has_permission(held, required, expected):
    assert has_permission(held, required) is expected


def test_has_all_permissions():
    held = ["orders.view", "products.*"]
    assert has_all_permissions(held, ["orders.view", "products.edit"])
    assert not has_all_permissions(held, ["orders.view", "orders.edit"])
