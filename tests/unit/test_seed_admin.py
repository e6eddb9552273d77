import pytest

from silver_admin.core.database import AsyncSessionLocal
from silver_admin.core.exceptions import ValidationFailedError
from silver_admin.core.permissions import AdminRole
from silver_admin.scripts import seed_admin as seed_module
from silver_admin.services.admin_service import AdminService


@pytest.mark.asyncio
async def test_seed_creates_super_admin_once(db_engine):
    first = await seed_module.seed_admin("Owner", "Owner@Example.com", "s3cure-Passw0rd")
    second = await seed_module.seed_admin("Owner", "owner@example.com", "another-secret")
    assert first == second

    async with AsyncSessionLocal() as session:
        admin = await AdminService(session).get_by_email("owner@example.com")
    assert admin.role == AdminRole.SUPER_ADMIN.value
    assert admin.permissions == ["*"]


def test_main_requires_email(monkeypatch):
    monkeypatch.delenv("SEED_ADMIN_EMAIL", raising=False)
    with pytest.raises(SystemExit):
        seed_module.main([])


@pytest.mark.asyncio
async def test_seed_rejects_weak_password(db_engine):
    with pytest.raises(ValidationFailedError):
        await seed_module.seed_admin("Owner", "weak@example.com", "short")
