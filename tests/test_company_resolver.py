import uuid

import pytest

from crm_backend.core.exceptions import CreationError, NotFoundError, ReferenceNotFoundError
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.services.company_resolver import CompanyResolver


async def _company(session, org_id, name, display_id="CMP001"):
    return await CompanyRepository(session).create({
        "org_id": org_id,
        "name": name,
        "display_id": display_id
    })


async def test_existing_name_resolves_without_insert(session, owner_ctx):
    existing = await _company(session, owner_ctx.org_id, "Acme Inc")
    resolver = CompanyResolver(session)

    assert await resolver.resolve(owner_ctx.org_id, company_name="Acme Inc") == existing.id
    assert await resolver.resolve(owner_ctx.org_id, company_name="  Acme Inc \t") == existing.id
    assert await CompanyRepository(session).count(owner_ctx.org_id) == 1


async def test_matching_is_case_sensitive(session, owner_ctx):
    existing = await _company(session, owner_ctx.org_id, "Acme Inc")
    resolver = CompanyResolver(session)

    created_id = await resolver.resolve(owner_ctx.org_id, company_name="acme inc")
    await session.commit()

    assert created_id != existing.id
    created = await CompanyRepository(session).get(created_id)
    assert created.name == "acme inc"
    assert len(created.display_id) == 6


async def test_unknown_name_is_created_but_not_committed(session, owner_ctx):
    resolver = CompanyResolver(session)
    company_id = await resolver.resolve(owner_ctx.org_id, company_name="Globex")
    assert company_id is not None

    # The caller owns the transaction; rolling back leaves nothing behind
    await session.rollback()
    assert await CompanyRepository(session).get_by_name(owner_ctx.org_id, "Globex") is None


async def test_neither_name_nor_id_returns_none(session, owner_ctx):
    resolver = CompanyResolver(session)
    assert await resolver.resolve(owner_ctx.org_id) is None
    assert await resolver.resolve(owner_ctx.org_id, company_name="   ", company_id=None) is None


async def test_known_id_resolves(session, owner_ctx):
    existing = await _company(session, owner_ctx.org_id, "Initech")
    resolver = CompanyResolver(session)
    assert await resolver.resolve(owner_ctx.org_id, company_id=str(existing.id)) == existing.id


@pytest.mark.parametrize("company_id", [str(uuid.uuid4()), "not-a-uuid"])
async def test_unknown_id_is_a_client_error(session, owner_ctx, company_id):
    resolver = CompanyResolver(session)
    with pytest.raises(ReferenceNotFoundError) as exc_info:
        await resolver.resolve(owner_ctx.org_id, company_id=company_id)

    assert isinstance(exc_info.value, NotFoundError)
    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Invalid company_id: company not found"


async def test_id_from_another_tenant_is_rejected(session, owner_ctx):
    foreign = await _company(session, uuid.uuid4(), "Umbrella")
    resolver = CompanyResolver(session)
    with pytest.raises(ReferenceNotFoundError):
        await resolver.resolve(owner_ctx.org_id, company_id=foreign.id)


async def test_name_wins_over_id(session, owner_ctx):
    by_id = await _company(session, owner_ctx.org_id, "Hooli", "CMP001")
    by_name = await _company(session, owner_ctx.org_id, "Pied Piper", "CMP002")
    resolver = CompanyResolver(session)

    resolved = await resolver.resolve(owner_ctx.org_id, company_name="Pied Piper", company_id=by_id.id)
    assert resolved == by_name.id


async def test_name_is_scoped_to_tenant(session, owner_ctx):
    other_org_company = await _company(session, uuid.uuid4(), "Acme Inc")
    resolver = CompanyResolver(session)
    resolved = await resolver.resolve(owner_ctx.org_id, company_name="Acme Inc")
    assert resolved != other_org_company.id


async def test_concurrent_insert_falls_back_to_winner(session, session_factory, owner_ctx, monkeypatch):
    async with session_factory() as other:
        winner = await _company(other, owner_ctx.org_id, "Acme Inc")

    resolver = CompanyResolver(session)
    real_lookup = resolver.company_repo.get_by_name
    calls = []

    async def stale_first_lookup(org_id, name):
        calls.append(name)
        if len(calls) == 1:
            return None
        return await real_lookup(org_id, name)

    monkeypatch.setattr(resolver.company_repo, "get_by_name", stale_first_lookup)

    assert await resolver.resolve(owner_ctx.org_id, company_name="Acme Inc") == winner.id
    assert len(calls) == 2


async def test_rejected_insert_raises_creation_error(session, owner_ctx, monkeypatch):
    await _company(session, owner_ctx.org_id, "Acme Inc")
    resolver = CompanyResolver(session)

    async def never_found(org_id, name):
        return None

    monkeypatch.setattr(resolver.company_repo, "get_by_name", never_found)

    with pytest.raises(CreationError):
        await resolver.resolve(owner_ctx.org_id, company_name="Acme Inc")
