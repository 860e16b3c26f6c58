import uuid
from datetime import datetime, timedelta

import pytest

from crm_backend.core.exceptions import (
    AlreadyExistsError,
    CreationError,
    ForbiddenError,
    ReferenceNotFoundError,
    ValidationError
)
from crm_backend.repositories.company_repo import CompanyRepository
from crm_backend.repositories.lead_repo import LeadRepository, LeadSourceRepository
from crm_backend.repositories.notification_repo import NotificationRepository
from crm_backend.schemas.contact import ContactPayload
from crm_backend.schemas.lead import LeadPatch, LeadPayload
from crm_backend.services.contact_service import ContactService
from crm_backend.services.lead_service import LeadService
from crm_backend.services.lead_source_service import LeadSourceService

NOW = datetime(2026, 10, 18, 12, 0, 0)

AGENT_GRANTS = {"leads": ["enable_disable", "view_assigned", "create", "edit"]}


async def _notification_titles(session, org_id):
    notifications = await NotificationRepository(session).get_recent(org_id, limit=50)
    return [n.title for n in notifications]


@pytest.mark.parametrize("payload", [
    {"stage": "New", "company_name": "Acme Inc"},
    {"assignment_name": "Website", "company_name": "Acme Inc"},
    {"assignment_name": "  ", "stage": "New", "company_name": "Acme Inc"},
    {"assignment_name": "Website", "stage": "Negotiation", "company_name": "Acme Inc"},
    {"assignment_name": "Website", "stage": "New", "priority": "Urgent", "company_name": "Acme Inc"},
])
async def test_invalid_payload_rejects_before_any_write(session, owner_ctx, payload):
    service = LeadService(session)
    with pytest.raises(ValidationError):
        await service.save(owner_ctx, LeadPayload(**payload))

    assert await LeadRepository(session).count(owner_ctx.org_id) == 0
    assert await CompanyRepository(session).count(owner_ctx.org_id) == 0


async def test_create_with_company_name_and_defaults(session, owner_ctx):
    service = LeadService(session)
    lead = await service.save(owner_ctx, LeadPayload(
        assignment_name="Website redesign",
        stage="New",
        company_name="Acme Inc",
        service="",
        closing_date=NOW - timedelta(hours=10)
    ), now=NOW)

    assert lead["priority"] == "Medium"
    assert lead["service"] is None
    assert lead["company_name"] == "Acme Inc"
    assert lead["tat_status"] == "In TAT"
    company = await CompanyRepository(session).get_by_name(owner_ctx.org_id, "Acme Inc")
    assert lead["company_id"] == company.id


async def test_unknown_contact_is_a_client_error(session, owner_ctx):
    service = LeadService(session)
    with pytest.raises(ReferenceNotFoundError) as exc_info:
        await service.save(owner_ctx, LeadPayload(
            assignment_name="Website", stage="New", contact_id=str(uuid.uuid4()), company_name="Acme Inc"
        ))
    assert exc_info.value.message == "Invalid contact_id: contact not found"
    assert await CompanyRepository(session).count(owner_ctx.org_id) == 0


async def test_assignee_must_be_member(session, owner_ctx):
    service = LeadService(session)
    with pytest.raises(ReferenceNotFoundError):
        await service.save(owner_ctx, LeadPayload(
            assignment_name="Website", stage="New", assigned_to=str(uuid.uuid4())
        ))


async def test_list_attaches_names_and_tat(session, owner_ctx):
    contact = await ContactService(session).save(owner_ctx, ContactPayload(first_name="John", last_name="Doe"))
    service = LeadService(session)
    await service.save(owner_ctx, LeadPayload(
        assignment_name="Overdue", stage="Qualify", contact_id=str(contact["id"]),
        closing_date=NOW - timedelta(hours=73), assigned_to=str(owner_ctx.user_id)
    ), now=NOW)
    await service.save(owner_ctx, LeadPayload(assignment_name="Undated", stage="New"), now=NOW)
    await service.save(owner_ctx, LeadPayload(
        assignment_name="Closed", stage="WON", closing_date=NOW - timedelta(days=30)
    ), now=NOW)

    result = await service.list(owner_ctx, now=NOW)
    by_name = {lead["assignment_name"]: lead for lead in result["items"]}

    assert by_name["Overdue"]["tat_status"] == "Lost"
    assert by_name["Overdue"]["contact_name"] == "John Doe"
    assert by_name["Overdue"]["assigned_agent_name"] == "Olivia Owner"
    assert by_name["Undated"]["tat_status"] == "No Date"
    assert by_name["Closed"]["tat_status"] == ""


async def test_view_assigned_only_sees_own_leads(session, owner_ctx, make_member):
    agent = await make_member("agent@acme.io", AGENT_GRANTS)
    service = LeadService(session)
    mine = await service.save(owner_ctx, LeadPayload(
        assignment_name="Mine", stage="New", assigned_to=str(agent.user_id)
    ))
    other = await service.save(owner_ctx, LeadPayload(assignment_name="Not mine", stage="New"))

    result = await service.list(agent)
    assert [lead["assignment_name"] for lead in result["items"]] == ["Mine"]

    assert (await service.get(agent, mine["id"]))["id"] == mine["id"]
    with pytest.raises(ForbiddenError):
        await service.get(agent, other["id"])


async def test_listing_without_view_grant_is_forbidden(session, owner_ctx, make_member):
    blind = await make_member("blind@acme.io", {"leads": ["enable_disable", "create"]})
    with pytest.raises(ForbiddenError):
        await LeadService(session).list(blind)


async def test_replacing_assignee_needs_transfer_permission(session, owner_ctx, make_member):
    agent = await make_member("agent@acme.io", {"leads": ["enable_disable", "view_all", "edit"]})
    service = LeadService(session)
    lead = await service.save(owner_ctx, LeadPayload(assignment_name="Deal", stage="New"))

    with pytest.raises(ForbiddenError):
        await service.save(agent, LeadPayload(
            assignment_name="Deal", stage="New", assigned_to=str(agent.user_id)
        ), lead_id=lead["id"])

    updated = await service.save(agent, LeadPayload(assignment_name="Deal", stage="Qualify"), lead_id=lead["id"])
    assert updated["stage"] == "Qualify"


async def test_patch_permissions(session, owner_ctx, make_member):
    transfer_only = await make_member("router@acme.io", {"leads": ["enable_disable", "view_all", "transfer_lead"]})
    service = LeadService(session)
    lead = await service.save(owner_ctx, LeadPayload(assignment_name="Deal", stage="New"))

    with pytest.raises(ValidationError):
        await service.patch(owner_ctx, lead["id"], LeadPatch())

    with pytest.raises(ForbiddenError):
        await service.patch(transfer_only, lead["id"], LeadPatch(stage="Qualify"))

    patched = await service.patch(transfer_only, lead["id"], LeadPatch(assigned_to=str(transfer_only.user_id)))
    assert patched["assigned_to"] == transfer_only.user_id
    assert patched["stage"] == "New"


async def test_patch_applies_only_given_fields_and_notifies(session, owner_ctx):
    service = LeadService(session)
    lead = await service.save(owner_ctx, LeadPayload(
        assignment_name="Deal", stage="New", service="Consulting", priority="Low"
    ))

    patched = await service.patch(owner_ctx, lead["id"], LeadPatch(stage="Proposal", priority="High"))
    assert patched["stage"] == "Proposal"
    assert patched["priority"] == "High"
    assert patched["service"] == "Consulting"

    titles = await _notification_titles(session, owner_ctx.org_id)
    assert "Lead Stage Updated" in titles
    assert "Lead Priority Updated" in titles


async def test_assignment_notifications(session, owner_ctx):
    service = LeadService(session)
    lead = await service.save(owner_ctx, LeadPayload(
        assignment_name="Deal", stage="New", assigned_to=str(owner_ctx.user_id)
    ))
    await service.patch(owner_ctx, lead["id"], LeadPatch(assigned_to=None))
    await service.delete(owner_ctx, lead["id"])

    titles = await _notification_titles(session, owner_ctx.org_id)
    assert set(titles) == {"New Lead Assigned", "Lead Unassigned", "Lead Deleted"}


async def test_comments(session, owner_ctx):
    service = LeadService(session)
    lead = await service.save(owner_ctx, LeadPayload(assignment_name="Deal", stage="New"))

    with pytest.raises(ValidationError):
        await service.add_comment(owner_ctx, lead["id"], "  ")

    comment = await service.add_comment(owner_ctx, lead["id"], "Called, follow up Monday")
    assert comment.author_id == owner_ctx.user_id

    comments = await service.list_comments(owner_ctx, lead["id"])
    assert [c.content for c in comments] == ["Called, follow up Monday"]


async def test_stats_tat_breakdown_covers_open_leads(session, owner_ctx):
    service = LeadService(session)
    await service.save(owner_ctx, LeadPayload(
        assignment_name="A", stage="New", closing_date=NOW - timedelta(hours=100)
    ))
    await service.save(owner_ctx, LeadPayload(
        assignment_name="B", stage="Review", closing_date=NOW - timedelta(hours=1)
    ))
    await service.save(owner_ctx, LeadPayload(assignment_name="C", stage="New"))
    await service.save(owner_ctx, LeadPayload(assignment_name="D", stage="DROP"))

    stats = await service.stats(owner_ctx.org_id, now=NOW)
    assert stats["total"] == 4
    assert stats["by_stage"] == {"New": 2, "Review": 1, "DROP": 1}
    assert stats["tat"] == {"In TAT": 1, "Lost": 1, "No Date": 1}


async def test_stats_for_one_assignee(session, owner_ctx, make_member):
    agent = await make_member("agent@acme.io", AGENT_GRANTS)
    service = LeadService(session)
    await service.save(owner_ctx, LeadPayload(
        assignment_name="Mine", stage="New", assigned_to=str(agent.user_id),
        closing_date=NOW - timedelta(hours=100)
    ))
    await service.save(owner_ctx, LeadPayload(assignment_name="Not mine", stage="Review"))

    stats = await service.stats(owner_ctx.org_id, now=NOW, assigned_to=agent.user_id)
    assert stats["total"] == 1
    assert stats["by_stage"] == {"New": 1}
    assert stats["tat"] == {"In TAT": 0, "Lost": 1, "No Date": 0}


async def test_rejected_company_insert_aborts_the_lead(session, owner_ctx, monkeypatch):
    service = LeadService(session)
    await service.save(owner_ctx, LeadPayload(assignment_name="Existing", stage="New"))
    await CompanyRepository(session).create({
        "org_id": owner_ctx.org_id, "name": "Acme Inc", "display_id": "CMP001"
    })

    async def never_found(self, org_id, name):
        return None

    monkeypatch.setattr(CompanyRepository, "get_by_name", never_found)

    with pytest.raises(CreationError):
        await service.save(owner_ctx, LeadPayload(
            assignment_name="Website redesign", stage="New", company_name="Acme Inc"
        ))
    assert await LeadRepository(session).count(owner_ctx.org_id) == 1
    assert await CompanyRepository(session).count(owner_ctx.org_id) == 1


async def test_concurrent_duplicate_lead_source_is_a_conflict(session, owner_ctx, monkeypatch):
    service = LeadSourceService(session)
    await service.create(owner_ctx.org_id, "Trade show")

    async def never_found(self, org_id, name):
        return None

    monkeypatch.setattr(LeadSourceRepository, "get_by_name", never_found)

    with pytest.raises(AlreadyExistsError) as exc_info:
        await service.create(owner_ctx.org_id, "Trade show")
    assert exc_info.value.status_code == 409

    sources = await LeadSourceRepository(session).list_for_org(owner_ctx.org_id)
    assert [source.name for source in sources] == ["Trade show"]
