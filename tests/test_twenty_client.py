import json

import httpx
import pytest

from backend.app.core.exceptions import AttachmentUploadError, RemoteCRMError, RemoteNotFoundError
from backend.app.schemas.lead import Lead
from backend.app.services.twenty_client import TwentyClient
from fake_twenty import graphql_error


@pytest.mark.asyncio
async def test_request_sends_bearer_and_posts_to_graphql(fake_twenty):
    async with fake_twenty.client(api_url="https://crm.example.com/", api_key="abc") as client:
        await client.list_leads()
    request = fake_twenty.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://crm.example.com/graphql"
    assert request.headers["Authorization"] == "Bearer abc"


@pytest.mark.asyncio
async def test_list_leads_filters_by_sales_rep(fake_twenty):
    fake_twenty.add_lead(name="A", salesRep="JOHN_SMITH")
    fake_twenty.add_lead(name="B", salesRep="JANE_DOE")
    async with fake_twenty.client() as client:
        everything = await client.list_leads()
        johns = await client.list_leads(sales_rep="JOHN_SMITH")
    assert len(everything) == 2
    assert [lead.name for lead in johns] == ["A"]
    assert fake_twenty.calls[0][1] == {"limit": 1000}


@pytest.mark.asyncio
async def test_http_error_raises_remote_error(fake_twenty):
    fake_twenty.responders["GetLeads"] = lambda variables: httpx.Response(502, text="bad gateway")
    async with fake_twenty.client() as client:
        with pytest.raises(RemoteCRMError) as exc_info:
            await client.list_leads()
    assert exc_info.value.status_code == 502
    assert not isinstance(exc_info.value, RemoteNotFoundError)


@pytest.mark.asyncio
async def test_http_404_raises_not_found(fake_twenty):
    fake_twenty.responders["UpdateLead"] = lambda variables: httpx.Response(404, text="missing")
    async with fake_twenty.client() as client:
        with pytest.raises(RemoteNotFoundError):
            await client.update_lead("nope", {"name": "X"})


@pytest.mark.asyncio
async def test_graphql_errors_raise(fake_twenty):
    fake_twenty.responders["GetLeads"] = lambda variables: graphql_error("Forbidden")
    async with fake_twenty.client() as client:
        with pytest.raises(RemoteCRMError) as exc_info:
            await client.list_leads()
    assert exc_info.value.errors == [{"message": "Forbidden"}]


@pytest.mark.asyncio
async def test_transport_error_raises_remote_error():
    def broken(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with TwentyClient("https://crm.example.com", "k", transport=httpx.MockTransport(broken)) as client:
        with pytest.raises(RemoteCRMError, match="request failed"):
            await client.list_leads()


@pytest.mark.asyncio
async def test_update_unknown_lead_raises_not_found(fake_twenty):
    async with fake_twenty.client() as client:
        with pytest.raises(RemoteNotFoundError):
            await client.update_lead("missing-id", {"name": "X"})


@pytest.mark.asyncio
async def test_create_and_update_lead_round_trip_money(fake_twenty):
    async with fake_twenty.client() as client:
        created = await client.create_lead(Lead(id="local", name="Roof Job", estimated_value=15))
        stored = fake_twenty.leads[created.id]
        assert stored["estValue"]["amountMicros"] == 15_000_000
        assert created.estimated_value == 15

        updated = await client.update_lead(created.id, {"address": {"street": "9 Pine", "postal_code": "80210"}})
    assert updated.address == "9 Pine"
    assert updated.zip_code == "80210"
    assert fake_twenty.leads[created.id]["adress"] == "9 Pine"


@pytest.mark.asyncio
async def test_delete_lead(fake_twenty):
    node = fake_twenty.add_lead(name="Gone")
    async with fake_twenty.client() as client:
        await client.delete_lead(node["id"])
    assert node["id"] not in fake_twenty.leads


@pytest.mark.asyncio
async def test_create_note_links_to_lead(fake_twenty):
    async with fake_twenty.client() as client:
        note = await client.create_note_for_lead("lead-1", "Call", "Left voicemail")
        notes = await client.get_notes_for_lead("lead-1")
    assert note.title == "Call"
    assert fake_twenty.note_targets == [(note.id, "lead-1")]
    assert [n.body for n in notes] == ["Left voicemail"]


@pytest.mark.asyncio
async def test_note_link_failure_still_returns_note(fake_twenty):
    fake_twenty.responders["CreateNoteTarget"] = lambda variables: graphql_error("link failed")
    async with fake_twenty.client() as client:
        note = await client.create_note_for_lead("lead-1", "Call", "Body")
    assert note.id in fake_twenty.notes
    assert fake_twenty.note_targets == []


@pytest.mark.asyncio
async def test_tasks_create_update_and_list(fake_twenty):
    fake_twenty.add_lead(id="lead-1", name="Jane", salesRep="JOHN_SMITH")
    fake_twenty.add_lead(id="lead-2", name="Bob", salesRep="JANE_DOE")
    async with fake_twenty.client() as client:
        task = await client.create_task("lead-1", "Inspect roof", body="Bring ladder", status="TODO")
        await client.create_task("lead-2", "Send quote")
        updated = await client.update_task(task.id, {"status": "DONE"})
        for_lead = await client.get_tasks_for_lead("lead-1")
        johns = await client.list_tasks(sales_rep="JOHN_SMITH")

    assert task.body == "Bring ladder"
    assert updated.status == "DONE"
    assert [t.id for t in for_lead] == [task.id]
    assert [t.lead_name for t in johns] == ["Jane"]


@pytest.mark.asyncio
async def test_update_missing_task_raises_not_found(fake_twenty):
    async with fake_twenty.client() as client:
        with pytest.raises(RemoteNotFoundError):
            await client.update_task("missing", {"title": "x"})


@pytest.mark.asyncio
async def test_upload_attachment_three_steps(fake_twenty):
    async with fake_twenty.client() as client:
        attachment = await client.upload_attachment("lead-1", "roof.jpg", b"\xff\xd8data", "image/jpeg")
        listed = await client.list_attachments("lead-1")

    assert fake_twenty.operations() == ["CreateAttachment", "UploadFile", "UpdateAttachment", "GetAttachments"]
    assert attachment.full_path.startswith("attachment/")
    assert [a.id for a in listed] == [attachment.id]

    upload_request = fake_twenty.requests[1]
    body = upload_request.content.decode("latin-1")
    assert 'name="operations"' in body
    assert 'name="map"' in body
    assert json.dumps({"0": ["variables.file"]}) in body
    assert '"fileFolder": "Attachment"' in body


@pytest.mark.asyncio
async def test_upload_step_one_failure(fake_twenty):
    fake_twenty.responders["CreateAttachment"] = lambda variables: httpx.Response(500, text="boom")
    async with fake_twenty.client() as client:
        with pytest.raises(AttachmentUploadError, match="step 1") as exc_info:
            await client.upload_attachment("lead-1", "a.pdf", b"x", "application/pdf")
    assert exc_info.value.step == 1
    assert "DeleteAttachment" not in fake_twenty.operations()


@pytest.mark.asyncio
async def test_upload_step_two_failure_removes_orphan(fake_twenty):
    fake_twenty.responders["UploadFile"] = lambda variables: httpx.Response(500, text="storage down")
    async with fake_twenty.client() as client:
        with pytest.raises(AttachmentUploadError, match="step 2") as exc_info:
            await client.upload_attachment("lead-1", "a.pdf", b"x", "application/pdf")
    assert exc_info.value.step == 2
    assert fake_twenty.operations()[-1] == "DeleteAttachment"
    assert fake_twenty.attachments == {}


@pytest.mark.asyncio
async def test_upload_step_three_failure_removes_orphan(fake_twenty):
    fake_twenty.responders["UpdateAttachment"] = lambda variables: graphql_error("cannot update")
    async with fake_twenty.client() as client:
        with pytest.raises(AttachmentUploadError, match="step 3"):
            await client.upload_attachment("lead-1", "a.pdf", b"x", "application/pdf")
    assert fake_twenty.attachments == {}


@pytest.mark.asyncio
async def test_enum_values(fake_twenty):
    async with fake_twenty.client() as client:
        reps = await client.get_enum_values("LeadSalesRepEnum")
        enums = await client.get_lead_field_enums(["stage", "city", "canvasser"])
    assert reps == ["JOHN_SMITH", "JANE_DOE"]
    assert enums == {"stage": ["NEW", "WON"], "city": [], "canvasser": []}
