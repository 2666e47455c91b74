from backend.app.schemas.lead import Lead
from backend.app.services.lead_mapping import (
    build_remote_input,
    dollars_to_micros,
    lead_to_remote_input,
    micros_to_dollars,
    node_to_lead,
    stage_to_status,
    status_to_stage,
)


def test_micros_conversion():
    assert micros_to_dollars(15_000_000) == 15
    assert dollars_to_micros(15) == 15_000_000
    assert dollars_to_micros(12.34) == 12_340_000
    assert micros_to_dollars(None) is None


def test_stage_to_status_mapping():
    assert stage_to_status("NEW") == "new"
    assert stage_to_status("proposal sent") == "proposal_sent"
    assert stage_to_status("CLOSED_WON") == "won"
    assert stage_to_status("closed-lost") == "lost"
    assert stage_to_status("SOMETHING_ELSE") == "new"
    assert stage_to_status(None) == "new"


def test_node_to_lead_reads_remote_shape():
    node = {
        "id": "remote-1",
        "name": "Jane Roof",
        "email": {"primaryEmail": "jane@example.com"},
        "phone": {"primaryPhoneNumber": "555-0101"},
        "adress": "12 Elm St",
        "city": "Denver",
        "state": "CO",
        "zipCode": "80202",
        "stage": "QUOTED",
        "salesRep": "JOHN_SMITH",
        "estValue": {"amountMicros": 15_000_000, "currencyCode": "USD"},
        "createdAt": "2024-05-01T12:00:00Z",
    }
    lead = node_to_lead(node)
    assert lead.id == "remote-1"
    assert lead.email == "jane@example.com"
    assert lead.phone == "555-0101"
    assert lead.address == "12 Elm St"
    assert lead.zip_code == "80202"
    assert lead.status == "quoted"
    assert lead.stage == "QUOTED"
    assert lead.estimated_value == 15
    assert lead.sales_rep == "JOHN_SMITH"
    assert lead.assigned_to == "JOHN_SMITH"
    assert lead.source == "twenty_crm"
    assert lead.sync_status == "synced"
    assert lead.created_at.year == 2024


def test_node_to_lead_joins_composite_name():
    lead = node_to_lead({"id": "r", "name": {"firstName": "Ann", "lastName": "Lee"}})
    assert lead.name == "Ann Lee"
    assert node_to_lead({"id": "r", "name": None}).name == "Unknown"


def test_build_remote_input_flattens_address():
    data = build_remote_input(
        {
            "name": "New Name",
            "email": "new@example.com",
            "address": {"street": "5 Oak Ave", "city": "Boulder", "state": "CO", "postal_code": "80301"},
        }
    )
    assert data == {
        "name": "New Name",
        "email": {"primaryEmail": "new@example.com"},
        "adress": "5 Oak Ave",
        "city": "Boulder",
        "state": "CO",
        "zipCode": "80301",
    }


def test_lead_to_remote_input_omits_unset_fields():
    lead = Lead(id="local-1", name="Pat", estimated_value=2500.5, stage="NEW", sync_status="pending")
    data = lead_to_remote_input(lead)
    assert data["name"] == "Pat"
    assert data["estValue"] == {"amountMicros": 2_500_500_000, "currencyCode": "USD"}
    assert data["stage"] == "NEW"
    assert "email" not in data
    assert "id" not in data


def test_status_edit_is_pushed_as_stage():
    assert status_to_stage("proposal_sent") == "PROPOSAL_SENT"
    assert status_to_stage("unknown") is None
    assert build_remote_input({"status": "lost"}) == {"stage": "LOST"}
    assert build_remote_input({"status": "lost", "stage": "CLOSED_LOST"}) == {"stage": "CLOSED_LOST"}

    consistent = Lead(id="r", name="Pat", status="won", stage="CLOSED_WON")
    assert lead_to_remote_input(consistent)["stage"] == "CLOSED_WON"
    edited = Lead(id="r", name="Pat", status="won", stage="NEW")
    assert lead_to_remote_input(edited)["stage"] == "WON"
