"""Translation between remote CRM lead nodes and the internal ``Lead`` shape.

The remote schema stores money as integer micros, spells the street field
``adress`` and keeps its own free-text ``stage``. The local ``status``
vocabulary is derived from ``stage`` through ``stage_to_status``; the
original ``stage`` string is always kept alongside it. Pushes go the
other way through ``status_to_stage``.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from backend.app.schemas.lead import Lead

MICROS_PER_UNIT = 1_000_000

STAGE_TO_STATUS = {
    "NEW": "new",
    "CONTACTED": "contacted",
    "QUALIFIED": "qualified",
    "QUOTED": "quoted",
    "PROPOSAL": "proposal_sent",
    "PROPOSAL_SENT": "proposal_sent",
    "WON": "won",
    "CLOSED_WON": "won",
    "LOST": "lost",
    "CLOSED_LOST": "lost",
}

# Stage written to the remote when a local status edit disagrees with the current stage
STATUS_TO_STAGE = {
    "new": "NEW",
    "contacted": "CONTACTED",
    "qualified": "QUALIFIED",
    "quoted": "QUOTED",
    "proposal_sent": "PROPOSAL_SENT",
    "won": "WON",
    "lost": "LOST",
}

# Internal field -> remote scalar field for fields sent as-is
_SCALAR_FIELDS = {
    "address": "adress",
    "city": "city",
    "state": "state",
    "zip_code": "zipCode",
    "stage": "stage",
    "sales_rep": "salesRep",
    "source": "source",
    "medium": "medium",
    "roof_type": "roofType",
    "property_type": "propertyType",
    "notes": "notes",
}

LEAD_NODE_FIELDS = """
    id
    name
    email {
      primaryEmail
    }
    phone {
      primaryPhoneNumber
    }
    adress
    city
    state
    zipCode
    stage
    salesRep
    source
    medium
    notes
    roofType
    propertyType
    estValue {
      amountMicros
      currencyCode
    }
    nextFollowUp
    createdAt
    updatedAt
"""


def micros_to_dollars(amount_micros: Optional[int]) -> Optional[float]:
    if amount_micros is None:
        return None
    return amount_micros / MICROS_PER_UNIT


def dollars_to_micros(amount: Optional[float]) -> Optional[int]:
    if amount is None:
        return None
    return int(round(amount * MICROS_PER_UNIT))


def stage_to_status(stage: Optional[str]) -> str:
    """Map a remote stage string onto the local status vocabulary.

    Unknown or missing stages map to ``new``.
    """
    if not stage:
        return "new"
    key = stage.strip().upper().replace(" ", "_").replace("-", "_")
    return STAGE_TO_STATUS.get(key, "new")


def status_to_stage(status: Optional[str]) -> Optional[str]:
    """Inverse of ``stage_to_status`` for the local status vocabulary; unknown statuses give ``None``."""
    if not status:
        return None
    return STATUS_TO_STAGE.get(status.lower())


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def _name_from_node(raw_name: Any) -> str:
    if isinstance(raw_name, dict):
        full = f"{raw_name.get('firstName') or ''} {raw_name.get('lastName') or ''}".strip()
        return full or "Unknown"
    return raw_name or "Unknown"


def _nested(node: dict, key: str, inner: str) -> Optional[str]:
    value = node.get(key)
    if isinstance(value, dict):
        return value.get(inner) or None
    return value or None


def node_to_lead(node: dict, synced_at: Optional[datetime] = None) -> Lead:
    """Build an internal Lead from a remote ``leads`` edge node."""
    est_value = node.get("estValue") or {}
    amount_micros = est_value.get("amountMicros") if isinstance(est_value, dict) else None
    stage = node.get("stage")
    return Lead(
        id=node["id"],
        name=_name_from_node(node.get("name")),
        email=_nested(node, "email", "primaryEmail"),
        phone=_nested(node, "phone", "primaryPhoneNumber"),
        address=node.get("adress"),
        city=node.get("city"),
        state=node.get("state"),
        zip_code=node.get("zipCode"),
        source=node.get("source") or "twenty_crm",
        medium=node.get("medium") or "organic",
        status=stage_to_status(stage),
        stage=stage,
        notes=node.get("notes"),
        estimated_value=micros_to_dollars(amount_micros),
        roof_type=node.get("roofType"),
        property_type=node.get("propertyType"),
        sales_rep=node.get("salesRep"),
        assigned_to=node.get("salesRep"),
        next_follow_up=_parse_datetime(node.get("nextFollowUp")),
        created_at=_parse_datetime(node.get("createdAt")),
        updated_at=_parse_datetime(node.get("updatedAt")),
        sync_status="synced",
        last_synced_at=synced_at or datetime.now(timezone.utc),
    )


def build_remote_input(updates: dict[str, Any]) -> dict[str, Any]:
    """Convert internal field updates into a remote ``LeadCreateInput``/``LeadUpdateInput``.

    An ``address`` given as a dict (``street``, ``city``, ``state``,
    ``postal_code``) is flattened into the remote's component fields.
    ``None`` values are dropped only for nested composite fields.
    A ``status`` without an explicit ``stage`` is sent as its ``status_to_stage`` value.
    """
    data: dict[str, Any] = {}
    fields = dict(updates)

    address = fields.get("address")
    if isinstance(address, dict):
        fields.pop("address")
        if "street" in address:
            fields["address"] = address["street"]
        if "city" in address:
            fields["city"] = address["city"]
        if "state" in address:
            fields["state"] = address["state"]
        if "postal_code" in address:
            fields["zip_code"] = address["postal_code"]

    if "name" in fields and fields["name"] is not None:
        data["name"] = fields["name"]
    if "email" in fields:
        data["email"] = {"primaryEmail": fields["email"] or ""}
    if "phone" in fields:
        data["phone"] = {"primaryPhoneNumber": fields["phone"] or ""}
    if fields.get("estimated_value") is not None:
        data["estValue"] = {
            "amountMicros": dollars_to_micros(fields["estimated_value"]),
            "currencyCode": "USD",
        }
    if fields.get("next_follow_up") is not None:
        follow_up = fields["next_follow_up"]
        data["nextFollowUp"] = follow_up.isoformat() if isinstance(follow_up, datetime) else follow_up
    for field, remote_field in _SCALAR_FIELDS.items():
        if field in fields:
            data[remote_field] = fields[field]
    if fields.get("status") and "stage" not in fields:
        stage = status_to_stage(fields["status"])
        if stage:
            data["stage"] = stage
    return data


def lead_to_remote_input(lead: Lead) -> dict[str, Any]:
    """Full remote input for pushing a local lead; unset optional fields are omitted."""
    fields = lead.model_dump(
        include={
            "name",
            "email",
            "phone",
            "address",
            "city",
            "state",
            "zip_code",
            "stage",
            "sales_rep",
            "source",
            "medium",
            "roof_type",
            "property_type",
            "notes",
            "estimated_value",
            "next_follow_up",
        },
        exclude_none=True,
    )
    # the remote only knows stage; a status edit replaces a stage that maps elsewhere
    if lead.status and stage_to_status(lead.stage) != lead.status.lower():
        stage = status_to_stage(lead.status)
        if stage:
            fields["stage"] = stage
    return build_remote_input(fields)
