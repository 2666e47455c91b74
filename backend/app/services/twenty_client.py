"""Twenty CRM GraphQL client.

Every call is a POST to ``{api_url}/graphql``. A non-2xx response or a
GraphQL ``errors`` array raises ``RemoteCRMError``; a 404 or a not-found
GraphQL error raises ``RemoteNotFoundError``. Nothing is retried here.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from backend.app.core.exceptions import AttachmentUploadError, RemoteCRMError, RemoteNotFoundError
from backend.app.core.settings import get_settings
from backend.app.schemas.attachment import AttachmentRead
from backend.app.schemas.lead import Lead
from backend.app.schemas.note import NoteRead
from backend.app.schemas.task import TaskRead
from backend.app.services.lead_mapping import (
    LEAD_NODE_FIELDS,
    build_remote_input,
    lead_to_remote_input,
    node_to_lead,
)

logger = logging.getLogger(__name__)

NOTE_FIELDS = """
    id
    title
    bodyV2 {
      markdown
      blocknote
    }
    createdAt
    updatedAt
"""

TASK_FIELDS = """
    id
    title
    bodyV2 {
      markdown
    }
    status
    dueAt
    createdAt
    updatedAt
"""

ATTACHMENT_FIELDS = """
    id
    name
    fullPath
    type
    createdAt
    updatedAt
"""


def _body_v2(text: str) -> dict[str, Any]:
    blocknote = [{"type": "paragraph", "content": [{"type": "text", "text": text}]}]
    return {"markdown": f"{text}\n", "blocknote": json.dumps(blocknote)}


def _note_from_node(node: dict) -> NoteRead:
    body = node.get("bodyV2") or {}
    return NoteRead(
        id=node["id"],
        title=node.get("title") or "",
        body=(body.get("markdown") or "").rstrip("\n"),
        created_at=node.get("createdAt"),
        updated_at=node.get("updatedAt"),
    )


def _task_from_node(node: dict, lead: Optional[dict] = None) -> TaskRead:
    body = node.get("bodyV2") or {}
    markdown = body.get("markdown")
    return TaskRead(
        id=node["id"],
        title=node.get("title"),
        body=markdown.rstrip("\n") if markdown else None,
        status=node.get("status"),
        due_at=node.get("dueAt"),
        lead_id=(lead or {}).get("id"),
        lead_name=(lead or {}).get("name"),
        created_at=node.get("createdAt"),
        updated_at=node.get("updatedAt"),
    )


def _is_not_found(errors: list[Any]) -> bool:
    for error in errors:
        if not isinstance(error, dict):
            continue
        code = (error.get("extensions") or {}).get("code", "")
        message = str(error.get("message", "")).lower()
        if code == "NOT_FOUND" or "not found" in message:
            return True
    return False


class TwentyClient:
    """Async client for one tenant's Twenty CRM workspace.

    Use as ``async with TwentyClient(url, key) as client:`` so the
    underlying connection pool is closed.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.graphql_url = f"{self.api_url}/graphql"
        if timeout is None:
            timeout = get_settings().remote_timeout_seconds
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    async def __aenter__(self) -> "TwentyClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.post(self.graphql_url, **kwargs)
        except httpx.TimeoutException as exc:
            raise RemoteCRMError(f"Twenty CRM request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise RemoteCRMError(f"Twenty CRM request failed: {exc}") from exc

    @staticmethod
    def _parse(response: httpx.Response) -> dict[str, Any]:
        if response.status_code == 404:
            raise RemoteNotFoundError(f"Twenty CRM API error (404): {response.text}", status_code=404)
        if not response.is_success:
            raise RemoteCRMError(
                f"Twenty CRM API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        try:
            result = response.json()
        except ValueError as exc:
            raise RemoteCRMError("Twenty CRM returned a non-JSON response", status_code=response.status_code) from exc
        errors = result.get("errors")
        if errors:
            error_cls = RemoteNotFoundError if _is_not_found(errors) else RemoteCRMError
            raise error_cls(f"GraphQL errors: {json.dumps(errors)}", status_code=response.status_code, errors=errors)
        return result.get("data") or {}

    async def request(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        response = await self._post(json={"query": query, "variables": variables or {}})
        return self._parse(response)

    # Leads

    async def list_leads(self, sales_rep: Optional[str] = None, limit: int = 1000) -> list[Lead]:
        """Fetch every lead, then filter by sales rep label in memory."""
        query = f"""
        query GetLeads($limit: Int) {{
          leads(first: $limit) {{
            edges {{
              node {{{LEAD_NODE_FIELDS}}}
            }}
          }}
        }}
        """
        data = await self.request(query, {"limit": limit})
        edges = (data.get("leads") or {}).get("edges") or []
        leads = [node_to_lead(edge["node"]) for edge in edges]
        if sales_rep:
            leads = [lead for lead in leads if lead.sales_rep == sales_rep]
        logger.info("Fetched %d leads from Twenty CRM", len(leads))
        return leads

    async def create_lead(self, lead: Lead) -> Lead:
        mutation = f"""
        mutation CreateLead($data: LeadCreateInput!) {{
          createLead(data: $data) {{{LEAD_NODE_FIELDS}}}
        }}
        """
        data = await self.request(mutation, {"data": lead_to_remote_input(lead)})
        node = data.get("createLead")
        if not node:
            raise RemoteCRMError("Twenty CRM did not return the created lead")
        return node_to_lead(node)

    async def update_lead(self, lead_id: str, updates: "Lead | dict[str, Any]") -> Lead:
        """Update a lead. ``updates`` is a full Lead or a dict of internal field names."""
        if isinstance(updates, Lead):
            payload = lead_to_remote_input(updates)
        else:
            payload = build_remote_input(updates)
        mutation = f"""
        mutation UpdateLead($id: UUID!, $data: LeadUpdateInput!) {{
          updateLead(id: $id, data: $data) {{{LEAD_NODE_FIELDS}}}
        }}
        """
        data = await self.request(mutation, {"id": lead_id, "data": payload})
        node = data.get("updateLead")
        if not node:
            raise RemoteNotFoundError(f"Lead {lead_id} not found in Twenty CRM")
        return node_to_lead(node)

    async def delete_lead(self, lead_id: str) -> None:
        mutation = """
        mutation DeleteLead($id: UUID!) {
          deleteLead(id: $id) {
            id
          }
        }
        """
        await self.request(mutation, {"id": lead_id})

    async def get_enum_values(self, type_name: str) -> list[str]:
        query = """
        query GetEnum($name: String!) {
          __type(name: $name) {
            name
            enumValues {
              name
            }
          }
        }
        """
        data = await self.request(query, {"name": type_name})
        enum_type = data.get("__type") or {}
        return [value["name"] for value in enum_type.get("enumValues") or []]

    async def get_lead_field_enums(self, field_names: list[str]) -> dict[str, list[str]]:
        """Enum values of the named ``Lead`` fields; non-enum fields come back empty."""
        query = """
        query GetLeadEnums {
          __type(name: "Lead") {
            name
            fields {
              name
              type {
                name
                kind
                enumValues {
                  name
                }
              }
            }
          }
        }
        """
        data = await self.request(query)
        fields = (data.get("__type") or {}).get("fields") or []
        enums: dict[str, list[str]] = {name: [] for name in field_names}
        for field in fields:
            enum_values = (field.get("type") or {}).get("enumValues")
            if field.get("name") in enums and enum_values:
                enums[field["name"]] = [value["name"] for value in enum_values]
        return enums

    # Notes

    async def get_notes_for_lead(self, lead_id: str) -> list[NoteRead]:
        query = f"""
        query GetNotesForLead($leadId: UUID!) {{
          noteTargets(filter: {{ leadId: {{ eq: $leadId }} }}) {{
            edges {{
              node {{
                id
                note {{{NOTE_FIELDS}}}
              }}
            }}
          }}
        }}
        """
        data = await self.request(query, {"leadId": lead_id})
        edges = (data.get("noteTargets") or {}).get("edges") or []
        return [_note_from_node(edge["node"]["note"]) for edge in edges if edge["node"].get("note")]

    async def create_note_for_lead(self, lead_id: str, title: str, body: str) -> NoteRead:
        """Create a note, then link it to the lead.

        A failed link is logged and the unlinked note is still returned.
        """
        create_mutation = f"""
        mutation CreateNote($title: String, $bodyV2: RichTextV2CreateInput!) {{
          createNote(data: {{ title: $title, bodyV2: $bodyV2 }}) {{{NOTE_FIELDS}}}
        }}
        """
        data = await self.request(create_mutation, {"title": title or "Note", "bodyV2": _body_v2(body)})
        node = data.get("createNote")
        if not node:
            raise RemoteCRMError("Twenty CRM did not return the created note")

        link_mutation = """
        mutation CreateNoteTarget($noteId: UUID!, $leadId: UUID!) {
          createNoteTarget(data: { noteId: $noteId, leadId: $leadId }) {
            id
          }
        }
        """
        try:
            await self.request(link_mutation, {"noteId": node["id"], "leadId": lead_id})
        except RemoteCRMError as exc:
            logger.error("Note %s created but linking to lead %s failed: %s", node["id"], lead_id, exc)
        return _note_from_node(node)

    # Tasks

    async def get_tasks_for_lead(self, lead_id: str) -> list[TaskRead]:
        query = f"""
        query GetTasksForLead($leadId: UUID!) {{
          taskTargets(filter: {{ leadId: {{ eq: $leadId }} }}, orderBy: {{ createdAt: DescNullsLast }}) {{
            edges {{
              node {{
                id
                task {{{TASK_FIELDS}}}
              }}
            }}
          }}
        }}
        """
        data = await self.request(query, {"leadId": lead_id})
        edges = (data.get("taskTargets") or {}).get("edges") or []
        return [
            _task_from_node(edge["node"]["task"], {"id": lead_id})
            for edge in edges
            if edge["node"].get("task")
        ]

    async def list_tasks(self, sales_rep: Optional[str] = None) -> list[TaskRead]:
        """All tasks linked to a lead, optionally only for leads of one sales rep."""
        query = f"""
        query GetAllTasks {{
          taskTargets(orderBy: {{ createdAt: DescNullsLast }}) {{
            edges {{
              node {{
                id
                task {{{TASK_FIELDS}}}
                lead {{
                  id
                  name
                  salesRep
                }}
              }}
            }}
          }}
        }}
        """
        data = await self.request(query)
        edges = (data.get("taskTargets") or {}).get("edges") or []
        tasks = []
        for edge in edges:
            node = edge["node"]
            lead = node.get("lead")
            if not node.get("task") or not lead:
                continue
            if sales_rep and lead.get("salesRep") != sales_rep:
                continue
            tasks.append(_task_from_node(node["task"], lead))
        return tasks

    async def create_task(
        self,
        lead_id: str,
        title: str,
        body: Optional[str] = None,
        status: Optional[str] = None,
        due_at: Optional[datetime] = None,
    ) -> TaskRead:
        task_data: dict[str, Any] = {"title": title}
        if body:
            task_data["bodyV2"] = _body_v2(body)
        if status:
            task_data["status"] = status
        if due_at:
            task_data["dueAt"] = due_at.isoformat()

        mutation = f"""
        mutation CreateTask($taskData: TaskCreateInput!) {{
          createTask(data: $taskData) {{{TASK_FIELDS}}}
        }}
        """
        data = await self.request(mutation, {"taskData": task_data})
        node = data.get("createTask")
        if not node:
            raise RemoteCRMError("Twenty CRM did not return the created task")

        link_mutation = """
        mutation CreateTaskTarget($data: TaskTargetCreateInput!) {
          createTaskTarget(data: $data) {
            id
          }
        }
        """
        try:
            await self.request(link_mutation, {"data": {"taskId": node["id"], "leadId": lead_id}})
        except RemoteCRMError as exc:
            logger.error("Task %s created but linking to lead %s failed: %s", node["id"], lead_id, exc)
        return _task_from_node(node, {"id": lead_id})

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> TaskRead:
        task_data: dict[str, Any] = {}
        for field, value in updates.items():
            if field == "body":
                task_data["bodyV2"] = _body_v2(value or "")
            elif field == "due_at":
                task_data["dueAt"] = value.isoformat() if isinstance(value, datetime) else value
            else:
                task_data[field] = value

        mutation = f"""
        mutation UpdateTask($taskId: UUID!, $data: TaskUpdateInput!) {{
          updateTask(id: $taskId, data: $data) {{{TASK_FIELDS}}}
        }}
        """
        data = await self.request(mutation, {"taskId": task_id, "data": task_data})
        node = data.get("updateTask")
        if not node:
            raise RemoteNotFoundError(f"Task {task_id} not found in Twenty CRM")
        return _task_from_node(node)

    # Attachments

    async def list_attachments(self, lead_id: str) -> list[AttachmentRead]:
        query = f"""
        query GetAttachments($leadId: UUID!) {{
          attachments(filter: {{ leadId: {{ eq: $leadId }} }}) {{
            edges {{
              node {{{ATTACHMENT_FIELDS}}}
            }}
          }}
        }}
        """
        data = await self.request(query, {"leadId": lead_id})
        edges = (data.get("attachments") or {}).get("edges") or []
        return [AttachmentRead.model_validate(edge["node"]) for edge in edges]

    async def upload_attachment(self, lead_id: str, filename: str, content: bytes, mime_type: str) -> AttachmentRead:
        """Attach a file to a lead in three steps.

        1. create the attachment record to obtain its id
        2. upload the bytes as a GraphQL multipart request to obtain a path
        3. patch the attachment record with that path

        If step 2 or 3 fails the record from step 1 is deleted before the
        ``AttachmentUploadError`` is raised.
        """
        create_mutation = f"""
        mutation CreateAttachment($leadId: UUID!, $fileName: String!, $mimeType: String!) {{
          createAttachment(data: {{ name: $fileName, type: $mimeType, leadId: $leadId }}) {{{ATTACHMENT_FIELDS}}}
        }}
        """
        try:
            data = await self.request(
                create_mutation,
                {"leadId": lead_id, "fileName": filename, "mimeType": mime_type},
            )
            attachment = data.get("createAttachment")
            if not attachment:
                raise RemoteCRMError("no attachment returned")
        except RemoteCRMError as exc:
            raise AttachmentUploadError(1, exc.message, status_code=exc.status_code) from exc
        attachment_id = attachment["id"]
        logger.info("Attachment %s created for lead %s", attachment_id, lead_id)

        operations = {
            "query": """
            mutation UploadFile($file: Upload!, $fileFolder: FileFolder) {
              uploadFile(file: $file, fileFolder: $fileFolder) {
                path
              }
            }
            """,
            "variables": {"file": None, "fileFolder": "Attachment"},
        }
        try:
            response = await self._post(
                data={"operations": json.dumps(operations), "map": json.dumps({"0": ["variables.file"]})},
                files={"0": (filename, content, mime_type)},
            )
            upload = self._parse(response).get("uploadFile") or {}
            file_path = upload.get("path")
            if not file_path:
                raise RemoteCRMError("upload returned no file path")
        except RemoteCRMError as exc:
            await self._discard_attachment(attachment_id)
            raise AttachmentUploadError(2, exc.message, status_code=exc.status_code, attachment_id=attachment_id) from exc

        update_mutation = f"""
        mutation UpdateAttachment($id: UUID!, $fullPath: String!) {{
          updateAttachment(id: $id, data: {{ fullPath: $fullPath }}) {{{ATTACHMENT_FIELDS}}}
        }}
        """
        try:
            data = await self.request(update_mutation, {"id": attachment_id, "fullPath": file_path})
            final = data.get("updateAttachment")
            if not final:
                raise RemoteCRMError("no attachment returned")
        except RemoteCRMError as exc:
            await self._discard_attachment(attachment_id)
            raise AttachmentUploadError(3, exc.message, status_code=exc.status_code, attachment_id=attachment_id) from exc

        return AttachmentRead.model_validate(final)

    async def _discard_attachment(self, attachment_id: str) -> None:
        mutation = """
        mutation DeleteAttachment($id: UUID!) {
          deleteAttachment(id: $id) {
            id
          }
        }
        """
        try:
            await self.request(mutation, {"id": attachment_id})
            logger.info("Removed orphaned attachment %s", attachment_id)
        except RemoteCRMError as exc:
            logger.error("Could not remove orphaned attachment %s: %s", attachment_id, exc)
