"""Form editing session with autosave and change polling.

The session holds a local copy of one form. Local edits mark it dirty and
are saved once no further edit arrived for AUTOSAVE_DELAY_SECONDS. While the
copy is clean, the server is polled every POLL_INTERVAL_SECONDS and the copy
is replaced when the server's updatedAt moved forward. A dirty copy is never
overwritten by polling.

Nothing here runs on its own: the caller drives the session by calling
tick() from its event loop or timer.
"""

import copy
import logging
import time
from datetime import datetime
from typing import Any, Callable

from insurance_portal.client.api import PortalClient
from insurance_portal.client.errors import ClientError, ConflictError

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY_SECONDS = 5.0
POLL_INTERVAL_SECONDS = 5.0

FORM_FIELDS = ("clientName", "email", "status")
ITEM_FIELDS = (
    "id",
    "insuranceType",
    "package",
    "requestType",
    "currentPolicyNumber",
    "effectiveDate",
    "duration",
    "price",
)
DOCUMENT_FIELDS = ("id", "name", "fileUrl")


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def build_update_payload(form: dict) -> dict:
    """Project a form read from the API onto the PUT body, keeping ids for reconciliation."""
    payload: dict[str, Any] = {field: form.get(field) for field in FORM_FIELDS}
    if form.get("version") is not None:
        payload["version"] = form["version"]
    items = []
    for item in form.get("items") or []:
        entry = {field: item.get(field) for field in ITEM_FIELDS if field in item}
        entry["documents"] = [
            {field: doc.get(field) for field in DOCUMENT_FIELDS if field in doc}
            for doc in item.get("documents") or []
        ]
        items.append(entry)
    payload["items"] = items
    return payload


def build_create_payload(form: dict) -> dict:
    payload = build_update_payload(form)
    payload.pop("version", None)
    payload.pop("status", None)
    return payload


class FormEditorSession:
    """
    Local copy of a form plus its save/poll state.

    Args:
        client: logged-in PortalClient
        form: form as returned by the API, or None for a new form
        clock: monotonic time source in seconds (injectable for tests)
    """

    def __init__(
        self,
        client: PortalClient,
        form: dict | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        autosave_delay: float = AUTOSAVE_DELAY_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self.client = client
        self.clock = clock
        self.autosave_delay = autosave_delay
        self.poll_interval = poll_interval

        self.form: dict = copy.deepcopy(form) if form else {"clientName": "", "items": []}
        self.dirty = False
        self.last_error: ClientError | None = None
        self.last_saved_at = parse_timestamp(self.form.get("updatedAt"))
        self._last_edit_at: float | None = None
        self._last_poll_at = clock()

    @classmethod
    def open(cls, client: PortalClient, form_id: str, **kwargs) -> "FormEditorSession":
        return cls(client, client.get_form(form_id), **kwargs)

    @property
    def form_id(self) -> str | None:
        return self.form.get("id")

    @property
    def is_new(self) -> bool:
        return self.form_id is None

    @property
    def has_conflict(self) -> bool:
        return isinstance(self.last_error, ConflictError)

    # =========================================================================
    # Local edits
    # =========================================================================

    def _touch(self) -> None:
        self.dirty = True
        self._last_edit_at = self.clock()

    def edit(self, **fields: Any) -> None:
        """Change top-level fields, e.g. edit(clientName="Jane Doe")."""
        self.form.update(fields)
        self._touch()

    def add_item(self, item: dict) -> None:
        item = dict(item)
        item.setdefault("documents", [])
        self.form.setdefault("items", []).append(item)
        self._touch()

    def update_item(self, index: int, **fields: Any) -> None:
        self.form["items"][index].update(fields)
        self._touch()

    def remove_item(self, index: int) -> None:
        del self.form["items"][index]
        self._touch()

    def add_document(self, item_index: int, name: str, file_url: str) -> None:
        self.form["items"][item_index].setdefault("documents", []).append(
            {"name": name, "fileUrl": file_url}
        )
        self._touch()

    def remove_document(self, item_index: int, doc_index: int) -> None:
        del self.form["items"][item_index]["documents"][doc_index]
        self._touch()

    # =========================================================================
    # Server sync
    # =========================================================================

    def _replace(self, form: dict) -> None:
        self.form = form
        self.dirty = False
        self._last_edit_at = None
        self.last_saved_at = parse_timestamp(form.get("updatedAt"))

    def save(self) -> dict:
        """
        Send the local copy to the server.

        On failure the local copy is left as is and the error is raised and
        kept in last_error; no retry is scheduled until the next edit.

        Raises:
            ConflictError: someone else saved the form first
            ClientError: any other failure
        """
        try:
            if self.is_new:
                saved = self.client.create_form(build_create_payload(self.form))
            else:
                saved = self.client.update_form(self.form_id, build_update_payload(self.form))
        except ClientError as e:
            self.last_error = e
            self._last_edit_at = None
            logger.warning("Form save failed: %s", e)
            raise
        self.last_error = None
        self._replace(saved)
        return saved

    def reload(self) -> dict:
        """Discard local changes and fetch the server copy."""
        form = self.client.get_form(self.form_id)
        self.last_error = None
        self._replace(form)
        return form

    def autosave_due(self) -> bool:
        if self.is_new or not self.dirty or self._last_edit_at is None:
            return False
        return self.clock() - self._last_edit_at >= self.autosave_delay

    def poll(self) -> bool:
        """
        Refresh from the server when clean and the server copy is newer.

        Returns True when the local copy was replaced.
        """
        self._last_poll_at = self.clock()
        if self.is_new or self.dirty:
            return False
        remote = self.client.get_form(self.form_id)
        remote_updated_at = parse_timestamp(remote.get("updatedAt"))
        if remote_updated_at is None:
            return False
        if self.last_saved_at is not None and remote_updated_at <= self.last_saved_at:
            return False
        self._replace(remote)
        logger.debug("Form %s refreshed from server", self.form_id)
        return True

    def tick(self) -> None:
        """Run whatever is due: autosave first, then a poll."""
        if self.autosave_due():
            try:
                self.save()
            except ClientError as e:
                # save() already stored the error in last_error
                logger.debug("Autosave of form %s failed: %s", self.form_id, e)
        if self.clock() - self._last_poll_at >= self.poll_interval:
            try:
                self.poll()
            except ClientError as e:
                self.last_error = e
