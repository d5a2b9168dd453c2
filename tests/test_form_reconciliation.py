"""Tests for item/document reconciliation on form update."""
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.orm import Session

from insurance_portal.db.models import Document, Form, InsuranceItem
from insurance_portal.schemas.auth import UserSession
from insurance_portal.schemas.form import FormUpdate
from insurance_portal.services import form_service


def _session_for(user) -> UserSession:
    return UserSession(
        user_id=user.id,
        org_id=user.organization_id,
        role=user.role,
        email=user.email,
        full_name=user.full_name,
    )


def _item_payload(item_id=None, insurance_type="Household Insurance", documents=None, **extra) -> dict:
    payload = {
        "insuranceType": insurance_type,
        "package": "Basic",
        "requestType": "New Policy",
        "documents": documents or [],
    }
    if item_id is not None:
        payload["id"] = str(item_id)
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_items_reconciled_to_payload(client: AsyncClient, admin_auth, client_user, make_form, db: Session):
    """Stored {A, B, C} + payload {A (updated), D (new)} -> {A', D}."""
    form = make_form(client_user, prices=("10", "20", "30"))
    a, b, c = (item.id for item in form.items)

    response = await client.put(
        f"/api/forms/{form.id}",
        headers=admin_auth.headers,
        json={
            "items": [
                _item_payload(a, insurance_type="Health Supplement Insurance", price="11"),
                _item_payload(insurance_type="Business Legal Insurance", price="40"),
            ]
        },
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert len(items) == 2

    by_id = {i["id"]: i for i in items}
    assert by_id[str(a)]["insuranceType"] == "Health Supplement Insurance"
    assert by_id[str(a)]["price"] == "11"
    new_ids = set(by_id) - {str(a)}
    assert len(new_ids) == 1
    assert by_id[new_ids.pop()]["insuranceType"] == "Business Legal Insurance"

    db.expire_all()
    assert db.get(InsuranceItem, b) is None
    assert db.get(InsuranceItem, c) is None
    # Documents of deleted items go with them
    assert db.query(Document).join(InsuranceItem).filter(InsuranceItem.form_id == form.id).count() == 1


@pytest.mark.asyncio
async def test_items_untouched_when_absent(client: AsyncClient, client_auth, make_form):
    form = make_form(client_auth.user, prices=("10", "20"))
    response = await client.put(
        f"/api/forms/{form.id}", headers=client_auth.headers, json={"clientName": "Renamed"}
    )
    assert response.status_code == 200
    assert len(response.json()["items"]) == 2


@pytest.mark.asyncio
async def test_empty_items_removes_all(client: AsyncClient, client_auth, make_form):
    form = make_form(client_auth.user, prices=("10", "20"))
    response = await client.put(
        f"/api/forms/{form.id}", headers=client_auth.headers, json={"items": []}
    )
    assert response.json()["items"] == []


@pytest.mark.asyncio
async def test_documents_three_way_diff(client: AsyncClient, client_auth, db: Session, make_form):
    form = make_form(client_auth.user, prices=("10",))
    item = form.items[0]
    kept = item.documents[0]
    dropped = Document(name="old.pdf", file_url="/uploads/old.pdf")
    item.documents.append(dropped)
    db.commit()
    kept_id, dropped_id = kept.id, dropped.id

    response = await client.put(
        f"/api/forms/{form.id}",
        headers=client_auth.headers,
        json={
            "items": [
                _item_payload(
                    item.id,
                    documents=[
                        {"id": str(kept_id), "name": "renamed.pdf", "fileUrl": "/uploads/doc-0.pdf"},
                        {"name": "new.pdf", "fileUrl": "/uploads/new.pdf"},
                    ],
                )
            ]
        },
    )
    assert response.status_code == 200
    docs = response.json()["items"][0]["documents"]
    names = sorted(d["name"] for d in docs)
    assert names == ["new.pdf", "renamed.pdf"]
    assert str(kept_id) in {d["id"] for d in docs}

    db.expire_all()
    assert db.get(Document, dropped_id) is None


@pytest.mark.asyncio
async def test_foreign_item_id_rejected_and_nothing_changes(
    client: AsyncClient, client_auth, other_client_user, make_form, db: Session
):
    form = make_form(client_auth.user, client_name="Mine", prices=("10",))
    foreign = make_form(other_client_user, prices=("20",))
    foreign_item_id = foreign.items[0].id

    response = await client.put(
        f"/api/forms/{form.id}",
        headers=client_auth.headers,
        json={"clientName": "Changed", "items": [_item_payload(foreign_item_id)]},
    )
    assert response.status_code == 400

    db.expire_all()
    stored = db.get(Form, form.id)
    assert stored.client_name == "Mine"
    assert len(stored.items) == 1
    assert db.get(InsuranceItem, foreign_item_id).form_id == foreign.id


@pytest.mark.asyncio
async def test_unknown_document_id_rejected(client: AsyncClient, client_auth, make_form):
    form = make_form(client_auth.user, prices=("10",))
    response = await client.put(
        f"/api/forms/{form.id}",
        headers=client_auth.headers,
        json={
            "items": [
                _item_payload(
                    form.items[0].id,
                    documents=[{"id": str(uuid.uuid4()), "name": "x.pdf", "fileUrl": "/uploads/x.pdf"}],
                )
            ]
        },
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_duplicate_item_id_rejected(client: AsyncClient, client_auth, make_form):
    form = make_form(client_auth.user, prices=("10",))
    item_id = form.items[0].id
    response = await client.put(
        f"/api/forms/{form.id}",
        headers=client_auth.headers,
        json={"items": [_item_payload(item_id), _item_payload(item_id)]},
    )
    assert response.status_code == 400


def test_concurrent_write_raises_conflict(db: Session, client_user, make_form):
    """A write that lands between read and commit is detected by the version column."""
    form = make_form(client_user, client_name="Before")
    form = form_service.get_form(db, form.id)

    # Another writer commits first
    other = Session(bind=db.get_bind())
    other.execute(
        update(Form).where(Form.id == form.id).values(client_name="Other", version=Form.version + 1)
    )
    other.commit()
    other.close()

    with pytest.raises(form_service.FormVersionConflictError) as exc:
        form_service.update_form(
            db, form, _session_for(client_user), FormUpdate(client_name="After")
        )
    assert exc.value.expected == 1
    assert exc.value.actual == 2

    db.expire_all()
    assert db.get(Form, form.id).client_name == "Other"


def test_resolve_status_ignores_client_backwards_move(client_user):
    from insurance_portal.db.enums import FormStatus

    session = _session_for(client_user)
    assert form_service.resolve_status("Submitted", FormStatus.DRAFT, session) == "Submitted"
    assert form_service.resolve_status("Draft", FormStatus.SUBMITTED, session) == "Submitted"
    assert form_service.resolve_status("Draft", None, session) == "Draft"
