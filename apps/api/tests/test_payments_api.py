"""Payment schedule endpoints."""
import pytest
from httpx import AsyncClient


async def _create(client: AsyncClient, client_id, **overrides):
    body = {
        "client_id": str(client_id),
        "frequency": "quarterly",
        "due_dates": ["2024-01-15", "2024-02-10"],
        "amounts": ["1000.00", "1500.00"],
        "payment_method": "upi",
    }
    body.update(overrides)
    return await client.post("/payments", json=body)


@pytest.mark.asyncio
async def test_create_and_project(editor_client: AsyncClient, test_client_record):
    created = await _create(editor_client, test_client_record.id)
    assert created.status_code == 201
    payment_id = created.json()["id"]

    response = await editor_client.get(
        f"/payments/{payment_id}/projection", params={"month": 4, "year": 2024}
    )

    assert response.status_code == 200
    assert response.json()["dates"] == ["2024-04-15"]


@pytest.mark.asyncio
async def test_projection_rejects_month_zero(editor_client: AsyncClient, test_client_record):
    created = await _create(editor_client, test_client_record.id)
    payment_id = created.json()["id"]

    response = await editor_client.get(
        f"/payments/{payment_id}/projection", params={"month": 0, "year": 2024}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_quarterly_without_amounts_is_rejected(editor_client: AsyncClient, test_client_record):
    response = await _create(editor_client, test_client_record.id, amounts=None, amount="100.00")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_mark_paid_and_filter_occurrences(editor_client: AsyncClient, test_client_record):
    created = await _create(editor_client, test_client_record.id)
    payment_id = created.json()["id"]

    paid = await editor_client.post(
        f"/payments/{payment_id}/mark-paid", json={"due_date": "2024-01-15"}
    )
    assert paid.status_code == 200
    assert paid.json()["payment_status"] == {"2024-01-15": "paid"}

    pending = await editor_client.get("/payments/occurrences", params={"status": "pending"})
    assert [row["due_date"] for row in pending.json()] == ["2024-02-10"]

    completed = await editor_client.get("/payments/occurrences", params={"status": "completed"})
    assert [row["due_date"] for row in completed.json()] == ["2024-01-15"]


@pytest.mark.asyncio
async def test_mark_paid_unknown_date(editor_client: AsyncClient, test_client_record):
    created = await _create(editor_client, test_client_record.id)
    payment_id = created.json()["id"]

    response = await editor_client.post(
        f"/payments/{payment_id}/mark-paid", json={"due_date": "2024-03-01"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_viewer_reads_but_cannot_write(
    editor_client: AsyncClient, viewer_client: AsyncClient, test_client_record
):
    created = await _create(editor_client, test_client_record.id)
    payment_id = created.json()["id"]

    assert (await viewer_client.get(f"/payments/{payment_id}")).status_code == 200
    denied = await viewer_client.post(
        f"/payments/{payment_id}/mark-paid", json={"due_date": "2024-01-15"}
    )
    assert denied.status_code == 403


@pytest.mark.asyncio
async def test_only_manager_deletes_payment(
    editor_client: AsyncClient, manager_client: AsyncClient, test_client_record
):
    created = await _create(editor_client, test_client_record.id)
    payment_id = created.json()["id"]

    assert (await editor_client.delete(f"/payments/{payment_id}")).status_code == 403
    assert (await manager_client.delete(f"/payments/{payment_id}")).status_code == 204
    assert (await manager_client.get(f"/payments/{payment_id}")).status_code == 404
