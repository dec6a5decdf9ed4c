"""HTTP surface: camelCase payloads, status codes and error bodies."""

from __future__ import annotations


def create_slot(client, seed, **overrides) -> dict:
    body = {
        "branchId": seed.branch,
        "timeframeId": seed.timeframe,
        "slotTypeId": seed.slot_type,
        "weekDate": 1,
    }
    body.update(overrides)
    resp = client.post("/BranchSlot", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


# --- slots ---

def test_create_slot_derives_week_date(client, seed) -> None:
    slot = create_slot(client, seed, weekDate=4, date="2025-06-02")
    assert slot["weekDate"] == 1
    assert slot["date"] == "2025-06-02"
    assert slot["status"] == "Available"
    assert slot["timeframeName"] == "Morning"
    assert slot["slotTypeName"] == "Playgroup"


def test_create_slot_accepts_offset_timestamps(client, seed) -> None:
    slot = create_slot(client, seed, date="2025-06-02T00:00:00.000+07:00")
    assert slot["date"] == "2025-06-02"
    slot = create_slot(client, seed, date="2025-06-01T17:30:00Z")
    assert slot["date"] == "2025-06-02"


def test_create_slot_week_date_out_of_range(client, seed) -> None:
    resp = client.post("/BranchSlot", json={
        "branchId": seed.branch,
        "timeframeId": seed.timeframe,
        "slotTypeId": seed.slot_type,
        "weekDate": 9,
    })
    assert resp.status_code == 422
    assert resp.json() == {
        "kind": "ValidationError",
        "message": "weekDate must be in 0..6, got 9",
        "field": "weekDate",
    }


def test_create_slot_missing_branch(client, seed) -> None:
    resp = client.post("/BranchSlot", json={"timeframeId": seed.timeframe, "weekDate": 1})
    assert resp.status_code == 422
    body = resp.json()
    assert body["kind"] == "ValidationError"
    assert body["field"] == "branchId"


def test_create_slot_malformed_date(client, seed) -> None:
    resp = client.post("/BranchSlot", json={
        "branchId": seed.branch,
        "timeframeId": seed.timeframe,
        "slotTypeId": seed.slot_type,
        "date": "02/06/2025",
    })
    assert resp.status_code == 422
    assert resp.json()["field"] == "date"


def test_update_slot_partial(client, seed) -> None:
    slot = create_slot(client, seed, weekDate=2)
    resp = client.put(f"/BranchSlot/{slot['id']}", json={"status": "Maintenance"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "Maintenance"
    assert resp.json()["weekDate"] == 2


def test_update_with_null_status_is_rejected(client, seed) -> None:
    slot = create_slot(client, seed, status="Occupied")
    resp = client.put(f"/BranchSlot/{slot['id']}", json={"status": None})
    assert resp.status_code == 422
    assert resp.json()["field"] == "status"
    assert client.get(f"/BranchSlot/{slot['id']}").json()["status"] == "Occupied"


def test_get_slot_includes_rooms_and_staff(client, seed) -> None:
    slot = create_slot(client, seed)
    client.post("/BranchSlot/assign-rooms", json={"branchSlotId": slot["id"], "roomIds": [seed.room_a]})
    client.post("/BranchSlot/assign-staff", json={
        "branchSlotId": slot["id"],
        "userId": seed.alice,
        "roomId": seed.room_a,
        "name": "Lead",
    })

    resp = client.get(f"/BranchSlot/{slot['id']}")
    assert resp.status_code == 200
    body = resp.json()
    assert [r["roomId"] for r in body["rooms"]] == [seed.room_a]
    assert body["rooms"][0]["staff"][0]["staffId"] == seed.alice
    assert body["staff"][0]["name"] == "Lead"
    assert body["staff"][0]["roomName"] == "Room A"


def test_get_unknown_slot(client, seed) -> None:
    resp = client.get("/BranchSlot/missing")
    assert resp.status_code == 404
    assert resp.json()["kind"] == "NotFoundError"


def test_delete_slot(client, seed) -> None:
    slot = create_slot(client, seed)
    assert client.delete(f"/BranchSlot/{slot['id']}").status_code == 204
    assert client.get(f"/BranchSlot/{slot['id']}").status_code == 404
    assert client.delete(f"/BranchSlot/{slot['id']}?hard=true").status_code == 404


def test_paged_listing(client, seed) -> None:
    for week_date in (3, 1, 1):
        create_slot(client, seed, weekDate=week_date)

    resp = client.get("/BranchSlot/paged", params={"weekDate": 1, "pageSize": 1})
    body = resp.json()
    assert resp.status_code == 200
    assert body["totalCount"] == 2
    assert body["totalPages"] == 2
    assert body["pageIndex"] == 1
    assert len(body["items"]) == 1


def test_paged_listing_rejects_bad_week_date(client, seed) -> None:
    resp = client.get("/BranchSlot/paged", params={"weekDate": 9})
    assert resp.status_code == 422
    assert resp.json()["field"] == "weekDate"


# --- assignments ---

def test_assign_rooms_and_page_them(client, seed) -> None:
    slot = create_slot(client, seed)
    resp = client.post(
        "/BranchSlot/assign-rooms",
        json={"branchSlotId": slot["id"], "roomIds": [seed.room_b, seed.room_a, seed.room_a]},
    )
    assert resp.status_code == 200
    assert [r["roomName"] for r in resp.json()["rooms"]] == ["Room A", "Room B"]

    page = client.get(f"/BranchSlot/{slot['id']}/rooms", params={"pageIndex": 2, "pageSize": 1}).json()
    assert [r["roomId"] for r in page["items"]] == [seed.room_b]
    assert page["totalCount"] == 2


def test_assign_same_staff_twice_conflicts(client, seed) -> None:
    slot = create_slot(client, seed)
    body = {"branchSlotId": slot["id"], "userId": seed.alice}
    assert client.post("/BranchSlot/assign-staff", json=body).status_code == 200

    resp = client.post("/BranchSlot/assign-staff", json=body)
    assert resp.status_code == 409
    assert resp.json()["kind"] == "ConflictError"
    assert resp.json()["field"] == "userId"


def test_assign_staff_to_room_outside_slot(client, seed) -> None:
    slot = create_slot(client, seed)
    resp = client.post("/BranchSlot/assign-staff", json={
        "branchSlotId": slot["id"],
        "userId": seed.alice,
        "roomId": seed.room_b,
    })
    assert resp.status_code == 422
    assert resp.json()["field"] == "roomId"


def test_unassign_room_reports_cascade(client, seed) -> None:
    slot = create_slot(client, seed)
    client.post("/BranchSlot/assign-rooms", json={"branchSlotId": slot["id"], "roomIds": [seed.room_a]})
    client.post("/BranchSlot/assign-staff", json={
        "branchSlotId": slot["id"], "userId": seed.alice, "roomId": seed.room_a,
    })
    client.post("/BranchSlot/assign-staff", json={"branchSlotId": slot["id"], "userId": seed.bob})

    resp = client.delete(f"/BranchSlot/{slot['id']}/rooms/{seed.room_a}")
    assert resp.json() == {"branchSlotId": slot["id"], "roomId": seed.room_a, "removedStaffCount": 1}

    view = client.get(f"/BranchSlot/{slot['id']}/assignments").json()
    assert view["rooms"] == []
    assert [s["staffId"] for s in view["staff"]] == [seed.bob]
    assert view["groups"][0]["room"] is None


def test_unassign_staff(client, seed) -> None:
    slot = create_slot(client, seed)
    client.post("/BranchSlot/assign-staff", json={"branchSlotId": slot["id"], "userId": seed.alice})

    first = client.delete(f"/BranchSlot/{slot['id']}/staff/{seed.alice}").json()
    second = client.delete(f"/BranchSlot/{slot['id']}/staff/{seed.alice}").json()
    assert first["removed"] is True
    assert second["removed"] is False


# --- availability ---

def test_available_for_student(client, seed) -> None:
    dated = create_slot(client, seed, date="2025-03-10")
    create_slot(client, seed, slotTypeId=seed.other_slot_type)

    page = client.get(
        f"/BranchSlot/available-for-student/{seed.student}", params={"date": "2025-03-10"}
    ).json()
    assert [s["id"] for s in page["items"]] == [dated["id"]]

    later = client.get(
        f"/BranchSlot/available-for-student/{seed.student}", params={"date": "2025-03-17"}
    ).json()
    assert later["items"] == []
    assert later["totalCount"] == 0


def test_available_for_unknown_student(client, seed) -> None:
    resp = client.get("/BranchSlot/available-for-student/nobody", params={"date": "2025-03-10"})
    assert resp.status_code == 404
    assert resp.json()["field"] == "studentId"


# --- references ---

def test_reference_catalogs(client, seed) -> None:
    timeframes = client.get("/Timeframe").json()
    assert [t["id"] for t in timeframes] == [seed.timeframe, seed.late_timeframe]
    assert timeframes[0]["startTime"] == "08:00"

    rooms = client.get("/Room", params={"branchId": seed.branch}).json()
    assert [r["name"] for r in rooms] == ["Room A", "Room B"]
    assert rooms[0]["facilityName"] == "Ground floor"

    staff = client.get("/Staff", params={"branchId": seed.other_branch}).json()
    assert [s["fullName"] for s in staff] == ["Dan Pham"]

    assert {s["name"] for s in client.get("/SlotType").json()} == {"Playgroup", "Nap time"}
    assert len(client.get("/StudentLevel").json()) == 2


def test_health(client, seed) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_app_wires_routes_and_lifespan() -> None:
    from backend.app.main import app, lifespan

    paths = {route.path for route in app.routes}
    assert {"/BranchSlot", "/BranchSlot/paged", "/Timeframe", "/health"} <= paths
    assert app.router.lifespan_context is not None
    assert callable(lifespan)
