"""API tests for records, the status-change flow and exports."""

import io

from openpyxl import load_workbook

from tests.conftest import make_location_tree, make_record


def create(client, location, **overrides):
    resp = client.post("/api/records", json=make_record(location, **overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestRecordCrud:

    def test_create_and_get(self, client):
        loc = make_location_tree(client)
        record = create(client, loc)
        assert record["pr_number"] == "PR-2024-001"
        assert record["stack_number"] == 1
        assert record["status"] == "archived"

        resp = client.get(f"/api/records/{record['id']}")
        assert resp.status_code == 200
        assert resp.json()["description"] == "Office chairs"

    def test_missing_fields_message(self, client):
        loc = make_location_tree(client)
        resp = client.post("/api/records", json=make_record(loc, pr_number=""))
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"
        assert resp.json()["message"] == "Please fill in all required fields"

    def test_get_unknown(self, client):
        resp = client.get("/api/records/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "RECORD_NOT_FOUND"

    def test_update(self, client):
        loc = make_location_tree(client)
        record = create(client, loc)
        resp = client.put(f"/api/records/{record['id']}", json={"description": "Standing desks"})
        assert resp.status_code == 200
        assert resp.json()["description"] == "Standing desks"
        assert resp.json()["edited_by"] is not None

    def test_update_borrower_fields_follow_status(self, client):
        loc = make_location_tree(client)
        borrowed = create(client, loc, status="borrowed", borrowed_by="Ana", division="IT")
        blanked = client.put(f"/api/records/{borrowed['id']}", json={"borrowed_by": "", "division": ""})
        assert blanked.status_code == 400
        assert client.get(f"/api/records/{borrowed['id']}").json()["division"] == "IT"

        archived = create(client, loc)
        stamped = client.put(f"/api/records/{archived['id']}", json={"borrowed_by": "Ann"})
        assert stamped.status_code == 400
        assert client.get(f"/api/records/{archived['id']}").json()["borrowed_by"] is None

    def test_delete(self, client):
        loc = make_location_tree(client)
        record = create(client, loc)
        assert client.delete(f"/api/records/{record['id']}").status_code == 204
        assert client.get(f"/api/records/{record['id']}").status_code == 404

    def test_bulk_delete(self, client):
        loc = make_location_tree(client)
        ids = [create(client, loc, description=f"item {i}")["id"] for i in range(2)]
        resp = client.post("/api/records/bulk-delete", json={"record_ids": ids + ["missing"]})
        body = resp.json()
        assert body["succeeded"] == 2
        assert body["failed"] == 1
        assert body["message"] == "Failed to delete some records"

    def test_stack_preview(self, client):
        loc = make_location_tree(client)
        create(client, loc)
        resp = client.get("/api/records/stack-preview", params={"folder_id": loc["folder_id"]})
        assert resp.json() == {"folder_id": loc["folder_id"], "stack_number": 2}

    def test_stack_preview_unknown_folder(self, client):
        resp = client.get("/api/records/stack-preview", params={"folder_id": "nope"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"


class TestRecordList:

    def test_list_items_carry_display_fields(self, client):
        loc = make_location_tree(client)
        create(client, loc)
        body = client.get("/api/records").json()
        assert body["total"] == 1
        assert body["loading"] is False
        item = body["items"][0]
        assert item["location"] == "S1-C1-F1"
        assert item["folder_color"] == "#FF6B6B"
        assert item["status_label"] == "Archived"

    def test_folder_color_used_when_set(self, client):
        loc = make_location_tree(client)
        client.put(f"/api/locations/folders/{loc['folder_id']}", json={"color": "#22c55e"})
        create(client, loc)
        item = client.get("/api/records").json()["items"][0]
        assert item["folder_color"] == "#22c55e"

    def test_pagination(self, client):
        loc = make_location_tree(client)
        for i in range(3):
            create(client, loc, description=f"item {i}")
        body = client.get("/api/records", params={"page": 2, "page_size": 2}).json()
        assert body["page_count"] == 2
        assert len(body["items"]) == 1

    def test_search_and_status_filter(self, client):
        loc = make_location_tree(client)
        create(client, loc, description="Laptops")
        create(client, loc, description="Chairs", status="borrowed", borrowed_by="Ana", division="IT")

        assert client.get("/api/records", params={"search": "laptop"}).json()["total"] == 1
        borrowed = client.get("/api/records", params={"status": "borrowed"}).json()
        assert [r["description"] for r in borrowed["items"]] == ["Chairs"]

    def test_sort_by_description(self, client):
        loc = make_location_tree(client)
        for name in ["beta", "Alpha", "gamma"]:
            create(client, loc, description=name)
        body = client.get("/api/records", params={"sort": "description", "direction": "desc"}).json()
        assert [r["description"] for r in body["items"]] == ["gamma", "beta", "Alpha"]

    def test_bare_folder_id_resolves_full_selection(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        create(client, loc)
        create(client, other)
        body = client.get("/api/records", params={"folder_id": other["folder_id"]}).json()
        assert body["total"] == 1
        assert body["selection"] == other

    def test_mismatched_selection_matches_nothing(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        create(client, loc)
        body = client.get(
            "/api/records",
            params={"shelf_id": loc["shelf_id"], "cabinet_id": other["cabinet_id"]},
        ).json()
        assert body["selection"] == {"shelf_id": loc["shelf_id"], "cabinet_id": None, "folder_id": None}
        assert body["total"] == 0

    def test_cabinet_alone_filters(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        create(client, loc, description="Here")
        create(client, other, description="Elsewhere")
        body = client.get("/api/records", params={"cabinet_id": loc["cabinet_id"]}).json()
        assert body["total"] == 1
        assert [r["description"] for r in body["items"]] == ["Here"]

    def test_folder_with_shelf_but_no_cabinet(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        create(client, loc, description="Here")
        create(client, other, description="Elsewhere")
        body = client.get(
            "/api/records", params={"shelf_id": loc["shelf_id"], "folder_id": loc["folder_id"]}
        ).json()
        assert [r["description"] for r in body["items"]] == ["Here"]
        crossed = client.get(
            "/api/records", params={"shelf_id": loc["shelf_id"], "folder_id": other["folder_id"]}
        ).json()
        assert crossed["total"] == 0

    def test_unknown_ids_match_nothing(self, client):
        loc = make_location_tree(client)
        create(client, loc)
        for key in ("shelf_id", "cabinet_id", "folder_id"):
            body = client.get("/api/records", params={key: "no-such-id"}).json()
            assert body["total"] == 0, key

    def test_invalid_page_size(self, client):
        assert client.get("/api/records", params={"page_size": 0}).status_code == 422


class TestStatusChangeFlow:

    def test_borrow_end_to_end(self, client):
        loc = make_location_tree(client)
        record = create(client, loc)

        started = client.post(f"/api/records/{record['id']}/status-change", json={"status": "borrowed"})
        assert started.status_code == 202
        token = started.json()["token"]
        assert started.json()["state"] == "confirming"
        assert client.get(f"/api/records/{record['id']}").json()["status"] == "archived"

        confirmed = client.post(f"/api/status-changes/{token}/confirm")
        assert confirmed.json()["state"] == "editing_details"
        assert confirmed.json()["record"] is None

        rejected = client.post(f"/api/status-changes/{token}/details", json={"borrowed_by": "Ana", "division": ""})
        assert rejected.status_code == 400
        assert rejected.json()["message"] == "Please fill in all required fields"

        done = client.post(
            f"/api/status-changes/{token}/details", json={"borrowed_by": "Ana", "division": "Finance"}
        )
        assert done.status_code == 200
        assert done.json()["state"] == "completed"
        assert done.json()["record"]["status"] == "borrowed"
        assert done.json()["record"]["stack_number"] is None
        assert client.get(f"/api/status-changes/{token}").status_code == 404

    def test_return_is_written_on_confirm(self, client):
        loc = make_location_tree(client)
        record = create(client, loc, status="borrowed", borrowed_by="Ana", division="IT")
        token = client.post(
            f"/api/records/{record['id']}/status-change", json={"status": "archived"}
        ).json()["token"]
        done = client.post(f"/api/status-changes/{token}/confirm").json()
        assert done["state"] == "completed"
        assert done["record"]["status"] == "archived"
        assert done["record"]["stack_number"] == 1

    def test_same_status_rejected(self, client):
        loc = make_location_tree(client)
        record = create(client, loc)
        resp = client.post(f"/api/records/{record['id']}/status-change", json={"status": "archived"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_TRANSITION"

    def test_cancel(self, client):
        loc = make_location_tree(client)
        record = create(client, loc)
        token = client.post(
            f"/api/records/{record['id']}/status-change", json={"status": "borrowed"}
        ).json()["token"]
        resp = client.delete(f"/api/status-changes/{token}")
        assert resp.json()["state"] == "cancelled"
        assert client.post(f"/api/status-changes/{token}/confirm").status_code == 404
        assert client.get(f"/api/records/{record['id']}").json()["status"] == "archived"


class TestExports:

    def test_csv(self, client):
        loc = make_location_tree(client)
        create(client, loc)
        resp = client.get("/api/records/export/csv")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="procurement_records_' in resp.headers["content-disposition"]
        lines = resp.text.strip().splitlines()
        assert lines[0] == "PR Number,Description,Location,Shelf,Cabinet,Folder,Status,Date Added,Created At"
        assert lines[1].startswith("PR-2024-001,Office chairs,S1-C1-F1,Shelf 1,Cabinet 1,Folder 1,Archived,")

    def test_csv_uses_list_filters(self, client):
        loc = make_location_tree(client)
        create(client, loc, description="Laptops")
        create(client, loc, description="Chairs")
        resp = client.get("/api/records/export/csv", params={"search": "laptop"})
        assert len(resp.text.strip().splitlines()) == 2

    def test_csv_location_filter_is_exact(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        create(client, loc, description="Here")
        create(client, other, description="Elsewhere")

        lines = client.get(
            "/api/records/export/csv", params={"cabinet_id": loc["cabinet_id"]}
        ).text.strip().splitlines()
        assert len(lines) == 2
        assert "S1-C1-F1" in lines[1]
        assert not any("S2-C2-F2" in line for line in lines)

        unknown = client.get("/api/records/export/csv", params={"shelf_id": "no-such-shelf"})
        assert len(unknown.text.strip().splitlines()) == 1

    def test_xlsx(self, client):
        loc = make_location_tree(client)
        create(client, loc)
        resp = client.get("/api/records/export/xlsx")
        assert resp.status_code == 200
        assert "procurement-records-" in resp.headers["content-disposition"]
        sheet = load_workbook(io.BytesIO(resp.content)).active
        assert sheet.title == "Procurements"
        assert sheet.cell(row=1, column=1).value == "PR Number"
        assert sheet.cell(row=2, column=3).value == "S1-C1-F1"
        assert sheet.cell(row=2, column=7).value == "furniture"

    def test_pdf_report(self, client):
        loc = make_location_tree(client)
        create(client, loc)
        body = client.get("/api/records/export/pdf", params={"variant": "full"}).json()
        assert body["title"] == "Procurement Records - Full Report"
        assert body["headers"][0] == "PR #"
        assert body["total"] == 1
        assert body["rows"][0][2] == "S1-C1-F1"
        assert body["filename"].startswith("procurement-full-")
