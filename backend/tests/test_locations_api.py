"""API tests for shelves, cabinets and folders."""

from tests.conftest import make_location_tree, make_record


class TestLocationCrud:

    def test_create_tree(self, client):
        loc = make_location_tree(client)
        assert [s["code"] for s in client.get("/api/locations/shelves").json()] == ["S1"]
        cabinets = client.get("/api/locations/cabinets", params={"shelf_id": loc["shelf_id"]}).json()
        assert [c["id"] for c in cabinets] == [loc["cabinet_id"]]
        folders = client.get("/api/locations/folders", params={"cabinet_id": loc["cabinet_id"]}).json()
        assert [f["id"] for f in folders] == [loc["folder_id"]]

    def test_blank_code_rejected(self, client):
        resp = client.post("/api/locations/shelves", json={"code": "  ", "name": "Shelf"})
        assert resp.status_code == 422

    def test_unknown_parent_rejected(self, client):
        resp = client.post("/api/locations/cabinets", json={"code": "C1", "name": "C", "shelf_id": "nope"})
        assert resp.status_code == 400
        assert resp.json()["details"] == {"field": "shelf_id"}

    def test_rename(self, client):
        loc = make_location_tree(client)
        resp = client.put(f"/api/locations/shelves/{loc['shelf_id']}", json={"name": "Main shelf"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Main shelf"
        assert resp.json()["code"] == "S1"

    def test_update_unknown(self, client):
        resp = client.put("/api/locations/folders/nope", json={"name": "x"})
        assert resp.status_code == 404
        assert resp.json()["error"] == "FOLDER_NOT_FOUND"


class TestLocationDelete:

    def test_non_empty_units_are_kept(self, client):
        loc = make_location_tree(client)
        client.post("/api/records", json=make_record(loc))

        for path in (
            f"/api/locations/shelves/{loc['shelf_id']}",
            f"/api/locations/cabinets/{loc['cabinet_id']}",
            f"/api/locations/folders/{loc['folder_id']}",
        ):
            resp = client.delete(path)
            assert resp.status_code == 409, path
            assert resp.json()["error"] == "CONFLICT"

    def test_empty_units_bottom_up(self, client):
        loc = make_location_tree(client)
        assert client.delete(f"/api/locations/folders/{loc['folder_id']}").status_code == 204
        assert client.delete(f"/api/locations/cabinets/{loc['cabinet_id']}").status_code == 204
        assert client.delete(f"/api/locations/shelves/{loc['shelf_id']}").status_code == 204
        assert client.get("/api/locations/shelves").json() == []


class TestLocationMoves:

    def test_moving_cabinet_carries_records(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        record = client.post("/api/records", json=make_record(loc)).json()

        resp = client.put(f"/api/locations/cabinets/{loc['cabinet_id']}", json={"shelf_id": other["shelf_id"]})
        assert resp.status_code == 200
        moved = client.get(f"/api/records/{record['id']}").json()
        assert moved["shelf_id"] == other["shelf_id"]
        assert moved["cabinet_id"] == loc["cabinet_id"]
        item = client.get("/api/records").json()["items"][0]
        assert item["location"] == "S2-C1-F1"

    def test_moving_folder_carries_records(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        record = client.post("/api/records", json=make_record(loc)).json()

        client.put(f"/api/locations/folders/{loc['folder_id']}", json={"cabinet_id": other["cabinet_id"]})
        moved = client.get(f"/api/records/{record['id']}").json()
        assert moved["shelf_id"] == other["shelf_id"]
        assert moved["cabinet_id"] == other["cabinet_id"]

    def test_move_to_unknown_cabinet(self, client):
        loc = make_location_tree(client)
        resp = client.put(f"/api/locations/folders/{loc['folder_id']}", json={"cabinet_id": "nope"})
        assert resp.status_code == 400


class TestLocationOptions:

    def test_cascade_with_preview(self, client):
        loc = make_location_tree(client)
        client.post("/api/records", json=make_record(loc))
        body = client.get("/api/locations/options", params=loc).json()
        assert body["selection"] == loc
        assert len(body["cabinets"]) == 1
        assert len(body["folders"]) == 1
        assert body["stack_preview"] == 2

    def test_changing_shelf_clears_lower_tiers(self, client):
        loc = make_location_tree(client)
        other = make_location_tree(client, "2")
        body = client.get(
            "/api/locations/options",
            params={"shelf_id": other["shelf_id"], "cabinet_id": loc["cabinet_id"], "folder_id": loc["folder_id"]},
        ).json()
        assert body["selection"] == {"shelf_id": other["shelf_id"], "cabinet_id": None, "folder_id": None}
        assert body["folders"] == []
        assert body["stack_preview"] is None
