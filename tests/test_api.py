"""
End-to-end tests of the HTTP and WebSocket routes.

The ``client`` fixture runs the app against a SQLite database in a
temporary directory; ``admin_client`` runs it against the memory store
with an admin token configured.
"""

import asyncio
import gc

import pytest
from starlette.websockets import WebSocketDisconnect

from conftest import COLLECTION, run
from service_portal_api.app.api.streaming import stream_feed
from service_portal_api.app.services.record_service import RecordService
from service_portal_api.app.store import MemoryDocumentStore

API = "/api/v1"

REQUEST_FORM = {
    "clientName": "John Smith",
    "clientEmail": "john@example.com",
    "serviceType": "emergency",
    "description": "No heating since this morning",
}

ASSET_FORM = {"assetType": "HVAC Unit", "modelOrSerial": "SN-9981", "setupDate": "2024-01-15"}


def sign_in(client):
    response = client.post(f"{API}/session")
    assert response.status_code == 201
    return response.json()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestSession:
    def test_anonymous_sign_in(self, client):
        session = sign_in(client)
        assert session["userId"]
        assert session["token"]
        me = client.get(f"{API}/session/me", headers=bearer(session["token"]))
        assert me.status_code == 200
        assert me.json()["userId"] == session["userId"]

    def test_resume_with_token(self, client):
        session = sign_in(client)
        resumed = client.post(f"{API}/session", json={"token": session["token"]})
        assert resumed.status_code == 201
        assert resumed.json()["userId"] == session["userId"]

    def test_resume_with_invalid_token(self, client):
        response = client.post(f"{API}/session", json={"token": "forged"})
        assert response.status_code == 401

    def test_me_requires_token(self, client):
        assert client.get(f"{API}/session/me").status_code == 401


class TestServiceRequests:
    def test_submit_anonymously(self, client):
        response = client.post(f"{API}/service-requests", json=REQUEST_FORM)
        assert response.status_code == 201
        body = response.json()
        assert body["kind"] == "serviceRequest"
        assert body["status"] == "new"
        assert body["submitterId"] is None
        for field, value in REQUEST_FORM.items():
            assert body[field] == value

    def test_submit_with_session_records_submitter(self, client):
        session = sign_in(client)
        response = client.post(
            f"{API}/service-requests", json=REQUEST_FORM, headers=bearer(session["token"])
        )
        assert response.json()["submitterId"] == session["userId"]

    def test_submit_with_bad_token_is_unauthorized(self, client):
        response = client.post(f"{API}/service-requests", json=REQUEST_FORM, headers=bearer("junk"))
        assert response.status_code == 401

    def test_empty_client_name_is_rejected(self, client):
        response = client.post(f"{API}/service-requests", json={**REQUEST_FORM, "clientName": ""})
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "clientName"
        assert client.get(f"{API}/service-requests").json() == []

    def test_unknown_service_type_is_rejected(self, client):
        response = client.post(f"{API}/service-requests", json={**REQUEST_FORM, "serviceType": "spa day"})
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "serviceType"

    def test_missing_field_is_named(self, client):
        form = {key: value for key, value in REQUEST_FORM.items() if key != "clientEmail"}
        response = client.post(f"{API}/service-requests", json=form)
        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["field"] == "clientEmail"
        assert detail["message"]

    def test_padded_values_are_stored_as_sent(self, client):
        form = {**REQUEST_FORM, "clientName": " John Smith "}
        assert client.post(f"{API}/service-requests", json=form).status_code == 201
        (stored,) = client.get(f"{API}/service-requests").json()
        assert stored["clientName"] == " John Smith "

    def test_admin_list_is_newest_first(self, client):
        for name in ("first", "second"):
            client.post(f"{API}/service-requests", json={**REQUEST_FORM, "clientName": name})
        names = [item["clientName"] for item in client.get(f"{API}/service-requests").json()]
        assert names == ["second", "first"]


class TestAssets:
    def test_register_requires_session(self, client):
        assert client.post(f"{API}/assets", json=ASSET_FORM).status_code == 401

    def test_scenario_register_and_list_own(self, client):
        owner = sign_in(client)
        other = sign_in(client)

        response = client.post(f"{API}/assets", json=ASSET_FORM, headers=bearer(owner["token"]))
        assert response.status_code == 201
        created = response.json()
        assert created["ownerId"] == owner["userId"]

        mine = client.get(f"{API}/assets/mine", headers=bearer(owner["token"])).json()
        assert mine == [created]
        for field, value in ASSET_FORM.items():
            assert mine[0][field] == value
        assert client.get(f"{API}/assets/mine", headers=bearer(other["token"])).json() == []

    def test_admin_sees_every_owner(self, client):
        owners = [sign_in(client) for _ in range(2)]
        for session in owners:
            client.post(f"{API}/assets", json=ASSET_FORM, headers=bearer(session["token"]))
        listed = client.get(f"{API}/assets").json()
        assert sorted(item["ownerId"] for item in listed) == sorted(s["userId"] for s in owners)

    def test_invalid_setup_date_is_rejected(self, client):
        session = sign_in(client)
        response = client.post(
            f"{API}/assets", json={**ASSET_FORM, "setupDate": ""}, headers=bearer(session["token"])
        )
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "setupDate"


class TestLiveFeeds:
    def test_own_assets_feed_pushes_new_registrations(self, client):
        owner = sign_in(client)
        other = sign_in(client)
        with client.websocket_connect(f"{API}/assets/mine/live?token={owner['token']}") as ws:
            assert ws.receive_json() == {"type": "snapshot", "records": []}
            client.post(f"{API}/assets", json=ASSET_FORM, headers=bearer(other["token"]))
            client.post(f"{API}/assets", json=ASSET_FORM, headers=bearer(owner["token"]))
            frame = ws.receive_json()
        assert frame["type"] == "snapshot"
        assert [record["ownerId"] for record in frame["records"]] == [owner["userId"]]

    def test_own_assets_feed_requires_session(self, client):
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect(f"{API}/assets/mine/live?token=junk") as ws:
                ws.receive_json()

    def test_admin_service_request_feed(self, client):
        client.post(f"{API}/service-requests", json=REQUEST_FORM)
        with client.websocket_connect(f"{API}/service-requests/live") as ws:
            first = ws.receive_json()
            client.post(f"{API}/service-requests", json={**REQUEST_FORM, "clientName": "Later"})
            second = ws.receive_json()
        assert len(first["records"]) == 1
        assert [record["clientName"] for record in second["records"]] == ["Later", "John Smith"]

    def test_admin_asset_feed(self, client):
        session = sign_in(client)
        with client.websocket_connect(f"{API}/assets/live") as ws:
            assert ws.receive_json()["records"] == []
            client.post(f"{API}/assets", json=ASSET_FORM, headers=bearer(session["token"]))
            records = ws.receive_json()["records"]
        assert records[0]["modelOrSerial"] == "SN-9981"

    def test_closing_socket_cancels_subscription(self, client):
        store = client.app.state.store
        collection = client.app.state.settings.collection_path
        with client.websocket_connect(f"{API}/assets/live") as ws:
            ws.receive_json()
            assert len(store.live_queries(collection)) == 1
        session = sign_in(client)
        client.post(f"{API}/assets", json=ASSET_FORM, headers=bearer(session["token"]))
        assert store.live_queries(collection) == []


class TestAdminToken:
    def test_admin_lists_require_token(self, admin_client):
        assert admin_client.get(f"{API}/assets").status_code == 403
        assert admin_client.get(f"{API}/service-requests").status_code == 403
        ok = admin_client.get(f"{API}/assets", headers=bearer("admin-secret"))
        assert ok.status_code == 200

    def test_admin_feed_requires_token(self, admin_client):
        with pytest.raises(WebSocketDisconnect):
            with admin_client.websocket_connect(f"{API}/assets/live?token=wrong") as ws:
                ws.receive_json()
        with admin_client.websocket_connect(f"{API}/service-requests/live?token=admin-secret") as ws:
            assert ws.receive_json() == {"type": "snapshot", "records": []}

    def test_public_form_stays_open(self, admin_client):
        assert admin_client.post(f"{API}/service-requests", json=REQUEST_FORM).status_code == 201


def test_info_reports_backend(client):
    body = client.get(f"{API}/info").json()
    assert body["store"] == "sqlite"
    assert body["collection"] == "artifacts/test-app/public/data/universal_vms"


class ClosedSocket:
    """Accepted socket whose receive side fails, as after a dropped connection."""

    def __init__(self):
        self.sent = []

    async def receive(self):
        raise RuntimeError('Cannot call "receive" once a disconnect message has been received.')

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000):
        pass


class TestStreamFeed:
    def test_receive_failure_cancels_feed_and_is_retrieved(self):
        service = RecordService(MemoryDocumentStore(), COLLECTION)
        socket = ClosedSocket()

        async def scenario():
            loop = asyncio.get_running_loop()
            unhandled = []
            loop.set_exception_handler(lambda _loop, context: unhandled.append(context))
            feed = await service.subscribe_all_assets()
            await stream_feed(socket, feed)
            gc.collect()
            await asyncio.sleep(0)
            return feed.state, unhandled

        state, unhandled = run(scenario())
        assert state == "cancelled"
        assert unhandled == []
        assert socket.sent == [{"type": "snapshot", "records": []}]
