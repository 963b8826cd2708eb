"""Tests for the signaling endpoints (browser and agent flows)."""
import pytest

from meetrelay.config import settings
from meetrelay.constants import SessionStatus

START_TITLE = "New Remote Session Started"
END_TITLE = "Remote Session Ended"


def _status(client, session_id, headers):
    return client.get(f"/api/sessions/{session_id}", headers=headers).json()["status"]


def _join(client, session, password=None, name="Alice"):
    return client.post(
        "/api/signaling/join",
        json={
            "sessionId": session["sessionId"],
            "password": password if password is not None else session["password"],
            "clientName": name,
        },
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )


# ----------------------------------------------------------------------
# Browser flow
# ----------------------------------------------------------------------


def test_host_offer_client_answer(client, host_headers, created_session):
    session_id = created_session["sessionId"]

    offer = client.post("/api/signaling/offer", json={"sessionId": session_id, "offer": "OFFER1"}, headers=host_headers)
    assert offer.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.WAITING

    joined = _join(client, created_session)
    assert joined.status_code == 200
    body = joined.json()
    assert body["success"] is True
    assert body["hostOffer"] == "OFFER1"
    assert body["pollIntervalSeconds"] == settings.signaling_poll_interval_seconds

    answer = client.post(
        "/api/signaling/answer",
        json={"sessionId": session_id, "password": created_session["password"], "answer": "ANSWER1"},
    )
    assert answer.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.CONNECTED

    data = client.get(
        "/api/signaling/data", params={"sessionId": session_id, "role": "host"}, headers=host_headers
    ).json()
    assert data["clientAnswer"] == "ANSWER1"
    assert data["clientName"] == "Alice"


def test_join_records_client_details(client, host_headers, created_session):
    _join(client, created_session)

    data = client.get(f"/api/sessions/{created_session['sessionId']}", headers=host_headers).json()
    assert data["clientName"] == "Alice"
    assert data["clientIp"] == "203.0.113.7"
    assert data["status"] == SessionStatus.CONNECTING


def test_join_before_offer_returns_null_offer(client, created_session):
    response = _join(client, created_session)

    assert response.status_code == 200
    assert response.json()["hostOffer"] is None


def test_join_wrong_password(client, host_headers, created_session, notifier):
    response = _join(client, created_session, password="00000000")

    assert response.status_code == 401
    assert response.json()["code"] == "InvalidPassword"
    assert _status(client, created_session["sessionId"], host_headers) == SessionStatus.WAITING
    assert notifier.calls == []


def test_join_unknown_session(client):
    response = client.post("/api/signaling/join", json={"sessionId": "missing", "password": "ABCDEF12"})

    assert response.status_code == 404
    assert response.json()["code"] == "NotFound"


def test_join_after_expiry(client, host_headers, advance_clock):
    session = client.post("/api/sessions", json={"expiresInMinutes": 5}, headers=host_headers).json()
    advance_clock(6)

    response = _join(client, session)

    assert response.status_code == 410
    assert response.json()["code"] == "Expired"
    assert _status(client, session["sessionId"], host_headers) == SessionStatus.EXPIRED


def test_join_expiry_checked_before_password(client, host_headers, advance_clock):
    session = client.post("/api/sessions", json={"expiresInMinutes": 5}, headers=host_headers).json()
    advance_clock(6)

    response = _join(client, session, password="00000000")

    assert response.json()["code"] == "Expired"


def test_join_ended_session(client, host_headers, created_session):
    client.post(f"/api/sessions/{created_session['sessionId']}/end", headers=host_headers)

    response = _join(client, created_session)

    assert response.status_code == 410
    assert response.json()["code"] == "Ended"


def test_join_twice_sends_one_start_notification(client, host_headers, created_session, notifier):
    first = _join(client, created_session, name="Alice")
    second = _join(client, created_session, name="Alice")

    assert first.status_code == 200
    assert second.status_code == 200
    assert notifier.titles() == [START_TITLE]

    data = client.get(f"/api/sessions/{created_session['sessionId']}", headers=host_headers).json()
    assert data["startNotificationSent"] is True


def test_send_offer_requires_owner(client, other_headers, created_session):
    response = client.post(
        "/api/signaling/offer",
        json={"sessionId": created_session["sessionId"], "offer": "OFFER1"},
        headers=other_headers,
    )

    assert response.status_code == 403
    assert response.json()["code"] == "Unauthorized"


def test_send_answer_requires_password(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    client.post("/api/signaling/offer", json={"sessionId": session_id, "offer": "OFFER1"}, headers=host_headers)

    response = client.post(
        "/api/signaling/answer",
        json={"sessionId": session_id, "password": "00000000", "answer": "ANSWER1"},
    )

    assert response.status_code == 401
    assert _status(client, session_id, host_headers) == SessionStatus.WAITING


def test_send_answer_without_offer(client, created_session):
    response = client.post(
        "/api/signaling/answer",
        json={"sessionId": created_session["sessionId"], "password": created_session["password"], "answer": "A"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "ValidationError"


def test_empty_offer_rejected(client, host_headers, created_session):
    response = client.post(
        "/api/signaling/offer",
        json={"sessionId": created_session["sessionId"], "offer": ""},
        headers=host_headers,
    )
    assert response.status_code == 422


def test_oversized_offer_rejected(client, host_headers, created_session):
    response = client.post(
        "/api/signaling/offer",
        json={"sessionId": created_session["sessionId"], "offer": "x" * (settings.max_payload_bytes + 1)},
        headers=host_headers,
    )
    assert response.status_code == 422


def test_ice_candidates_append_per_side(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    password = created_session["password"]

    for candidate in ("h1", "h2"):
        response = client.post(
            "/api/signaling/ice-candidate",
            json={"sessionId": session_id, "candidate": candidate, "from": "host"},
            headers=host_headers,
        )
        assert response.status_code == 200
    for candidate in ("c1", "c2", "c3"):
        response = client.post(
            "/api/signaling/ice-candidate",
            json={"sessionId": session_id, "candidate": candidate, "from": "client", "password": password},
        )
        assert response.status_code == 200

    as_client = client.get(
        "/api/signaling/data", params={"sessionId": session_id, "role": "client", "password": password}
    ).json()
    as_host = client.get(
        "/api/signaling/data", params={"sessionId": session_id, "role": "host"}, headers=host_headers
    ).json()

    assert as_client["hostIceCandidates"] == ["h1", "h2"]
    assert as_host["clientIceCandidates"] == ["c1", "c2", "c3"]


def test_client_ice_candidate_requires_password(client, created_session):
    response = client.post(
        "/api/signaling/ice-candidate",
        json={"sessionId": created_session["sessionId"], "candidate": "c1", "from": "client"},
    )
    assert response.status_code == 401


def test_host_ice_candidate_requires_owner(client, other_headers, created_session):
    response = client.post(
        "/api/signaling/ice-candidate",
        json={"sessionId": created_session["sessionId"], "candidate": "h1", "from": "host"},
        headers=other_headers,
    )
    assert response.status_code == 403


def test_signaling_data_is_role_masked(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    password = created_session["password"]
    client.post("/api/signaling/offer", json={"sessionId": session_id, "offer": "OFFER1"}, headers=host_headers)
    _join(client, created_session)
    client.post("/api/signaling/answer", json={"sessionId": session_id, "password": password, "answer": "ANSWER1"})
    client.post(
        "/api/signaling/ice-candidate",
        json={"sessionId": session_id, "candidate": "h1", "from": "host"},
        headers=host_headers,
    )
    client.post(
        "/api/signaling/ice-candidate",
        json={"sessionId": session_id, "candidate": "c1", "from": "client", "password": password},
    )

    as_client = client.get(
        "/api/signaling/data", params={"sessionId": session_id, "role": "client", "password": password}
    ).json()
    assert as_client["hostOffer"] == "OFFER1"
    assert as_client["clientAnswer"] is None
    assert as_client["clientIceCandidates"] is None

    as_host = client.get(
        "/api/signaling/data", params={"sessionId": session_id, "role": "host"}, headers=host_headers
    ).json()
    assert as_host["clientAnswer"] == "ANSWER1"
    assert as_host["hostOffer"] is None
    assert as_host["hostIceCandidates"] is None


def test_signaling_data_client_needs_password(client, created_session):
    response = client.get(
        "/api/signaling/data", params={"sessionId": created_session["sessionId"], "role": "client", "password": "bad"}
    )
    assert response.status_code == 401


def test_signaling_data_host_needs_owner(client, other_headers, created_session):
    response = client.get(
        "/api/signaling/data",
        params={"sessionId": created_session["sessionId"], "role": "host"},
        headers=other_headers,
    )
    assert response.status_code == 403


def test_signaling_data_reports_expiry(client, host_headers, advance_clock):
    session = client.post("/api/sessions", json={"expiresInMinutes": 5}, headers=host_headers).json()
    advance_clock(6)

    data = client.get(
        "/api/signaling/data",
        params={"sessionId": session["sessionId"], "role": "client", "password": session["password"]},
    ).json()
    assert data["status"] == SessionStatus.EXPIRED


# ----------------------------------------------------------------------
# Agent flow
# ----------------------------------------------------------------------

OFFER = {"type": "offer", "sdp": "v=0\r\no=- 1 2 IN IP4 127.0.0.1\r\n"}
ANSWER = {"type": "answer", "sdp": "v=0\r\no=- 3 4 IN IP4 127.0.0.1\r\n"}
CANDIDATE = {"candidate": "candidate:1 1 udp 2122260223 192.0.2.1 54400 typ host", "sdpMid": "0", "sdpMLineIndex": 0}


def test_agent_flow(client, host_headers, created_session):
    session_id = created_session["sessionId"]

    pending = client.get("/api/signaling/client-offer", params={"sessionId": session_id}, headers=host_headers).json()
    assert pending == {"offer": None, "iceCandidates": None, "clientName": None}

    pushed = client.post(
        "/api/signaling/client-offer",
        json={"sessionId": session_id, "offer": OFFER, "iceCandidates": [CANDIDATE]},
    )
    assert pushed.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.CONNECTING

    fetched = client.get("/api/signaling/client-offer", params={"sessionId": session_id}, headers=host_headers).json()
    assert fetched["offer"] == OFFER
    assert fetched["iceCandidates"] == [CANDIDATE]

    assert client.get("/api/signaling/host-answer", params={"sessionId": session_id}).json() == {
        "answer": None,
        "iceCandidates": None,
    }

    answered = client.post(
        "/api/signaling/host-answer",
        json={"sessionId": session_id, "answer": ANSWER, "iceCandidates": [CANDIDATE]},
        headers=host_headers,
    )
    assert answered.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.CONNECTED

    result = client.get("/api/signaling/host-answer", params={"sessionId": session_id}).json()
    assert result["answer"] == ANSWER
    assert result["iceCandidates"] == [CANDIDATE]


def test_agent_offer_rejects_bad_sdp_type(client, created_session):
    response = client.post(
        "/api/signaling/client-offer",
        json={"sessionId": created_session["sessionId"], "offer": {"type": "bogus", "sdp": "v=0"}},
    )
    assert response.status_code == 422


def test_agent_offer_checks_supplied_password(client, created_session):
    response = client.post(
        "/api/signaling/client-offer",
        json={"sessionId": created_session["sessionId"], "offer": OFFER, "password": "00000000"},
    )
    assert response.status_code == 401


def test_agent_flow_password_required_when_enabled(client, created_session, monkeypatch):
    monkeypatch.setattr(settings, "agent_flow_requires_password", True)

    without = client.post("/api/signaling/client-offer", json={"sessionId": created_session["sessionId"], "offer": OFFER})
    with_password = client.post(
        "/api/signaling/client-offer",
        json={"sessionId": created_session["sessionId"], "offer": OFFER, "password": created_session["password"]},
    )

    assert without.status_code == 401
    assert with_password.status_code == 200


def test_agent_host_calls_require_owner(client, other_headers, created_session):
    session_id = created_session["sessionId"]
    client.post("/api/signaling/client-offer", json={"sessionId": session_id, "offer": OFFER})

    fetched = client.get("/api/signaling/client-offer", params={"sessionId": session_id}, headers=other_headers)
    answered = client.post(
        "/api/signaling/host-answer", json={"sessionId": session_id, "answer": ANSWER}, headers=other_headers
    )

    assert fetched.status_code == 403
    assert answered.status_code == 403


def test_host_answer_without_client_offer(client, host_headers, created_session):
    response = client.post(
        "/api/signaling/host-answer",
        json={"sessionId": created_session["sessionId"], "answer": ANSWER},
        headers=host_headers,
    )
    assert response.status_code == 400


# ----------------------------------------------------------------------
# Termination, status and activity
# ----------------------------------------------------------------------


def test_client_disconnect(client, host_headers, created_session, notifier):
    session_id = created_session["sessionId"]

    first = client.post("/api/signaling/client-disconnect", json={"sessionId": session_id})
    second = client.post("/api/signaling/client-disconnect", json={"sessionId": session_id})

    assert first.status_code == 200
    assert second.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.DISCONNECTED
    assert notifier.titles() == [END_TITLE]


def test_disconnect_then_host_end_notifies_once(client, host_headers, created_session, notifier):
    session_id = created_session["sessionId"]

    client.post("/api/signaling/client-disconnect", json={"sessionId": session_id})
    client.post(f"/api/sessions/{session_id}/end", headers=host_headers)

    assert notifier.titles() == [END_TITLE]


def test_status_update(client, host_headers, created_session, notifier):
    session_id = created_session["sessionId"]

    connected = client.post("/api/signaling/status", json={"sessionId": session_id, "status": "connected"})
    assert connected.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.CONNECTED

    gone = client.post("/api/signaling/status", json={"sessionId": session_id, "status": "disconnected"})
    assert gone.status_code == 200
    assert _status(client, session_id, host_headers) == SessionStatus.DISCONNECTED
    assert notifier.titles() == [END_TITLE]

    logs = client.get(f"/api/sessions/{session_id}/logs", headers=host_headers).json()
    assert logs[0]["activityType"] == "disconnected"


def test_status_update_checks_supplied_password(client, created_session):
    response = client.post(
        "/api/signaling/status",
        json={"sessionId": created_session["sessionId"], "status": "connected", "password": "00000000"},
    )
    assert response.status_code == 401


@pytest.mark.parametrize("status", ["waiting", "expired", "paused"])
def test_status_update_rejects_other_values(client, created_session, status):
    response = client.post(
        "/api/signaling/status", json={"sessionId": created_session["sessionId"], "status": status}
    )
    assert response.status_code == 422


def test_log_activity(client, host_headers, created_session):
    session_id = created_session["sessionId"]

    from_client = client.post(
        "/api/signaling/activity",
        json={
            "sessionId": session_id,
            "activityType": "clipboard_sync",
            "from": "client",
            "password": created_session["password"],
            "details": {"bytes": 12},
        },
    )
    from_host = client.post(
        "/api/signaling/activity",
        json={"sessionId": session_id, "activityType": "control_started", "from": "host"},
        headers=host_headers,
    )

    assert from_client.status_code == 200
    assert from_host.status_code == 200

    logs = client.get(f"/api/sessions/{session_id}/logs", headers=host_headers).json()
    by_type = {entry["activityType"]: entry["details"] for entry in logs}
    assert by_type["clipboard_sync"] == {"bytes": 12, "from": "client"}
    assert by_type["control_started"] == {"from": "host"}


def test_log_activity_rejects_lifecycle_types(client, host_headers, created_session):
    response = client.post(
        "/api/signaling/activity",
        json={"sessionId": created_session["sessionId"], "activityType": "session_ended", "from": "host"},
        headers=host_headers,
    )
    assert response.status_code == 422


def test_log_activity_on_ended_session(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    client.post(f"/api/sessions/{session_id}/end", headers=host_headers)

    response = client.post(
        "/api/signaling/activity",
        json={"sessionId": session_id, "activityType": "reconnected", "from": "host"},
        headers=host_headers,
    )
    assert response.status_code == 410


def test_agent_reoffer_replaces_candidates(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    first = dict(CANDIDATE, candidate="candidate:1 1 udp 1 192.0.2.1 5000 typ host")
    second = dict(CANDIDATE, candidate="candidate:2 1 udp 1 192.0.2.2 6000 typ host")

    client.post("/api/signaling/client-offer", json={"sessionId": session_id, "offer": OFFER, "iceCandidates": [first]})
    client.post("/api/signaling/client-offer", json={"sessionId": session_id, "offer": OFFER, "iceCandidates": [second]})

    fetched = client.get("/api/signaling/client-offer", params={"sessionId": session_id}, headers=host_headers).json()
    assert fetched["iceCandidates"] == [second]


def test_reoffer_without_candidates_clears_previous(client, host_headers, created_session):
    session_id = created_session["sessionId"]

    client.post("/api/signaling/client-offer", json={"sessionId": session_id, "offer": OFFER, "iceCandidates": [CANDIDATE]})
    client.post("/api/signaling/client-offer", json={"sessionId": session_id, "offer": OFFER})

    fetched = client.get("/api/signaling/client-offer", params={"sessionId": session_id}, headers=host_headers).json()
    assert fetched["iceCandidates"] == []


def test_host_reanswer_replaces_candidates(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    replacement = dict(CANDIDATE, candidate="candidate:9 1 udp 1 192.0.2.9 9000 typ host")
    client.post("/api/signaling/client-offer", json={"sessionId": session_id, "offer": OFFER})

    client.post(
        "/api/signaling/host-answer",
        json={"sessionId": session_id, "answer": ANSWER, "iceCandidates": [CANDIDATE]},
        headers=host_headers,
    )
    client.post(
        "/api/signaling/host-answer",
        json={"sessionId": session_id, "answer": ANSWER, "iceCandidates": [replacement]},
        headers=host_headers,
    )

    result = client.get("/api/signaling/host-answer", params={"sessionId": session_id}).json()
    assert result["iceCandidates"] == [replacement]


def test_send_answer_checks_password_before_session_state(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    client.post(f"/api/sessions/{session_id}/end", headers=host_headers)

    wrong = client.post(
        "/api/signaling/answer",
        json={"sessionId": session_id, "password": "00000000", "answer": "ANSWER1"},
    )
    right = client.post(
        "/api/signaling/answer",
        json={"sessionId": session_id, "password": created_session["password"], "answer": "ANSWER1"},
    )

    assert wrong.status_code == 401
    assert wrong.json()["code"] == "InvalidPassword"
    assert right.status_code == 410
    assert right.json()["code"] == "Ended"


def test_many_ice_candidates_are_all_kept(client, host_headers, created_session):
    session_id = created_session["sessionId"]
    password = created_session["password"]
    sent = [f"candidate-{i}" for i in range(40)]

    for candidate in sent:
        response = client.post(
            "/api/signaling/ice-candidate",
            json={"sessionId": session_id, "candidate": candidate, "from": "client", "password": password},
        )
        assert response.status_code == 200

    data = client.get(
        "/api/signaling/data", params={"sessionId": session_id, "role": "host"}, headers=host_headers
    ).json()
    assert data["clientIceCandidates"] == sent
