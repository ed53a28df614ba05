from datetime import datetime, timedelta, timezone

from models import Event, EventAnalytics

EVENT_BODY = {
    "title": "Robotics Expo",
    "description": "Build and battle bots",
    "category": "Technical",
    "date_time": "2030-03-01T10:00:00+05:30",
    "venue": "Lab Block",
    "eligibility": "Second year and above",
    "contact_info": "club@campus.edu",
    "registration_link": "https://forms.campus.edu/expo",
    "prize_details": "Trophy",
}


def test_organizer_creates_pending_event(client, organizer, auth_header, fetch):
    body = dict(EVENT_BODY, status="approved", organizer_id="someone-else")
    response = client.post("/api/events", json=body, headers=auth_header(organizer))

    assert response.status_code == 201
    event = response.json()["event"]
    assert event["status"] == "pending"
    assert event["display_status"] == "pending"
    assert event["organizer_id"] == organizer.id

    row = fetch(EventAnalytics, event_id=event["id"])
    assert row.page_views == 0
    assert row.registration_clicks == 0


def test_create_event_stores_start_time_in_utc(client, organizer, auth_header, fetch):
    response = client.post("/api/events", json=EVENT_BODY, headers=auth_header(organizer))
    event = fetch(Event, id=response.json()["event"]["id"])
    assert (event.date_time.hour, event.date_time.minute) == (4, 30)


def test_student_cannot_create_event(client, student, auth_header):
    response = client.post("/api/events", json=EVENT_BODY, headers=auth_header(student))
    assert response.status_code == 403
    assert response.json() == {"error": "Organizer access required"}


def test_create_event_requires_token(client):
    assert client.post("/api/events", json=EVENT_BODY).status_code == 401


def test_create_event_missing_fields(client, organizer, auth_header):
    response = client.post("/api/events", json={"title": "Half an event"}, headers=auth_header(organizer))
    assert response.status_code == 400


def test_create_event_rejects_unknown_category(client, organizer, auth_header):
    body = dict(EVENT_BODY, category="Gaming")
    response = client.post("/api/events", json=body, headers=auth_header(organizer))
    assert response.status_code == 400


def test_list_filters_by_status_and_category(client, organizer, make_event):
    make_event(organizer, status="approved", title="Hackathon", category="Technical")
    make_event(organizer, status="approved", title="Dance Night", category="Cultural")
    make_event(organizer, status="pending", title="Chess Open", category="Sports")

    approved = client.get("/api/events", params={"status": "approved"}).json()["events"]
    assert {e["title"] for e in approved} == {"Hackathon", "Dance Night"}

    cultural = client.get("/api/events", params={"status": "approved", "category": "Cultural"}).json()["events"]
    assert [e["title"] for e in cultural] == ["Dance Night"]

    everything = client.get("/api/events", params={"status": "all", "category": "all"}).json()["events"]
    assert len(everything) == 3


def test_list_search_matches_title_description_and_venue(client, organizer, make_event):
    make_event(organizer, title="Hackathon", venue="Main Hall")
    make_event(organizer, title="Quiz", venue="Auditorium")

    by_venue = client.get("/api/events", params={"search": "auditorium"}).json()["events"]
    assert [e["title"] for e in by_venue] == ["Quiz"]

    by_description = client.get("/api/events", params={"search": "hackathon desc"}).json()["events"]
    assert [e["title"] for e in by_description] == ["Hackathon"]


def test_list_filters_by_organizer(client, organizer, make_user, make_event):
    other = make_user(role="organizer", email="drama@campus.edu")
    make_event(organizer, title="Mine")
    make_event(other, title="Theirs")

    events = client.get("/api/events", params={"organizer_id": other.id}).json()["events"]
    assert [e["title"] for e in events] == ["Theirs"]
    assert events[0]["organizer"] == {"name": other.name, "email": other.email}


def test_list_pagination(client, organizer, make_event):
    for i in range(5):
        make_event(organizer, title=f"Event {i}")

    page = client.get("/api/events", params={"limit": 2, "offset": 4}).json()["events"]
    assert len(page) == 1

    capped = client.get("/api/events", params={"limit": 1000}).json()["events"]
    assert len(capped) == 5


def test_display_status_live_and_upcoming(client, organizer, make_event):
    live = make_event(organizer, status="approved", title="Started", starts_in=timedelta(hours=-1))
    upcoming = make_event(organizer, status="approved", title="Later", starts_in=timedelta(days=3))
    archived = make_event(organizer, status="archived", title="Old", starts_in=timedelta(days=-30))

    assert client.get(f"/api/events/{live.id}").json()["event"]["display_status"] == "live"
    assert client.get(f"/api/events/{upcoming.id}").json()["event"]["display_status"] == "upcoming"
    body = client.get(f"/api/events/{archived.id}").json()["event"]
    assert body["status"] == "archived"
    assert body["display_status"] == "archived"

    # "live" is never a stored status
    stored = client.get("/api/events", params={"status": "live"}).json()["events"]
    assert stored == []


def test_get_unknown_event(client):
    response = client.get("/api/events/does-not-exist")
    assert response.status_code == 404
    assert response.json() == {"error": "Event not found"}


def test_owner_deletes_event_and_its_analytics(client, organizer, auth_header, make_event, fetch):
    event_id = make_event(organizer, with_analytics=True).id

    response = client.delete(f"/api/events/{event_id}", headers=auth_header(organizer))

    assert response.status_code == 200
    assert fetch(Event, id=event_id) is None
    assert fetch(EventAnalytics, event_id=event_id) is None


def test_other_organizer_cannot_delete(client, organizer, make_user, auth_header, make_event, fetch):
    event = make_event(organizer)
    intruder = make_user(role="organizer", email="intruder@campus.edu")

    response = client.delete(f"/api/events/{event.id}", headers=auth_header(intruder))

    assert response.status_code == 403
    assert fetch(Event, id=event.id) is not None


def test_wrong_method_is_405(client, organizer, make_event):
    event = make_event(organizer)
    response = client.get(f"/api/events/{event.id}/track-view")
    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def _parse(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def test_event_times_are_returned_with_utc_offset(client, organizer, auth_header):
    created = client.post("/api/events", json=EVENT_BODY, headers=auth_header(organizer)).json()["event"]

    fetched = client.get(f"/api/events/{created['id']}").json()["event"]
    for body in (created, fetched):
        start = _parse(body["date_time"])
        assert start.tzinfo is not None
        assert start == datetime(2030, 3, 1, 4, 30, tzinfo=timezone.utc)
        assert _parse(body["created_at"]).tzinfo is not None
        assert _parse(body["updated_at"]).tzinfo is not None


def test_search_treats_wildcards_literally(client, organizer, make_event):
    make_event(organizer, title="100% Attendance Drive")
    make_event(organizer, title="Code_Sprint")
    make_event(organizer, title="Hackathon")

    percent = client.get("/api/events", params={"search": "%"}).json()["events"]
    assert [e["title"] for e in percent] == ["100% Attendance Drive"]

    underscore = client.get("/api/events", params={"search": "_"}).json()["events"]
    assert [e["title"] for e in underscore] == ["Code_Sprint"]
