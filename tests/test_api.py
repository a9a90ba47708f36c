from sqlalchemy.exc import OperationalError

from config import get_settings
from conftest import AUTH_HEADERS, seed_active_snapshot
from dependencies import get_db, get_scraper
from services import refresh_service


class StaticScraper:
    def __init__(self, rows):
        self.rows = rows

    def collect_and_persist(self, writer):
        regions = {}
        skills = {}
        for region_name, slug, skill_name, category, count in self.rows:
            if slug not in regions:
                regions[slug] = writer.add_region(region_name, slug)
            if skill_name not in skills:
                skills[skill_name] = writer.add_skill(skill_name, category)
            writer.add_demand(regions[slug], skills[skill_name], count)


class ExplodingScraper:
    def collect_and_persist(self, writer):
        raise RuntimeError("scraper crashed with secret stack detail")


def _seed_qc_and_manila(db_session):
    seed_active_snapshot(
        db_session,
        [
            ("Quezon City", "qc", "Python", "Programming", 5),
            ("Manila", "manila", "Python", "Programming", 3),
        ],
    )


def test_root_lists_service_metadata(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Job Skills API"
    assert body["endpoints"]["mapSummary"] == "/api/map-summary"
    assert body["endpoints"]["trends"] == "/api/trends/:slug"


def test_health_reports_database_connectivity(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == {"connected": True}


def test_map_summary_and_top_skills_for_concrete_scenario(client, db_session):
    _seed_qc_and_manila(db_session)

    summary = client.get("/api/map-summary").json()
    top = client.get("/api/top-skills", params={"limit": "1"}).json()

    assert [(row["slug"], row["totalDemand"]) for row in summary] == [("qc", 5), ("manila", 3)]
    assert set(summary[0]) == {"id", "name", "slug", "totalDemand"}
    assert top == [{"skillName": "Python", "category": "Programming", "totalCount": 8}]


def test_top_skills_invalid_limit_behaves_like_default(client, db_session):
    seed_active_snapshot(
        db_session,
        [("Manila", "manila", f"Skill {index:02d}", "Programming", 100 - index) for index in range(12)],
    )

    default = client.get("/api/top-skills").json()

    assert len(default) == 10
    for raw_limit in ("abc", "0", "-3", "2.5", ""):
        assert client.get("/api/top-skills", params={"limit": raw_limit}).json() == default
    assert len(client.get("/api/top-skills", params={"limit": "3"}).json()) == 3


def test_trends_route_serializes_rows_and_handles_unknown_slug(client, db_session):
    _seed_qc_and_manila(db_session)

    rows = client.get("/api/trends/qc").json()
    unknown = client.get("/api/trends/not-a-region")

    assert [(row["skillName"], row["category"], row["count"]) for row in rows] == [("Python", "Programming", 5)]
    assert rows[0]["lastUpdated"].startswith("2026-01-15T08:00:00")
    assert unknown.status_code == 200
    assert unknown.json() == []


def test_csv_and_raw_exports_return_the_same_rows(client, db_session):
    _seed_qc_and_manila(db_session)

    csv_rows = client.get("/api/export/csv").json()
    raw_rows = client.get("/api/export/raw").json()

    assert csv_rows == raw_rows
    assert [(row["region"], row["demandCount"]) for row in csv_rows] == [("Quezon City", 5), ("Manila", 3)]
    assert set(csv_rows[0]) == {"region", "skill", "category", "demandCount", "lastUpdated"}


def test_summary_export_wraps_national_totals(client, db_session):
    _seed_qc_and_manila(db_session)

    body = client.get("/api/export/summary").json()

    assert body["version"] == "1.0"
    assert body["data"] == [{"skill": "Python", "totalDemand": 8}]
    assert "generatedAt" in body


def test_store_failure_returns_generic_500(client):
    class BrokenSession:
        def execute(self, *args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused on 10.0.0.5"))

    app = client.app
    app.dependency_overrides[get_db] = lambda: BrokenSession()

    response = client.get("/api/map-summary")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch map summary"}
    assert "10.0.0.5" not in response.text


def test_scheduled_task_rejects_wrong_or_missing_bearer(client, db_session):
    _seed_qc_and_manila(db_session)
    client.app.dependency_overrides[get_scraper] = lambda: StaticScraper([("Cebu City", "cebu-city", "SQL", "Data", 1)])

    wrong = client.get("/api/scheduled-task", headers={"Authorization": "Bearer nope"})
    missing = client.get("/api/scheduled-task")

    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Unauthorized"}
    assert missing.status_code == 401
    assert [row["slug"] for row in client.get("/api/map-summary").json()] == ["qc", "manila"]


def test_scheduled_task_refreshes_store(client, db_session):
    _seed_qc_and_manila(db_session)
    client.app.dependency_overrides[get_scraper] = lambda: StaticScraper([("Cebu City", "cebu-city", "SQL", "Data", 4)])

    response = client.get("/api/scheduled-task", headers=AUTH_HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert set(body) == {"success", "message", "timestamp"}
    summary = client.get("/api/map-summary").json()
    assert [(row["name"], row["slug"], row["totalDemand"]) for row in summary] == [("Cebu City", "cebu-city", 4)]


def test_in_place_refresh_failure_empties_store_and_reports_500(client, db_session, monkeypatch):
    _seed_qc_and_manila(db_session)
    monkeypatch.setattr(get_settings(), "REFRESH_STRATEGY", "in_place")
    client.app.dependency_overrides[get_scraper] = lambda: ExplodingScraper()

    response = client.get("/api/scheduled-task", headers=AUTH_HEADERS)

    assert response.status_code == 500
    assert response.json() == {"error": "Scrape failed"}
    assert "secret stack detail" not in response.text
    assert client.get("/api/map-summary").json() == []


def test_staged_refresh_failure_keeps_serving_previous_data(client, db_session):
    _seed_qc_and_manila(db_session)
    client.app.dependency_overrides[get_scraper] = lambda: ExplodingScraper()

    response = client.get("/api/scheduled-task", headers=AUTH_HEADERS)

    assert response.status_code == 500
    assert [row["totalDemand"] for row in client.get("/api/map-summary").json()] == [5, 3]


def test_concurrent_refresh_is_rejected_with_conflict(client):
    client.app.dependency_overrides[get_scraper] = lambda: StaticScraper([])

    refresh_service._refresh_lock.acquire()
    try:
        response = client.get("/api/scheduled-task", headers=AUTH_HEADERS)
    finally:
        refresh_service._refresh_lock.release()

    assert response.status_code == 409
    assert response.json() == {"error": "A refresh is already in progress"}


def test_cors_allows_only_configured_origins(client):
    allowed = client.get("/api/map-summary", headers={"Origin": "http://localhost:5173"})
    rejected = client.get("/api/map-summary", headers={"Origin": "https://evil.example.com"})

    assert allowed.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert allowed.headers["access-control-allow-credentials"] == "true"
    assert "access-control-allow-origin" not in rejected.headers


def test_responses_carry_request_id(client):
    response = client.get("/api/map-summary", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_top_skills_huge_or_underscored_limit_does_not_error(client, db_session):
    seed_active_snapshot(
        db_session,
        [("Manila", "manila", f"Skill {index:02d}", "Programming", 100 - index) for index in range(12)],
    )

    huge = client.get("/api/top-skills", params={"limit": "99999999999999999999"})
    underscored = client.get("/api/top-skills", params={"limit": "1_1"})

    assert huge.status_code == 200
    assert len(huge.json()) == 12
    assert underscored.status_code == 200
    assert len(underscored.json()) == 10


def test_cors_allow_list_also_covers_non_api_routes(client):
    response = client.get("/", headers={"Origin": "http://localhost:3000"})

    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
