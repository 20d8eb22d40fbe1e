"""
API tests against an isolated SQLite database with stub providers.

Run with: cd backend && pytest tests/test_api.py -v
"""
from types import SimpleNamespace

import pytest
from starlette.routing import Match

from jobsearch.errors import RateLimitError
from jobsearch.middleware.metrics import PrometheusMiddleware
from jobsearch.services.providers.base import RawDocument
from tests.stubs import StubSearchProvider, posting_text


def search_documents(slug: str):
    """Two postings and one blog page; URLs are unique per test."""
    return [
        RawDocument(
            url=f"https://jobs.lever.co/{slug}/backend",
            title="Backend Developer (Software)",
            text=posting_text("Backend Developer", extra="We are a remote-first team."),
        ),
        RawDocument(
            url=f"https://boards.greenhouse.io/{slug}/jobs/1",
            title="Software Engineer",
            text=posting_text("Software Engineer"),
        ),
        RawDocument(
            url=f"https://{slug}.com/blog/culture",
            title="Engineering culture",
            text="Blog post: what we learned building distributed systems over the years. " * 8,
        ),
    ]


def run_search(client, use_pipeline, slug, path="/search", **body):
    use_pipeline(StubSearchProvider(search_documents(slug)))
    payload = {"query": "Software Engineer", "location": "Remote"}
    payload.update(body)
    return client.post(path, json=payload)


class TestSearch:
    def test_remote_search_returns_ranked_jobs(self, client, use_pipeline):
        response = run_search(client, use_pipeline, "ranked")

        assert response.status_code == 200
        data = response.json()
        assert data["searchId"]
        assert data["totalFound"] == 2
        scores = [job["score"] for job in data["jobs"]]
        assert scores == sorted(scores, reverse=True)
        assert all(1 <= score <= 10 for score in scores)

        job = data["jobs"][0]
        assert job["id"]
        assert job["persisted"] is True
        assert job["searchId"] == data["searchId"]
        assert job["location"] == "Remote"
        assert "experienceLevel" in job
        assert "jobType" in job

    def test_missing_query(self, client, use_pipeline):
        use_pipeline(StubSearchProvider([]))
        response = client.post("/search", json={"location": "Remote"})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_blank_query(self, client, use_pipeline):
        use_pipeline(StubSearchProvider([]))
        response = client.post("/search", json={"query": "   "})
        assert response.status_code == 400

    def test_malformed_body(self, client, use_pipeline):
        use_pipeline(StubSearchProvider([]))
        response = client.post("/search", json={"query": "Engineer", "numResults": 0})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_retrieval_failure_writes_nothing(self, client, use_pipeline, failing_provider):
        before = client.get("/stats").json()["totalSearches"]
        use_pipeline(failing_provider)

        response = client.post("/search", json={"query": "Software Engineer"})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to search jobs"
        assert "tip" in data
        assert "jobs" not in data
        assert client.get("/stats").json()["totalSearches"] == before

    def test_rate_limit(self, client, use_pipeline):
        use_pipeline(StubSearchProvider(error=RateLimitError("429")))
        response = client.post("/search", json={"query": "Software Engineer"})
        assert response.status_code == 429
        assert response.json()["error"] == "Rate Limit Exceeded"

    def test_missing_configuration(self, client, app):
        pipeline = app.state.pipeline
        app.state.pipeline = None
        try:
            response = client.post("/search", json={"query": "Software Engineer"})
        finally:
            app.state.pipeline = pipeline
        assert response.status_code == 500
        assert response.json()["error"] == "API Configuration Error"

    def test_missing_query_checked_before_configuration(self, client, app):
        pipeline = app.state.pipeline
        app.state.pipeline = None
        try:
            response = client.post("/search", json={"location": "Remote"})
        finally:
            app.state.pipeline = pipeline
        assert response.status_code == 400
        assert response.json()["error"] == "Search query is required"

    def test_repeat_search_returns_unsaved_duplicates(self, client, use_pipeline):
        first = run_search(client, use_pipeline, "repeat").json()
        response = run_search(client, use_pipeline, "repeat")

        assert response.status_code == 200
        second = response.json()
        assert second["searchId"] and second["searchId"] != first["searchId"]

        assert second["totalFound"] == first["totalFound"]
        assert all(job["persisted"] is False for job in second["jobs"])
        assert all(job["id"] is None for job in second["jobs"])

    def test_enhanced_search(self, client, use_pipeline):
        response = run_search(client, use_pipeline, "enhanced", path="/search/enhanced")

        assert response.status_code == 200
        data = response.json()
        assert data["totalFound"] == 2
        insights = data["insights"]
        remote = insights["remoteOpportunities"]
        assert remote["fullyRemote"] + remote["hybrid"] + remote["onSite"] == 2
        assert insights["salaryRange"]["min"] == 150000
        # Few results; remote was requested so no remote nudge
        assert [r["type"] for r in insights["recommendations"]] == ["results"]
        assert data["searchMetrics"]["companiesFound"] == 1

    def test_list_searches(self, client, use_pipeline):
        search_id = run_search(client, use_pipeline, "listing").json()["searchId"]
        searches = client.get("/searches", params={"limit": 100}).json()
        match = next(s for s in searches if s["id"] == search_id)
        assert match["query"] == "Software Engineer"
        assert match["jobCount"] == 2


class TestJobs:
    def test_filter_by_search_and_score(self, client, use_pipeline):
        data = run_search(client, use_pipeline, "filters").json()
        search_id = data["searchId"]
        top_score = data["jobs"][0]["score"]

        jobs = client.get("/jobs", params={"searchId": search_id}).json()
        assert len(jobs) == 2
        assert all(job["savedJob"] is None for job in jobs)

        high = client.get("/jobs", params={"searchId": search_id, "minScore": top_score}).json()
        assert all(job["score"] >= top_score for job in high)

        by_company = client.get("/jobs", params={"searchId": search_id, "company": "filters"}).json()
        assert len(by_company) == 2

    def test_delete_search_cascades(self, client, use_pipeline):
        data = run_search(client, use_pipeline, "cascade").json()
        search_id = data["searchId"]
        job_id = data["jobs"][0]["id"]
        saved = client.post("/saved-jobs", json={"jobId": job_id}).json()

        response = client.request("DELETE", "/jobs", json={"searchId": search_id})

        assert response.status_code == 200
        assert response.json()["deletedJobs"] == 2
        assert client.get("/jobs", params={"searchId": search_id}).json() == []
        saved_ids = [s["id"] for s in client.get("/saved-jobs").json()]
        assert saved["id"] not in saved_ids

    def test_delete_unknown_search(self, client):
        response = client.request("DELETE", "/jobs", json={"searchId": "missing"})
        assert response.status_code == 404
        assert response.json() == {"error": "Search not found"}


class TestSavedJobs:
    @pytest.fixture
    def job(self, client, use_pipeline, request):
        data = run_search(client, use_pipeline, f"saved-{request.node.name}").json()
        return data["jobs"][0]

    def test_save_then_list(self, client, job):
        response = client.post("/saved-jobs", json={"jobId": job["id"], "notes": "Looks great"})
        assert response.status_code == 200
        saved = response.json()
        assert saved["status"] == "interested"

        listed = client.get("/saved-jobs").json()
        match = next(s for s in listed if s["id"] == saved["id"])
        assert match["notes"] == "Looks great"
        assert match["job"]["url"] == job["url"]
        assert match["job"]["title"] == job["title"]
        assert match["job"]["company"] == job["company"]

    def test_filter_by_status(self, client, job):
        saved = client.post("/saved-jobs", json={"jobId": job["id"], "status": "interviewing"}).json()
        listed = client.get("/saved-jobs", params={"status": "interviewing"}).json()
        assert saved["id"] in [s["id"] for s in listed]
        assert all(s["status"] == "interviewing" for s in listed)

    def test_update_status_only(self, client, job):
        saved = client.post("/saved-jobs", json={"jobId": job["id"], "notes": "Call recruiter"}).json()

        response = client.put("/saved-jobs", json={"id": saved["id"], "status": "applied"})

        assert response.status_code == 200
        updated = response.json()
        assert updated["status"] == "applied"
        assert updated["notes"] == "Call recruiter"
        assert updated["jobId"] == saved["jobId"]
        assert updated["createdAt"] == saved["createdAt"]
        assert updated["updatedAt"] != saved["updatedAt"]

    def test_duplicate_save(self, client, job):
        client.post("/saved-jobs", json={"jobId": job["id"]})
        response = client.post("/saved-jobs", json={"jobId": job["id"]})
        assert response.status_code == 409

    def test_unknown_job(self, client):
        response = client.post("/saved-jobs", json={"jobId": "missing"})
        assert response.status_code == 404

    def test_invalid_status(self, client, job):
        response = client.post("/saved-jobs", json={"jobId": job["id"], "status": "ghosted"})
        assert response.status_code == 400

    def test_delete(self, client, job):
        saved = client.post("/saved-jobs", json={"jobId": job["id"]}).json()

        response = client.request("DELETE", "/saved-jobs", json={"id": saved["id"]})

        assert response.status_code == 200
        assert saved["id"] not in [s["id"] for s in client.get("/saved-jobs").json()]
        # The job itself stays
        jobs = client.get("/jobs", params={"searchId": job["searchId"]}).json()
        assert job["id"] in [j["id"] for j in jobs]


class TestMisc:
    def test_stats(self, client, use_pipeline):
        run_search(client, use_pipeline, "stats")
        stats = client.get("/stats").json()
        assert stats["totalSearches"] >= 1
        assert stats["totalJobs"] >= 2
        assert set(stats["savedJobsByStatus"]) == {"interested", "applied", "interviewing", "rejected", "offer"}

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_metrics(self, client):
        client.get("/health")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text

    def test_metrics_label_routed_requests(self, client, use_pipeline):
        response = run_search(client, use_pipeline, "metrics")
        assert response.status_code == 200
        assert client.get("/stats").status_code == 200

        text = client.get("/metrics").text
        assert 'endpoint="/search"' in text
        assert 'endpoint="/stats"' in text


class TestEndpointLabel:
    def make_request(self, routes, path):
        return SimpleNamespace(
            app=SimpleNamespace(routes=routes),
            scope={"type": "http", "path": path},
            url=SimpleNamespace(path=path),
        )

    def route(self, match, path=None):
        route = SimpleNamespace(matches=lambda scope: (match, {}))
        if path is not None:
            route.path = path
        return route

    def test_route_pattern_used(self):
        middleware = PrometheusMiddleware(app=None)
        request = self.make_request([self.route(Match.FULL, "/jobs/{job_id}")], "/jobs/abc")
        assert middleware._get_endpoint(request) == "/jobs/{job_id}"

    def test_pathless_router_falls_through(self):
        middleware = PrometheusMiddleware(app=None)
        routes = [self.route(Match.FULL), self.route(Match.NONE, "/health")]
        request = self.make_request(routes, "/saved-jobs")
        assert middleware._get_endpoint(request) == "/saved-jobs"
