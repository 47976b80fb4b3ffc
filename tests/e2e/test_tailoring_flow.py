from __future__ import annotations

import base64

from conftest import FakeRouter, signup

from resumecraft.core.fingerprint import request_fingerprint


def test_senior_go_engineer_tailoring_flow(client, fake_llm: FakeRouter) -> None:
    headers = signup(client)
    resume = "data:application/pdf;base64," + base64.b64encode(b"%PDF-1.4 Jane Doe resume").decode("ascii")
    job = "Senior Go engineer, 5 years, distributed systems"

    assert client.get("/api/user/profile", headers=headers).json()["request_count"] == 0

    first = client.post("/api/applications", headers=headers, json={"resume": resume, "job_description": job})
    assert first.status_code == 200
    first_data = first.json()["data"]
    assert first_data["cached"] is False
    assert first_data["request_hash"] == request_fingerprint(resume, job)
    assert first_data["optimized_resume_latex"].startswith("\\documentclass")
    assert "Go" in first_data["skills"]
    assert client.get("/api/user/profile", headers=headers).json()["request_count"] == 1
    calls_after_first = dict(fake_llm.calls)

    second = client.post("/api/applications", headers=headers, json={"resume": resume, "job_description": job})
    second_data = second.json()["data"]
    assert second_data["cached"] is True
    assert second_data["request_id"] == first_data["request_id"]
    assert second_data["cover_letter"] == first_data["cover_letter"]
    assert dict(fake_llm.calls) == calls_after_first
    assert client.get("/api/user/profile", headers=headers).json()["request_count"] == 2

    history = client.get("/api/user/requests", headers=headers).json()
    assert len(history) == 1


def test_default_template_is_available_after_startup(client) -> None:
    response = client.get("/api/templates/default")

    assert response.status_code == 200
    assert response.json()["name"] == "Classic"
    assert response.json()["latex_code"].startswith("\\documentclass")
