import csv
import io

from formbuilder.models import Form


def _form(client, payload):
    r = client.post("/api/forms", json=payload)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def _submit(client, form_id, answers, **extra):
    body = {"submitterName": "Ann", "submitterEmail": "ann@example.com", "answers": answers, **extra}
    return client.post(f"/api/forms/{form_id}/responses", json=body)


def test_submission_is_scored(client, form_payload):
    form_id = _form(client, form_payload)
    r = _submit(client, form_id, {"fruit": {"Apple": "Fruit", "Carrot": "Fruit"}, "pets": ["CAT", "fox"]})
    assert r.status_code == 201
    body = r.json()
    assert body["score"] == 3.0
    assert body["maxScore"] == 6.0
    assert body["percentage"] == 50
    assert body["id"] and body["submittedAt"]


def test_submission_requires_respondent_fields(client, form_payload):
    form_id = _form(client, form_payload)
    r = client.post(f"/api/forms/{form_id}/responses", json={"submitterName": "Ann", "answers": {}})
    assert r.status_code == 400
    assert r.json()["detail"] == "Submitter name and email are required"
    r = client.post(f"/api/forms/{form_id}/responses", json={"submitterName": " ", "submitterEmail": "a@b.c", "answers": {}})
    assert r.status_code == 400


def test_submission_requires_answers(client, form_payload):
    form_id = _form(client, form_payload)
    r = client.post(f"/api/forms/{form_id}/responses", json={"submitterName": "Ann", "submitterEmail": "a@b.c"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Answers are required"


def test_empty_answers_score_zero(client, form_payload):
    form_id = _form(client, form_payload)
    body = _submit(client, form_id, {}).json()
    assert (body["score"], body["maxScore"], body["percentage"]) == (0.0, 6.0, 0)


def test_comprehension_mapping_answers(client, comprehension_question):
    form_id = _form(client, {"title": "Reading", "questions": [comprehension_question]})
    assert _submit(client, form_id, {"reading": [1, 0]}).json()["score"] == 2.0
    assert _submit(client, form_id, {"reading": {"0": 1, "1": 0}}).json()["score"] == 2.0


def test_broken_stored_question_still_scores(client, session_factory, cloze_question):
    with session_factory() as db:
        row = Form(title="Legacy", questions=[
            {"id": "bad", "type": "categorize", "points": 2, "data": {"correctMap": {"a": None}}},
            cloze_question,
        ])
        db.add(row)
        db.commit()
        form_id = row.id
    r = _submit(client, form_id, {"bad": {"a": "x"}, "pets": ["cat", "dog"]})
    assert r.status_code == 201
    body = r.json()
    assert (body["score"], body["maxScore"], body["percentage"]) == (2.0, 4.0, 50)


def test_list_responses(client, form_payload):
    form_id = _form(client, form_payload)
    _submit(client, form_id, {"pets": ["cat", "dog"]}, timeSpent=42, questionTimes={"pets": 12})
    rows = client.get(f"/api/forms/{form_id}/responses").json()
    assert len(rows) == 1
    row = rows[0]
    assert row["formId"] == form_id
    assert row["answers"] == {"pets": ["cat", "dog"]}
    assert row["timeSpent"] == 42
    assert row["questionTimes"] == {"pets": 12}
    assert row["submitterName"] == "Ann"


def test_all_responses_carry_form_title(client, form_payload):
    form_id = _form(client, form_payload)
    _submit(client, form_id, {"pets": ["cat", "dog"]})
    rows = client.get("/api/forms/responses/all").json()
    assert [r["formTitle"] for r in rows] == ["Quiz"]


def test_responses_are_not_editable(client, form_payload):
    form_id = _form(client, form_payload)
    response_id = _submit(client, form_id, {}).json()["id"]
    assert client.put(f"/api/forms/{form_id}/responses/{response_id}", json={}).status_code in (404, 405)


def test_export_responses_csv(client, form_payload):
    form_id = _form(client, form_payload)
    _submit(client, form_id, {"fruit": {"Apple": "Fruit"}, "pets": ["cat", "dog"]}, timeSpent=30)
    r = client.get(f"/api/forms/{form_id}/responses/export")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert 'filename="Quiz-responses-' in r.headers["content-disposition"]
    rows = list(csv.reader(io.StringIO(r.text)))
    assert rows[0][:7] == ["Name", "Email", "Score", "Max Score", "Percentage", "Time Spent (seconds)", "Submitted At"]
    assert rows[0][7:] == ["Question fruit", "Question pets"]
    assert rows[1][:6] == ["Ann", "ann@example.com", "4", "6", "67", "30"]
    assert rows[1][7:] == ['{"Apple":"Fruit"}', '["cat","dog"]']


def test_export_all_responses_csv(client, form_payload):
    form_id = _form(client, form_payload)
    _submit(client, form_id, {"pets": ["cat"]})
    r = client.get("/api/forms/responses/all/export")
    assert r.status_code == 200
    assert 'filename="all-responses-' in r.headers["content-disposition"]
    assert len(list(csv.reader(io.StringIO(r.text)))) == 2


def test_preview_saved_form_does_not_persist(client, form_payload):
    form_id = _form(client, form_payload)
    r = client.post(f"/api/forms/{form_id}/preview", json={"answers": {"pets": ["cat", "x"]}})
    assert r.status_code == 200
    body = r.json()
    assert (body["score"], body["maxScore"], body["percentage"]) == (1.0, 6.0, 17)
    assert {q["id"]: q["earned"] for q in body["questions"]} == {"fruit": 0.0, "pets": 1.0}
    assert client.get(f"/api/forms/{form_id}/responses").json() == []


def test_preview_draft_matches_submission(client, form_payload):
    answers = {"fruit": {"Apple": "Fruit", "Carrot": "Fruit"}, "pets": ["CAT", "fox"]}
    preview = client.post("/api/scoring/preview", json={"questions": form_payload["questions"], "answers": answers}).json()
    form_id = _form(client, form_payload)
    submitted = _submit(client, form_id, answers).json()
    assert (preview["score"], preview["maxScore"], preview["percentage"]) == (
        submitted["score"], submitted["maxScore"], submitted["percentage"])
