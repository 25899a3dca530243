import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from formbuilder import models  # noqa: F401  registers tables on Base.metadata
from formbuilder.db import Base, enable_sqlite_foreign_keys, get_db
from formbuilder.main import app
from formbuilder.routers.responses import get_email_sender
from formbuilder.settings import settings


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    engine.dispose()


@pytest.fixture
def client(session_factory, tmp_path, monkeypatch):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_email_sender] = lambda: None
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path / "uploads"))
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def categorize_question():
    return {
        "id": "fruit",
        "kind": "categorize",
        "title": "Sort the produce",
        "points": 4,
        "answerKey": {
            "categories": ["Fruit", "Vegetable"],
            "items": ["Apple", "Carrot"],
            "correctMap": {"Apple": "Fruit", "Carrot": "Vegetable"},
        },
    }


@pytest.fixture
def cloze_question():
    return {
        "id": "pets",
        "kind": "cloze",
        "title": "Fill the blanks",
        "points": 2,
        "answerKey": {"text": "The ___ chased the ___.", "answers": ["cat", "dog"]},
    }


@pytest.fixture
def comprehension_question():
    return {
        "id": "reading",
        "kind": "comprehension",
        "title": "Read and answer",
        "points": 2,
        "answerKey": {
            "passage": "Ada wrote the first program.",
            "subQuestions": [
                {"prompt": "Who?", "choices": ["Alan", "Ada", "Grace"], "correctChoiceIndex": 1},
                {"prompt": "What?", "choices": ["A program", "A poem"], "correctChoiceIndex": 0},
            ],
        },
    }


@pytest.fixture
def form_payload(categorize_question, cloze_question):
    return {
        "title": "Quiz",
        "description": "Produce and pets",
        "questions": [categorize_question, cloze_question],
        "isPublished": True,
    }
