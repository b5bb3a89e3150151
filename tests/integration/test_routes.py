"""API tests for ask, passages, conversations, books and questions."""

import uuid
from unittest.mock import AsyncMock, MagicMock

from prometheus_client import REGISTRY

from backend.saintshelp.api.auth import get_current_user
from backend.saintshelp.api.dependencies import get_ledger, get_prompt_repository
from backend.saintshelp.db.models import Book, Profile, QuestionPrompt, UsageDaily
from backend.saintshelp.quota import today
from backend.saintshelp.search.client import SearchHit

USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
OTHER_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000003")
BOOK_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b1")
UNINDEXED_BOOK_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b2")

SAYINGS = [
    "A brother asked Abba Poemen how he might acquire humility. The elder said to him, "
    "bear every reproach in silence.",
    "Abba Moses said, go and sit in your cell, and your cell will teach you everything "
    "about humility.",
    "Abba Anthony said, I saw the snares of the enemy spread over the world, and only "
    "humility passes through them.",
    "An elder said that humility is the ground on which every other virtue must be built "
    "if it is to stand.",
]


def _seed_books(api, fake_search_client) -> None:
    api.seed(
        Book(book_id=BOOK_ID, title="Sayings of the Fathers", index_handle="vs_1"),
        Book(book_id=UNINDEXED_BOOK_ID, title="Pending Upload", index_handle=None),
    )
    fake_search_client.hits = {
        "vs_1": [SearchHit(text, score) for text, score in zip(SAYINGS, [0.3, 0.9, 0.6, 0.1])]
    }


def _ask(api, **overrides):
    body = {"question": "How can I grow in humility?", "selectedDocumentIds": [str(BOOK_ID)]}
    body.update(overrides)
    return api.client.post("/ask", json=body)


class TestAsk:
    def test_returns_top_passages_without_full_text(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)

        response = _ask(api)

        assert response.status_code == 200
        data = response.json()
        uuid.UUID(data["conversationId"])
        assert data["conversationTitle"] == "How can I grow in humility?"
        assert [p["score"] for p in data["passages"]] == [0.9, 0.6, 0.3]
        for passage in data["passages"]:
            assert set(passage) == {"id", "book_id", "book_title", "score", "text"}
            assert passage["book_title"] == "Sayings of the Fathers"

    def test_missing_question(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)

        response = _ask(api, question="  ")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing question"}

    def test_empty_selection(self, api) -> None:
        response = _ask(api, selectedDocumentIds=[])

        assert response.status_code == 400
        assert response.json() == {"error": "Select at least one book"}

    def test_outcomes_are_counted(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)

        def count(outcome: str) -> float:
            value = REGISTRY.get_sample_value("ask_requests_total", {"outcome": outcome})
            return value or 0.0

        answered, rejected = count("answered"), count("http_400")

        _ask(api)
        _ask(api, question="")

        assert count("answered") == answered + 1
        assert count("http_400") == rejected + 1

    def test_unindexed_books(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)

        response = _ask(api, selectedDocumentIds=[str(UNINDEXED_BOOK_ID)])

        assert response.status_code == 400
        assert response.json() == {"error": "Selected books are not indexed yet."}

    def test_quota_exhausted(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        api.seed(UsageDaily(user_id=USER_ID, day=today(), count=50))

        response = _ask(api)

        assert response.status_code == 429
        assert response.json() == {"error": "Daily limit reached"}
        assert api.client.get("/conversations").json() == {"conversations": []}

    def test_no_usable_hits_is_empty_success(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        fake_search_client.hits = {"vs_1": [SearchHit("Contents\nOn Prayer ..... 4", 0.9)]}

        response = _ask(api)

        assert response.status_code == 200
        assert response.json()["passages"] == []

    def test_follow_up_keeps_conversation(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        first = _ask(api).json()

        second = _ask(api, conversationId=first["conversationId"], question="And patience?")

        assert second.json()["conversationId"] == first["conversationId"]

    def test_foreign_conversation_id_starts_new_one(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        theirs = _ask(api).json()

        api.act_as(OTHER_USER_ID)
        mine = _ask(api, conversationId=theirs["conversationId"]).json()

        assert mine["conversationId"] != theirs["conversationId"]


class TestFullPassage:
    def test_owner_gets_full_text(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        passage = _ask(api).json()["passages"][0]

        response = api.client.post("/passages/full", json={"passageId": passage["id"]})

        assert response.status_code == 200
        data = response.json()
        assert data["passageId"] == passage["id"]
        assert data["book_id"] == str(BOOK_ID)
        assert data["text"] == SAYINGS[1]

    def test_other_user_forbidden(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        passage = _ask(api).json()["passages"][0]

        api.act_as(OTHER_USER_ID)
        response = api.client.post("/passages/full", json={"passageId": passage["id"]})

        assert response.status_code == 403
        assert response.json() == {"error": "Not allowed"}

    def test_missing_id(self, api) -> None:
        response = api.client.post("/passages/full", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing passageId"}

    def test_unknown_or_malformed_id(self, api) -> None:
        for passage_id in (str(uuid.uuid4()), "not-a-uuid"):
            response = api.client.post("/passages/full", json={"passageId": passage_id})

            assert response.status_code == 404
            assert response.json() == {"error": "Passage not found"}


class TestConversations:
    def test_list_replay_delete(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        cid = _ask(api).json()["conversationId"]

        listed = api.client.get("/conversations").json()["conversations"]
        assert [c["id"] for c in listed] == [cid]
        assert listed[0]["title"] == "How can I grow in humility?"

        detail = api.client.get(f"/conversations/{cid}").json()
        assert detail["conversation"]["id"] == cid
        assert [m["role"] for m in detail["messages"]] == ["user", "assistant"]
        assert detail["messages"][0]["text"] == "How can I grow in humility?"
        assert "full_text" not in detail["messages"][1]["passages"][0]

        deleted = api.client.delete(f"/conversations/{cid}")
        assert deleted.status_code == 200
        assert deleted.json() == {"success": True}
        assert api.client.get(f"/conversations/{cid}").status_code == 404

    def test_other_users_conversation_is_hidden(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        cid = _ask(api).json()["conversationId"]

        api.act_as(OTHER_USER_ID)

        assert api.client.get("/conversations").json() == {"conversations": []}
        response = api.client.get(f"/conversations/{cid}")
        assert response.status_code == 404
        assert response.json() == {"error": "Conversation not found"}
        assert api.client.delete(f"/conversations/{cid}").status_code == 404

    def test_malformed_id_is_bad_request(self, api) -> None:
        response = api.client.get("/conversations/not-a-uuid")

        assert response.status_code == 400
        assert "error" in response.json()

    def test_storage_failure_is_json_error(self, api) -> None:
        ledger = MagicMock()
        ledger.list_conversations = AsyncMock(side_effect=RuntimeError("database is locked"))
        api.app.dependency_overrides[get_ledger] = lambda: ledger

        response = api.client.get("/conversations")

        assert response.status_code == 500
        assert response.json() == {"error": "database is locked"}


class TestBooks:
    def test_list_books(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)

        books = api.client.get("/books").json()["books"]

        assert {(b["id"], b["indexed"]) for b in books} == {
            (str(BOOK_ID), True),
            (str(UNINDEXED_BOOK_ID), False),
        }

    def test_admin_upload_creates_indexed_global_book(self, api) -> None:
        api.act_as(USER_ID, is_admin=True)

        response = api.client.post(
            "/books/upload",
            files={"file": ("sayings.pdf", b"%PDF-1.4 test", "application/pdf")},
            data={"title": "  Sayings  "},
        )

        assert response.status_code == 200
        book = response.json()["book"]
        assert book["title"] == "Sayings"
        assert book["indexed"] is True
        assert api.index_builder.built == [("Sayings", "sayings.pdf", b"%PDF-1.4 test")]

        with api.db() as session:
            row = session.get(Book, uuid.UUID(book["id"]))
            assert row is not None
            assert row.owner_user_id is None
            assert row.index_handle == "vs_uploaded_1"
            assert row.storage_path.startswith(f"{USER_ID}/")
            assert row.storage_path.endswith("_sayings.pdf")

    def test_upload_rejects_non_pdf(self, api) -> None:
        api.act_as(USER_ID, is_admin=True)

        response = api.client.post(
            "/books/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            data={"title": "Notes"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Only PDF supported"}
        assert api.index_builder.built == []

    def test_upload_requires_title_and_file(self, api) -> None:
        api.act_as(USER_ID, is_admin=True)

        no_title = api.client.post(
            "/books/upload",
            files={"file": ("s.pdf", b"%PDF", "application/pdf")},
            data={"title": " "},
        )
        no_file = api.client.post("/books/upload", data={"title": "Sayings"})

        assert no_title.json() == {"error": "Missing title"}
        assert no_file.json() == {"error": "Missing file"}

    def test_upload_requires_admin(self, api) -> None:
        response = api.client.post(
            "/books/upload",
            files={"file": ("s.pdf", b"%PDF", "application/pdf")},
            data={"title": "Sayings"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Admin only"}

    def test_admin_delete(self, api, fake_search_client) -> None:
        _seed_books(api, fake_search_client)
        api.act_as(USER_ID, is_admin=True)

        response = api.client.delete(f"/books/{BOOK_ID}")

        assert response.json() == {"success": True}
        assert api.index_builder.removed == [("vs_1", None)]
        assert api.client.delete(f"/books/{BOOK_ID}").status_code == 404

    def test_indexing_failure_is_json_error(self, api) -> None:
        api.act_as(USER_ID, is_admin=True)
        api.index_builder.build_error = RuntimeError("vector store quota exceeded")

        response = api.client.post(
            "/books/upload",
            files={"file": ("sayings.pdf", b"%PDF-1.4 test", "application/pdf")},
            data={"title": "Sayings"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "vector store quota exceeded"}
        assert api.client.get("/books").json() == {"books": []}


class TestQuestions:
    def test_random_questions_without_auth(self, api) -> None:
        api.app.dependency_overrides.pop(get_current_user)
        api.seed(*(QuestionPrompt(question_text=f"Question {i}?") for i in range(7)))

        response = api.client.get("/questions/random")

        assert response.status_code == 200
        questions = response.json()["questions"]
        assert len(questions) == 5
        assert len(set(questions)) == 5

    def test_storage_failure_is_json_error(self, api) -> None:
        prompts = MagicMock()
        prompts.random_questions = AsyncMock(side_effect=RuntimeError("no such table"))
        api.app.dependency_overrides[get_prompt_repository] = lambda: prompts

        response = api.client.get("/questions/random")

        assert response.status_code == 500
        assert response.json() == {"error": "no such table"}


class TestAuthentication:
    def test_missing_token(self, api) -> None:
        api.app.dependency_overrides.pop(get_current_user)

        response = api.client.get("/conversations")

        assert response.status_code == 401
        assert response.json() == {"error": "Missing Bearer token"}

    def test_invalid_token(self, api) -> None:
        api.app.dependency_overrides.pop(get_current_user)

        response = api.client.get("/conversations", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    def test_profile_states(self, api, make_token) -> None:
        api.app.dependency_overrides.pop(get_current_user)
        pending = uuid.uuid4()
        api.seed(
            Profile(user_id=USER_ID, email="a@example.com", status="approved"),
            Profile(user_id=pending, email="b@example.com", status="pending"),
        )

        def get(user_id: uuid.UUID):
            headers = {"Authorization": f"Bearer {make_token(user_id)}"}
            return api.client.get("/conversations", headers=headers)

        assert get(USER_ID).status_code == 200
        assert get(pending).json() == {"error": "User not approved"}
        assert get(uuid.uuid4()).json() == {"error": "Profile missing"}
