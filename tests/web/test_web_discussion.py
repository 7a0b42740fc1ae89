"""Tests for the discussion endpoint (/api/discussion)."""

URL = "/api/discussion"
TOPICS = {"resource": "topics"}
REPLIES = {"resource": "replies"}


def _reply(client, topic_id="T1", text="Next week", **extra):
    return client.post(
        URL,
        params=REPLIES,
        json={"topic_id": topic_id, "text": text, "author": "prof", **extra},
    )


class TestTopics:
    """Tests for ?resource=topics."""

    def test_create_topic_with_supplied_id(self, make_topic):
        """Caller-supplied topic_id is kept."""
        topic = make_topic()
        assert topic["topic_id"] == "T1"
        assert topic["subject"] == "Exam dates"

    def test_create_topic_generates_id(self, client):
        """Without topic_id an opaque key is generated."""
        response = client.post(
            URL, params=TOPICS, json={"subject": "Hi", "message": "Hello", "author": "ana"}
        )
        assert response.status_code == 201
        topic_id = response.json()["data"]["topic_id"]
        assert topic_id.startswith("topic_")
        assert len(topic_id) == len("topic_") + 12

    def test_duplicate_topic_id(self, client, make_topic):
        """Same topic_id twice yields 409."""
        make_topic()
        response = client.post(
            URL,
            params=TOPICS,
            json={"topic_id": "T1", "subject": "Again", "message": "x", "author": "bob"},
        )
        assert response.status_code == 409
        assert response.json()["message"] == "Topic ID already exists"

    def test_create_topic_missing_field(self, client):
        """Missing author yields 400."""
        response = client.post(URL, params=TOPICS, json={"subject": "Hi", "message": "x"})
        assert response.status_code == 400
        assert response.json()["message"] == "Missing required field: author"

    def test_create_topic_rejects_unsafe_id(self, client):
        """Keys are stored verbatim; markup characters yield 400."""
        response = client.post(
            URL,
            params=TOPICS,
            json={"topic_id": "Q&A", "subject": "Hi", "message": "x", "author": "ana"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == (
            "topic_id may only contain letters, digits, '_', '.' and '-'"
        )
        assert client.get(URL, params=TOPICS).json()["data"] == []

    def test_create_topic_blank_id_generated(self, client):
        """A blank topic_id counts as absent."""
        response = client.post(
            URL,
            params=TOPICS,
            json={"topic_id": "  ", "subject": "Hi", "message": "x", "author": "ana"},
        )
        assert response.status_code == 201
        assert response.json()["data"]["topic_id"].startswith("topic_")

    def test_get_topic_malformed_id(self, client):
        response = client.get(URL, params={**TOPICS, "id": "Q&A"})
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid Topic ID"

    def test_list_newest_first(self, client, make_topic):
        """Default order is newest first."""
        make_topic("T1")
        make_topic("T2")
        ids = [t["topic_id"] for t in client.get(URL, params=TOPICS).json()["data"]]
        assert ids == ["T2", "T1"]

    def test_list_search(self, client, make_topic):
        """Search covers subject and message."""
        make_topic("T1", subject="Exam dates")
        make_topic("T2", subject="Lab safety", message="Goggles required")
        data = client.get(URL, params={**TOPICS, "search": "goggles"}).json()["data"]
        assert [t["topic_id"] for t in data] == ["T2"]

    def test_get_topic(self, client, make_topic):
        """Single topic by id."""
        make_topic()
        response = client.get(URL, params={**TOPICS, "id": "T1"})
        assert response.status_code == 200
        assert response.json()["data"]["author"] == "ana"

    def test_get_unknown_topic(self, client):
        """Unknown topic yields 404."""
        assert client.get(URL, params={**TOPICS, "id": "nope"}).status_code == 404

    def test_update_topic(self, client, make_topic):
        """Partial update keeps other fields."""
        make_topic()
        response = client.put(URL, params=TOPICS, json={"topic_id": "T1", "subject": "Midterm"})
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["subject"] == "Midterm"
        assert data["message"] == "When is the midterm?"

    def test_update_unknown_topic(self, client):
        """Unknown topic yields 404."""
        response = client.put(URL, params=TOPICS, json={"topic_id": "T9", "subject": "x"})
        assert response.status_code == 404


class TestReplies:
    """Tests for ?resource=replies."""

    def test_create_reply(self, client, make_topic):
        """Reply is created with a generated id."""
        make_topic()
        response = _reply(client)
        assert response.status_code == 201
        data = response.json()["data"]
        assert data["topic_id"] == "T1"
        assert data["reply_id"].startswith("reply_")

    def test_reply_to_unknown_topic(self, client):
        """Parent topic must exist."""
        response = _reply(client, topic_id="T404")
        assert response.status_code == 404
        assert response.json()["message"] == "Parent topic not found"

    def test_duplicate_reply_id(self, client, make_topic):
        """Same reply_id twice yields 409."""
        make_topic()
        assert _reply(client, reply_id="R1").status_code == 201
        assert _reply(client, reply_id="R1").status_code == 409

    def test_reply_rejects_unsafe_ids(self, client, make_topic):
        """Both the reply key and the parent key must be plain."""
        make_topic()
        assert _reply(client, reply_id="R 1").status_code == 400
        assert _reply(client, topic_id="T1<b>").status_code == 400
        assert client.get(URL, params={**REPLIES, "topic_id": "T1"}).json()["data"] == []

    def test_list_replies_requires_topic(self, client):
        """Listing replies without topic_id yields 400."""
        assert client.get(URL, params=REPLIES).status_code == 400

    def test_list_replies_unknown_topic_empty(self, client):
        """Unknown topic simply has no replies."""
        response = client.get(URL, params={**REPLIES, "topic_id": "T404"})
        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_delete_reply(self, client, make_topic):
        """Reply can be deleted by id."""
        make_topic()
        _reply(client, reply_id="R1")
        assert client.delete(URL, params={**REPLIES, "id": "R1"}).status_code == 200
        assert client.get(URL, params={**REPLIES, "topic_id": "T1"}).json()["data"] == []

    def test_replies_cannot_be_edited(self, client):
        """PUT on replies yields 405."""
        assert client.put(URL, params=REPLIES, json={"reply_id": "R1"}).status_code == 405


class TestDeleteTopic:
    """Deleting a topic removes its replies."""

    def test_delete_topic_cascades(self, client, make_topic):
        make_topic()
        _reply(client, text="one")
        _reply(client, text="two")

        response = client.delete(URL, params={**TOPICS, "id": "T1"})
        assert response.status_code == 200
        assert response.json()["message"] == "Topic and associated replies deleted successfully"

        assert client.get(URL, params={**REPLIES, "topic_id": "T1"}).json()["data"] == []
        assert client.get(URL, params={**TOPICS, "id": "T1"}).status_code == 404

    def test_delete_unknown_topic(self, client):
        assert client.delete(URL, params={**TOPICS, "id": "T404"}).status_code == 404

    def test_topic_id_reusable_after_delete(self, client, make_topic):
        """A deleted key can be created again."""
        make_topic()
        client.delete(URL, params={**TOPICS, "id": "T1"})
        assert make_topic()["topic_id"] == "T1"
