"""Tests for ParseClient object and file operations."""

import urllib.parse
from datetime import datetime, timezone

import pytest

from parse_cli.core.errors import BackendError, DecodeError, InvalidArgumentError
from parse_cli.core.types import ParseDate, ParseFile, ParseObject, Pointer
from parse_cli.sdk import ParseClient

from .conftest import APP_ID, APP_SECRET, BASE_URL, create_http_error


@pytest.fixture
def client() -> ParseClient:
    return ParseClient(APP_ID, APP_SECRET, base_url=BASE_URL, timeout=5)


def _query_params(url: str) -> dict[str, str]:
    return dict(urllib.parse.parse_qsl(urllib.parse.urlsplit(url).query))


class TestConfiguration:
    def test_environment_fallback(self, monkeypatch, fake_urlopen):
        monkeypatch.setenv("PARSE_APPLICATION_ID", "env-id")
        monkeypatch.setenv("PARSE_APPLICATION_SECRET", "env-secret")
        monkeypatch.setenv("PARSE_BASE_URL", "https://env.example.com/1")
        fake_urlopen.respond({"objectId": "a", "createdAt": "2011-08-20T02:06:57.931Z"})

        ParseClient().objects.get("GameScore", "a")

        assert fake_urlopen.last.url == "https://env.example.com/1/classes/GameScore/a"
        assert fake_urlopen.last.header("X-Parse-Application-Id") == "env-id"

    def test_missing_credentials(self, monkeypatch):
        monkeypatch.delenv("PARSE_APPLICATION_ID", raising=False)
        monkeypatch.delenv("PARSE_APPLICATION_SECRET", raising=False)
        with pytest.raises(InvalidArgumentError):
            ParseClient()

    def test_timeout(self, client):
        assert client.timeout == 5
        assert ParseClient("id", "secret").timeout == 100


class TestCreate:
    def test_create_merges_server_fields(self, client, fake_urlopen):
        record = ParseObject("GameScore", {"score": 1337, "playerName": "Sean"})
        fake_urlopen.respond({"objectId": "Ed1nuqPvcm", "createdAt": "2011-08-20T02:06:57.931Z"}, status=201)

        result = client.objects.create(record)

        assert result is record
        assert record.object_id == "Ed1nuqPvcm"
        assert record.created_at == "2011-08-20T02:06:57.931Z"
        assert record.class_name == "GameScore"

        request = fake_urlopen.last
        assert request.method == "POST"
        assert request.url == f"{BASE_URL}/classes/GameScore"
        assert request.json() == {"score": 1337, "playerName": "Sean"}

    def test_create_sends_wrappers(self, client, fake_urlopen):
        record = ParseObject("GameScore")
        record["playedAt"] = datetime(2011, 8, 21, 18, 2, 52, 249000, tzinfo=timezone.utc)
        record["avatar"] = ParseFile("a.png", name="tfss-a.png")
        record["player"] = Pointer("Player", "p1")
        fake_urlopen.respond({"objectId": "x", "createdAt": "2011-08-20T02:06:57.931Z"})

        client.objects.create(record)

        body = fake_urlopen.last.json()
        assert body["playedAt"] == {"__type": "Date", "iso": "2011-08-21T18:02:52.249Z"}
        assert body["avatar"] == {"__type": "File", "name": "tfss-a.png"}
        assert body["player"] == {"__type": "Pointer", "className": "Player", "objectId": "p1"}
        assert "class" not in body

    def test_create_backend_error_leaves_record_intact(self, client, fake_urlopen):
        record = ParseObject("GameScore", {"score": 1})
        url = f"{BASE_URL}/classes/GameScore"
        fake_urlopen.fail(create_http_error(url, 400, {"code": 111, "error": "invalid type for key score"}))

        with pytest.raises(BackendError) as exc_info:
            client.objects.create(record)

        assert exc_info.value.code == 111
        assert record.class_name == "GameScore"
        assert record.object_id is None
        assert dict(record) == {"class": "GameScore", "score": 1}

    def test_create_unexpected_response(self, client, fake_urlopen):
        fake_urlopen.respond({"createdAt": "2011-08-20T02:06:57.931Z"})
        with pytest.raises(DecodeError, match="objectId"):
            client.objects.create(ParseObject("GameScore"))

    def test_create_requires_record(self, client, fake_urlopen):
        with pytest.raises(InvalidArgumentError):
            client.objects.create(None)
        assert fake_urlopen.requests == []


class TestUpdate:
    def test_update_excludes_class_and_created_at(self, client, fake_urlopen):
        record = ParseObject(
            "ClassOne",
            {"objectId": "abc", "createdAt": "2011-08-20T02:06:57.931Z", "foo": "notbar"},
        )
        fake_urlopen.respond({"updatedAt": "2011-08-21T18:02:52.248Z"})

        assert client.objects.update(record) is None

        request = fake_urlopen.last
        assert request.method == "PUT"
        assert request.url == f"{BASE_URL}/classes/ClassOne/abc"
        body = request.json()
        assert "class" not in body
        assert "createdAt" not in body
        assert body["foo"] == "notbar"

        assert record.class_name == "ClassOne"
        assert record.created_at == "2011-08-20T02:06:57.931Z"
        assert record.updated_at is None

    def test_update_requires_object_id(self, client, fake_urlopen):
        with pytest.raises(InvalidArgumentError):
            client.objects.update(ParseObject("ClassOne"))
        with pytest.raises(InvalidArgumentError):
            client.objects.update(None)
        assert fake_urlopen.requests == []


class TestGet:
    def test_get_builds_record(self, client, fake_urlopen):
        fake_urlopen.respond(
            {
                "objectId": "Ed1nuqPvcm",
                "createdAt": "2011-08-20T02:06:57.931Z",
                "updatedAt": "2011-08-20T02:06:57.931Z",
                "score": 1337,
                "playedAt": {"__type": "Date", "iso": "2011-08-21T18:02:52.249Z"},
            }
        )

        record = client.objects.get("GameScore", "Ed1nuqPvcm")

        assert fake_urlopen.last.method == "GET"
        assert fake_urlopen.last.url == f"{BASE_URL}/classes/GameScore/Ed1nuqPvcm"
        assert record.class_name == "GameScore"
        assert record.object_id == "Ed1nuqPvcm"
        assert record["score"] == 1337
        assert record["playedAt"] == ParseDate("2011-08-21T18:02:52.249Z")
        assert record.parse_date("playedAt") == datetime(2011, 8, 21, 18, 2, 52, 249000, tzinfo=timezone.utc)

    @pytest.mark.parametrize("class_name,object_id", [("", "a"), ("GameScore", ""), (None, "a")])
    def test_get_requires_arguments(self, client, fake_urlopen, class_name, object_id):
        with pytest.raises(InvalidArgumentError):
            client.objects.get(class_name, object_id)
        assert fake_urlopen.requests == []

    def test_get_not_found(self, client, fake_urlopen):
        url = f"{BASE_URL}/classes/GameScore/nope"
        fake_urlopen.fail(create_http_error(url, 404, {"code": 101, "error": "object not found for get"}))
        with pytest.raises(BackendError) as exc_info:
            client.objects.get("GameScore", "nope")
        assert exc_info.value.status == 404


class TestQuery:
    def test_query_parameters(self, client, fake_urlopen):
        fake_urlopen.respond({"results": []})

        client.objects.query("LevelScore", {"Level": "First"}, "-Score", 10, 5)

        params = _query_params(fake_urlopen.last.url)
        assert params == {"where": '{"Level":"First"}', "order": "-Score", "limit": "10", "skip": "5"}

    def test_query_without_optional_parameters(self, client, fake_urlopen):
        fake_urlopen.respond({"results": []})
        client.objects.query("LevelScore", {})
        assert _query_params(fake_urlopen.last.url) == {"where": "{}"}

    def test_query_results_tagged_with_class(self, client, fake_urlopen):
        fake_urlopen.respond(
            {
                "results": [
                    {"objectId": "a", "createdAt": "2011-08-20T02:06:57.931Z", "Score": 0},
                    {"objectId": "b", "createdAt": "2011-08-20T02:06:58.931Z", "Score": 1},
                ]
            }
        )

        records = client.objects.query("LevelScore", {"Level": "First"}, order="Score")

        assert [r.class_name for r in records] == ["LevelScore", "LevelScore"]
        assert [r.object_id for r in records] == ["a", "b"]
        assert [r["Score"] for r in records] == [0, 1]

    def test_query_filter_with_pointer_and_date(self, client, fake_urlopen):
        fake_urlopen.respond({"results": []})
        player = ParseObject("Player", {"objectId": "p1"})

        client.objects.query(
            "GameScore",
            {"player": player.pointer(), "playedAt": {"$gte": datetime(2011, 8, 21, tzinfo=timezone.utc)}},
        )

        assert _query_params(fake_urlopen.last.url)["where"] == (
            '{"player":{"__type":"Pointer","className":"Player","objectId":"p1"},'
            '"playedAt":{"$gte":{"__type":"Date","iso":"2011-08-21T00:00:00.000Z"}}}'
        )

    @pytest.mark.parametrize("response", [{}, {"results": "nope"}, {"results": [1, 2]}])
    def test_query_unexpected_response(self, client, fake_urlopen, response):
        fake_urlopen.respond(response)
        with pytest.raises(DecodeError):
            client.objects.query("LevelScore", {})

    def test_query_requires_filter(self, client, fake_urlopen):
        with pytest.raises(InvalidArgumentError):
            client.objects.query("LevelScore", None)
        with pytest.raises(InvalidArgumentError):
            client.objects.query("", {})
        assert fake_urlopen.requests == []


class TestDelete:
    def test_delete(self, client, fake_urlopen):
        fake_urlopen.respond({})
        record = ParseObject("GameScore", {"objectId": "abc"})

        assert client.objects.delete(record) is None
        assert fake_urlopen.last.method == "DELETE"
        assert fake_urlopen.last.url == f"{BASE_URL}/classes/GameScore/abc"

    def test_delete_requires_created_record(self, client, fake_urlopen):
        with pytest.raises(InvalidArgumentError):
            client.objects.delete(None)
        with pytest.raises(InvalidArgumentError):
            client.objects.delete(ParseObject("GameScore"))
        assert fake_urlopen.requests == []


class TestFiles:
    def test_upload_populates_handle(self, client, fake_urlopen, tmp_path):
        path = tmp_path / "testFile.txt"
        path.write_text("This is a test file.")
        fake_urlopen.respond(
            {
                "name": "d3a9-testFile.txt",
                "url": "http://files.parse.com/app/d3a9-testFile.txt",
            },
            status=201,
        )
        handle = ParseFile(str(path))

        result = client.files.upload(handle)

        assert result is handle
        assert handle.name == "d3a9-testFile.txt"
        assert handle.url == "http://files.parse.com/app/d3a9-testFile.txt"
        assert fake_urlopen.last.url == f"{BASE_URL}/files/testFile.txt"
        assert fake_urlopen.last.header("Content-Type") == "text/plain"
        assert fake_urlopen.last.body == b"This is a test file."

        record = ParseObject("ClassOne")
        record["attachment"] = handle
        assert record.to_payload()["attachment"]["name"] == "d3a9-testFile.txt"

    def test_upload_multipart(self, client, fake_urlopen, tmp_path):
        path = tmp_path / "testFile.txt"
        path.write_text("abc")
        fake_urlopen.respond({"name": "n", "url": "u"})

        client.files.upload(ParseFile(str(path)), multipart=True)
        assert fake_urlopen.last.header("Content-Type").startswith("multipart/form-data")

    def test_upload_missing_local_file(self, client, fake_urlopen, tmp_path):
        with pytest.raises(InvalidArgumentError):
            client.files.upload(ParseFile(str(tmp_path / "missing.txt")))
        assert fake_urlopen.requests == []

    def test_upload_unexpected_response(self, client, fake_urlopen, tmp_path):
        path = tmp_path / "testFile.txt"
        path.write_text("abc")
        fake_urlopen.respond({"name": "n"})
        handle = ParseFile(str(path))

        with pytest.raises(DecodeError, match="url"):
            client.files.upload(handle)
        assert handle.name is None

    def test_delete_file(self, client, fake_urlopen):
        fake_urlopen.respond({})
        client.files.delete(ParseFile("testFile.txt", name="d3a9-testFile.txt"))
        assert fake_urlopen.last.method == "DELETE"
        assert fake_urlopen.last.url == f"{BASE_URL}/files/d3a9-testFile.txt"

    def test_delete_file_without_name_is_noop(self, client, fake_urlopen):
        client.files.delete(ParseFile("testFile.txt"))
        client.files.delete(None)
        assert fake_urlopen.requests == []
