import json
from datetime import datetime, timezone

from assistant.envelope import fail, is_credential_error, normalize, ok, to_json


def test_ok_and_fail_shapes():
    assert ok("list_stacks", count=0, stacks=[]) == {
        "success": True, "action": "list_stacks", "count": 0, "stacks": [],
    }
    env = fail("describe_stack", "boom", stackName="app", resourceType=None)
    assert env == {"success": False, "action": "describe_stack", "error": "boom", "stackName": "app"}


def test_is_credential_error():
    assert is_credential_error("Unable to locate credentials")
    assert is_credential_error("An error occurred (ExpiredToken) when calling ...")
    assert is_credential_error("The security token included in the request is invalid.")
    assert not is_credential_error("Rate exceeded")


def test_to_json_serializes_datetimes():
    created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    data = json.loads(to_json(ok("list_stacks", stacks=[{"creationTime": created}])))
    assert data["stacks"][0]["creationTime"] == "2024-01-02T03:04:05+00:00"


def test_normalize_variants():
    assert normalize('{"action": "x", "value": 1}') == {"success": True, "action": "x", "value": 1}
    assert normalize('{"error": "nope"}')["success"] is False
    assert normalize("plain text") == {"success": True, "text": "plain text"}
    assert normalize([1, 2]) == {"success": True, "results": [1, 2]}
    env = fail("a", "b")
    assert normalize(env) is env
