from client import fetch_json


def test_fetch_json_is_callable():
    assert callable(fetch_json)
