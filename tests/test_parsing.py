from carenexa.parsing import parse_json_object, parse_json_payload, strip_code_fences


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences("") == ""


def test_parse_plain_and_fenced_json():
    assert parse_json_payload('{"a": 1}') == {"a": 1}
    assert parse_json_payload('```JSON\n[1, 2]\n```') == [1, 2]


def test_parse_object_embedded_in_prose():
    text = 'Sure! Here it is: {"safetyNote": "Go now."} Stay safe.'
    assert parse_json_object(text) == {"safetyNote": "Go now."}


def test_unparseable_returns_default():
    assert parse_json_payload("no json here", default="fallback") == "fallback"
    assert parse_json_object("[1, 2]") == {}
    assert parse_json_object("nope", default={"x": 1}) == {"x": 1}
