from chatstream.domain.services.error_normalizer import (
    OverloadNormalizer,
    build_diagnostic,
    describe_response_body,
    pretty_object,
)


class _FakeLocale:
    def text(self, key):
        return {"error.unauthorized": "Please log in."}.get(key, key)


def test_overload_normalizer_is_a_substring_match():
    normalizer = OverloadNormalizer()
    assert normalizer.normalize("insufficient_quota") == "ERROR: ServerUnreachable"
    assert normalizer.normalize("all good") == "all good"
    assert normalizer.is_overloaded(None) is False


def test_pretty_object_fences_json():
    assert pretty_object({"error": "bad"}) == '```json\n{\n  "error": "bad"\n}\n```'


def test_pretty_object_keeps_already_fenced_text():
    assert pretty_object("```json\n{}\n```") == "```json\n{}\n```"


def test_pretty_object_empty_object_falls_back_to_raw():
    assert pretty_object({}) == "{}"


def test_describe_response_body():
    assert describe_response_body("not json") == "not json"
    assert describe_response_body("{}") == "{}"
    assert describe_response_body('{"a": 1}').startswith("```json")


def test_diagnostic_for_401_includes_unauthorized_notice():
    text = build_diagnostic(401, '{"error": "no key"}', _FakeLocale())
    assert text.startswith("Please log in.\n\n```json")
    assert '"error": "no key"' in text


def test_diagnostic_without_locale_or_body():
    assert build_diagnostic(401, "") == ""
    assert build_diagnostic(500, "Internal Server Error") == "Internal Server Error"
