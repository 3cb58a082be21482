import pytest

from iris_worker.models.summary import ProjectSummary
from iris_worker.services.normalize import (
    Accepted,
    Rejected,
    first_json_object,
    normalize_response,
    strip_code_fences,
)


def test_plain_json_is_accepted():
    raw = '{"title":"Helios","start_date":"2024-11-10","end_date":"2025-04-20","budget":78000}'
    result = normalize_response(raw)
    assert isinstance(result, Accepted)
    assert result.summary == ProjectSummary(
        title="Helios", start_date="2024-11-10", end_date="2025-04-20", budget=78000
    )


def test_code_fences_and_prose_are_tolerated():
    raw = 'Sure! Here it is:\n```json\n{"title": "RoomFlow", "budget": null}\n```\nHope that helps.'
    result = normalize_response(raw)
    assert isinstance(result, Accepted)
    assert result.summary.title == "RoomFlow"
    assert result.summary.budget is None


def test_missing_keys_count_as_null():
    result = normalize_response('{"title": "Nova"}')
    assert isinstance(result, Accepted)
    assert result.summary == ProjectSummary(title="Nova")


def test_grouped_digit_budget_string_is_coerced():
    result = normalize_response('{"budget": "12 500"}')
    assert isinstance(result, Accepted)
    assert result.summary.budget == 12500


@pytest.mark.parametrize("raw", [None, "", "   \n"])
def test_empty_output_is_rejected(raw):
    result = normalize_response(raw)
    assert isinstance(result, Rejected)
    assert result.reason == "empty_response"


def test_text_without_object_is_rejected():
    result = normalize_response("I could not find anything, sorry.")
    assert isinstance(result, Rejected)
    assert result.reason == "no_payload"


def test_object_inside_array_is_picked_out():
    result = normalize_response('[{"title": "Helios"}]')
    assert isinstance(result, Accepted)
    assert result.summary.title == "Helios"


def test_broken_json_is_rejected():
    result = normalize_response('{"title": "Helios", budget: 12}')
    assert isinstance(result, Rejected)
    assert result.reason == "invalid_json"


@pytest.mark.parametrize(
    "raw,field",
    [
        ('{"title": "Helios", "budget": "a lot"}', "budget"),
        ('{"title": "Helios", "budget": -5}', "budget"),
        ('{"title": "Helios", "budget": true}', "budget"),
        ('{"title": "Helios", "start_date": "March 2025"}', "start_date"),
        ('{"title": "Helios", "end_date": "2025-02-30"}', "end_date"),
        ('{"title": "   "}', "title"),
        ('{"title": 42}', "title"),
    ],
)
def test_one_bad_field_rejects_the_whole_payload(raw, field):
    result = normalize_response(raw)
    assert isinstance(result, Rejected)
    assert result.reason == "schema_violation"
    assert field in result.detail


def test_rejected_str_includes_detail():
    assert str(Rejected("invalid_json", "line 1")) == "invalid_json: line 1"
    assert str(Rejected("empty_response")) == "empty_response"


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_first_json_object_ignores_braces_in_strings():
    text = 'noise {"title": "a } b", "x": {"y": 1}} trailing }'
    assert first_json_object(text) == '{"title": "a } b", "x": {"y": 1}}'


def test_first_json_object_skips_unbalanced_prefix():
    assert first_json_object('{ oops {"a": 1}') == '{"a": 1}'
    assert first_json_object('no braces here') is None
