import json
import pytest
from app.services.candidate_filter import (
    MAX_SELECTED,
    PROMPT_SAMPLE_SIZE,
    filter_places,
    parse_selected_ids,
)
from conftest import FakeLLM, make_constraints, make_place


def places(n):
    return [make_place(f"p{i}", rating=4.0 + (i % 10) / 10) for i in range(n)]


def test_filter_keeps_selected_in_input_order():
    pool = places(10)
    llm = FakeLLM(['[{"id": "p7"}, {"id": "p2"}, {"id": "unknown"}]'])

    kept = filter_places(pool, make_constraints(), client=llm)

    assert [p.id for p in kept] == ["p2", "p7"]


def test_unparsable_reply_returns_all_places():
    pool = places(15)

    kept = filter_places(pool, make_constraints(), client=FakeLLM(["not json"]))

    assert kept == pool


def test_empty_selection_returns_all_places():
    pool = places(5)
    assert filter_places(pool, make_constraints(), client=FakeLLM(['[{"id": "zzz"}]'])) == pool
    assert filter_places(pool, make_constraints(), client=FakeLLM(["[]"])) == pool


def test_unconfigured_model_returns_all_places():
    pool = places(3)
    assert filter_places(pool, make_constraints(), client=FakeLLM()) == pool


def test_empty_input_skips_model():
    llm = FakeLLM(['[{"id": "a"}]'])
    assert filter_places([], make_constraints(), client=llm) == []
    assert llm.calls == []


def test_prompt_shows_only_first_sample():
    pool = places(20)
    llm = FakeLLM(['[{"id": "p19"}]'])

    kept = filter_places(pool, make_constraints(), client=llm)

    prompt = llm.calls[0]["prompt"]
    assert '"p14"' in prompt
    assert '"p15"' not in prompt
    assert PROMPT_SAMPLE_SIZE == 15
    # ids still filter the full list
    assert [p.id for p in kept] == ["p19"]


def test_minor_groups_get_the_age_rule_in_prompt():
    llm = FakeLLM(['["p1"]'])
    filter_places(places(3), make_constraints(age_range=[10, 40]), client=llm)
    assert "under 21" in llm.calls[0]["prompt"]


def test_parse_selected_ids_shapes():
    assert parse_selected_ids('[{"id": "a"}, "b", {"name": "x"}, {"id": "a"}, 3]') == ["a", "b"]
    ids = parse_selected_ids(str([f"x{i}" for i in range(12)]).replace("'", '"'))
    assert len(ids) == MAX_SELECTED


def test_parse_selected_ids_requires_array():
    with pytest.raises(ValueError):
        parse_selected_ids('{"id": "a"}')


def test_unknown_ids_do_not_crowd_out_valid_picks():
    pool = places(10)
    reply = [{"id": f"ghost{i}"} for i in range(8)] + [{"id": "p1"}, {"id": "p2"}, {"id": "p3"}]
    llm = FakeLLM([json.dumps(reply)])

    kept = filter_places(pool, make_constraints(), client=llm)

    assert [p.id for p in kept] == ["p1", "p2", "p3"]


def test_parse_selected_ids_caps_after_dropping_unknown():
    known = {f"p{i}" for i in range(12)}
    raw = json.dumps([f"ghost{i}" for i in range(5)] + [f"p{i}" for i in range(12)])

    assert parse_selected_ids(raw, known) == [f"p{i}" for i in range(MAX_SELECTED)]


def test_filter_requests_json_reply():
    llm = FakeLLM(['[{"id": "p1"}]'])
    filter_places(places(3), make_constraints(), client=llm)
    assert llm.calls[0]["response_mime_type"] == "application/json"
