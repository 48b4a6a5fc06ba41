"""Practice-question JSONL parsing and chunked upsert."""
import json
from types import SimpleNamespace

from importer import dedupe_by_id, load_and_transform, parse_line, upsert_questions_bulk

TOPIC = "11111111-1111-1111-1111-111111111111"


def line(**fields):
    return json.dumps(fields)


def test_valid_line_maps_to_row():
    row = parse_line(line(question_id="alg-1", question="2+2?", options=["3", "4"], correct_answer=1,
                          explanation="Add.", difficulty="easy"), TOPIC)
    assert row["topic_id"] == TOPIC
    assert row["question"] == "2+2?"
    assert row["correct_answer"] == 1
    assert row["difficulty"] == "easy"
    # stable id
    assert row["id"] == parse_line(line(question_id="alg-1", question="changed", options=["a", "b"]), TOPIC)["id"]


def test_rejects_blank_and_broken_lines():
    assert parse_line("", TOPIC) is None
    assert parse_line("{not json", TOPIC) is None
    assert parse_line(line(question="one option", options=["a"]), TOPIC) is None
    assert parse_line(line(options=["a", "b"]), TOPIC) is None


def test_unknown_difficulty_falls_back_to_medium():
    row = parse_line(line(question="q", options=["a", "b"], difficulty="brutal"), TOPIC)
    assert row["correct_answer"] == 0
    assert row["difficulty"] == "medium"


def test_out_of_range_answer_is_rejected():
    assert parse_line(line(question="q", options=["a", "b"], correct_answer=7), TOPIC) is None
    assert parse_line(line(question="q", options=["a", "b"], correct_answer=-1), TOPIC) is None
    assert parse_line(line(question="q", options=["a", "b"], correct_answer="1"), TOPIC) is None
    assert parse_line(line(question="q", options=["a", "b"], correct_answer=True), TOPIC) is None


def test_more_than_ten_options_is_rejected():
    assert parse_line(line(question="q", options=[str(i) for i in range(12)], correct_answer=11), TOPIC) is None
    row = parse_line(line(question="q", options=[str(i) for i in range(10)], correct_answer=9), TOPIC)
    assert row["correct_answer"] == 9


def test_non_object_lines_are_skipped():
    assert parse_line("[1, 2]", TOPIC) is None
    assert parse_line('"x"', TOPIC) is None
    assert parse_line("42", TOPIC) is None
    assert parse_line(line(question=["not", "text"], options=["a", "b"]), TOPIC) is None


def test_load_and_transform_skips_invalid(tmp_path):
    path = tmp_path / "questions.jsonl"
    path.write_text(
        "\n".join([
            line(question="a?", options=["x", "y"]),
            "garbage",
            "[1, 2]",
            line(question="c?", options=["x", "y"], correct_answer=5),
            line(question="b?", options=["x", "y", "z"], correct_answer=2),
        ]),
        encoding="utf-8",
    )
    rows = list(load_and_transform(path, TOPIC))
    assert [r["question"] for r in rows] == ["a?", "b?"]


def test_upsert_dedupes_and_chunks():
    upserts = []

    class Table:
        def upsert(self, chunk, on_conflict=None):
            upserts.append((chunk, on_conflict))
            return SimpleNamespace(execute=lambda: SimpleNamespace(data=chunk))

    client = SimpleNamespace(table=lambda name: Table())
    rows = [{"id": str(i % 5), "question": str(i)} for i in range(7)]
    assert len(dedupe_by_id(rows)) == 5
    upsert_questions_bulk(client, rows, chunk_size=2)
    assert [len(chunk) for chunk, _ in upserts] == [2, 2, 1]
    assert all(conflict == "id" for _, conflict in upserts)
