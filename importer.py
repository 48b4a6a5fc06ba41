"""Ingest .jsonl practice questions for one topic; bulk UPSERT into practice_questions."""
import json
import argparse
import logging
from pathlib import Path
from typing import Iterator, List, Optional
from uuid import uuid5, NAMESPACE_DNS

import config
from db import get_supabase_uncached

logger = logging.getLogger(__name__)

DIFFICULTIES = ("easy", "medium", "hard")


def parse_line(line: str, topic_id: str) -> Optional[dict]:
    """
    Parse one JSONL line into a practice_questions row. Returns None if invalid/skip.

    Expected keys: question (or text), options (list, 2..10), correct_answer (0-based, in range),
    optional explanation, difficulty, and a stable source key "question_id".
    """
    line = line.strip()
    if not line:
        return None
    try:
        raw = json.loads(line)
    except json.JSONDecodeError:
        return None
    if not isinstance(raw, dict):
        return None
    text = raw.get("question") or raw.get("text") or ""
    if not isinstance(text, str) or not text.strip():
        return None
    text = text.strip()
    options = raw.get("options")
    if not isinstance(options, list) or not 2 <= len(options) <= config.MAX_OPTIONS:
        return None
    correct = raw.get("correct_answer", 0)
    if isinstance(correct, bool) or not isinstance(correct, int) or not 0 <= correct < len(options):
        logger.warning("Skipping question with answer index %r out of range: %s", correct, text[:60])
        return None
    difficulty = raw.get("difficulty") if raw.get("difficulty") in DIFFICULTIES else "medium"

    # Same source key (or same topic + text) always maps to the same row id
    source_key = raw.get("question_id") or f"{topic_id}:{text}"
    return {
        "id": str(uuid5(NAMESPACE_DNS, str(source_key))),
        "topic_id": topic_id,
        "question": text,
        "options": [str(o) for o in options],
        "correct_answer": correct,
        "explanation": str(raw.get("explanation") or "")[:50000],
        "difficulty": difficulty,
    }


def load_and_transform(path: Path, topic_id: str) -> Iterator[dict]:
    """Read JSONL and yield transformed question rows."""
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            row = parse_line(line, topic_id)
            if row:
                yield row


def dedupe_by_id(rows: List[dict]) -> List[dict]:
    """Last row wins; no chunk may carry the same id twice (Postgres ON CONFLICT error)."""
    by_id = {r["id"]: r for r in rows}
    if len(by_id) < len(rows):
        logger.info("Deduped questions by id: %d -> %d", len(rows), len(by_id))
    return list(by_id.values())


def upsert_questions_bulk(client, rows: List[dict], chunk_size: int = 200) -> None:
    rows = dedupe_by_id(rows)
    n_chunks = (len(rows) + chunk_size - 1) // chunk_size
    for i in range(0, len(rows), chunk_size):
        chunk = rows[i : i + chunk_size]
        logger.info("Upserting chunk %d/%d (%d rows)", i // chunk_size + 1, n_chunks, len(chunk))
        client.table("practice_questions").upsert(chunk, on_conflict="id").execute()


def run_import(jsonl_path: Path, topic_id: str, chunk_size: int = 200, dry_run: bool = False):
    if not jsonl_path.exists():
        raise FileNotFoundError(f"JSONL not found: {jsonl_path}")
    rows = list(load_and_transform(jsonl_path, topic_id))
    if dry_run:
        print(f"Dry run: would upsert {len(rows)} questions from {jsonl_path}")
        if rows:
            print("Sample row:", rows[0])
        return
    client = get_supabase_uncached()
    upsert_questions_bulk(client, rows, chunk_size=chunk_size)
    print(f"Upserted {len(rows)} questions from {jsonl_path}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    parser = argparse.ArgumentParser(description="Import practice questions (JSONL) into Supabase for one topic.")
    parser.add_argument("jsonl", help="Path to .jsonl")
    parser.add_argument("--topic-id", required=True, help="topics.id the questions belong to")
    parser.add_argument("--chunk-size", type=int, default=200, help="Upsert chunk size (default 200)")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not upsert")
    args = parser.parse_args()
    run_import(Path(args.jsonl), args.topic_id, chunk_size=args.chunk_size, dry_run=args.dry_run)
