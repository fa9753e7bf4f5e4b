import json
import os

from pattogym.importer import import_questions, main
from pattogym.store import MemoryStore, load_questions_file

SAMPLE_FILE = os.path.join(os.path.dirname(__file__), "..", "data", "questions.json")


def test_sample_file_is_valid():
    questions = load_questions_file(SAMPLE_FILE)
    assert len(questions) == 5
    assert questions[0].english_options["b"].is_direct_translation


def test_import_is_keyed_by_id(questions):
    store = MemoryStore()
    assert import_questions(store, questions) == 8
    import_questions(store, questions[:2])
    assert len(store.fetch_questions()) == 8


def test_dry_run_validates_only():
    assert main([SAMPLE_FILE, "--dry-run"]) == 0


def test_invalid_file_fails(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text(json.dumps([{"id": "q1"}]), encoding="utf-8")
    assert main([str(path), "--dry-run"]) == 1
    assert main([str(tmp_path / "missing.json"), "--dry-run"]) == 1
