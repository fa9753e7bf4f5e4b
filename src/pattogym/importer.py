"""
Loads a JSON file of questions into the Firestore ``questions`` collection.

Usage:
    patto-gym-import data/questions.json
    patto-gym-import data/questions.json --dry-run   (validate only)

Each question is written under its declared ``id``, so running the import
again overwrites rather than duplicates.
"""

import argparse
import logging
import sys
from typing import List

from .firebase import close_firebase_app, init_firebase_app
from .models import Question
from .store import DocumentStore, FirestoreStore, load_questions_file

logger = logging.getLogger(__name__)


def import_questions(store: DocumentStore, questions: List[Question]) -> int:
    for question in questions:
        store.upsert_question(question)
        logger.info(f"Imported {question.id}")
    return len(questions)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import questions into Firestore")
    parser.add_argument("path", help="JSON file holding a list of questions")
    parser.add_argument(
        "--dry-run", action="store_true", help="validate the file without writing"
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    try:
        questions = load_questions_file(args.path)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load {args.path}: {e}")
        return 1

    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        logger.warning("Duplicate question ids; later entries overwrite earlier ones")

    if args.dry_run:
        logger.info(f"{len(questions)} questions are valid")
        return 0

    app = init_firebase_app()
    store = FirestoreStore(app)
    try:
        count = import_questions(store, questions)
    finally:
        store.close()
        close_firebase_app(app)
    logger.info(f"Import finished: {count} questions")
    return 0


if __name__ == "__main__":
    sys.exit(main())
