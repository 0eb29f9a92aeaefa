"""Question bank access, question draws and answer shuffling.

A question provider maps a grade level to its strands, each strand holding an
ordered list of :class:`QuestionRecord`. Two providers share that contract:
one backed by the ``question`` table and one backed by a plain dict (the
bundled JSON bank, tests).
"""

import json
import os
import random
from typing import Dict, List, Optional, Sequence, Tuple

from trivia import db
from trivia.errors import NoQuestionsAvailable
from trivia.models import Question


DEFAULT_BANK_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'data', 'questions.json')


class QuestionRecord:
    """One question as served to a room.

    ``id`` is ``"<strand>-<position>"`` and does not change when the answers
    are shuffled.
    """

    def __init__(self, text: str, answers: Sequence[str], correct_index: int, strand: str, id: str):
        self.text = text
        self.answers = list(answers)
        self.correct_index = correct_index
        self.strand = strand
        self.id = id

    def copy(self) -> 'QuestionRecord':
        return QuestionRecord(self.text, self.answers, self.correct_index, self.strand, self.id)

    def to_dict(self):
        # correct_index is withheld; it is only revealed on resolution
        return {
            'question': self.text,
            'answers': list(self.answers),
            'strand': self.strand,
        }

    def __repr__(self):
        return f"QuestionRecord(id={self.id!r}, answers={len(self.answers)}, correct_index={self.correct_index})"


def make_question_id(strand: str, position: int) -> str:
    return f"{strand}-{position}"


def _record_from_entry(entry: dict, strand: str, position: int) -> QuestionRecord:
    text = entry.get('question', entry.get('text'))
    correct = entry.get('correctIndex', entry.get('correct_index'))
    return QuestionRecord(text, entry['answers'], int(correct), strand, make_question_id(strand, position))


class InMemoryQuestionProvider:
    """Serves questions from ``{grade_level: {strand: [entry, ...]}}``.

    Entries use the bank's JSON shape: ``{"question", "answers", "correctIndex"}``.
    """

    def __init__(self, bank: Dict[str, Dict[str, List[dict]]]):
        self._bank = bank

    def grade_levels(self) -> List[str]:
        return list(self._bank)

    def strands(self, grade_level: str) -> Dict[str, List[QuestionRecord]]:
        strands = self._bank.get(grade_level) or {}
        return {
            strand: [_record_from_entry(entry, strand, idx) for idx, entry in enumerate(entries)]
            for strand, entries in strands.items()
        }


class DatabaseQuestionProvider:
    """Serves questions from the ``question`` table. Needs an app context."""

    def grade_levels(self) -> List[str]:
        rows = db.session.query(Question.grade_level).distinct().order_by(Question.grade_level).all()
        return [row[0] for row in rows]

    def strands(self, grade_level: str) -> Dict[str, List[QuestionRecord]]:
        rows = Question.query.filter_by(grade_level=grade_level).order_by(Question.id).all()
        grouped: Dict[str, List[Question]] = {}
        for row in rows:
            grouped.setdefault(row.strand, []).append(row)
        return {
            strand: [
                QuestionRecord(row.text, row.answer_list(), row.correct_index, strand, make_question_id(strand, row.position))
                for row in sorted(strand_rows, key=lambda r: r.position)
            ]
            for strand, strand_rows in grouped.items()
        }


def load_question_bank(path: Optional[str] = None) -> Dict[str, Dict[str, List[dict]]]:
    with open(path or DEFAULT_BANK_PATH, encoding='utf-8') as fh:
        return json.load(fh)


def seed_questions(bank: Dict[str, Dict[str, List[dict]]], reset: bool = False) -> int:
    """Insert the bank into the ``question`` table. Returns the rows added."""
    if reset:
        Question.query.delete()
        db.session.commit()
    added = 0
    for grade_level, strands in bank.items():
        for strand, entries in strands.items():
            for position, entry in enumerate(entries):
                record = _record_from_entry(entry, strand, position)
                exists = Question.query.filter_by(grade_level=grade_level, strand=strand, position=position).first()
                if exists:
                    continue
                db.session.add(Question(
                    grade_level=grade_level,
                    strand=strand,
                    position=position,
                    text=record.text,
                    answers=json.dumps(record.answers),
                    correct_index=record.correct_index,
                ))
                added += 1
    db.session.commit()
    return added


def candidate_pool(provider, grade_level: str) -> List[QuestionRecord]:
    """Every question of the grade level, strand by strand."""
    pool: List[QuestionRecord] = []
    for records in provider.strands(grade_level).values():
        pool.extend(records)
    return pool


def draw_question(room, provider, rng=random) -> QuestionRecord:
    """Pick a question for ``room`` that it has not been served yet.

    When every question of the grade level has been used the used set is
    cleared once and the full pool is drawn from again.
    """
    pool = candidate_pool(provider, room.grade_level)
    if not pool:
        raise NoQuestionsAvailable()
    available = [q for q in pool if q.id not in room.used_question_ids]
    if not available:
        room.used_question_ids.clear()
        available = pool
    question = rng.choice(available)
    room.used_question_ids.add(question.id)
    return question.copy()


def shuffle_answers(answers: Sequence[str], correct_index: int, rng=random) -> Tuple[List[str], int]:
    """Fisher-Yates shuffle that follows the correct answer to its new slot."""
    tagged = [(answer, idx == correct_index) for idx, answer in enumerate(answers)]
    for i in range(len(tagged) - 1, 0, -1):
        j = rng.randrange(i + 1)
        tagged[i], tagged[j] = tagged[j], tagged[i]
    shuffled = [answer for answer, _ in tagged]
    new_index = next((idx for idx, (_, is_correct) in enumerate(tagged) if is_correct), -1)
    return shuffled, new_index
