import json

from trivia import db


class Question(db.Model):
    __tablename__ = 'question'
    __table_args__ = (
        db.UniqueConstraint('grade_level', 'strand', 'position', name='uq_question_slot'),
    )
    id = db.Column(db.Integer, primary_key=True)
    grade_level = db.Column(db.String(16), nullable=False, index=True)
    strand = db.Column(db.String(64), nullable=False)
    # Index of the question within its strand, as listed in the bank
    position = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False)
    answers = db.Column(db.Text, nullable=False)  # JSON-encoded list of strings
    correct_index = db.Column(db.Integer, nullable=False)

    def answer_list(self):
        try:
            return json.loads(self.answers or '[]')
        except ValueError:
            return []

    def to_dict(self):
        return {
            'id': self.id,
            'grade_level': self.grade_level,
            'strand': self.strand,
            'position': self.position,
            'text': self.text,
            'answers': self.answer_list(),
            'correct_index': self.correct_index,
        }
