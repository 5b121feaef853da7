from qualitivate.extensions import db
from datetime import datetime
import uuid


class Response(db.Model):
    """
    Response Model - one respondent's pass through a survey.

    Anonymous respondents are tracked by anonymous_token; authenticated ones
    also carry respondent_id.
    """
    __tablename__ = 'responses'

    response_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    survey_id = db.Column(db.String(36), db.ForeignKey('surveys.survey_id', ondelete='CASCADE'), nullable=False, index=True)
    respondent_id = db.Column(db.String(36), db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True, index=True)
    anonymous_token = db.Column(db.String(255), index=True)
    ip_address = db.Column(db.String(45))
    language_used = db.Column(db.String(10))
    status = db.Column(db.String(20), nullable=False, default='started', index=True)  # 'started', 'completed', 'abandoned'
    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    answers = db.relationship('Answer', backref='response', cascade='all, delete-orphan')

    def to_dict(self, include_answers=False):
        data = {
            "response_id": self.response_id,
            "survey_id": self.survey_id,
            "respondent_id": self.respondent_id,
            "anonymous_token": self.anonymous_token,
            "language_used": self.language_used,
            "status": self.status,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
        if include_answers:
            data["answers"] = {a.question_id: a.value for a in self.answers}
        return data


class Answer(db.Model):
    """
    One current answer per (response, question). Writes go through an upsert,
    so a second answer to the same question replaces the first.
    """
    __tablename__ = 'answers'

    answer_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    response_id = db.Column(db.String(36), db.ForeignKey('responses.response_id', ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.String(36), db.ForeignKey('questions.question_id', ondelete='CASCADE'), nullable=False, index=True)
    value = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('response_id', 'question_id', name='uq_answer_response_question'),
    )
