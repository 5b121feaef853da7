from qualitivate.extensions import db
from qualitivate.models.types import JSONPayload
from qualitivate.services.access_policy import Scope
from datetime import datetime
import uuid


class Survey(db.Model):
    """
    Survey Model - a questionnaire owned by a company (or "general" when
    company_id is NULL) and created by one user.

    site_id/department_id record where inside the company the survey was
    created, so site and department admins only see their own subtree.

    Lifecycle: draft -> active -> closed. Only active surveys accept responses.
    """
    __tablename__ = 'surveys'

    survey_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = db.Column(db.String(36), db.ForeignKey('companies.company_id', ondelete='CASCADE'), nullable=True, index=True)
    site_id = db.Column(db.String(36), db.ForeignKey('sites.site_id', ondelete='SET NULL'), nullable=True, index=True)
    department_id = db.Column(db.String(36), db.ForeignKey('departments.department_id', ondelete='SET NULL'), nullable=True, index=True)
    created_by = db.Column(db.String(36), db.ForeignKey('users.user_id', ondelete='CASCADE'), nullable=False, index=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='draft', index=True)
    is_public = db.Column(db.Boolean, default=False)
    is_anonymous = db.Column(db.Boolean, default=False)
    default_language = db.Column(db.String(10), default='en')
    settings = db.Column(JSONPayload, default=dict)
    starts_at = db.Column(db.DateTime, nullable=True)
    ends_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    questions = db.relationship(
        'Question',
        backref='survey',
        cascade='all, delete-orphan',
        order_by=lambda: [Question.order_index, Question.created_at],
    )
    responses = db.relationship('Response', backref='survey', cascade='all, delete-orphan')

    def tenant_scope(self):
        return Scope(
            company_id=self.company_id,
            site_id=self.site_id,
            department_id=self.department_id,
            owner_id=self.created_by,
        )

    def is_open_at(self, moment):
        if self.starts_at and self.starts_at > moment:
            return False
        if self.ends_at and self.ends_at < moment:
            return False
        return True

    def to_dict(self, include_questions=False):
        data = {
            "survey_id": self.survey_id,
            "company_id": self.company_id,
            "company_name": self.company.name if self.company else None,
            "site_id": self.site_id,
            "department_id": self.department_id,
            "created_by": self.created_by,
            "creator_first_name": self.creator.first_name if self.creator else None,
            "creator_last_name": self.creator.last_name if self.creator else None,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "status": self.status,
            "is_public": self.is_public,
            "is_anonymous": self.is_anonymous,
            "default_language": self.default_language,
            "settings": self.settings,
            "starts_at": self.starts_at.isoformat() if self.starts_at else None,
            "ends_at": self.ends_at.isoformat() if self.ends_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_questions:
            data["questions"] = [q.to_dict() for q in self.questions]
        return data


class Question(db.Model):
    """A question inside a survey; same shape as TemplateQuestion."""
    __tablename__ = 'questions'

    question_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    survey_id = db.Column(db.String(36), db.ForeignKey('surveys.survey_id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)
    content = db.Column(db.Text, nullable=False)
    options = db.Column(JSONPayload, default=dict)
    is_required = db.Column(db.Boolean, nullable=False, default=False)
    order_index = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    answers = db.relationship('Answer', backref='question', cascade='all, delete-orphan')

    __table_args__ = (
        db.UniqueConstraint('survey_id', 'order_index', name='uq_question_order'),
    )

    def to_dict(self):
        return {
            "question_id": self.question_id,
            "survey_id": self.survey_id,
            "type": self.type,
            "content": self.content,
            "options": self.options,
            "is_required": self.is_required,
            "order_index": self.order_index,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
