from qualitivate.extensions import db
from qualitivate.models.types import JSONPayload
from qualitivate.services.access_policy import Scope
from datetime import datetime
import uuid


class SurveyTemplate(db.Model):
    """
    Survey Template Model - a reusable, versionless question set.

    Templates can be:
    - Global templates (company_id=NULL, is_global=True) - visible to every tenant,
      managed by super admins only
    - Company templates (company_id set) - visible to that company only

    Attributes:
        template_id (str): Unique identifier (UUID)
        company_id (str): Owning company, NULL for global templates
        created_by (str): Author (NULL once the author is deleted)
        name (str): Template name (e.g., "Employee NPS Survey")
        category (str): Free-text grouping (e.g., "Employee Feedback")
        type (str): 'nps' or 'custom'
        is_global (bool): True exactly when company_id is NULL
        is_anonymous (bool): Default anonymity for surveys provisioned from it
        default_settings (dict): Settings copied onto provisioned surveys
        use_count (int): How many surveys were provisioned from it; only grows
    """
    __tablename__ = 'survey_templates'

    template_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = db.Column(db.String(36), db.ForeignKey('companies.company_id', ondelete='CASCADE'), nullable=True, index=True)
    created_by = db.Column(db.String(36), db.ForeignKey('users.user_id', ondelete='SET NULL'), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100), index=True)
    type = db.Column(db.String(20), nullable=False, default='custom')
    is_global = db.Column(db.Boolean, nullable=False, default=False, index=True)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=True)
    default_settings = db.Column(JSONPayload, default=dict)
    use_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    questions = db.relationship(
        'TemplateQuestion',
        backref='template',
        cascade='all, delete-orphan',
        order_by=lambda: [TemplateQuestion.order_index, TemplateQuestion.created_at],
    )

    def tenant_scope(self):
        return Scope(company_id=self.company_id)

    def to_dict(self, include_questions=False):
        data = {
            "template_id": self.template_id,
            "company_id": self.company_id,
            "created_by": self.created_by,
            "creator_first_name": self.creator.first_name if self.creator else None,
            "creator_last_name": self.creator.last_name if self.creator else None,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "type": self.type,
            "is_global": self.is_global,
            "is_anonymous": self.is_anonymous,
            "default_settings": self.default_settings,
            "use_count": self.use_count,
            "question_count": len(self.questions),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_questions:
            data["questions"] = [q.to_dict() for q in self.questions]
        return data


class TemplateQuestion(db.Model):
    """A question inside a template. order_index is unique per template."""
    __tablename__ = 'template_questions'

    question_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    template_id = db.Column(db.String(36), db.ForeignKey('survey_templates.template_id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(50), nullable=False)
    content = db.Column(db.Text, nullable=False)
    options = db.Column(JSONPayload, default=dict)
    is_required = db.Column(db.Boolean, nullable=False, default=False)
    order_index = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('template_id', 'order_index', name='uq_template_question_order'),
    )

    def to_dict(self):
        return {
            "question_id": self.question_id,
            "template_id": self.template_id,
            "type": self.type,
            "content": self.content,
            "options": self.options,
            "is_required": self.is_required,
            "order_index": self.order_index,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
