from qualitivate.extensions import db
from qualitivate.services.access_policy import Actor, Scope
from datetime import datetime
import uuid


class User(db.Model):
    """
    User Model - a person acting inside (or, for super_admin, above) a tenant.

    Attributes:
        user_id (str): Unique identifier (UUID)
        company_id (str): Owning company, NULL only for super_admin
        site_id (str): Optional site placement
        department_id (str): Optional department placement
        email (str): Unique across the whole system
        password_hash (str): Werkzeug password hash
        role (str): super_admin | company_admin | site_admin | department_admin | user
        is_active (bool): Inactive users cannot log in or use their tokens
    """
    __tablename__ = 'users'

    user_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = db.Column(db.String(36), db.ForeignKey('companies.company_id', ondelete='CASCADE'), nullable=True, index=True)
    site_id = db.Column(db.String(36), db.ForeignKey('sites.site_id', ondelete='SET NULL'), nullable=True, index=True)
    department_id = db.Column(db.String(36), db.ForeignKey('departments.department_id', ondelete='SET NULL'), nullable=True, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(100), nullable=False, default='')
    last_name = db.Column(db.String(100), nullable=False, default='')
    role = db.Column(db.String(50), nullable=False, default='user')
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Surveys go with their creator
    surveys = db.relationship('Survey', backref='creator', cascade='all, delete', foreign_keys='Survey.created_by')
    # Templates and responses outlive their author/respondent
    created_templates = db.relationship('SurveyTemplate', backref='creator', foreign_keys='SurveyTemplate.created_by')
    responses = db.relationship('Response', backref='respondent', foreign_keys='Response.respondent_id')

    def as_actor(self):
        return Actor(
            user_id=self.user_id,
            role=self.role,
            company_id=self.company_id,
            site_id=self.site_id,
            department_id=self.department_id,
        )

    def tenant_scope(self):
        return Scope(
            company_id=self.company_id,
            site_id=self.site_id,
            department_id=self.department_id,
            owner_id=self.user_id,
        )

    def token_claims(self):
        return {
            "email": self.email,
            "role": self.role,
            "company_id": self.company_id,
            "site_id": self.site_id,
            "department_id": self.department_id,
        }

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "role": self.role,
            "company_id": self.company_id,
            "site_id": self.site_id,
            "department_id": self.department_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<User {self.user_id} {self.role} {self.email}>'
