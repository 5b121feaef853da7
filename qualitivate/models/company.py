from qualitivate.extensions import db
from qualitivate.models.types import JSONPayload
from qualitivate.services.access_policy import Scope
from datetime import datetime
import uuid


class Company(db.Model):
    """
    Company Model - the root of a tenant.

    Everything a company owns (sites, departments, users, company surveys and
    company templates) is deleted with it.

    Attributes:
        company_id (str): Unique identifier (UUID)
        name (str): Display name
        slug (str): Unique URL-safe handle
        activity (str): Line of business
        address, city (str): Postal details
        sites_count, employees_count (int): Self-declared sizing
        settings (dict): Free-form company settings
    """
    __tablename__ = 'companies'

    company_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    activity = db.Column(db.String(255))
    address = db.Column(db.String(500))
    city = db.Column(db.String(255))
    sites_count = db.Column(db.Integer, default=0)
    employees_count = db.Column(db.Integer, default=0)
    settings = db.Column(JSONPayload, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships - CASCADE means deleting a company deletes the whole tenant
    sites = db.relationship('Site', backref='company', cascade='all, delete-orphan')
    users = db.relationship('User', backref='company', cascade='all, delete')
    surveys = db.relationship('Survey', backref='company', cascade='all, delete')
    templates = db.relationship('SurveyTemplate', backref='company', cascade='all, delete')

    def tenant_scope(self):
        return Scope(company_id=self.company_id)

    def to_dict(self):
        return {
            "company_id": self.company_id,
            "name": self.name,
            "slug": self.slug,
            "activity": self.activity,
            "address": self.address,
            "city": self.city,
            "sites_count": self.sites_count,
            "employees_count": self.employees_count,
            "settings": self.settings,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
