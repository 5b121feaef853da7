from qualitivate.extensions import db
from qualitivate.services.access_policy import Scope
from datetime import datetime
import uuid


class Department(db.Model):
    """Department Model - belongs to exactly one site."""
    __tablename__ = 'departments'

    department_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    site_id = db.Column(db.String(36), db.ForeignKey('sites.site_id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = db.relationship('User', backref='department', foreign_keys='User.department_id')
    surveys = db.relationship('Survey', backref='department', foreign_keys='Survey.department_id')

    @property
    def company_id(self):
        return self.site.company_id if self.site else None

    def tenant_scope(self):
        return Scope(company_id=self.company_id, site_id=self.site_id, department_id=self.department_id)

    def to_dict(self):
        return {
            "department_id": self.department_id,
            "site_id": self.site_id,
            "site_name": self.site.name if self.site else None,
            "company_id": self.company_id,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
