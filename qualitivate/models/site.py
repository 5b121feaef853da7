from qualitivate.extensions import db
from qualitivate.services.access_policy import Scope
from datetime import datetime
import uuid


class Site(db.Model):
    """Site Model - a physical location of a company. Owns departments."""
    __tablename__ = 'sites'

    site_id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = db.Column(db.String(36), db.ForeignKey('companies.company_id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    location = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    departments = db.relationship('Department', backref='site', cascade='all, delete-orphan')
    # Users survive a site deletion; the ORM clears their site_id
    users = db.relationship('User', backref='site', foreign_keys='User.site_id')
    surveys = db.relationship('Survey', backref='site', foreign_keys='Survey.site_id')

    def tenant_scope(self):
        return Scope(company_id=self.company_id, site_id=self.site_id)

    def to_dict(self):
        return {
            "site_id": self.site_id,
            "company_id": self.company_id,
            "company_name": self.company.name if self.company else None,
            "name": self.name,
            "location": self.location,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
