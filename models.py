from flask_sqlalchemy import SQLAlchemy
from datetime import datetime

db = SQLAlchemy()

ROLES = ('tenant', 'landlord')
APPLICATION_STATUSES = ('Pending', 'Approved', 'Rejected')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    google_id = db.Column(db.String(255), unique=True, nullable=True)
    name = db.Column(db.String(120))
    email = db.Column(db.String(160), unique=True, nullable=False)
    role = db.Column(db.String(20), nullable=False, default='tenant')
    # local accounts only; OAuth users have none
    password_hash = db.Column(db.String(300), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    properties = db.relationship('Property', backref='landlord', lazy=True)

    @property
    def is_landlord(self):
        return self.role == 'landlord'

    def __repr__(self):
        return f'<User {self.id} {self.email} ({self.role})>'


class Property(db.Model):
    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    landlord_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    address = db.Column(db.String(300), nullable=False)
    price = db.Column(db.Numeric(10, 2), default=0)
    bedrooms = db.Column(db.Integer, default=0)
    bathrooms = db.Column(db.Integer, default=0)
    image = db.Column(db.LargeBinary, nullable=True)
    image_mimetype = db.Column(db.String(80))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    applications = db.relationship('PropertyApplication', backref='property', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'landlord_id': self.landlord_id,
            'address': self.address,
            'price': float(self.price) if self.price is not None else None,
            'bedrooms': self.bedrooms,
            'bathrooms': self.bathrooms,
            'has_image': self.image is not None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class TenantLandlord(db.Model):
    __tablename__ = 'tenant_landlord'

    landlord_id = db.Column(db.Integer, db.ForeignKey('users.id'), primary_key=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), primary_key=True)

    landlord = db.relationship('User', foreign_keys=[landlord_id])
    tenant = db.relationship('User', foreign_keys=[tenant_id])


class MailboxMessage(db.Model):
    __tablename__ = 'mailbox'

    id = db.Column(db.Integer, primary_key=True)
    sender_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    receiver_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    subject = db.Column(db.String(200), nullable=False)
    message_content = db.Column(db.Text, nullable=False)
    sent_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    sender = db.relationship('User', foreign_keys=[sender_id], lazy='joined')
    receiver = db.relationship('User', foreign_keys=[receiver_id], lazy='joined')


class PropertyApplication(db.Model):
    __tablename__ = 'property_applications'

    application_id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('properties.id'), nullable=False)
    tenant_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(160), nullable=False)
    phone = db.Column(db.String(30))
    current_address = db.Column(db.String(300))
    employer = db.Column(db.String(120))
    monthly_income = db.Column(db.Numeric(10, 2))
    move_in_date = db.Column(db.Date)
    occupants = db.Column(db.Integer)
    message = db.Column(db.Text)
    application_date = db.Column(db.DateTime, default=datetime.utcnow)
    status = db.Column(db.String(20), nullable=False, default='Pending')  # Pending, Approved, Rejected

    tenant = db.relationship('User', foreign_keys=[tenant_id])


def init_db(app):
    db.init_app(app)
    with app.app_context():
        db.create_all()
