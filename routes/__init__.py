from routes.landlord import landlord_bp
from routes.public import public_bp
from routes.tenant import tenant_bp


def register_blueprints(app):
    app.register_blueprint(public_bp)
    app.register_blueprint(tenant_bp)
    app.register_blueprint(landlord_bp)
