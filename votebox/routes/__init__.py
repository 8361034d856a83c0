# votebox/routes/__init__.py

from votebox.routes.assistant import assistant_bp
from votebox.routes.candidate import candidate_bp
from votebox.routes.election import election_bp
from votebox.routes.main import main_bp
from votebox.routes.user import user_bp


def register_blueprints(app):
    app.register_blueprint(main_bp)
    app.register_blueprint(user_bp, url_prefix='/user')
    app.register_blueprint(candidate_bp, url_prefix='/candidate')
    app.register_blueprint(election_bp, url_prefix='/election')
    app.register_blueprint(assistant_bp, url_prefix='/gemini')
