# votebox/security/token_manager.py
from datetime import timedelta

from flask import Flask, current_app
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import ExpiredSignatureError, InvalidTokenError

from votebox.authentication.rbac import Identity, identity_from_claims
from votebox.errors import ExpiredToken, InvalidToken


# Bearer token issue and validation using Flask-JWT-Extended.
# The token embeds the voter id (``sub``) and the role claim.
class TokenManager:
    def __init__(self, app: Flask = None):
        if app:
            self.init_app(app)

    def init_app(self, app: Flask):
        app.config.setdefault("JWT_SECRET_KEY", "change_this_secret_key")
        app.config.setdefault("JWT_ACCESS_TOKEN_EXPIRES", timedelta(hours=1))

    def generate_token(self, voter, expires_in: int = None) -> str:
        if expires_in is None:
            expires_delta = current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
        else:
            expires_delta = timedelta(seconds=expires_in)
        return create_access_token(
            identity=str(voter.id),
            additional_claims={"role": voter.role.value},
            expires_delta=expires_delta,
        )

    def authorize(self, token: str) -> Identity:
        # Resolve a token into an Identity, raising a typed AuthError.
        try:
            decoded = decode_token(token, allow_expired=False)
        except ExpiredSignatureError:
            raise ExpiredToken()
        except (InvalidTokenError, JWTExtendedException) as e:
            current_app.logger.warning(f"Token validation failed: {str(e)}")
            raise InvalidToken()
        return identity_from_claims(decoded.get("sub"), decoded)
