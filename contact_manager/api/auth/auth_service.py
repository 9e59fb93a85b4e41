# contact_manager/api/auth/auth_service.py

import logging

from supabase import Client

from contact_manager.api.models.user import UserOut
from contact_manager.core.supabase_client import get_auth_supabase

logger = logging.getLogger("contact_manager.auth")


class AuthService:
    """
    Fachada sobre Supabase Auth. La sesión la maneja Supabase; aquí sólo se
    traducen los resultados a mensajes para el cliente.
    """

    def __init__(self, client: Client = None):
        self.client: Client = client or get_auth_supabase()

    async def sign_up_user(self, email: str, password: str):
        try:
            res = self.client.auth.sign_up({"email": email, "password": password})
            if res.user:
                return {"success": True, "message": "Registration successful. Please check your email to verify your account."}
            return {"success": False, "message": "Registration failed."}
        except Exception as e:
            logger.warning("sign_up_failed email=%s error=%s", email, e)
            return {"success": False, "message": "Registration failed."}

    async def sign_in_user(self, email: str, password: str):
        try:
            res = self.client.auth.sign_in_with_password({"email": email, "password": password})
            if not res.user or not res.session:
                return False, "Invalid credentials.", None, None
            user_out = UserOut(id=res.user.id, email=res.user.email)
            return True, "Login successful.", res.session.access_token, user_out
        except Exception as e:
            logger.warning("sign_in_failed email=%s error=%s", email, e)
            return False, "Invalid credentials.", None, None

    async def request_password_reset(self, email: str):
        """
        Pide a Supabase el email con el enlace de restablecimiento.
        """
        try:
            self.client.auth.reset_password_for_email(email)
            # Mensaje genérico: no revela si el email existe
            return {"success": True, "message": "If the email address is registered, you will receive a password reset link."}
        except Exception as e:
            logger.error("password_reset_request_failed error=%s", e)
            return {"success": False, "message": "Could not process the request."}

    async def update_user_password(self, access_token: str, refresh_token: str, new_password: str):
        try:
            self.client.auth.set_session(access_token, refresh_token)
            self.client.auth.update_user({"password": new_password})
            return {"success": True, "message": "Password updated successfully."}
        except Exception as e:
            logger.error("password_update_failed error=%s", e)
            return {"success": False, "message": "Could not update the password."}
