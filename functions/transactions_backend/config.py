"""
Configuration and settings for the transactions backend.
"""

from __future__ import annotations

import base64
import binascii
import json
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from transactions_backend.errors import CredentialsError

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
REQUIRED_SERVICE_ACCOUNT_KEYS = ("project_id", "client_email", "private_key")


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Service account, discrete fields
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_client_email: Optional[str] = Field(default=None)
    firebase_private_key: Optional[str] = Field(default=None)

    # Service account, single base64-encoded JSON blob
    firebase_service_account_base64: Optional[str] = Field(default=None)

    firebase_check_revoked: bool = Field(default=False)

    transactions_collection_template: str = Field(
        default="users/{uid}/transactions"
    )

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "TRANSACTIONS_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )
    # "token=uid,token2=uid2" for the in-memory token verifier
    dev_tokens: str = Field(
        default="",
        validation_alias=AliasChoices("TRANSACTIONS_DEV_TOKENS", "dev_tokens"),
    )

    def service_account_info(self) -> dict:
        """
        Resolve service-account credentials from either configuration shape.

        The base64 JSON blob wins when both shapes are present.
        """
        if self.firebase_service_account_base64:
            return _decode_service_account_blob(self.firebase_service_account_base64)

        discrete = {
            "FIREBASE_PROJECT_ID": self.firebase_project_id,
            "FIREBASE_CLIENT_EMAIL": self.firebase_client_email,
            "FIREBASE_PRIVATE_KEY": self.firebase_private_key,
        }
        missing = [name for name, value in discrete.items() if not value]
        if missing:
            raise CredentialsError(
                "Firebase credentials are not configured: set "
                "FIREBASE_SERVICE_ACCOUNT_BASE64 or "
                f"{', '.join(missing)}"
            )
        return {
            "type": "service_account",
            "project_id": self.firebase_project_id,
            "client_email": self.firebase_client_email,
            "private_key": self.firebase_private_key.replace("\\n", "\n"),
            "token_uri": GOOGLE_TOKEN_URI,
        }

    def parsed_dev_tokens(self) -> dict[str, str]:
        tokens: dict[str, str] = {}
        for pair in self.dev_tokens.split(","):
            token, sep, uid = pair.partition("=")
            if sep and token.strip() and uid.strip():
                tokens[token.strip()] = uid.strip()
        return tokens


def _decode_service_account_blob(blob: str) -> dict:
    try:
        raw = base64.b64decode(blob.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise CredentialsError(
            f"FIREBASE_SERVICE_ACCOUNT_BASE64 is not valid base64: {exc}"
        ) from exc
    try:
        info = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise CredentialsError(
            f"FIREBASE_SERVICE_ACCOUNT_BASE64 does not contain valid JSON: {exc}"
        ) from exc
    if not isinstance(info, dict):
        raise CredentialsError(
            "FIREBASE_SERVICE_ACCOUNT_BASE64 must decode to a JSON object"
        )
    missing = [key for key in REQUIRED_SERVICE_ACCOUNT_KEYS if not info.get(key)]
    if missing:
        raise CredentialsError(
            "FIREBASE_SERVICE_ACCOUNT_BASE64 is missing required fields: "
            f"{', '.join(missing)}"
        )
    return info


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
