"""
Application configuration.
Secrets can be preloaded from Azure Key Vault (when KEY_VAULT_NAME is set)
using the VM's Managed Identity, then fall back to environment variables /
.env file so local development and tests work without Key Vault access.

The engines never read `settings` directly: the dependency layer builds
explicit SchedulerConfig / SigningConfig / StorageConfig objects from it.
"""
import os
import logging
from dataclasses import dataclass
from azure.core.exceptions import ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.keyvault.secrets import SecretClient
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Key Vault → environment variable mapping
# Secret names in Key Vault use lowercase-dashes; env vars use UPPER_SNAKE.
# ---------------------------------------------------------------------------
_KV_TO_ENV: dict[str, str] = {
    "database-url":              "DATABASE_URL",
    "storage-connection-string": "AZURE_BLOB_CONNECTION_STRING",
    "azure-storage-account":     "AZURE_STORAGE_ACCOUNT",
    "sendgrid-api-key":          "SENDGRID_API_KEY",
    "sendgrid-from-email":       "SENDGRID_FROM_EMAIL",
    "sendgrid-from-name":        "SENDGRID_FROM_NAME",
    "twilio-account-sid":        "TWILIO_ACCOUNT_SID",
    "twilio-auth-token":         "TWILIO_AUTH_TOKEN",
    "twilio-phone-number":       "TWILIO_PHONE_NUMBER",
}


def _load_from_key_vault(vault_name: str) -> int:
    """
    Fetch secrets from Azure Key Vault and inject them into os.environ.
    Returns the number of secrets successfully loaded.
    """
    try:
        client = SecretClient(
            vault_url=f"https://{vault_name}.vault.azure.net/",
            credential=DefaultAzureCredential(),
        )
        loaded = 0

        for kv_name, env_name in _KV_TO_ENV.items():
            try:
                secret = client.get_secret(kv_name)
                if secret.value:
                    os.environ[env_name] = secret.value
                    loaded += 1
            except ResourceNotFoundError:
                pass  # Secret not provisioned in this vault
            except Exception as e:
                logger.warning("KV: could not load '%s': %s", kv_name, e)

        return loaded

    except Exception as e:
        logger.warning("Key Vault load failed (%s); falling back to environment / .env file.", e)
        return 0


_kv_name = os.environ.get("KEY_VAULT_NAME", "")
if _kv_name:
    _n = _load_from_key_vault(_kv_name)
    if _n:
        logger.info("Loaded %d secrets from Key Vault '%s'", _n, _kv_name)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./leasedesk.db"
    KEY_VAULT_NAME: str = ""

    # Scheduling
    DEFAULT_TIMEZONE: str = "America/New_York"

    # Azure Blob Storage (signed leases + audit logs)
    AZURE_BLOB_CONNECTION_STRING: str = ""
    AZURE_STORAGE_ACCOUNT: str = "leasedeskstorage"
    SIGNED_DOCUMENTS_CONTAINER: str = "signed-leases"
    AUDIT_LOGS_CONTAINER: str = "signing-audit-logs"
    STORAGE_UPLOAD_TIMEOUT_SECONDS: float = 30.0

    # Signing
    PDF_FETCH_TIMEOUT_SECONDS: float = 30.0
    MAX_SIGNATURE_BYTES: int = 5 * 1024 * 1024

    # Twilio SMS
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # SendGrid Email
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "noreply@leasedesk.app"
    SENDGRID_FROM_NAME: str = "LeaseDesk"

    class Config:
        env_file = ".env"


settings = Settings()


@dataclass(frozen=True)
class SchedulerConfig:
    default_timezone: str = "America/New_York"


@dataclass(frozen=True)
class StorageConfig:
    connection_string: str = ""
    account_name: str = "leasedeskstorage"
    documents_container: str = "signed-leases"
    audit_container: str = "signing-audit-logs"
    upload_timeout_seconds: float = 30.0


@dataclass(frozen=True)
class SigningConfig:
    fetch_timeout_seconds: float = 30.0
    max_signature_bytes: int = 5 * 1024 * 1024


def scheduler_config(s: Settings = settings) -> SchedulerConfig:
    return SchedulerConfig(default_timezone=s.DEFAULT_TIMEZONE)


def storage_config(s: Settings = settings) -> StorageConfig:
    return StorageConfig(
        connection_string=s.AZURE_BLOB_CONNECTION_STRING,
        account_name=s.AZURE_STORAGE_ACCOUNT,
        documents_container=s.SIGNED_DOCUMENTS_CONTAINER,
        audit_container=s.AUDIT_LOGS_CONTAINER,
        upload_timeout_seconds=s.STORAGE_UPLOAD_TIMEOUT_SECONDS,
    )


def signing_config(s: Settings = settings) -> SigningConfig:
    return SigningConfig(
        fetch_timeout_seconds=s.PDF_FETCH_TIMEOUT_SECONDS,
        max_signature_bytes=s.MAX_SIGNATURE_BYTES,
    )
