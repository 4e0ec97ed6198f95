"""Azure Blob Storage for signed lease PDFs and signing audit logs."""

import asyncio
import logging
from typing import Protocol
from azure.core.exceptions import AzureError, ClientAuthenticationError, ServiceRequestTimeoutError, ServiceResponseTimeoutError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from leasedesk.core.config import StorageConfig
from leasedesk.core.exceptions import StorageAuthFailure, StorageTimeout, StorageUploadFailure

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"
JSON_CONTENT_TYPE = "application/json"


class ObjectStore(Protocol):
    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        """Store `data` under `key` and return a durable URL for it."""
        ...


class BlobStorageService:
    """Uploads PDFs to the documents container and everything else to the audit container."""

    def __init__(self, config: StorageConfig):
        self.connection_string = config.connection_string
        self.account_name = config.account_name
        self.container_documents = config.documents_container
        self.container_audit = config.audit_container
        self.timeout = config.upload_timeout_seconds

    def _container_for(self, content_type: str) -> str:
        return self.container_documents if content_type == PDF_CONTENT_TYPE else self.container_audit

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        if not self.connection_string:
            logger.error("Azure Blob connection string not configured, cannot upload %s", key)
            raise StorageUploadFailure(key=key)

        container = self._container_for(content_type)
        try:
            await asyncio.wait_for(self._upload(container, key, data, content_type), timeout=self.timeout)
        except (asyncio.TimeoutError, ServiceRequestTimeoutError, ServiceResponseTimeoutError) as e:
            logger.error("Timed out uploading %s/%s: %s", container, key, e)
            raise StorageTimeout(key=key) from e
        except ClientAuthenticationError as e:
            logger.error("Storage rejected credentials for %s/%s: %s", container, key, e)
            raise StorageAuthFailure(key=key) from e
        except (AzureError, ValueError) as e:
            logger.error("Failed to upload %s/%s: %s", container, key, e)
            raise StorageUploadFailure(key=key) from e

        blob_url = f"https://{self.account_name}.blob.core.windows.net/{container}/{key}"
        logger.info("Uploaded %s", blob_url)
        return blob_url

    async def _upload(self, container: str, key: str, data: bytes, content_type: str) -> None:
        async with BlobServiceClient.from_connection_string(self.connection_string) as blob_service:
            blob_client = blob_service.get_blob_client(container=container, blob=key)
            await blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
