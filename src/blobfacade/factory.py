import logging

from .azure_blob_adapter import AzureBlobAdapter
from .errors import ConfigurationError
from .local_file_adapter import LocalFileAdapter
from .settings import StorageSettings
from .storage_protocols import AsyncStorageAdapter

logger = logging.getLogger(__name__)


def create_adapter(settings: StorageSettings) -> AsyncStorageAdapter:
    """
    Create the process-wide service handle.

    Backend precedence: local path, then connection string, then account
    name with DefaultAzureCredential.
    """
    if settings.local_path:
        logger.info("Using local file storage at %s", settings.local_path)
        return LocalFileAdapter(settings.local_path)

    if settings.connection_string:
        logger.info("Using Azure Blob Storage from connection string")
        return AzureBlobAdapter.from_connection_string(
            settings.connection_string, **settings.client_options()
        )

    if settings.account_name:
        logger.info("Using Azure Blob Storage account '%s'", settings.account_name)
        return AzureBlobAdapter.from_account(
            settings.account_name,
            account_url=settings.account_url,
            **settings.client_options(),
        )

    raise ConfigurationError("AZURE_STORAGE_ACCOUNT_NAME is required")
