# =============================================================================
# core/services/client_service.py - Client Intake Business Logic
# =============================================================================
# Creates a client and everything submitted with it. Rows and blobs live in
# different Supabase services, so the sequence runs inside a
# CompensatingTransaction: each completed write records its own undo, and
# any failure removes what was already written before the error surfaces.
#
# Order (foreign keys require the client row first):
#   1. insert_client
#   2. link_services
#   3. per file: upload_file -> record_file
#   4. if total_amount > 0: upload_payment_screenshot -> record_payment
# =============================================================================

import logging
from uuid import UUID

from core.models.client import ClientCreate, UploadedFile
from core.services.storage_service import StorageService
from core.services.transaction import CompensatingTransaction
from core.services.upload_rules import validate_uploads
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

CLIENTS_TABLE = "clients"
CLIENT_SERVICES_TABLE = "client_services"
CLIENT_FILES_TABLE = "client_files"
PAYMENTS_TABLE = "payments"


class ClientIntakeService:
    """
    Service for client intake operations.

    Provides a clean interface between the clients router and Supabase.
    """

    @staticmethod
    def create_client(
        data: ClientCreate,
        inserted_by: UUID | str,
        files: list[UploadedFile] | None = None,
        payment_screenshot: UploadedFile | None = None,
    ) -> str:
        """
        Create a client with its services, files and payment.

        Args:
            data: Validated form fields
            inserted_by: Id of the moderator/admin creating the client
            files: Client documents, uploaded in this order
            payment_screenshot: Optional proof of payment (used only when
                total_amount > 0)

        Returns:
            The new client's id

        Raises:
            TooManyFilesError / FileTooLargeError / InvalidFileTypeError:
                before anything is written
            UpstreamWriteError: a remote call failed; everything written
                before it has been rolled back (best-effort)
        """
        files = files or []
        validate_uploads(files, payment_screenshot if data.has_payment else None)

        with CompensatingTransaction("create_client", inserted_by=str(inserted_by)) as tx:
            # -----------------------------------------------------------------
            # 1. Client row
            # -----------------------------------------------------------------
            with tx.step("insert_client"):
                client_row = SupabaseClient.insert_row(
                    CLIENTS_TABLE, data.to_client_row(str(inserted_by))
                )
                client_id = str(client_row["id"])
            tx.bind(client_id=client_id)
            tx.record(
                f"delete {CLIENTS_TABLE} row {client_id}",
                lambda: SupabaseClient.delete_rows(CLIENTS_TABLE, [client_id]),
            )

            # -----------------------------------------------------------------
            # 2. Requested services (single bulk insert)
            # -----------------------------------------------------------------
            if data.requested_services:
                with tx.step("link_services"):
                    link_rows = SupabaseClient.insert_rows(
                        CLIENT_SERVICES_TABLE,
                        [
                            {"client_id": client_id, "service_id": service_id}
                            for service_id in data.requested_services
                        ],
                    )
                    link_ids = [str(row["id"]) for row in link_rows]
                tx.record(
                    f"delete {len(link_ids)} {CLIENT_SERVICES_TABLE} row(s)",
                    lambda: SupabaseClient.delete_rows(CLIENT_SERVICES_TABLE, link_ids),
                )

            # -----------------------------------------------------------------
            # 3. Files, in request order
            # -----------------------------------------------------------------
            for file in files:
                ClientIntakeService._store_client_file(tx, client_id, file)

            # -----------------------------------------------------------------
            # 4. Payment
            # -----------------------------------------------------------------
            if data.has_payment:
                screenshot_url = None
                if payment_screenshot is not None:
                    screenshot_url = ClientIntakeService._upload_blob(
                        tx,
                        step="upload_payment_screenshot",
                        key=StorageService.payment_screenshot_key(client_id, payment_screenshot.filename),
                        file=payment_screenshot,
                    )

                with tx.step("record_payment"):
                    payment_row = SupabaseClient.insert_row(
                        PAYMENTS_TABLE, data.to_payment_row(client_id, screenshot_url)
                    )
                    payment_id = str(payment_row["id"])
                tx.record(
                    f"delete {PAYMENTS_TABLE} row {payment_id}",
                    lambda: SupabaseClient.delete_rows(PAYMENTS_TABLE, [payment_id]),
                )

        logger.info(
            f"Created client {client_id}: {len(data.requested_services)} service(s), "
            f"{len(files)} file(s), payment={'yes' if data.has_payment else 'no'}"
        )
        return client_id

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _upload_blob(
        tx: CompensatingTransaction,
        step: str,
        key: str,
        file: UploadedFile,
    ) -> str:
        """
        Upload one blob and return its public URL.

        The removal is recorded before the upload: a call that times out may
        still have stored the object, and removing an absent key is a no-op.
        """
        with tx.step(step, label=file.filename):
            tx.record(f"remove blob {key}", lambda: StorageService.delete_files([key]))
            StorageService.upload_file(key, file.content, file.content_type)
            return StorageService.get_public_url(key)

    @staticmethod
    def _store_client_file(
        tx: CompensatingTransaction,
        client_id: str,
        file: UploadedFile,
    ) -> None:
        """Upload a client document and insert its client_files row."""
        file_url = ClientIntakeService._upload_blob(
            tx,
            step="upload_file",
            key=StorageService.client_file_key(client_id, file.filename),
            file=file,
        )

        with tx.step("record_file", label=file.filename):
            file_row = SupabaseClient.insert_row(
                CLIENT_FILES_TABLE,
                {
                    "client_id": client_id,
                    "label": file.filename,
                    "file_url": file_url,
                    "mime_type": file.content_type,
                    "file_size": file.size,
                },
            )
            file_row_id = str(file_row["id"])
        tx.record(
            f"delete {CLIENT_FILES_TABLE} row {file_row_id} ({file.filename})",
            lambda: SupabaseClient.delete_rows(CLIENT_FILES_TABLE, [file_row_id]),
        )
