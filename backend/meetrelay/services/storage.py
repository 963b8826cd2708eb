"""Supabase Storage service for session recording uploads."""
import httpx
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote
from meetrelay.config import settings
from meetrelay.utils.logger import logger


@dataclass
class UploadResult:
    """Result of a file upload operation."""
    success: bool
    url: Optional[str] = None
    error: Optional[str] = None


def _encode_path(storage_path: str) -> str:
    # Quote each segment but keep the slashes that define the directory structure
    return "/".join(quote(segment, safe="") for segment in storage_path.split("/"))


class StorageService:
    """Service for uploading files to Supabase Storage using the REST API."""

    BUCKET_NAME = "session-recordings"

    def __init__(self, supabase_url: Optional[str] = None, supabase_key: Optional[str] = None):
        self.supabase_url = supabase_url or settings.supabase_url
        self.supabase_key = supabase_key or settings.supabase_secret_key

        if not self.supabase_url or not self.supabase_key:
            raise ValueError(
                "Supabase URL and secret key must be configured. "
                "Set SUPABASE_URL and SUPABASE_SECRET_KEY environment variables."
            )

        self.supabase_url = self.supabase_url.rstrip("/")
        self.storage_url = f"{self.supabase_url}/storage/v1"
        self._bucket_checked = False
        self._bucket_public = None  # Cache bucket public status

    def _headers(self, content_type: str = "application/json") -> dict:
        return {
            "apikey": self.supabase_key,
            "Authorization": f"Bearer {self.supabase_key}",
            "Content-Type": content_type,
        }

    async def _ensure_bucket_exists(self) -> bool:
        """Ensure the storage bucket exists, create it if it doesn't."""
        if self._bucket_checked:
            return True

        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                check_url = f"{self.storage_url}/bucket/{self.BUCKET_NAME}"
                check_response = await client.get(check_url, headers=self._headers())

                if check_response.status_code == 200:
                    self._bucket_public = check_response.json().get("public", False)
                    self._bucket_checked = True
                    return True

                if check_response.status_code == 404:
                    # Recordings are private; links are signed
                    create_response = await client.post(
                        f"{self.storage_url}/bucket",
                        headers=self._headers(),
                        json={"id": self.BUCKET_NAME, "name": self.BUCKET_NAME, "public": False},
                    )
                    if create_response.status_code in (200, 201):
                        self._bucket_public = False
                        self._bucket_checked = True
                        return True

                    logger.error(
                        f"Failed to create bucket {self.BUCKET_NAME}: "
                        f"{create_response.status_code} - {create_response.text}"
                    )
                    return False

                logger.error(
                    f"Failed to check bucket {self.BUCKET_NAME}: "
                    f"{check_response.status_code} - {check_response.text}"
                )
                return False

        except httpx.HTTPError as e:
            logger.error(f"Error ensuring bucket exists: {e}", exc_info=True)
            return False

    async def upload_bytes(
        self,
        content: bytes,
        storage_path: str,
        content_type: str,
    ) -> UploadResult:
        """
        Upload an in-memory file to Supabase Storage.

        Args:
            content: File body
            storage_path: Path in the bucket (e.g. "recordings/{session_id}/{name}.webm")
            content_type: MIME type of the file

        Returns:
            UploadResult with success status and a URL for the object
        """
        if not await self._ensure_bucket_exists():
            return UploadResult(
                success=False,
                error=f"Storage bucket '{self.BUCKET_NAME}' does not exist and could not be created",
            )

        upload_url = f"{self.storage_url}/object/{self.BUCKET_NAME}/{_encode_path(storage_path)}"
        headers = self._headers(content_type)
        headers["x-upsert"] = "true"

        try:
            async with httpx.AsyncClient(timeout=60.0) as client:
                logger.debug(f"Uploading {len(content)} bytes to {storage_path}")
                response = await client.post(upload_url, headers=headers, content=content)
        except httpx.HTTPError as e:
            logger.error(f"Failed to upload {storage_path}: {e}", exc_info=True)
            return UploadResult(success=False, error=str(e))

        if response.status_code not in (200, 201):
            logger.error(f"Storage upload failed: {response.status_code} - {response.text}")
            return UploadResult(
                success=False,
                error=f"Upload failed: {response.status_code} - {response.text}",
            )

        if self._bucket_public:
            file_url = f"{self.storage_url}/object/public/{self.BUCKET_NAME}/{_encode_path(storage_path)}"
        else:
            file_url = await self._create_signed_url(storage_path, expires_in=31536000)  # 1 year
            if not file_url:
                return UploadResult(success=False, error="Failed to generate signed URL for private bucket")

        return UploadResult(success=True, url=file_url)

    async def delete_file(self, storage_path: str) -> bool:
        """Remove an object from the bucket."""
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.request(
                    "DELETE",
                    f"{self.storage_url}/object/{self.BUCKET_NAME}",
                    headers=self._headers(),
                    json={"prefixes": [storage_path]},
                )
        except httpx.HTTPError as e:
            logger.error(f"Failed to delete {storage_path}: {e}", exc_info=True)
            return False

        if response.status_code != 200:
            logger.error(f"Storage delete failed: {response.status_code} - {response.text}")
            return False
        return True

    async def _create_signed_url(self, storage_path: str, expires_in: int = 3600) -> Optional[str]:
        """Create a signed URL for a file in a private bucket."""
        sign_url = f"{self.storage_url}/object/sign/{self.BUCKET_NAME}/{_encode_path(storage_path)}"
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(sign_url, headers=self._headers(), json={"expiresIn": expires_in})
        except httpx.HTTPError as e:
            logger.error(f"Error creating signed URL: {e}", exc_info=True)
            return None

        if response.status_code != 200:
            logger.error(f"Failed to create signed URL: {response.status_code} - {response.text}")
            return None

        signed_path = response.json().get("signedURL", "")
        if signed_path.startswith("/"):
            return f"{self.storage_url}{signed_path}"
        return signed_path


_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Lazily build the shared storage client; fails if storage is not configured."""
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service
