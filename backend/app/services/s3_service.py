"""
Artifact storage for generated resume PDFs.
S3 when AWS credentials are configured (files under {s3_key_prefix}/{user_id}/{filename}),
otherwise the local upload directory that main.py serves as static files.
"""
import shutil
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from backend.app.core.config import PDF_MIME_TYPE, settings
from backend.app.core.exceptions import StorageError
from backend.app.core.logging_config import get_logger

logger = get_logger("services.s3")


def s3_configured() -> bool:
    return bool(settings.aws_access_key_id and settings.aws_secret_access_key)


def _get_s3_client():
    """Get configured S3 client."""
    if not s3_configured():
        raise StorageError("AWS credentials not configured (AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY)")
    return boto3.client(
        "s3",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region,
    )


def public_url_for_key(key: str) -> str:
    return f"https://{settings.aws_bucket_name}.s3.{settings.aws_region}.amazonaws.com/{key}"


def upload_file_to_s3(
    file_buffer: bytes,
    file_name: str,
    user_id: str,
    mime_type: str = PDF_MIME_TYPE,
    key_prefix: str | None = None,
) -> dict:
    """
    Upload file to S3 under {prefix}/{user_id}/{file_name}.

    Returns:
        dict with key, url
    """
    prefix = key_prefix or settings.s3_key_prefix
    key = f"{prefix}/{user_id}/{file_name}"

    logger.info(
        "S3 upload started bucket=%s region=%s key=%s user_id=%s size_bytes=%d",
        settings.aws_bucket_name,
        settings.aws_region,
        key,
        user_id,
        len(file_buffer),
    )

    try:
        s3 = _get_s3_client()
        s3.put_object(
            Bucket=settings.aws_bucket_name,
            Key=key,
            Body=file_buffer,
            ContentType=mime_type,
        )
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        msg = e.response.get("Error", {}).get("Message", str(e))
        logger.error(
            "S3 upload failed bucket=%s key=%s user_id=%s error_code=%s error_message=%s",
            settings.aws_bucket_name,
            key,
            user_id,
            code,
            msg,
        )
        raise StorageError(f"S3 upload failed - {code}: {msg}") from e
    except BotoCoreError as e:
        logger.error("S3 upload failed bucket=%s key=%s error=%s", settings.aws_bucket_name, key, e)
        raise StorageError(f"S3 upload failed - {e}") from e

    url = public_url_for_key(key)
    logger.info("S3 upload success bucket=%s key=%s url=%s", settings.aws_bucket_name, key, url)
    return {"key": key, "url": url}


def save_file_locally(pdf_path: Path, file_name: str, user_id: str) -> str:
    """Copy into {upload_dir}/{user_id}/ and return the URL path main.py serves it under."""
    target_dir = Path(settings.upload_dir) / user_id
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(pdf_path, target_dir / file_name)
    except OSError as e:
        logger.error("Local artifact save failed user_id=%s file=%s error=%s", user_id, file_name, e)
        raise StorageError(f"Failed to save file: {e}") from e
    return f"/{settings.upload_dir}/{user_id}/{file_name}"


def store_artifact(pdf_path: Path, file_name: str, user_id: str) -> str:
    """Make the rendered PDF retrievable. Returns its public URL; raises StorageError."""
    if s3_configured():
        try:
            data = pdf_path.read_bytes()
        except OSError as e:
            raise StorageError(f"Rendered PDF not readable: {e}") from e
        return upload_file_to_s3(data, file_name, user_id)["url"]
    return save_file_locally(pdf_path, file_name, user_id)


def local_path_for_url(url: str) -> Path | None:
    """Map a /{upload_dir}/... URL back to the file on disk. None for remote URLs."""
    prefix = f"/{settings.upload_dir}/"
    if not url or not url.startswith(prefix):
        return None
    relative = Path(url[len(prefix):].split("?")[0])
    if relative.is_absolute() or ".." in relative.parts:
        return None
    return Path(settings.upload_dir) / relative
