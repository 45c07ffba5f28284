# tstar_feed/services/storage_service.py
import uuid
import logging
from pathlib import Path
from urllib.parse import urlparse, unquote

import requests

from tstar_feed.core.errors import BlobUploadError
from tstar_feed.utils.datetime_utils import DateTimeUtils

class BlobStorageService:
    """
    Firebase Storage 업로드를 담당하는 서비스 클래스입니다.
    로컬 이미지 참조(파일 경로, file:// URI, http(s) URL)를 받아 바이트를 읽고,
    고유한 경로에 업로드한 뒤 공개 URL을 반환합니다.
    """
    IMAGE_FOLDER = "images"
    CONTENT_TYPE = "image/jpeg"
    FETCH_TIMEOUT_SECONDS = 30

    def __init__(self, bucket):
        """
        :param bucket: CloudContext가 생성한 Storage 버킷 객체
        """
        self.bucket = bucket

    def _generate_blob_name(self) -> str:
        return f"{self.IMAGE_FOLDER}/{DateTimeUtils.now_ms()}_{uuid.uuid4().hex[:7]}.jpg"

    def _read_image_bytes(self, image_ref: str) -> bytes:
        """이미지 참조에서 바이너리를 읽어옵니다."""
        parsed = urlparse(image_ref)
        if parsed.scheme in ("http", "https"):
            response = requests.get(image_ref, timeout=self.FETCH_TIMEOUT_SECONDS)
            response.raise_for_status()
            return response.content
        if parsed.scheme == "file":
            return Path(unquote(parsed.path)).read_bytes()
        return Path(image_ref).read_bytes()

    def upload_image(self, image_ref: str) -> str:
        """
        이미지를 업로드하고 공개적으로 접근 가능한 URL을 반환합니다.

        :param image_ref: 로컬 이미지 참조
        :return: 업로드된 이미지의 공개 URL
        :raises BlobUploadError: 읽기/업로드/공개 전환 중 하나라도 실패한 경우
        """
        if not self.bucket:
            raise BlobUploadError("Storage 버킷이 초기화되지 않았습니다.")
        try:
            data = self._read_image_bytes(image_ref)
            blob = self.bucket.blob(self._generate_blob_name())
            blob.upload_from_string(data, content_type=self.CONTENT_TYPE)
            blob.make_public()
            logging.info(f"이미지 업로드 성공: {blob.name}")
            return blob.public_url
        except Exception as e:
            logging.warning(f"이미지 업로드 실패 (ref: {image_ref}): {e}", exc_info=True)
            raise BlobUploadError(f"이미지 업로드 실패: {e}", details={"image_ref": image_ref}) from e
