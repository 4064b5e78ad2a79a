# app/services/storage_service.py
import os
import uuid
import logging
from contextlib import contextmanager
from typing import Iterator, Optional
from flask import Flask
from marshmallow import ValidationError
from werkzeug.datastructures import FileStorage

_STAGING_DIR = ".staging"

# 저장 파일 확장자는 검증된 mimetype 에서만 결정
_EXTENSIONS = {'application/pdf': 'pdf', 'image/jpeg': 'jpg', 'image/jpg': 'jpg'}


class StagedUpload:
    """
    임시 저장 영역에 올라간 업로드 파일 하나.
    commit() 이 호출되어야만 영구 경로로 이동하며, 그 전에 컨텍스트를 벗어나면 삭제됩니다.
    """

    def __init__(self, storage: "StorageService", staged_path: str, reference: str):
        self._storage = storage
        self.staged_path = staged_path
        self.reference = reference
        self.committed = False

    def commit(self) -> str:
        """임시 파일을 영구 경로로 옮기고 저장 참조 경로를 반환합니다."""
        final_path = self._storage.absolute_path(self.reference)
        os.makedirs(os.path.dirname(final_path), exist_ok=True)
        os.replace(self.staged_path, final_path)
        self.committed = True
        return self.reference


class StorageService:
    """
    신분증 등 업로드 문서를 로컬 디스크에 저장하는 서비스 클래스입니다.
    업로드는 먼저 임시 영역에 저장되고, 신청이 성공적으로 기록된 경우에만 영구 경로로 이동합니다.
    """

    def __init__(self):
        """실제 저장 루트는 init_app 메서드를 통해 설정됩니다."""
        self.root: Optional[str] = None
        self.max_bytes = 5 * 1024 * 1024
        self.allowed_mimetypes = ('application/pdf', 'image/jpeg', 'image/jpg')

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 저장 루트를 준비합니다.

        :param app: Flask 애플리케이션 객체
        """
        upload_folder = app.config.get('UPLOAD_FOLDER')
        if not upload_folder:
            raise ValueError("UPLOAD_FOLDER 설정이 .env 또는 설정 파일에 필요합니다.")

        self.root = os.path.abspath(upload_folder)
        self.max_bytes = app.config.get('ID_PROOF_MAX_BYTES', self.max_bytes)
        self.allowed_mimetypes = tuple(app.config.get('ID_PROOF_ALLOWED_MIMETYPES', self.allowed_mimetypes))
        os.makedirs(os.path.join(self.root, _STAGING_DIR), exist_ok=True)
        logging.info(f"StorageService: 업로드 저장소가 초기화되었습니다 ({self.root}).")

    def absolute_path(self, reference: str) -> str:
        if not self.root:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")
        return os.path.join(self.root, *reference.split('/'))

    def validate_document(self, file: FileStorage, field_name: str) -> None:
        """파일 형식(PDF/JPEG)과 크기(기본 5MB)를 검사합니다."""
        if file.mimetype not in self.allowed_mimetypes:
            raise ValidationError(
                {field_name: ["Invalid file type. Only PDF and JPEG files are allowed."]}
            )

        file.stream.seek(0, os.SEEK_END)
        size = file.stream.tell()
        file.stream.seek(0)
        if size == 0:
            raise ValidationError({field_name: ["Uploaded file is empty."]})
        if size > self.max_bytes:
            raise ValidationError(
                {field_name: [f"File too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."]}
            )

    @contextmanager
    def staged_upload(self, file: FileStorage, folder: str, field_name: str = 'file') -> Iterator[StagedUpload]:
        """
        업로드 파일을 검증 후 임시 영역에 저장하고 StagedUpload 를 제공합니다.
        블록 안에서 commit() 되지 않은 파일은 블록을 벗어날 때(예외 포함) 항상 삭제됩니다.

        :param file: 요청에 포함된 업로드 파일
        :param folder: 영구 저장 폴더 (예: "id-proofs")
        :param field_name: 검증 오류 메시지에 사용할 필드명
        """
        if not self.root:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        self.validate_document(file, field_name)

        extension = _EXTENSIONS.get(file.mimetype)
        unique_filename = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
        staged_path = os.path.join(self.root, _STAGING_DIR, unique_filename)
        file.save(staged_path)

        staged = StagedUpload(self, staged_path, f"{folder}/{unique_filename}")
        try:
            yield staged
        finally:
            if not staged.committed:
                self._discard(staged_path)

    def delete(self, reference: str) -> None:
        """영구 저장된 파일을 삭제합니다. 실패는 로그만 남깁니다."""
        self._discard(self.absolute_path(reference))

    def _discard(self, path: str) -> None:
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as e:
            logging.error(f"업로드 파일 정리 실패 ({os.path.basename(path)}): {e}", exc_info=True)
