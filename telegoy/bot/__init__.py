"""Telegram delivery layer."""

from .uploader import MediaGroupUploader, PreparedMedia, UploadReport

__all__ = ["MediaGroupUploader", "PreparedMedia", "UploadReport"]
