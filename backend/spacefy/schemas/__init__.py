"""Pydantic schemas for API validation."""

from .common import ApiResponse, PageMeta, PageParams, CountResult, page_params, page_response

__all__ = ["ApiResponse", "PageMeta", "PageParams", "CountResult", "page_params", "page_response"]
