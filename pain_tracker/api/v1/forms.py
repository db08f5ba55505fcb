"""Helpers for multipart forms: schema validation and file reading."""

from typing import TypeVar

from fastapi import UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from pain_tracker.core.uploads import AttachmentCandidate

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_form(model: type[ModelT], **values: object) -> ModelT:
    """
    Validate multipart form fields against a schema.

    Raises:
        RequestValidationError: Field-scoped errors, before any Firebase call
    """
    try:
        return model.model_validate(values)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        for error in errors:
            error["loc"] = ("body", *error["loc"])
        raise RequestValidationError(errors) from e


async def read_upload(file: UploadFile) -> AttachmentCandidate:
    data = await file.read()
    return AttachmentCandidate(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        data=data,
    )


async def read_uploads(files: list[UploadFile] | None) -> list[AttachmentCandidate]:
    return [await read_upload(file) for file in files or [] if file.filename]
