"""File download responses."""

from fastapi import Response

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
PDF_MEDIA_TYPE = "application/pdf"


def download(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


def xlsx_download(content: bytes, filename: str) -> Response:
    return download(content, filename, XLSX_MEDIA_TYPE)


def pdf_download(content: bytes, filename: str) -> Response:
    return download(content, filename, PDF_MEDIA_TYPE)
