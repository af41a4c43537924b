"""Request body parsing for the admin's forms.

URL-encoded bodies use stdlib ``urllib.parse``. Multipart bodies go
through ``python-multipart``'s callback parser; uploaded files are kept
only as their filename, since the admin change form stores scalar
values.
"""

from typing import Any
from urllib.parse import parse_qs

from python_multipart.multipart import MultipartParser, parse_options_header

from roost.http.params import FormData


def parse_form_data(body: bytes, content_type: str) -> FormData:
    """Parse a request body according to its Content-Type."""
    if content_type.startswith("multipart/form-data"):
        return _parse_multipart(body, content_type)
    return _parse_urlencoded(body)


def _parse_urlencoded(body: bytes) -> FormData:
    parsed = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return FormData(parsed)


def _parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse multipart form data using python-multipart."""
    _, options = parse_options_header(content_type.encode("latin-1"))
    boundary = options.get(b"boundary")
    if boundary is None:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    data: dict[str, list[str]] = {}
    current_name: str | None = None
    current_filename: str | None = None
    current_data = bytearray()
    pending_header = ""

    def on_part_begin() -> None:
        nonlocal current_name, current_filename, current_data
        current_name = None
        current_filename = None
        current_data = bytearray()

    def on_part_data(chunk: bytes, start: int, end: int) -> None:
        current_data.extend(chunk[start:end])

    def on_part_end() -> None:
        if current_name is None:
            return
        if current_filename is not None:
            value = current_filename
        else:
            value = current_data.decode("utf-8", errors="replace")
        data.setdefault(current_name, []).append(value)

    def on_header_field(chunk: bytes, start: int, end: int) -> None:
        nonlocal pending_header
        pending_header = chunk[start:end].decode("latin-1").lower()

    def on_header_value(chunk: bytes, start: int, end: int) -> None:
        nonlocal current_name, current_filename
        if pending_header != "content-disposition":
            return
        _, params = parse_options_header(chunk[start:end])
        if (name := params.get(b"name")) is not None:
            current_name = name.decode("utf-8")
        if (filename := params.get(b"filename")) is not None:
            current_filename = filename.decode("utf-8")

    callbacks: dict[str, Any] = {
        "on_part_begin": on_part_begin,
        "on_part_data": on_part_data,
        "on_part_end": on_part_end,
        "on_header_field": on_header_field,
        "on_header_value": on_header_value,
    }

    parser = MultipartParser(boundary, callbacks)
    parser.write(body)
    parser.finalize()

    return FormData(data)
