# Helpers for reading submitted form data (starlette FormData) into plain values
from starlette.datastructures import FormData, UploadFile


def form_value(form: FormData, key: str, default: str = "") -> str:
    value = form.get(key)
    if value is None or isinstance(value, UploadFile):
        return default
    return str(value)


def form_optional(form: FormData, key: str) -> str | None:
    value = form_value(form, key)
    return value or None


def form_values(form: FormData, key: str) -> list[str]:
    return [str(v) for v in form.getlist(key) if not isinstance(v, UploadFile)]


def form_file(form: FormData, key: str) -> UploadFile | None:
    value = form.get(key)
    if isinstance(value, UploadFile):
        return value
    return None
