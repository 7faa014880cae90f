from pydantic import ValidationError


def first_error(exc: ValidationError) -> str:
    """Turn a pydantic error into one line suitable for a form banner."""
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    error = errors[0]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message
