_UNITS = ["Bytes", "KB", "MB", "GB"]


def format_bytes(size: int) -> str:
    """Format a byte count as e.g. ``1.5 KB``, with at most two decimals."""
    if size <= 0:
        return "0 Bytes"

    exponent = 0
    while exponent < len(_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / 1024**exponent, 2)
    return f"{value:g} {_UNITS[exponent]}"
