SIZE_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def format_file_size(size: int) -> str:
    """
    Human readable file size, 1024-based.
    e.g. 0 -> "0 Bytes", 1536 -> "1.5 KB"
    """
    if size <= 0:
        return "0 Bytes"

    i = 0
    while size >= 1024 ** (i + 1) and i < len(SIZE_UNITS) - 1:
        i += 1

    value = round(size / 1024 ** i, 2)

    # Drop trailing zeros: 1.50 -> 1.5, 2.00 -> 2
    return f"{value:g} {SIZE_UNITS[i]}"
