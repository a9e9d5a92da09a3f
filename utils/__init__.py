def chunked(items: list, size: int):
    """Yield successive ``size``-long slices of ``items``."""
    size = max(1, size)
    for start in range(0, len(items), size):
        yield items[start : start + size]
