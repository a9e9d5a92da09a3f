from db.enums import BookStatus

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

RANKING_CACHE_HEADERS = {
    "Cache-Control": "public, max-age=300",
}

BOOK_STATUS_TEXT = {
    BookStatus.COMPLETED: "completed",
    BookStatus.ONGOING: "ongoing",
}

CATEGORY_NAME_SEPARATOR = " • "
