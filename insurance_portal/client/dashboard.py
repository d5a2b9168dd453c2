"""Dashboard list helpers: status tabs and client-name search."""

ALL_STATUSES = "All"


def filter_by_status(forms: list[dict], status: str = ALL_STATUSES) -> list[dict]:
    if not status or status == ALL_STATUSES:
        return list(forms)
    return [f for f in forms if f.get("status") == status]


def search_by_client_name(forms: list[dict], query: str) -> list[dict]:
    """Case-insensitive substring match on clientName; blank query matches all."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(forms)
    return [f for f in forms if needle in (f.get("clientName") or "").lower()]


def visible_forms(forms: list[dict], status: str = ALL_STATUSES, query: str = "") -> list[dict]:
    return search_by_client_name(filter_by_status(forms, status), query)


def status_counts(forms: list[dict]) -> dict[str, int]:
    """Count per status, plus the "All" total shown on the first tab."""
    counts = {ALL_STATUSES: len(forms)}
    for form in forms:
        status = form.get("status")
        counts[status] = counts.get(status, 0) + 1
    return counts
