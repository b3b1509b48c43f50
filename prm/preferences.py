# prm/preferences.py

DEFAULT_INTERACTION_TYPES = ["met", "call", "email", "message", "introduction", "other"]
DEFAULT_EVENT_TYPES = ["conference", "meetup", "dinner", "workshop", "other"]
DEFAULT_SENTIMENTS = ["positive", "neutral", "negative"]

# preference key -> (settings title, defaults)
PREFERENCE_LISTS = {
    "interaction_types": ("Interaction Types", DEFAULT_INTERACTION_TYPES),
    "event_types": ("Event Types", DEFAULT_EVENT_TYPES),
    "sentiments": ("Sentiment Labels", DEFAULT_SENTIMENTS),
}


def get_preference(prefs, key: str, default):
    """prefs is the [{key, value}] list from db_ops.get_preferences."""
    for p in prefs or []:
        if p.get("key") == key:
            return list(p.get("value") or [])
    return list(default)


def resolve_preferences(prefs) -> dict:
    return {key: get_preference(prefs, key, defaults) for key, (_, defaults) in PREFERENCE_LISTS.items()}


def add_item(items, item: str):
    """Returns a new list with the trimmed, lower-cased item appended; blanks and duplicates are ignored."""
    new = (item or "").strip().lower()
    if not new or new in items:
        return list(items)
    return list(items) + [new]


def remove_item(items, item: str):
    return [i for i in items if i != item]


def label(item: str) -> str:
    return item[:1].upper() + item[1:] if item else item
